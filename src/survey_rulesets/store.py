"""Tracked-data store — cross-session state read at assembly, written during navigation.

The store is an explicit context object owned by the host application: it
is created, passed into the assembler and navigator, and reset by the host.
There is no process-wide singleton.

Backends subclass :class:`TrackedDataStore` and implement only
``load_state`` / ``save_state``.  The base class provides the read/write
contract the SDK relies on and serialises every access through a single
re-entrant lock, so assembly-time snapshots and navigation-time writes
never interleave even if a host shares one store across threads.

Usage::

    store = InMemoryDataStore()
    store.selected_items            # None until the first selection
    store.update_tracked_data(step_result)
    snapshot = store.snapshot()     # DataStoreState copy for the policy
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable

from survey_rulesets.models.result import StepResult, TrackedDataSelectionResult, as_utc
from survey_rulesets.models.state import DataStoreState
from survey_rulesets.models.step import Step, TrackedSelectionStep
from survey_rulesets.models.tracking import TrackedItem

logger = logging.getLogger(__name__)


class TrackedDataStore(ABC):
    """Read/write contract over a ``DataStoreState``."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def load_state(self) -> DataStoreState:
        """Return the current state (called with the lock held)."""
        ...

    @abstractmethod
    def save_state(self, state: DataStoreState) -> None:
        """Persist *state* (called with the lock held)."""
        ...

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> DataStoreState:
        """Independent copy of the current state."""
        with self._lock:
            return self.load_state().model_copy(deep=True)

    @property
    def selected_items(self) -> list[TrackedItem] | None:
        with self._lock:
            items = self.load_state().selected_items
            return None if items is None else list(items)

    @selected_items.setter
    def selected_items(self, items: list[TrackedItem] | None) -> None:
        self._set(selected_items=None if items is None else list(items))

    @property
    def last_tracking_survey_date(self) -> datetime | None:
        with self._lock:
            return self.load_state().last_tracking_survey_date

    @last_tracking_survey_date.setter
    def last_tracking_survey_date(self, value: datetime | None) -> None:
        self._set(last_tracking_survey_date=as_utc(value))

    @property
    def last_completion_date(self) -> datetime | None:
        with self._lock:
            return self.load_state().last_completion_date

    @last_completion_date.setter
    def last_completion_date(self, value: datetime | None) -> None:
        self._set(last_completion_date=as_utc(value))

    @property
    def moment_in_day_steps(self) -> list[Any] | None:
        with self._lock:
            return self.load_state().moment_in_day_steps

    @moment_in_day_steps.setter
    def moment_in_day_steps(self, steps: list[Any] | None) -> None:
        self._set(moment_in_day_steps=None if steps is None else list(steps))

    def cache_moment_in_day_steps(self, build: Callable[[], list[Any]]) -> list[Any]:
        """Return the cached moment-in-day steps, building them on first use.

        The check and the write happen under one lock hold, so *build* runs
        at most once per store even when hosts assemble concurrently.
        """
        with self._lock:
            steps = self.load_state().moment_in_day_steps
            if steps is None:
                steps = list(build())
                self._set(moment_in_day_steps=steps)
            return steps

    @property
    def moment_in_day_results(self) -> list[StepResult] | None:
        with self._lock:
            results = self.load_state().moment_in_day_results
            return None if results is None else list(results)

    @moment_in_day_results.setter
    def moment_in_day_results(self, results: list[StepResult] | None) -> None:
        self._set(moment_in_day_results=None if results is None else list(results))

    def step_result_for(self, step: Step) -> StepResult | None:
        """Pre-seeded result for *step*, if the store already knows the answer.

        Only selection steps can be answered from the store: their result is
        rebuilt from the current selection so a resumed task does not ask
        again.  Returns None when nothing has been selected yet.
        """
        if not isinstance(step, TrackedSelectionStep):
            return None
        with self._lock:
            state = self.load_state()
            if state.selected_items is None:
                return None
            selection = TrackedDataSelectionResult.from_items(
                step.tracked_result_identifier or step.identifier,
                state.selected_items,
            )
            return StepResult(
                identifier=step.identifier,
                results=[selection],
                end_date=state.last_tracking_survey_date,
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_tracked_data(self, step_result: StepResult) -> None:
        """Replace the selection with the payload recorded in *step_result*.

        Stamps ``last_tracking_survey_date`` with the result's end date
        (or now).  Results without a selection payload are ignored.
        """
        selection = step_result.selection_result()
        if selection is None or selection.selected_items is None:
            logger.debug("Step %s has no selection payload", step_result.identifier)
            return

        # Keep the first occurrence of each identifier, in selection order
        merged: dict[str, TrackedItem] = {}
        for item in selection.selected_items:
            merged.setdefault(item.identifier, item)

        self._set(
            selected_items=list(merged.values()),
            last_tracking_survey_date=as_utc(step_result.end_date) or datetime.now(timezone.utc),
        )
        logger.info("Tracked selection updated: %d items", len(merged))

    def update_moment_in_day(self, step_result: StepResult) -> None:
        """Record a moment-in-day answer, replacing any earlier one for the same step."""
        with self._lock:
            previous = self.load_state().moment_in_day_results or []
            results = [r for r in previous if r.identifier != step_result.identifier]
            results.append(step_result)
            self._set(
                moment_in_day_results=results,
                last_completion_date=as_utc(step_result.end_date) or datetime.now(timezone.utc),
            )

    def _set(self, **changes: Any) -> None:
        with self._lock:
            state = self.load_state().model_copy(update=changes)
            self.save_state(state)


class InMemoryDataStore(TrackedDataStore):
    """Process-local store; the state lives as long as the object."""

    def __init__(self, state: DataStoreState | None = None) -> None:
        super().__init__()
        self._state = state or DataStoreState()

    def load_state(self) -> DataStoreState:
        return self._state

    def save_state(self, state: DataStoreState) -> None:
        self._state = state

    def reset(self) -> None:
        """Forget everything, as if the participant never ran the survey."""
        with self._lock:
            self._state = DataStoreState()
