"""TrackingNavigator — run-time hooks for tracked-survey tasks.

The assembler binds a navigator to every task it builds.  The host task
controller (or :meth:`Task.step_after`) calls it once per transition:

  - ``after_step``: data-store bookkeeping for the step just completed; the
    proposed next step is always returned unchanged
  - ``should_skip``: tracking-aware steps get the store's current selection
    pushed in and then report whether they are moot

The navigator keeps no state of its own; everything it remembers lives in
the data store passed to it.
"""

from __future__ import annotations

import logging

from survey_rulesets.interfaces import ConditionalRule
from survey_rulesets.models.descriptor import TrackingType
from survey_rulesets.models.result import TaskResult, TrackedDataSelectionResult
from survey_rulesets.models.step import Step, TrackedNavigationStep, TrackedSelectionStep
from survey_rulesets.store import TrackedDataStore

logger = logging.getLogger(__name__)


class TrackingNavigator(ConditionalRule):
    """Applies selection-driven skips and keeps the data store in sync.

    Args:
        store: the tracked-data store shared with the assembler
    """

    def __init__(self, store: TrackedDataStore) -> None:
        self._store = store

    @property
    def store(self) -> TrackedDataStore:
        return self._store

    def should_skip(self, step: Step | None, task_result: TaskResult) -> bool:
        """True if *step* is a tracked navigation step made moot by the selection."""
        if not isinstance(step, TrackedNavigationStep):
            return False

        step.update(self._store.selected_items or [])
        return step.should_skip_step

    def after_step(
        self,
        previous_step: Step | None,
        next_step: Step | None,
        task_result: TaskResult,
    ) -> Step | None:
        """Record the completed step's result in the store; returns *next_step*.

        - a selection step with a selection payload updates the selection
        - an ``activity`` step records the moment-in-day answer
        """
        if previous_step is None:
            return next_step

        step_result = task_result.step_result_for(previous_step.identifier)
        if step_result is None:
            return next_step

        if isinstance(previous_step, TrackedSelectionStep):
            payload = step_result.result_for(previous_step.tracked_result_identifier or previous_step.identifier)
            if isinstance(payload, TrackedDataSelectionResult):
                self._store.update_tracked_data(step_result)
        elif previous_step.tracking_type == TrackingType.ACTIVITY:
            self._store.update_moment_in_day(step_result)
            logger.debug("Recorded moment-in-day result for %s", previous_step.identifier)

        return next_step

    def update_selection(
        self,
        selection_step: TrackedSelectionStep,
        activity_step: TrackedNavigationStep,
        task_result: TaskResult,
    ) -> None:
        """Push a just-answered selection into the store and refresh *activity_step*.

        Used by hosts that show the selection and the activity timing on the
        same screen, before ``after_step`` would normally run.
        """
        step_result = task_result.step_result_for(selection_step.identifier)
        if step_result is None:
            return

        self._store.update_tracked_data(step_result)
        activity_step.update(self._store.selected_items or [])
