"""TaskAssembler — builds a navigable task from a tracked-data collection.

A ``TrackedCollection`` configures a recurring bundle: a full survey, a
"has anything changed?" gate and moment-in-day activity probes.  Each time
the host launches it, the assembler:

  1. snapshots the data store and computes one ``InclusionDecision``
  2. walks the descriptors in order, keeping those the decision permits,
     and has the step factory materialise them
  3. pre-seeds results for selection steps the store can already answer
  4. points an unconfigured changed gate at the first activity step, so a
     "nothing changed" answer jumps past the survey body
  5. binds a ``TrackingNavigator`` to the task

When the collection is inserted into a larger multi-activity flow,
:meth:`TaskAssembler.transform_to_step` wraps the task in a
``SubtaskStep``.

Usage::

    assembler = TaskAssembler(collection, store, SurveyStepFactory())
    assembled = assembler.assemble(is_last_step=True)
    assembled.task.step_identifiers
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from survey_rulesets.constants import MOMENT_IN_DAY_REPEAT_INTERVAL, TRACKING_SURVEY_REPEAT_INTERVAL
from survey_rulesets.diagnostics import ConfigIssue, ConfigIssueKind, report_issue
from survey_rulesets.factory import SurveyStepFactory
from survey_rulesets.interfaces import ConditionalRule, StepFactory
from survey_rulesets.models.descriptor import StepDescriptor, TrackingType
from survey_rulesets.models.item_type import SubtaskKind
from survey_rulesets.models.result import StepResult
from survey_rulesets.models.step import NavigationFormStep, Step, SubtaskStep
from survey_rulesets.models.task import Task
from survey_rulesets.models.tracking import TrackedItem, has_tracked_items
from survey_rulesets.navigation import TrackingNavigator
from survey_rulesets.policy import InclusionDecision, decide
from survey_rulesets.store import TrackedDataStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class TrackedCollection(BaseModel):
    """Configuration of a recurring tracked-data bundle.

    ``steps`` holds raw descriptors; entries that do not validate as a
    ``StepDescriptor`` are skipped at assembly time.  Repeat intervals
    accept a ``timedelta`` or a number of seconds.
    """

    task_identifier: str = Field(default_factory=lambda: str(uuid.uuid4()))
    schema_identifier: Optional[str] = None
    always_include_activity_steps: bool = False
    items: List[TrackedItem] = []
    steps: List[Any] = []
    tracking_survey_repeat_interval: timedelta = TRACKING_SURVEY_REPEAT_INTERVAL
    moment_in_day_repeat_interval: timedelta = MOMENT_IN_DAY_REPEAT_INTERVAL

    @model_validator(mode="after")
    def _default_schema(self):
        # The schema identifier falls back to the task identifier
        if self.schema_identifier is None:
            self.schema_identifier = self.task_identifier
        return self


@dataclass
class AssembledTask:
    """Output of one assembly run."""

    task: Task
    decision: InclusionDecision
    first_activity_step_identifier: str | None = None


# ---------------------------------------------------------------------------
# Core assembly
# ---------------------------------------------------------------------------

def _as_descriptor(element: Any) -> StepDescriptor | None:
    """Coerce a raw configuration entry, or None if it has the wrong shape."""
    if isinstance(element, StepDescriptor):
        return element
    if not isinstance(element, dict):
        logger.debug("Ignoring non-descriptor step entry: %r", element)
        return None
    try:
        return StepDescriptor.model_validate(element)
    except ValidationError as exc:
        report_issue(ConfigIssue(
            kind=ConfigIssueKind.INVALID_DESCRIPTOR,
            message=f"Step descriptor does not validate: {exc.error_count()} error(s)",
            identifier=element.get("identifier"),
        ))
        return None


def assemble_task(
    descriptors: Iterable[Any],
    decision: InclusionDecision,
    tracked_items: list[TrackedItem],
    factory: StepFactory,
    store: TrackedDataStore,
    *,
    task_identifier: str,
    conditional_rule: ConditionalRule | None = None,
) -> AssembledTask:
    """Filter, materialise and cross-link the steps permitted by *decision*.

    Args:
        descriptors: ordered raw or parsed step descriptors
        decision: the inclusion decision for this run
        tracked_items: catalog handed to the factory for tracked steps
        factory: materialises descriptors into steps
        store: answers pre-seeded selection results
        task_identifier: identifier of the resulting task
        conditional_rule: run-time hooks to bind to the task

    Returns:
        The task plus the identifier of its first activity step, if any.
    """
    steps: list[Step] = []
    tracked_results: list[StepResult] = []
    first_activity_step_identifier: str | None = None

    for element in descriptors:
        descriptor = _as_descriptor(element)
        if descriptor is None:
            continue

        tracking_type = descriptor.tracking_type
        if tracking_type is not None:
            if not decision.should_include(tracking_type):
                continue
            step = factory.create_step(descriptor, tracking_type, tracked_items)
            if step is None:
                continue

            if tracking_type == TrackingType.ACTIVITY and first_activity_step_identifier is None:
                first_activity_step_identifier = step.identifier

            # Selections already known to the store are not asked again
            if tracking_type == TrackingType.SELECTION:
                result = store.step_result_for(step)
                if result is not None:
                    tracked_results.append(result)

            steps.append(step)

        elif decision.includes_survey:
            step = factory.create_step(descriptor)
            if step is not None:
                steps.append(step)

    # Map the "no change" answer of the changed gate onto the activity steps
    if (
        steps
        and first_activity_step_identifier is not None
        and decision.next_step_if_no_change == TrackingType.ACTIVITY
    ):
        gate = steps[0]
        if isinstance(gate, NavigationFormStep) and gate.rules and gate.rules[0].skips_to_null_step:
            gate.rules[0].skip_identifier = first_activity_step_identifier

    task = Task(identifier=task_identifier, steps=steps, conditional_rule=conditional_rule)
    if tracked_results:
        task.append_initial_results(tracked_results)

    return AssembledTask(
        task=task,
        decision=decision,
        first_activity_step_identifier=first_activity_step_identifier,
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class TaskAssembler:
    """Assembles tasks for one tracked-data collection.

    Args:
        collection: the bundle configuration
        store: the tracked-data store shared with navigation
        factory: step factory (defaults to :class:`SurveyStepFactory`)
    """

    def __init__(
        self,
        collection: TrackedCollection,
        store: TrackedDataStore,
        factory: StepFactory | None = None,
    ) -> None:
        self._collection = collection
        self._store = store
        self._factory = factory or SurveyStepFactory()

    @property
    def collection(self) -> TrackedCollection:
        return self._collection

    def find_descriptor(self, tracking_type: TrackingType) -> StepDescriptor | None:
        """First descriptor configured with *tracking_type*."""
        for element in self._collection.steps:
            if isinstance(element, StepDescriptor):
                found = element.tracking_type
            elif isinstance(element, dict):
                found = element.get("tracking_type")
            else:
                continue
            if found == tracking_type:
                return _as_descriptor(element)
        return None

    def build_includes(self, is_last_step: bool, now: datetime | None = None) -> InclusionDecision:
        """Snapshot the store once and compute this run's inclusion decision."""
        state = self._store.snapshot()
        return decide(
            is_last_step,
            state,
            always_include_activity=self._collection.always_include_activity_steps,
            survey_repeat_interval=self._collection.tracking_survey_repeat_interval,
            activity_repeat_interval=self._collection.moment_in_day_repeat_interval,
            has_changed_step_defined=self.find_descriptor(TrackingType.CHANGED) is not None,
            has_tracked_items=has_tracked_items(state.selected_items),
            now=now,
        )

    def filtered_steps(self, decision: InclusionDecision) -> list[Step]:
        """Steps the collection contributes under *decision*, without a task binding."""
        return self._assemble(decision).task.steps

    def assemble(self, is_last_step: bool, now: datetime | None = None) -> AssembledTask:
        """Decide, build and bind the task for this run."""
        decision = self.build_includes(is_last_step, now=now)
        assembled = self._assemble(decision, conditional_rule=TrackingNavigator(self._store))

        # Cache the moment-in-day step list the first time round
        self._store.cache_moment_in_day_steps(lambda: self.filtered_steps(InclusionDecision.ACTIVITY_ONLY))

        logger.info(
            "Assembled %s: decision=%s, %d steps, %d pre-seeded results",
            assembled.task.identifier,
            decision.value,
            len(assembled.task.steps),
            len(assembled.task.initial_results),
        )
        return assembled

    def transform_to_step(self, is_last_step: bool, now: datetime | None = None) -> SubtaskStep:
        """Assemble and wrap the task as a single step of a larger flow.

        The container only carries the task/schema identifiers when the full
        survey is included; partial runs stay anonymous.
        """
        assembled = self.assemble(is_last_step, now=now)
        step = SubtaskStep(
            identifier=assembled.task.identifier,
            kind=SubtaskKind(),
            subtask=assembled.task,
        )
        if assembled.decision.includes_full_survey:
            step.task_identifier = self._collection.task_identifier
            step.schema_identifier = self._collection.schema_identifier
        return step

    def _assemble(
        self,
        decision: InclusionDecision,
        conditional_rule: ConditionalRule | None = None,
    ) -> AssembledTask:
        return assemble_task(
            self._collection.steps,
            decision,
            self._collection.items,
            self._factory,
            self._store,
            task_identifier=self._collection.schema_identifier,
            conditional_rule=conditional_rule,
        )
