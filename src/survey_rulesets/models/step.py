"""Step models — the concrete steps a task is assembled from.

Steps are runtime objects produced by a ``StepFactory`` from descriptors.
Rendering is the host application's business; the SDK only needs identity,
kind, tracking role and navigation rules:

  - Step: any step (instruction, consent, account, ...)
  - FormStep: a question step with optional answer choices
  - NavigationFormStep: a form step carrying compiled navigation rules
  - TrackedSelectionStep: lets the participant pick tracked items
  - TrackedNavigationStep: a tracked question whose visibility depends on
    the current selection (frequency questions, moment-in-day probes)
  - SubtaskStep: wraps a whole task as a single step of a larger flow
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from survey_rulesets.constants import NULL_STEP_IDENTIFIER
from survey_rulesets.models.descriptor import TrackingType
from survey_rulesets.models.item_type import CustomKind, StepKind
from survey_rulesets.models.result import TaskResult
from survey_rulesets.models.tracking import TrackedItem, has_tracked_items

if TYPE_CHECKING:
    from survey_rulesets.models.task import Task
    from survey_rulesets.rules import CompiledRule


@dataclass
class Step:
    identifier: str
    kind: StepKind = field(default_factory=CustomKind)
    title: str | None = None
    text: str | None = None
    detail_text: str | None = None
    # Role in a recurring tracked bundle, None for ordinary survey steps
    tracking_type: TrackingType | None = None


@dataclass
class FormStep(Step):
    # Answer choices as configured: [{text, value}]
    items: list[dict] = field(default_factory=list)


@dataclass
class NavigationFormStep(FormStep):
    """Form step whose own answer can redirect navigation."""

    rules: list[CompiledRule] = field(default_factory=list)

    def next_step_identifier(self, task_result: TaskResult) -> str | None:
        """Skip target of the first matching rule, or None to continue normally.

        Rules only test this step's own result.  A rule pointing at the
        null-step sentinel matches but does not jump.
        """
        step_result = task_result.step_result_for(self.identifier)
        for rule in self.rules:
            if rule.matches(step_result):
                if rule.skip_identifier == NULL_STEP_IDENTIFIER:
                    return None
                return rule.skip_identifier
        return None


@dataclass
class TrackedSelectionStep(NavigationFormStep):
    """Selection of tracked items; its result feeds the data store."""

    tracked_items: list[TrackedItem] = field(default_factory=list)
    tracked_result_identifier: str | None = None

    def __post_init__(self) -> None:
        if self.tracked_result_identifier is None:
            self.tracked_result_identifier = self.identifier


@dataclass
class TrackedNavigationStep(NavigationFormStep):
    """Tracked question that is skipped when the selection makes it moot.

    The navigator pushes the store's current selection in via
    :meth:`update` before reading :attr:`should_skip_step`.
    """

    selected_items: list[TrackedItem] = field(default_factory=list)

    def update(self, selected_items: list[TrackedItem]) -> None:
        self.selected_items = list(selected_items)

    @property
    def tracked_selection(self) -> list[TrackedItem]:
        """Selected items this step asks about."""
        if self.tracking_type == TrackingType.ACTIVITY:
            return [item for item in self.selected_items if item.tracking]
        return list(self.selected_items)

    @property
    def should_skip_step(self) -> bool:
        """Skip predicate for the current selection.

        Moment-in-day probes are moot when nothing selected is tracked;
        frequency questions are moot when nothing is selected at all.
        """
        if self.tracking_type == TrackingType.ACTIVITY:
            return not has_tracked_items(self.selected_items)
        if self.tracking_type == TrackingType.FREQUENCY:
            return len(self.selected_items) == 0
        return False


@dataclass
class SubtaskStep(Step):
    """Container step wrapping an assembled task.

    ``task_identifier`` / ``schema_identifier`` are only set when the wrapped
    task is a complete survey; partial runs stay anonymous.
    """

    subtask: Task | None = None
    task_identifier: str | None = None
    schema_identifier: str | None = None

