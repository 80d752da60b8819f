"""Result models — what a participant's answers look like to the SDK.

The host task controller records one ``StepResult`` per completed step and
accumulates them into a ``TaskResult``.  Navigation rules only ever look at
the ``answer`` of a question result inside the step that owns the rule.

Result types:
  - QuestionResult: one answered question (``answer`` is None if skipped);
    choice questions always record a list of selected values
  - TrackedDataSelectionResult: the payload of a selection step, carrying
    the tracked items the participant picked
  - StepResult: all question results of one step
  - TaskResult: all step results of one task run

Question results are tagged with ``result_type`` so a ``TaskResult`` read
back from dicts or JSON keeps its selection payloads.  Timestamps without a
timezone are taken to be UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .tracking import TrackedItem


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to a naive timestamp; aware timestamps pass through."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class QuestionResult(BaseModel):
    result_type: Literal["question"] = "question"
    identifier: str
    answer: Any = None


class TrackedDataSelectionResult(QuestionResult):
    """Selection payload; ``answer`` mirrors the selected identifiers."""

    result_type: Literal["tracked_selection"] = "tracked_selection"
    selected_items: Optional[List[TrackedItem]] = None

    @classmethod
    def from_items(cls, identifier: str, items: list[TrackedItem]) -> "TrackedDataSelectionResult":
        return cls(
            identifier=identifier,
            answer=[item.identifier for item in items],
            selected_items=list(items),
        )


AnyQuestionResult = Annotated[
    Union[TrackedDataSelectionResult, QuestionResult],
    Field(discriminator="result_type"),
]


class StepResult(BaseModel):
    identifier: str
    results: List[AnyQuestionResult] = Field(default_factory=list)
    end_date: Optional[datetime] = None

    @field_validator("end_date")
    @classmethod
    def _end_date_is_aware(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    def result_for(self, identifier: str) -> QuestionResult | None:
        """Question result with the given identifier, if recorded."""
        for result in self.results:
            if result.identifier == identifier:
                return result
        return None

    def selection_result(self) -> TrackedDataSelectionResult | None:
        """First tracked-data selection payload in this step, if any."""
        for result in self.results:
            if isinstance(result, TrackedDataSelectionResult):
                return result
        return None


class TaskResult(BaseModel):
    identifier: str
    results: List[StepResult] = Field(default_factory=list)

    def step_result_for(self, step_identifier: str) -> StepResult | None:
        """Most recent result recorded for *step_identifier*."""
        for result in reversed(self.results):
            if result.identifier == step_identifier:
                return result
        return None
