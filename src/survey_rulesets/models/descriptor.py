"""Descriptor models — the declarative configuration the assembler consumes.

A tracked-survey collection is configured as an ordered list of step
descriptors.  Each descriptor names its step type token, its display text,
an optional tracking role in the recurring bundle, and optional navigation
rules:

  - StepDescriptor: one configured step
  - RuleDescriptor: "if this step's answer is X, skip to Y"
  - TrackingType: the role a step plays in the recurring bundle

Descriptors are owned by the caller and never mutated by the SDK.  Keys the
SDK does not know about are preserved (``extra="allow"``) so that concrete
step factories can read their own options.
"""

from __future__ import annotations

import enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict

from .item_type import FormSubtype, StepKind, classify


class TrackingType(str, enum.Enum):
    """Role of a step inside a recurring tracked-data bundle.

    ``selection``, ``changed`` and ``activity`` drive the inclusion policy;
    ``introduction``, ``frequency`` and ``completion`` frame the full survey.
    """

    INTRODUCTION = "introduction"
    CHANGED = "changed"
    COMPLETION = "completion"
    SELECTION = "selection"
    FREQUENCY = "frequency"
    ACTIVITY = "activity"


class RuleOperator(str, enum.Enum):
    """Comparison applied by a navigation rule; values are the config tokens."""

    SKIP = "de"
    EQUAL = "eq"
    NOT_EQUAL = "ne"
    LESS_THAN = "lt"
    GREATER_THAN = "gt"
    LESS_THAN_EQUAL = "le"
    GREATER_THAN_EQUAL = "ge"
    OTHER_THAN = "ot"


class RuleDescriptor(BaseModel):
    """A single navigation rule attached to a step descriptor.

    Every field is optional:

      - form_subtype: overrides the owning step's answer-format subtype
      - result_identifier: result to test (defaults to the owning step)
      - skip_identifier: step to jump to (defaults to the step's
        ``skip_identifier``, then to the null-step sentinel)
      - expected_answer: scalar or list compared against the answer
      - operator: defaults to ``eq`` when an expected answer is given,
        otherwise to ``de`` (skip when unanswered)
    """

    form_subtype: Optional[FormSubtype] = None
    result_identifier: Optional[str] = None
    skip_identifier: Optional[str] = None
    expected_answer: Any = None
    operator: Optional[RuleOperator] = None


class StepDescriptor(BaseModel):
    """One configured step of a tracked-survey collection."""

    model_config = ConfigDict(extra="allow")

    identifier: str
    # Raw step-type token, classified lazily via ``step_kind``
    type: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    detail_text: Optional[str] = None
    tracking_type: Optional[TrackingType] = None
    # Group-level default skip target for the rules below
    skip_identifier: Optional[str] = None
    rules: Optional[List[RuleDescriptor]] = None
    # Answer choices for choice questions: [{text, value}]
    items: Optional[List[dict]] = None
    # Identifier of the selection result inside a selection step's result
    tracked_result_identifier: Optional[str] = None

    @property
    def step_kind(self) -> StepKind:
        return classify(self.type)

    def has_navigation_rules(self) -> bool:
        return bool(self.rules) or self.skip_identifier is not None
