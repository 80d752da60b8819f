"""Public model re-exports for survey_rulesets.

Consumers should import from ``survey_rulesets.models`` rather than
reaching into sub-modules directly.
"""

# --- Step kinds ---
from survey_rulesets.models.item_type import (
    CHOICE_SUBTYPES,
    AccountKind,
    AccountSubtype,
    ConsentKind,
    ConsentSubtype,
    CustomKind,
    DataGroupsKind,
    FormKind,
    FormSubtype,
    InstructionKind,
    InstructionSubtype,
    PasscodeKind,
    PasscodeSubtype,
    StepKind,
    SubtaskKind,
    classify,
    token_for,
)

# --- Descriptors ---
from survey_rulesets.models.descriptor import (
    RuleDescriptor,
    RuleOperator,
    StepDescriptor,
    TrackingType,
)

# --- Tracked data ---
from survey_rulesets.models.tracking import TrackedItem, has_tracked_items
from survey_rulesets.models.result import (
    AnyQuestionResult,
    QuestionResult,
    StepResult,
    TaskResult,
    TrackedDataSelectionResult,
)
from survey_rulesets.models.state import DataStoreState

# --- Steps / task ---
from survey_rulesets.models.step import (
    FormStep,
    NavigationFormStep,
    Step,
    SubtaskStep,
    TrackedNavigationStep,
    TrackedSelectionStep,
)
from survey_rulesets.models.task import Task

__all__ = [
    # Step kinds
    "CHOICE_SUBTYPES",
    "AccountKind",
    "AccountSubtype",
    "ConsentKind",
    "ConsentSubtype",
    "CustomKind",
    "DataGroupsKind",
    "FormKind",
    "FormSubtype",
    "InstructionKind",
    "InstructionSubtype",
    "PasscodeKind",
    "PasscodeSubtype",
    "StepKind",
    "SubtaskKind",
    "classify",
    "token_for",
    # Descriptors
    "RuleDescriptor",
    "RuleOperator",
    "StepDescriptor",
    "TrackingType",
    # Tracked data
    "DataStoreState",
    "AnyQuestionResult",
    "QuestionResult",
    "StepResult",
    "TaskResult",
    "TrackedDataSelectionResult",
    "TrackedItem",
    "has_tracked_items",
    # Steps / task
    "FormStep",
    "NavigationFormStep",
    "Step",
    "SubtaskStep",
    "Task",
    "TrackedNavigationStep",
    "TrackedSelectionStep",
]
