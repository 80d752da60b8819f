"""Step-kind taxonomy for survey step descriptors.

Every descriptor carries a raw ``type`` token (e.g. ``"singleChoiceText"``,
``"instruction"``, ``"dataGroups.multipleChoiceText"``).  :func:`classify`
maps that token onto a closed set of step kinds:

  - custom: anything unrecognised (including a missing token)
  - subtask: a nested task
  - instruction: instruction / completion screens
  - form: a question, tagged with its answer-format subtype
  - consent: consent sharing, review and visual steps
  - data_groups: a form question whose answers select data groups
  - account: registration, login, profile and friends
  - passcode: 4 or 6 digit passcode entry

The discriminated ``StepKind`` union uses ``kind`` as its discriminator.
All variants are frozen, so two kinds compare equal exactly when variant and
payload match, and they can be used as dict keys.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from survey_rulesets.constants import DATA_GROUPS_PREFIX, SUBTASK_KEY


# --- Subtype vocabularies (values are the canonical tokens) ---

class InstructionSubtype(str, enum.Enum):
    INSTRUCTION = "instruction"
    COMPLETION = "completion"


class FormSubtype(str, enum.Enum):
    """Answer-format subtype of a form question."""

    COMPOUND = "compound"
    TOGGLE = "toggle"
    BOOLEAN = "boolean"
    SINGLE_CHOICE = "singleChoiceText"
    MULTIPLE_CHOICE = "multipleChoiceText"
    TEXT = "textfield"
    MULTIPLE_LINE_TEXT = "multilineText"
    DATE = "datePicker"
    DATE_TIME = "timeAndDatePicker"
    TIME = "timePicker"
    DURATION = "timeInterval"
    INTEGER = "numericInteger"
    DECIMAL = "numericDecimal"
    SCALE = "scaleInteger"
    CONTINUOUS_SCALE = "continuousScale"
    TIMING_RANGE = "timingRange"


class ConsentSubtype(str, enum.Enum):
    SHARING_OPTIONS = "consentSharingOptions"
    REVIEW = "consentReview"
    VISUAL = "consentVisual"


class AccountSubtype(str, enum.Enum):
    REGISTRATION = "registration"
    LOGIN = "login"
    EMAIL_VERIFICATION = "emailVerification"
    EXTERNAL_ID = "externalID"
    PERMISSIONS = "permissions"
    PROFILE = "profile"


class PasscodeSubtype(str, enum.Enum):
    TYPE_6_DIGIT = "passcodeType6Digit"
    TYPE_4_DIGIT = "passcodeType4Digit"


# Choice answers are always recorded as a list of selected values.
CHOICE_SUBTYPES: frozenset[FormSubtype] = frozenset(
    {FormSubtype.SINGLE_CHOICE, FormSubtype.MULTIPLE_CHOICE}
)


# --- Step kind variants ---

class _Kind(BaseModel):
    model_config = ConfigDict(frozen=True)


class CustomKind(_Kind):
    """Fallback for unrecognised tokens; ``token`` is None when no type was given."""

    kind: Literal["custom"] = "custom"
    token: Optional[str] = None


class SubtaskKind(_Kind):
    kind: Literal["subtask"] = "subtask"


class InstructionKind(_Kind):
    kind: Literal["instruction"] = "instruction"
    subtype: InstructionSubtype


class FormKind(_Kind):
    kind: Literal["form"] = "form"
    subtype: FormSubtype


class ConsentKind(_Kind):
    kind: Literal["consent"] = "consent"
    subtype: ConsentSubtype


class DataGroupsKind(_Kind):
    kind: Literal["data_groups"] = "data_groups"
    subtype: FormSubtype = FormSubtype.MULTIPLE_CHOICE


class AccountKind(_Kind):
    kind: Literal["account"] = "account"
    subtype: AccountSubtype


class PasscodeKind(_Kind):
    kind: Literal["passcode"] = "passcode"
    subtype: PasscodeSubtype


StepKind = Annotated[
    Union[
        CustomKind,
        SubtaskKind,
        InstructionKind,
        FormKind,
        ConsentKind,
        DataGroupsKind,
        AccountKind,
        PasscodeKind,
    ],
    Field(discriminator="kind"),
]


def _lookup(enum_cls: type[enum.Enum], token: str):
    """Return the enum member whose value is *token*, or None."""
    try:
        return enum_cls(token)
    except ValueError:
        return None


def classify(token: str | None) -> StepKind:
    """Map a raw step-type token onto a step kind.

    Vocabularies are tried in a fixed order and the first match wins, so
    the classification is total: anything unrecognised becomes
    ``CustomKind(token)``.
    """
    if token is None:
        return CustomKind()

    subtype = _lookup(InstructionSubtype, token)
    if subtype is not None:
        return InstructionKind(subtype=subtype)

    subtype = _lookup(FormSubtype, token)
    if subtype is not None:
        return FormKind(subtype=subtype)

    if token.startswith(DATA_GROUPS_PREFIX):
        # "dataGroups.<formSubtype>"; bare or unknown suffix -> multiple choice
        subtype = None
        if token.startswith(f"{DATA_GROUPS_PREFIX}."):
            subtype = _lookup(FormSubtype, token[len(DATA_GROUPS_PREFIX) + 1:])
        return DataGroupsKind(subtype=subtype or FormSubtype.MULTIPLE_CHOICE)

    subtype = _lookup(ConsentSubtype, token)
    if subtype is not None:
        return ConsentKind(subtype=subtype)

    subtype = _lookup(AccountSubtype, token)
    if subtype is not None:
        return AccountKind(subtype=subtype)

    subtype = _lookup(PasscodeSubtype, token)
    if subtype is not None:
        return PasscodeKind(subtype=subtype)

    if token == SUBTASK_KEY:
        return SubtaskKind()

    return CustomKind(token=token)


def token_for(kind: StepKind) -> str | None:
    """Canonical token for *kind*, such that ``classify(token_for(k)) == k``."""
    if isinstance(kind, CustomKind):
        return kind.token
    if isinstance(kind, SubtaskKind):
        return SUBTASK_KEY
    if isinstance(kind, DataGroupsKind):
        return f"{DATA_GROUPS_PREFIX}.{kind.subtype.value}"
    if isinstance(kind, (InstructionKind, FormKind, ConsentKind, AccountKind, PasscodeKind)):
        return kind.subtype.value
    raise TypeError(f"Not a step kind: {kind!r}")


# --- Accessors ---

def form_subtype(kind: StepKind) -> FormSubtype | None:
    """Answer-format subtype for form and data-groups kinds, else None."""
    if isinstance(kind, (FormKind, DataGroupsKind)):
        return kind.subtype
    return None


def consent_subtype(kind: StepKind) -> ConsentSubtype | None:
    return kind.subtype if isinstance(kind, ConsentKind) else None


def account_subtype(kind: StepKind) -> AccountSubtype | None:
    return kind.subtype if isinstance(kind, AccountKind) else None


def is_nil_type(kind: StepKind) -> bool:
    """True for the custom kind produced by a missing token."""
    return isinstance(kind, CustomKind) and kind.token is None


def custom_type_identifier(kind: StepKind) -> str | None:
    return kind.token if isinstance(kind, CustomKind) else None


def uses_placeholder_text(kind: StepKind) -> bool:
    """Free-text questions show placeholder text in their input field."""
    return kind in (
        FormKind(subtype=FormSubtype.TEXT),
        FormKind(subtype=FormSubtype.MULTIPLE_LINE_TEXT),
    )
