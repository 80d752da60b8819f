"""Developer-facing diagnostic channel for configuration problems.

Malformed configuration (a comparison rule without an expected answer, an
ordering operator on a choice question, a descriptor that does not validate)
must never crash a participant's session.  Compile and assembly steps
therefore return explicit ``ConfigIssue`` values and keep going; the issue
is additionally reported here so that developers and test harnesses notice:

  - a ``logging`` warning on the ``survey_rulesets.diagnostics`` logger
  - a ``ConfigurationWarning`` through :func:`warnings.warn`, which tests
    can capture with ``pytest.warns(ConfigurationWarning)``

Reporting has no effect on control flow.
"""

from __future__ import annotations

import enum
import logging
import warnings

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ConfigurationWarning(UserWarning):
    """Emitted when a rule, descriptor or navigation request is rejected."""


class ConfigIssueKind(str, enum.Enum):
    """Closed set of configuration problems the SDK can detect."""

    MISSING_EXPECTED_ANSWER = "missing_expected_answer"
    MISSING_FORM_SUBTYPE = "missing_form_subtype"
    MISSING_RESULT_IDENTIFIER = "missing_result_identifier"
    UNSUPPORTED_OPERATOR = "unsupported_operator"
    INVALID_DESCRIPTOR = "invalid_descriptor"
    INVALID_SKIP_TARGET = "invalid_skip_target"
    UNKNOWN_STEP = "unknown_step"


class ConfigIssue(BaseModel):
    """A single configuration problem, returned instead of raising."""

    kind: ConfigIssueKind
    message: str
    # Step or result identifier the issue relates to, when known
    identifier: str | None = None


def report_issue(issue: ConfigIssue) -> ConfigIssue:
    """Publish *issue* on the diagnostic channel and hand it back."""
    logger.warning("%s (%s): %s", issue.kind.value, issue.identifier, issue.message)
    warnings.warn(issue.message, ConfigurationWarning, stacklevel=3)
    return issue
