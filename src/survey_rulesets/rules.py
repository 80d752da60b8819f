"""RuleCompiler — turns declarative rule descriptors into evaluable rules.

A rule descriptor says "if the answer to this step is X, skip to Y".  The
compiler resolves the defaults, builds a small predicate expression and
pairs it with the resolved result and skip identifiers:

  1. value = expected answer
  2. operator = explicit operator, else ``eq`` if a value is given,
     else ``de`` (skip when unanswered)
  3. a comparison without a value is a configuration error
  4. choice questions record a list, so scalar values are wrapped in a
     one-element list before (in)equality comparisons
  5. the predicate is built per operator
  6. result identifier = rule's, else the group default; required
  7. skip identifier = rule's, else the group default, else the null step

Configuration errors never raise.  :func:`compile_rule` returns a
``RuleCompilation`` carrying either the rule or the ``ConfigIssue`` that
prevented it, and reports the issue on the diagnostic channel.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from survey_rulesets.constants import NULL_STEP_IDENTIFIER
from survey_rulesets.diagnostics import ConfigIssue, ConfigIssueKind, report_issue
from survey_rulesets.models.descriptor import RuleDescriptor, RuleOperator
from survey_rulesets.models.item_type import CHOICE_SUBTYPES, FormSubtype
from survey_rulesets.models.result import StepResult

logger = logging.getLogger(__name__)

ORDERING_OPERATORS: frozenset[RuleOperator] = frozenset({
    RuleOperator.LESS_THAN,
    RuleOperator.LESS_THAN_EQUAL,
    RuleOperator.GREATER_THAN,
    RuleOperator.GREATER_THAN_EQUAL,
})


# ---------------------------------------------------------------------------
# Predicate expression
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RulePredicate:
    """``<field> <operator> <value>`` over a single question result.

    ``choice_answer`` is set for single/multiple choice questions, whose
    answers are lists; ``value`` has already been list-wrapped for the
    (in)equality operators in that case.
    """

    operator: RuleOperator
    value: Any = None
    field: str = "answer"
    choice_answer: bool = False

    def evaluate(self, answer: Any) -> bool:
        """Interpret the predicate against an answer (None when unanswered)."""
        op = self.operator

        if op == RuleOperator.SKIP:
            return answer is None

        if op == RuleOperator.EQUAL:
            return answer == self.value

        if op == RuleOperator.NOT_EQUAL:
            return answer != self.value

        if op == RuleOperator.OTHER_THAN:
            if self.choice_answer:
                return self.value not in (answer or [])
            return answer != self.value

        # --- Numeric ordering ---
        try:
            ans_num = float(answer)
            value_num = float(self.value)
        except (TypeError, ValueError):
            return False

        if op == RuleOperator.LESS_THAN:
            return ans_num < value_num
        if op == RuleOperator.LESS_THAN_EQUAL:
            return ans_num <= value_num
        if op == RuleOperator.GREATER_THAN:
            return ans_num > value_num
        if op == RuleOperator.GREATER_THAN_EQUAL:
            return ans_num >= value_num

        logger.warning("Unknown rule operator: %s", op)
        return False


@dataclass
class CompiledRule:
    """A rule ready for navigation.

    ``skip_identifier`` stays mutable so the assembler can point an
    unconfigured "has anything changed?" gate at the first activity step.
    """

    result_identifier: str
    skip_identifier: str
    predicate: RulePredicate

    def matches(self, step_result: StepResult | None) -> bool:
        """Test the predicate against this rule's result inside *step_result*.

        A missing step or question result is treated as an absent answer.
        """
        answer = None
        if step_result is not None:
            question = step_result.result_for(self.result_identifier)
            if question is not None:
                answer = getattr(question, self.predicate.field, None)
        return self.predicate.evaluate(answer)

    @property
    def skips_to_null_step(self) -> bool:
        return self.skip_identifier == NULL_STEP_IDENTIFIER


class RuleGroupDefaults(BaseModel):
    """Defaults a step supplies to the rules attached to it."""

    result_identifier: str | None = None
    skip_identifier: str | None = None


@dataclass(frozen=True)
class RuleCompilation:
    """Outcome of compiling one descriptor: a rule or the reason there is none."""

    rule: CompiledRule | None = None
    issue: ConfigIssue | None = None

    @property
    def ok(self) -> bool:
        return self.rule is not None


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

def _fail(kind: ConfigIssueKind, message: str, identifier: str | None) -> RuleCompilation:
    return RuleCompilation(issue=report_issue(ConfigIssue(kind=kind, message=message, identifier=identifier)))


def compile_rule(
    descriptor: RuleDescriptor,
    subtype: FormSubtype | None,
    defaults: RuleGroupDefaults | None = None,
) -> RuleCompilation:
    """Compile a single rule descriptor.

    Args:
        descriptor: the rule as configured
        subtype: answer-format subtype of the owning step; the descriptor's
            own ``form_subtype`` takes precedence
        defaults: result / skip identifiers supplied by the owning step

    Returns:
        A ``RuleCompilation`` with ``rule`` set on success, or ``issue`` set
        when the descriptor is misconfigured.
    """
    defaults = defaults or RuleGroupDefaults()
    result_identifier = descriptor.result_identifier or defaults.result_identifier

    value = descriptor.expected_answer
    if descriptor.operator is not None:
        op = descriptor.operator
    else:
        op = RuleOperator.SKIP if value is None else RuleOperator.EQUAL

    if value is None and op != RuleOperator.SKIP:
        return _fail(
            ConfigIssueKind.MISSING_EXPECTED_ANSWER,
            f"Operator '{op.value}' requires an expected answer",
            result_identifier,
        )

    subtype = descriptor.form_subtype or subtype
    if subtype is None and op != RuleOperator.SKIP:
        return _fail(
            ConfigIssueKind.MISSING_FORM_SUBTYPE,
            f"Operator '{op.value}' needs a form subtype to compare answers",
            result_identifier,
        )

    is_choice = subtype in CHOICE_SUBTYPES
    if is_choice and op in ORDERING_OPERATORS:
        return _fail(
            ConfigIssueKind.UNSUPPORTED_OPERATOR,
            f"Operator '{op.value}' is not supported for choice subtype '{subtype.value}'",
            result_identifier,
        )

    if result_identifier is None:
        return _fail(
            ConfigIssueKind.MISSING_RESULT_IDENTIFIER,
            "Rule has no result identifier and the step supplies none",
            None,
        )

    # Choice answers are recorded as lists of selected values
    if is_choice and op in (RuleOperator.EQUAL, RuleOperator.NOT_EQUAL) and not isinstance(value, list):
        value = [value]

    skip_identifier = descriptor.skip_identifier or defaults.skip_identifier or NULL_STEP_IDENTIFIER

    rule = CompiledRule(
        result_identifier=result_identifier,
        skip_identifier=skip_identifier,
        predicate=RulePredicate(operator=op, value=value, choice_answer=is_choice),
    )
    logger.debug(
        "Compiled rule %s %s %r -> %s", result_identifier, op.value, value, skip_identifier,
    )
    return RuleCompilation(rule=rule)


def compile_rules(
    descriptors: list[RuleDescriptor] | None,
    subtype: FormSubtype | None,
    defaults: RuleGroupDefaults | None = None,
) -> list[CompiledRule]:
    """Compile a rule group, dropping descriptors that fail to compile.

    An empty list means the group contributes no navigation rules.
    """
    compiled = [compile_rule(d, subtype, defaults) for d in descriptors or []]
    return [c.rule for c in compiled if c.rule is not None]
