"""Task model — an ordered, navigable sequence of assembled steps.

A ``Task`` is created once per assembly and is not restructured afterwards.
It carries:

  - steps: the emitted steps, in descriptor order
  - conditional_rule: optional run-time hooks (``should_skip`` /
    ``after_step``) bound by the assembler
  - initial_results: pre-seeded step results (e.g. a selection already
    answered in a previous session) so resumed tasks do not re-ask

:meth:`Task.step_after` is the navigation binding a host controller calls
to move from one step to the next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from survey_rulesets.diagnostics import ConfigIssue, ConfigIssueKind, report_issue
from survey_rulesets.models.result import StepResult, TaskResult
from survey_rulesets.models.step import NavigationFormStep, Step

if TYPE_CHECKING:
    from survey_rulesets.interfaces import ConditionalRule

logger = logging.getLogger(__name__)


@dataclass
class Task:
    identifier: str
    steps: list[Step] = field(default_factory=list)
    conditional_rule: ConditionalRule | None = None
    initial_results: list[StepResult] = field(default_factory=list)

    @property
    def step_identifiers(self) -> list[str]:
        return [step.identifier for step in self.steps]

    def step_with_identifier(self, identifier: str) -> Step | None:
        for step in self.steps:
            if step.identifier == identifier:
                return step
        return None

    def index_of(self, step: Step) -> int:
        """Position of *step* in the task, by identifier; -1 if absent."""
        for index, candidate in enumerate(self.steps):
            if candidate.identifier == step.identifier:
                return index
        return -1

    def append_initial_results(self, results: list[StepResult]) -> None:
        self.initial_results.extend(results)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def step_after(self, step: Step | None, task_result: TaskResult) -> Step | None:
        """Return the step to present after *step* (None starts the task).

        1. If *step* carries navigation rules and one matches, jump to its
           skip target.  Jumps must go forward; anything else is reported
           and navigation continues in order.
        2. Otherwise take the next step in order.
        3. Let the conditional rule record bookkeeping for the completed
           step, then skip steps the updated state makes moot.

        Returns None when the task is finished, or when *step* is not part
        of this task (reported as a configuration issue).
        """
        if step is None:
            index = 0
        else:
            current = self.index_of(step)
            if current < 0:
                report_issue(ConfigIssue(
                    kind=ConfigIssueKind.UNKNOWN_STEP,
                    message=f"Step '{step.identifier}' is not part of task '{self.identifier}'",
                    identifier=step.identifier,
                ))
                return None
            index = current + 1
            if isinstance(step, NavigationFormStep):
                target = step.next_step_identifier(task_result)
                if target is not None:
                    index = self._jump_index(current, target, index)

        candidate = self.steps[index] if index < len(self.steps) else None
        if self.conditional_rule is None:
            return candidate

        # Bookkeeping first: skips depend on the selection just recorded
        candidate = self.conditional_rule.after_step(step, candidate, task_result)
        if candidate is None:
            return None
        index = self.index_of(candidate)
        if index < 0:
            return candidate

        while candidate is not None and self.conditional_rule.should_skip(candidate, task_result):
            logger.debug("Skipping step %s", candidate.identifier)
            index += 1
            candidate = self.steps[index] if index < len(self.steps) else None

        return candidate

    def _jump_index(self, current: int, target: str, fallback: int) -> int:
        """Resolve a rule's skip target to a forward step index."""
        for index, candidate in enumerate(self.steps):
            if candidate.identifier == target:
                if index > current:
                    return index
                break
        # Unknown and backward targets would leave the ordered sequence
        report_issue(ConfigIssue(
            kind=ConfigIssueKind.INVALID_SKIP_TARGET,
            message=f"Skip target '{target}' is not a later step of task '{self.identifier}'",
            identifier=target,
        ))
        return fallback
