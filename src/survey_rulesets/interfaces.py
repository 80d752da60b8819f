"""Abstract interfaces for the collaborators around task assembly.

These ABCs define the contract that host applications fulfil.  The SDK
ships reference implementations (``SurveyStepFactory``,
``TrackingNavigator``) but any object honouring the contract can be used.

Typical integration flow::

    store = InMemoryDataStore()
    assembler = TaskAssembler(collection, store, SurveyStepFactory())
    assembled = assembler.assemble(is_last_step=True)

    task = assembled.task
    step = task.step_after(None, task_result)
    while step is not None:
        # ... present the step, append its StepResult to task_result ...
        step = task.step_after(step, task_result)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from survey_rulesets.models.descriptor import StepDescriptor, TrackingType
    from survey_rulesets.models.result import TaskResult
    from survey_rulesets.models.step import Step
    from survey_rulesets.models.tracking import TrackedItem


class StepFactory(ABC):
    """Materialises concrete steps from descriptors.

    The SDK imposes no constraints on *how* steps are rendered; only the
    descriptor-in, step-out contract is specified here.
    """

    @abstractmethod
    def create_step(
        self,
        descriptor: StepDescriptor,
        tracking_type: TrackingType | None = None,
        tracked_items: list[TrackedItem] | None = None,
    ) -> Step | None:
        """Build the step for *descriptor*.

        Parameters
        ----------
        descriptor:
            The configured step.
        tracking_type:
            The descriptor's tracking role when it takes part in a tracked
            bundle, otherwise None.
        tracked_items:
            Catalog of items the participant can select (tracked bundles
            only).

        Returns
        -------
        Step | None
            The concrete step, or None if the factory declines the
            descriptor.  Declined descriptors are silently left out.
        """
        ...


class ConditionalRule(ABC):
    """Run-time hooks a host task controller calls on every transition."""

    @abstractmethod
    def should_skip(self, step: Step | None, task_result: TaskResult) -> bool:
        """Return True if *step* should be skipped given the results so far."""
        ...

    @abstractmethod
    def after_step(
        self,
        previous_step: Step | None,
        next_step: Step | None,
        task_result: TaskResult,
    ) -> Step | None:
        """Bookkeeping after *previous_step* completed.

        Implementations return the proposed *next_step*; this hook is for
        side effects on the data store, not for rerouting.
        """
        ...
