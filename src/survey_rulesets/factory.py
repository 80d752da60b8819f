"""SurveyStepFactory — reference ``StepFactory`` for tracked-survey descriptors.

Classifies each descriptor's type token and builds the matching step:

  - instruction / consent / account / passcode kinds -> ``Step``
  - form and data-groups kinds:
      - tracking_type ``selection``                 -> ``TrackedSelectionStep``
      - any other tracking_type                     -> ``TrackedNavigationStep``
      - untracked with navigation rules             -> ``NavigationFormStep``
      - untracked without rules                     -> ``FormStep``
  - subtask and custom kinds are declined (None); hosts that support them
    subclass the factory and override :meth:`create_custom_step`.

Navigation rules are compiled with the descriptor's identifier and
``skip_identifier`` as the group defaults.
"""

from __future__ import annotations

import logging

from survey_rulesets.interfaces import StepFactory
from survey_rulesets.models.descriptor import StepDescriptor, TrackingType
from survey_rulesets.models.item_type import (
    CustomKind,
    DataGroupsKind,
    FormKind,
    StepKind,
    SubtaskKind,
    form_subtype,
)
from survey_rulesets.models.step import (
    FormStep,
    NavigationFormStep,
    Step,
    TrackedNavigationStep,
    TrackedSelectionStep,
)
from survey_rulesets.models.tracking import TrackedItem
from survey_rulesets.rules import RuleGroupDefaults, compile_rules

logger = logging.getLogger(__name__)


class SurveyStepFactory(StepFactory):
    """Builds plain step objects from descriptors."""

    def create_step(
        self,
        descriptor: StepDescriptor,
        tracking_type: TrackingType | None = None,
        tracked_items: list[TrackedItem] | None = None,
    ) -> Step | None:
        kind = descriptor.step_kind

        if isinstance(kind, (FormKind, DataGroupsKind)):
            return self._create_form_step(descriptor, kind, tracking_type, tracked_items)
        if isinstance(kind, (CustomKind, SubtaskKind)):
            return self.create_custom_step(descriptor, kind, tracking_type)

        # instruction / consent / account / passcode
        return Step(**self._common_fields(descriptor, kind, tracking_type))

    def create_custom_step(
        self,
        descriptor: StepDescriptor,
        kind: StepKind,
        tracking_type: TrackingType | None = None,
    ) -> Step | None:
        """Hook for custom and subtask kinds; the default declines them."""
        logger.debug("No step builder for %s (kind=%s)", descriptor.identifier, kind.kind)
        return None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _create_form_step(
        self,
        descriptor: StepDescriptor,
        kind: StepKind,
        tracking_type: TrackingType | None,
        tracked_items: list[TrackedItem] | None,
    ) -> Step:
        fields = self._common_fields(descriptor, kind, tracking_type)
        fields["items"] = list(descriptor.items or [])

        rules = compile_rules(
            descriptor.rules,
            form_subtype(kind),
            RuleGroupDefaults(
                result_identifier=descriptor.identifier,
                skip_identifier=descriptor.skip_identifier,
            ),
        )

        if tracking_type == TrackingType.SELECTION:
            return TrackedSelectionStep(
                **fields,
                rules=rules,
                tracked_items=list(tracked_items or []),
                tracked_result_identifier=descriptor.tracked_result_identifier,
            )
        if tracking_type is not None:
            return TrackedNavigationStep(**fields, rules=rules)
        if rules:
            return NavigationFormStep(**fields, rules=rules)
        return FormStep(**fields)

    @staticmethod
    def _common_fields(
        descriptor: StepDescriptor,
        kind: StepKind,
        tracking_type: TrackingType | None,
    ) -> dict:
        return {
            "identifier": descriptor.identifier,
            "kind": kind,
            "title": descriptor.title,
            "text": descriptor.text,
            "detail_text": descriptor.detail_text,
            "tracking_type": tracking_type,
        }
