"""InclusionPolicy — decides which part of a tracked bundle to include.

A tracked-data collection bundles a full survey (introduction, selection,
frequency, completion), a "has anything changed?" gate and moment-in-day
activity probes.  Each time the collection is assembled exactly one
``InclusionDecision`` is computed from the store snapshot; it is never
revised during assembly.

Decision order (first match wins):

    1. top-level run                           -> stand_alone_survey
    2. nothing selected yet                    -> survey_and_activity
    3. changed gate defined and its repeat
       interval elapsed                        -> changed_only /
                                                  changed_and_activity
    4. tracked items and the moment-in-day
       probe is due                            -> activity_only
    5. otherwise                               -> none
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timedelta, timezone

from survey_rulesets.models.descriptor import TrackingType
from survey_rulesets.models.result import as_utc
from survey_rulesets.models.state import DataStoreState

logger = logging.getLogger(__name__)


class InclusionDecision(str, enum.Enum):
    NONE = "none"
    STAND_ALONE_SURVEY = "stand_alone_survey"
    SURVEY_AND_ACTIVITY = "survey_and_activity"
    CHANGED_ONLY = "changed_only"
    CHANGED_AND_ACTIVITY = "changed_and_activity"
    ACTIVITY_ONLY = "activity_only"

    @property
    def tracking_types(self) -> frozenset[TrackingType]:
        """Tracking roles permitted by this decision."""
        return _TRACKING_TYPES[self]

    def should_include(self, tracking_type: TrackingType) -> bool:
        return tracking_type in self.tracking_types

    @property
    def includes_survey(self) -> bool:
        """True if untagged (ordinary survey) steps are included."""
        return self in (
            InclusionDecision.STAND_ALONE_SURVEY,
            InclusionDecision.SURVEY_AND_ACTIVITY,
            InclusionDecision.CHANGED_ONLY,
            InclusionDecision.CHANGED_AND_ACTIVITY,
        )

    @property
    def includes_full_survey(self) -> bool:
        """True if the whole survey is asked, so the run may carry its identifiers."""
        return self in (
            InclusionDecision.STAND_ALONE_SURVEY,
            InclusionDecision.SURVEY_AND_ACTIVITY,
        )

    @property
    def next_step_if_no_change(self) -> TrackingType:
        """Where a "nothing changed" answer on the changed gate should lead."""
        if self == InclusionDecision.CHANGED_AND_ACTIVITY:
            return TrackingType.ACTIVITY
        if self == InclusionDecision.STAND_ALONE_SURVEY:
            return TrackingType.COMPLETION
        return TrackingType.INTRODUCTION


_TRACKING_TYPES: dict[InclusionDecision, frozenset[TrackingType]] = {
    InclusionDecision.NONE: frozenset(),
    InclusionDecision.STAND_ALONE_SURVEY: frozenset(TrackingType),
    # Nested inside another flow, which brings its own completion step
    InclusionDecision.SURVEY_AND_ACTIVITY: frozenset(TrackingType) - {TrackingType.COMPLETION},
    InclusionDecision.CHANGED_ONLY: frozenset({TrackingType.CHANGED}),
    InclusionDecision.CHANGED_AND_ACTIVITY: frozenset({TrackingType.CHANGED, TrackingType.ACTIVITY}),
    InclusionDecision.ACTIVITY_ONLY: frozenset({TrackingType.ACTIVITY}),
}


def _elapsed(since: datetime | None, interval: timedelta, now: datetime) -> bool:
    """True if *interval* is enabled and has passed since *since*.

    Naive timestamps are compared as UTC.
    """
    if since is None or interval <= timedelta(0):
        return False
    return as_utc(now) - as_utc(since) >= interval


def decide(
    is_last_step: bool,
    store: DataStoreState,
    always_include_activity: bool,
    survey_repeat_interval: timedelta,
    activity_repeat_interval: timedelta,
    has_changed_step_defined: bool,
    has_tracked_items: bool,
    now: datetime | None = None,
) -> InclusionDecision:
    """Compute the inclusion decision for one assembly run.

    Args:
        is_last_step: the collection is launched on its own rather than
            inserted into a larger activity
        store: read-only snapshot of the tracked-data store
        always_include_activity: ask moment-in-day probes on every run
        survey_repeat_interval: cadence of the changed gate (0 disables it)
        activity_repeat_interval: cadence of the moment-in-day probes
            (0 means they are only asked when no results exist yet)
        has_changed_step_defined: the collection configures a changed gate
        has_tracked_items: at least one selected item is actively tracked
        now: evaluation time, defaults to the current UTC time

    Returns:
        The single ``InclusionDecision`` for this run.
    """
    now = now or datetime.now(timezone.utc)

    if is_last_step:
        decision = InclusionDecision.STAND_ALONE_SURVEY
    elif store.selected_items is None:
        decision = InclusionDecision.SURVEY_AND_ACTIVITY
    elif has_changed_step_defined and _elapsed(store.last_tracking_survey_date, survey_repeat_interval, now):
        if not has_tracked_items:
            decision = InclusionDecision.CHANGED_ONLY
        else:
            decision = InclusionDecision.CHANGED_AND_ACTIVITY
    elif has_tracked_items and (
        always_include_activity
        or store.moment_in_day_results is None
        or store.last_completion_date is None
        or _elapsed(store.last_completion_date, activity_repeat_interval, now)
    ):
        decision = InclusionDecision.ACTIVITY_ONLY
    else:
        decision = InclusionDecision.NONE

    logger.debug("Inclusion decision: %s (is_last_step=%s)", decision.value, is_last_step)
    return decision
