"""Snapshot of the cross-session tracked-data store.

``DataStoreState`` is what the inclusion policy reads and what store
backends load and save.  It is intentionally decoupled from any persistence
format so that backends never leak into the policy.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, field_validator

from .result import StepResult, as_utc
from .tracking import TrackedItem


class DataStoreState(BaseModel):
    """Persisted state shared across task runs.

    - selected_items: None until the participant made a first selection
    - last_tracking_survey_date: when the selection was last (re)confirmed
    - last_completion_date: when a moment-in-day probe was last answered
    - moment_in_day_steps: cached activity-only step list (runtime objects)
    - moment_in_day_results: latest answer per moment-in-day step
    """

    selected_items: Optional[List[TrackedItem]] = None
    last_tracking_survey_date: Optional[datetime] = None
    last_completion_date: Optional[datetime] = None
    moment_in_day_steps: Optional[List[Any]] = None
    moment_in_day_results: Optional[List[StepResult]] = None

    @field_validator("last_tracking_survey_date", "last_completion_date")
    @classmethod
    def _dates_are_aware(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)
