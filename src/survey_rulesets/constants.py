"""Tracking-survey constants shared across the SDK.

These values are referenced by the rule compiler, the inclusion policy and
the task assembler.  They mirror conventions encoded in the collection
configuration (e.g. ``dataGroups.<subtype>`` step types).

The repeat intervals can be overridden via environment variables so that
deployments can tune how often the recurring survey and the moment-in-day
probes come back without code changes.
"""

import os
from datetime import timedelta

# Reserved step identifier meaning "no special jump, continue normally".
# Double-underscore prefix keeps it out of the configurable identifier space.
NULL_STEP_IDENTIFIER = "__null_step__"

# Step-type tokens with special parsing rules in the item type classifier.
DATA_GROUPS_PREFIX = "dataGroups"
SUBTASK_KEY = "subtask"

# How long before the "has anything changed?" gate is asked again.
# Overridable via TRACKING_SURVEY_REPEAT_SECONDS (0 disables the gate).
TRACKING_SURVEY_REPEAT_INTERVAL = timedelta(
    seconds=float(os.getenv("TRACKING_SURVEY_REPEAT_SECONDS", str(30 * 24 * 60 * 60)))
)

# How long before the moment-in-day activity probe is asked again.
# Overridable via MOMENT_IN_DAY_REPEAT_SECONDS (0 disables the throttle).
MOMENT_IN_DAY_REPEAT_INTERVAL = timedelta(
    seconds=float(os.getenv("MOMENT_IN_DAY_REPEAT_SECONDS", str(20 * 60)))
)
