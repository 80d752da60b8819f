from datetime import datetime, timezone

import pytest

from helpers.loader import load_collection, load_yaml
from survey_rulesets.factory import SurveyStepFactory
from survey_rulesets.store import InMemoryDataStore

# Fixed evaluation time so interval arithmetic is deterministic
NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def yml():
    return load_yaml

@pytest.fixture
def now():
    return NOW

@pytest.fixture
def store():
    """Fresh, empty data store for each test."""
    return InMemoryDataStore()

@pytest.fixture
def factory():
    return SurveyStepFactory()

@pytest.fixture
def medication():
    return load_collection("medication_tracking")

@pytest.fixture
def activity_bundle():
    return load_collection("activity_bundle")
