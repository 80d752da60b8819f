"""Navigation tests — TrackingNavigator hooks and Task.step_after walks.

Walkthrough strategy:
  - assemble the medication fixture against a controlled store
  - drive ``Task.step_after`` the way a host controller would, appending a
    StepResult for every step presented
  - assert on the visited step sequence and on what landed in the store
"""

import pytest

from survey_rulesets.assembler import TaskAssembler
from survey_rulesets.diagnostics import ConfigIssueKind, ConfigurationWarning
from survey_rulesets.models.descriptor import RuleOperator, TrackingType
from survey_rulesets.models.result import QuestionResult, StepResult, TaskResult, TrackedDataSelectionResult
from survey_rulesets.models.state import DataStoreState
from survey_rulesets.models.step import NavigationFormStep, Step, TrackedNavigationStep, TrackedSelectionStep
from survey_rulesets.models.task import Task
from survey_rulesets.models.tracking import TrackedItem
from survey_rulesets.navigation import TrackingNavigator
from survey_rulesets.rules import CompiledRule, RulePredicate

LEVODOPA = TrackedItem(identifier="levodopa", tracking=True)
VITAMIN_D = TrackedItem(identifier="vitamin_d")


# --- Helpers to reduce boilerplate ---


def _record(task_result, step, answer=None, end_date=None):
    """Append the host's result for *step* to *task_result*."""
    if isinstance(step, TrackedSelectionStep):
        results = [TrackedDataSelectionResult.from_items(step.tracked_result_identifier, answer or [])]
    else:
        results = [QuestionResult(identifier=step.identifier, answer=answer)]
    task_result.results.append(StepResult(identifier=step.identifier, results=results, end_date=end_date))


def _walk(task, answers, end_date=None):
    """Run *task* to completion, answering each step from *answers*.

    Returns the visited step identifiers.
    """
    task_result = TaskResult(identifier=task.identifier)
    visited = []
    step = task.step_after(None, task_result)
    while step is not None:
        visited.append(step.identifier)
        _record(task_result, step, answers.get(step.identifier), end_date)
        step = task.step_after(step, task_result)
    return visited


def _tracked(identifier, tracking_type):
    return TrackedNavigationStep(identifier=identifier, tracking_type=tracking_type)


# =====================================================================
# should_skip
# =====================================================================


class TestShouldSkip:

    def test_plain_steps_never_skipped(self, store):
        navigator = TrackingNavigator(store)
        task_result = TaskResult(identifier="t")
        assert navigator.should_skip(Step(identifier="intro"), task_result) is False
        assert navigator.should_skip(TrackedSelectionStep(identifier="selection"), task_result) is False
        assert navigator.should_skip(None, task_result) is False

    def test_activity_needs_tracked_item(self, store):
        navigator = TrackingNavigator(store)
        step = _tracked("moment_in_day", TrackingType.ACTIVITY)
        task_result = TaskResult(identifier="t")

        assert navigator.should_skip(step, task_result) is True

        store.selected_items = [VITAMIN_D]
        assert navigator.should_skip(step, task_result) is True

        store.selected_items = [VITAMIN_D, LEVODOPA]
        assert navigator.should_skip(step, task_result) is False
        assert step.tracked_selection == [LEVODOPA]

    def test_frequency_needs_any_selection(self, store):
        navigator = TrackingNavigator(store)
        step = _tracked("frequency", TrackingType.FREQUENCY)
        task_result = TaskResult(identifier="t")

        store.selected_items = []
        assert navigator.should_skip(step, task_result) is True

        store.selected_items = [VITAMIN_D]
        assert navigator.should_skip(step, task_result) is False

    def test_changed_gate_never_skipped(self, store):
        navigator = TrackingNavigator(store)
        assert navigator.should_skip(_tracked("changed", TrackingType.CHANGED), TaskResult(identifier="t")) is False


# =====================================================================
# after_step
# =====================================================================


class TestAfterStep:

    @pytest.mark.parametrize("previous", [
        None,
        Step(identifier="intro"),
        TrackedSelectionStep(identifier="selection"),
        TrackedNavigationStep(identifier="moment_in_day", tracking_type=TrackingType.ACTIVITY),
    ], ids=["start", "plain", "selection", "activity"])
    @pytest.mark.parametrize("proposed", [None, Step(identifier="next")], ids=["end", "next"])
    @pytest.mark.parametrize("answered", [False, True], ids=["unanswered", "answered"])
    def test_returns_proposed_step_unchanged(self, store, previous, proposed, answered):
        task_result = TaskResult(identifier="t")
        if answered and previous is not None:
            _record(task_result, previous, [LEVODOPA] if isinstance(previous, TrackedSelectionStep) else ["0-30"])

        assert TrackingNavigator(store).after_step(previous, proposed, task_result) is proposed

    def test_selection_updates_store(self, store, now):
        step = TrackedSelectionStep(identifier="selection")
        task_result = TaskResult(identifier="t")
        _record(task_result, step, [LEVODOPA, VITAMIN_D], end_date=now)

        TrackingNavigator(store).after_step(step, None, task_result)

        assert store.selected_items == [LEVODOPA, VITAMIN_D]
        assert store.last_tracking_survey_date == now

    def test_selection_without_payload_is_ignored(self, store):
        step = TrackedSelectionStep(identifier="selection")
        task_result = TaskResult(identifier="t", results=[
            StepResult(identifier="selection", results=[QuestionResult(identifier="selection", answer=["x"])]),
        ])

        TrackingNavigator(store).after_step(step, None, task_result)

        assert store.selected_items is None

    def test_activity_records_moment_in_day(self, store, now):
        step = _tracked("moment_in_day", TrackingType.ACTIVITY)
        task_result = TaskResult(identifier="t")
        _record(task_result, step, ["0-30"], end_date=now)

        TrackingNavigator(store).after_step(step, None, task_result)

        assert [r.identifier for r in store.moment_in_day_results] == ["moment_in_day"]
        assert store.last_completion_date == now

    def test_other_steps_leave_store_alone(self, store):
        step = Step(identifier="intro")
        task_result = TaskResult(identifier="t")
        _record(task_result, step, "ok")

        TrackingNavigator(store).after_step(step, None, task_result)

        assert store.snapshot() == DataStoreState()


class TestUpdateSelection:

    def test_refreshes_activity_step(self, store, now):
        navigator = TrackingNavigator(store)
        selection = TrackedSelectionStep(identifier="selection")
        activity = _tracked("moment_in_day", TrackingType.ACTIVITY)
        task_result = TaskResult(identifier="t")
        _record(task_result, selection, [LEVODOPA], end_date=now)

        navigator.update_selection(selection, activity, task_result)

        assert store.selected_items == [LEVODOPA]
        assert activity.selected_items == [LEVODOPA]
        assert activity.should_skip_step is False

    def test_missing_result_is_noop(self, store):
        activity = _tracked("moment_in_day", TrackingType.ACTIVITY)
        TrackingNavigator(store).update_selection(
            TrackedSelectionStep(identifier="selection"), activity, TaskResult(identifier="t"),
        )
        assert store.selected_items is None
        assert activity.selected_items == []


# =====================================================================
# Task walkthroughs
# =====================================================================


class TestWalkthrough:

    def test_full_survey(self, medication, store, now):
        task = TaskAssembler(medication, store).assemble(is_last_step=True, now=now).task

        visited = _walk(task, {
            "changed": True,
            "selection": [LEVODOPA],
            "frequency": 2,
            "side_effects": [False],
            "moment_in_day": ["0-30"],
            "moment_in_day_followup": [True],
        }, end_date=now)

        # "No side effects" jumps over the detail question
        assert visited == [
            "introduction", "changed", "selection", "frequency", "side_effects",
            "notes", "moment_in_day", "moment_in_day_followup", "completion",
        ]
        assert store.selected_items == [LEVODOPA]
        assert store.last_tracking_survey_date == now
        assert [r.identifier for r in store.moment_in_day_results] == ["moment_in_day", "moment_in_day_followup"]
        assert store.last_completion_date == now

    def test_untracked_selection_skips_activity(self, medication, store, now):
        task = TaskAssembler(medication, store).assemble(is_last_step=True, now=now).task

        visited = _walk(task, {"selection": [VITAMIN_D], "side_effects": [True]})

        assert visited == [
            "introduction", "changed", "selection", "frequency", "side_effects",
            "side_effect_detail", "notes", "completion",
        ]
        assert store.moment_in_day_results is None

    def test_empty_selection_skips_frequency(self, medication, store, now):
        task = TaskAssembler(medication, store).assemble(is_last_step=True, now=now).task

        visited = _walk(task, {"selection": [], "side_effects": [False]})

        assert "frequency" not in visited
        assert "moment_in_day" not in visited

    def test_no_change_jumps_to_activity(self, medication, store, now):
        store.update_tracked_data(
            StepResult(
                identifier="selection",
                results=[TrackedDataSelectionResult.from_items("selection", [LEVODOPA])],
                end_date=now - medication.tracking_survey_repeat_interval,
            )
        )
        assembled = TaskAssembler(medication, store).assemble(is_last_step=False, now=now)

        visited = _walk(assembled.task, {"changed": False, "moment_in_day": ["30-60"]}, end_date=now)

        assert visited == ["changed", "moment_in_day", "moment_in_day_followup"]
        assert len(store.moment_in_day_results) == 2

    def test_unbound_task_walks_in_order(self):
        task = Task(identifier="plain", steps=[Step(identifier="a"), Step(identifier="b")])
        assert _walk(task, {}) == ["a", "b"]


class TestSerialisedResults:
    """Results the host reads back from dicts or JSON keep their payload type."""

    def _task_result(self, now):
        step = TrackedSelectionStep(identifier="selection")
        task_result = TaskResult(identifier="t")
        _record(task_result, step, [LEVODOPA, VITAMIN_D], end_date=now)
        _record(task_result, Step(identifier="notes"), "fine")
        return step, task_result

    def test_dict_round_trip(self, store, now):
        step, task_result = self._task_result(now)

        restored = TaskResult.model_validate(task_result.model_dump())

        selection = restored.step_result_for("selection").result_for("selection")
        assert isinstance(selection, TrackedDataSelectionResult)
        assert selection.selected_items == [LEVODOPA, VITAMIN_D]
        assert type(restored.step_result_for("notes").results[0]) is QuestionResult

        TrackingNavigator(store).after_step(step, None, restored)
        assert store.selected_items == [LEVODOPA, VITAMIN_D]
        assert store.last_tracking_survey_date == now

    def test_json_round_trip(self, store, now):
        step, task_result = self._task_result(now)

        restored = TaskResult.model_validate_json(task_result.model_dump_json())

        TrackingNavigator(store).after_step(step, None, restored)
        assert store.selected_items == [LEVODOPA, VITAMIN_D]

    def test_tagged_dict_input(self, store):
        step = TrackedSelectionStep(identifier="selection")
        restored = TaskResult.model_validate({
            "identifier": "t",
            "results": [{
                "identifier": "selection",
                "results": [{
                    "result_type": "tracked_selection",
                    "identifier": "selection",
                    "answer": ["levodopa"],
                    "selected_items": [{"identifier": "levodopa", "tracking": True}],
                }],
            }],
        })

        TrackingNavigator(store).after_step(step, None, restored)

        assert store.selected_items == [LEVODOPA]


class TestInvalidJumps:

    def _task(self, target):
        gate = NavigationFormStep(
            identifier="gate",
            rules=[CompiledRule(
                result_identifier="gate",
                skip_identifier=target,
                predicate=RulePredicate(operator=RuleOperator.EQUAL, value="go"),
            )],
        )
        return Task(identifier="t", steps=[Step(identifier="start"), gate, Step(identifier="after")])

    @pytest.mark.parametrize("target", ["start", "gate", "missing"])
    def test_falls_back_to_next_step(self, target):
        task = self._task(target)
        task_result = TaskResult(identifier="t")
        _record(task_result, task.steps[1], "go")

        with pytest.warns(ConfigurationWarning, match=target):
            step = task.step_after(task.steps[1], task_result)

        assert step.identifier == "after"

    def test_forward_jump(self):
        task = self._task("after")
        task.steps.insert(2, Step(identifier="skipped"))
        task_result = TaskResult(identifier="t")
        _record(task_result, task.steps[1], "go")

        assert task.step_after(task.steps[1], task_result).identifier == "after"

    def test_issue_kind(self, caplog):
        task = self._task("missing")
        task_result = TaskResult(identifier="t")
        _record(task_result, task.steps[1], "go")

        with pytest.warns(ConfigurationWarning):
            task.step_after(task.steps[1], task_result)

        assert ConfigIssueKind.INVALID_SKIP_TARGET.value in caplog.text

    def test_unknown_step_ends_navigation(self, caplog):
        task = self._task("after")
        task_result = TaskResult(identifier="t")

        with pytest.warns(ConfigurationWarning, match="stranger"):
            step = task.step_after(Step(identifier="stranger"), task_result)

        assert step is None
        assert ConfigIssueKind.UNKNOWN_STEP.value in caplog.text
