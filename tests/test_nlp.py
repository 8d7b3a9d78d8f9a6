"""Tests for tools.nlp -- rule order, entity capture and confidence."""

from __future__ import annotations

import dataclasses

import pytest

from tools.models import Intent
from tools.nlp import INTENT_RULES, classify


class TestCreationIntents:
    @pytest.mark.parametrize(
        "utterance, title",
        [
            ("create task call the dentist", "call the dentist"),
            ("add task buy groceries", "buy groceries"),
            ("New task to water the plants", "water the plants"),
            ("please create task   Call Mom  ", "Call Mom"),
        ],
    )
    def test_create_task_captures_title(self, utterance: str, title: str) -> None:
        cmd = classify(utterance)
        assert cmd.intent == Intent.CREATE_TASK
        assert cmd.confidence == 0.9
        assert cmd.entity("task_title") == title
        assert cmd.entities[0].confidence == 0.9

    def test_trailing_punctuation_is_trimmed(self) -> None:
        cmd = classify("Create task call the dentist.")
        assert cmd.entity("task_title") == "call the dentist"

    def test_create_task_without_title_has_no_entity(self) -> None:
        cmd = classify("create task")
        assert cmd.intent == Intent.CREATE_TASK
        assert cmd.entities == ()

    def test_create_goal(self) -> None:
        cmd = classify("set goal to run a marathon")
        assert cmd.intent == Intent.CREATE_GOAL
        assert cmd.entity("goal_title") == "run a marathon"
        assert cmd.confidence == 0.9

    def test_create_note_strips_about(self) -> None:
        cmd = classify("take note about the quarterly budget review")
        assert cmd.intent == Intent.CREATE_NOTE
        assert cmd.entity("note_content") == "the quarterly budget review"

    def test_remember_triggers_note_without_capture(self) -> None:
        cmd = classify("remember that the wifi password changed")
        assert cmd.intent == Intent.CREATE_NOTE
        assert cmd.entity("note_content") is None


class TestCheckIntents:
    @pytest.mark.parametrize("utterance", ["what should I focus on", "what's my top priority", "anything important?"])
    def test_priorities(self, utterance: str) -> None:
        cmd = classify(utterance)
        assert cmd.intent == Intent.CHECK_PRIORITIES
        assert cmd.confidence == 0.8
        assert cmd.entities == ()

    @pytest.mark.parametrize("utterance", ["How am I doing?", "show my progress", "status report"])
    def test_progress(self, utterance: str) -> None:
        cmd = classify(utterance)
        assert cmd.intent == Intent.CHECK_PROGRESS
        assert cmd.confidence == 0.8


class TestCompletion:
    def test_mark_done(self) -> None:
        cmd = classify("mark done buy milk")
        assert cmd.intent == Intent.COMPLETE_TASK
        assert cmd.entity("task_title") == "buy milk"
        assert cmd.entities[0].confidence == 0.8

    def test_finished_without_title(self) -> None:
        cmd = classify("I'm finished")
        assert cmd.intent == Intent.COMPLETE_TASK
        assert cmd.entities == ()


class TestGoalProgress:
    def test_update_goal_to_percentage(self) -> None:
        cmd = classify("update goal Learn Spanish to 40%")
        assert cmd.intent == Intent.UPDATE_GOAL_PROGRESS
        assert cmd.confidence == 0.8
        assert cmd.entity("goal_title") == "Learn Spanish"
        assert cmd.entity("progress_value") == 40
        assert [e.type for e in cmd.entities] == ["goal_title", "progress_value"]

    def test_out_of_range_value_is_captured_as_spoken(self) -> None:
        cmd = classify("update goal read more books at 150%")
        assert cmd.entity("progress_value") == 150

    def test_missing_percentage_keeps_intent_without_entities(self) -> None:
        cmd = classify("update goal learn spanish")
        assert cmd.intent == Intent.UPDATE_GOAL_PROGRESS
        assert cmd.entities == ()


class TestRuleOrder:
    def test_creation_beats_completion(self) -> None:
        cmd = classify("create task mark the report done")
        assert cmd.intent == Intent.CREATE_TASK
        assert cmd.entity("task_title") == "mark the report done"

    def test_progress_check_shadows_goal_progress_trigger(self) -> None:
        # "goal progress" contains "progress", which an earlier rule claims
        cmd = classify("goal progress for learn spanish")
        assert cmd.intent == Intent.CHECK_PROGRESS

    def test_priority_beats_completion(self) -> None:
        assert classify("complete the important report").intent == Intent.CHECK_PRIORITIES

    def test_rule_table_order(self) -> None:
        assert [r.intent for r in INTENT_RULES] == [
            Intent.CREATE_TASK,
            Intent.CREATE_GOAL,
            Intent.CREATE_NOTE,
            Intent.CHECK_PRIORITIES,
            Intent.CHECK_PROGRESS,
            Intent.COMPLETE_TASK,
            Intent.UPDATE_GOAL_PROGRESS,
        ]


class TestFallback:
    @pytest.mark.parametrize("utterance", ["what's the weather like", "", "   ", "hello there"])
    def test_unmatched_is_general(self, utterance: str) -> None:
        cmd = classify(utterance)
        assert cmd.intent == Intent.GENERAL
        assert cmd.confidence == 0.6
        assert cmd.entities == ()

    def test_command_is_frozen(self) -> None:
        cmd = classify("hello")
        with pytest.raises(dataclasses.FrozenInstanceError):
            cmd.intent = Intent.CREATE_TASK
