"""Tests for the in-memory stores and voice sessions."""

from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import FIXED_NOW, run
from store.base import AccessDeniedError, NotFoundError
from tools.models import (
    CreateGoalData,
    CreateTaskData,
    GoalFilters,
    GoalStatus,
    TaskFilters,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
    TranscriptionResult,
    VoiceSessionStatus,
)


def _transcription(text: str, duration: float) -> TranscriptionResult:
    return TranscriptionResult(text=text, confidence=0.9, language="en", duration=duration, timestamp=FIXED_NOW)


class TestTaskStore:
    def test_listing_is_newest_first(self, tasks, clock) -> None:
        run(tasks.create_task("u", CreateTaskData(title="first")))
        clock.advance(seconds=1)
        run(tasks.create_task("u", CreateTaskData(title="second")))

        assert [t.title for t in run(tasks.get_tasks("u"))] == ["second", "first"]

    def test_same_timestamp_keeps_insertion_order_reversed(self, tasks) -> None:
        for title in ("a", "b", "c"):
            run(tasks.create_task("u", CreateTaskData(title=title)))

        assert [t.title for t in run(tasks.get_tasks("u"))] == ["c", "b", "a"]

    def test_filters(self, tasks) -> None:
        run(tasks.create_task("u", CreateTaskData(title="hi", priority=TaskPriority.HIGH)))
        run(tasks.create_task("u", CreateTaskData(title="lo", priority=TaskPriority.LOW, category="home")))

        assert [t.title for t in run(tasks.get_tasks("u", TaskFilters(priority=TaskPriority.HIGH)))] == ["hi"]
        assert [t.title for t in run(tasks.get_tasks("u", TaskFilters(category="home")))] == ["lo"]
        assert run(tasks.get_tasks("u", TaskFilters(status=TaskStatus.DONE))) == []

    def test_returned_records_are_copies(self, tasks) -> None:
        created = run(tasks.create_task("u", CreateTaskData(title="original")))
        created.title = "mutated"
        assert run(tasks.get_task(created.id, "u")).title == "original"

    def test_update_sets_completed_at_once(self, tasks, clock) -> None:
        task = run(tasks.create_task("u", CreateTaskData(title="t")))
        clock.advance(hours=1)
        done = run(tasks.update_task(task.id, "u", TaskUpdate(status=TaskStatus.DONE)))
        clock.advance(hours=1)
        again = run(tasks.update_task(task.id, "u", TaskUpdate(title="renamed")))

        assert done.completed_at == FIXED_NOW + timedelta(hours=1)
        assert again.completed_at == done.completed_at
        assert again.status == TaskStatus.DONE
        assert again.title == "renamed"

    def test_missing_and_foreign_tasks(self, tasks) -> None:
        task = run(tasks.create_task("owner", CreateTaskData(title="t")))
        with pytest.raises(NotFoundError):
            run(tasks.get_task("task_nope", "owner"))
        with pytest.raises(AccessDeniedError):
            run(tasks.update_task(task.id, "intruder", TaskUpdate(status=TaskStatus.DONE)))


class TestGoalStore:
    def test_progress_below_hundred_stays_active(self, goals) -> None:
        goal = run(goals.create_goal("u", CreateGoalData(title="g")))
        updated = run(goals.update_goal_progress(goal.id, "u", 99))
        assert updated.status == GoalStatus.ACTIVE
        assert updated.completed_at is None

    def test_status_filter(self, goals) -> None:
        a = run(goals.create_goal("u", CreateGoalData(title="a")))
        run(goals.create_goal("u", CreateGoalData(title="b")))
        run(goals.update_goal_progress(a.id, "u", 100))

        active = run(goals.get_goals("u", GoalFilters(status=GoalStatus.ACTIVE)))
        assert [g.title for g in active] == ["b"]

    def test_foreign_goal(self, goals) -> None:
        goal = run(goals.create_goal("owner", CreateGoalData(title="g")))
        with pytest.raises(AccessDeniedError):
            run(goals.update_goal_progress(goal.id, "intruder", 10))


class TestVoiceSessions:
    def test_lifecycle(self, sessions, clock) -> None:
        session = run(sessions.start_session("u"))
        assert session.session_id.startswith("session_")
        assert session.status == VoiceSessionStatus.ACTIVE

        run(sessions.add_transcription(session.session_id, "u", _transcription("one", 1.5)))
        run(sessions.add_transcription(session.session_id, "u", _transcription("two", 2.0)))
        clock.advance(minutes=2)
        ended = run(sessions.end_session(session.session_id, "u"))

        assert [t.text for t in ended.transcriptions] == ["one", "two"]
        assert ended.total_duration == pytest.approx(3.5)
        assert ended.status == VoiceSessionStatus.COMPLETED
        assert ended.end_time == FIXED_NOW + timedelta(minutes=2)

    def test_access_checks(self, sessions) -> None:
        session = run(sessions.start_session("owner"))
        with pytest.raises(AccessDeniedError):
            run(sessions.get_session(session.session_id, "intruder"))
        with pytest.raises(NotFoundError):
            run(sessions.end_session("session_missing", "owner"))

    def test_list_newest_first_with_limit(self, sessions, clock) -> None:
        ids = []
        for _ in range(3):
            ids.append(run(sessions.start_session("u")).session_id)
            clock.advance(seconds=1)
        run(sessions.start_session("other"))

        listed = run(sessions.list_sessions("u", limit=2))
        assert [s.session_id for s in listed] == [ids[2], ids[1]]
