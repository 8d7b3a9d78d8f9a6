"""In-memory task/goal/note stores.

Records are copied on the way in and out, so callers can't mutate stored
state by accident. Used by the dev server, the MCP server and the tests.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable

from tools.models import (
    CreateGoalData,
    CreateNoteData,
    CreateTaskData,
    Goal,
    GoalFilters,
    GoalProgress,
    GoalStatus,
    Note,
    Task,
    TaskFilters,
    TaskStatus,
    TaskUpdate,
)
from utils.timezone import now as default_clock

from .base import AccessDeniedError, NotFoundError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _newest_first(records: list, key: Callable) -> list:
    # reversed() first so records with equal timestamps also come out newest first
    return sorted(reversed(records), key=key, reverse=True)


class InMemoryTaskStore:
    def __init__(self, clock: Clock | None = None):
        self._clock = clock or default_clock
        self._tasks: dict[str, Task] = {}

    def put(self, task: Task) -> Task:
        self._tasks[task.id] = task.model_copy(deep=True)
        return task

    async def create_task(self, user_id: str, data: CreateTaskData) -> Task:
        ts = self._clock()
        task = Task(
            id=_new_id("task"),
            user_id=user_id,
            title=data.title,
            description=data.description,
            category=data.category,
            priority=data.priority,
            tags=list(data.tags),
            due_date=data.due_date,
            created_at=ts,
            updated_at=ts,
        )
        self._tasks[task.id] = task
        logger.info("Created task %s for user %s", task.id, user_id)
        return task.model_copy(deep=True)

    async def get_tasks(self, user_id: str, filters: TaskFilters | None = None) -> list[Task]:
        tasks = [t for t in self._tasks.values() if t.user_id == user_id]
        if filters:
            if filters.status is not None:
                tasks = [t for t in tasks if t.status == filters.status]
            if filters.priority is not None:
                tasks = [t for t in tasks if t.priority == filters.priority]
            if filters.category is not None:
                tasks = [t for t in tasks if t.category == filters.category]
        return [t.model_copy(deep=True) for t in _newest_first(tasks, lambda t: t.created_at)]

    def _owned(self, task_id: str, user_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        if task.user_id != user_id:
            raise AccessDeniedError("task", task_id)
        return task

    async def get_task(self, task_id: str, user_id: str) -> Task:
        return self._owned(task_id, user_id).model_copy(deep=True)

    async def update_task(self, task_id: str, user_id: str, patch: TaskUpdate) -> Task:
        task = self._owned(task_id, user_id)
        changes = patch.model_dump(exclude_unset=True)
        ts = self._clock()
        updated = task.model_copy(update={**changes, "updated_at": ts})
        if changes.get("status") == TaskStatus.DONE and task.status != TaskStatus.DONE:
            updated.completed_at = ts
        self._tasks[task_id] = updated
        return updated.model_copy(deep=True)


class InMemoryGoalStore:
    def __init__(self, clock: Clock | None = None):
        self._clock = clock or default_clock
        self._goals: dict[str, Goal] = {}

    def put(self, goal: Goal) -> Goal:
        self._goals[goal.id] = goal.model_copy(deep=True)
        return goal

    async def create_goal(self, user_id: str, data: CreateGoalData) -> Goal:
        ts = self._clock()
        goal = Goal(
            id=_new_id("goal"),
            user_id=user_id,
            title=data.title,
            description=data.description,
            category=data.category,
            tags=list(data.tags),
            start_date=data.start_date or ts,
            due_date=data.due_date,
            progress=GoalProgress(percentage=0, current_value=0, last_updated=ts),
            created_at=ts,
            updated_at=ts,
        )
        self._goals[goal.id] = goal
        logger.info("Created goal %s for user %s", goal.id, user_id)
        return goal.model_copy(deep=True)

    async def get_goals(self, user_id: str, filters: GoalFilters | None = None) -> list[Goal]:
        goals = [g for g in self._goals.values() if g.user_id == user_id]
        if filters:
            if filters.status is not None:
                goals = [g for g in goals if g.status == filters.status]
            if filters.category is not None:
                goals = [g for g in goals if g.category == filters.category]
        return [g.model_copy(deep=True) for g in _newest_first(goals, lambda g: g.created_at)]

    async def get_goal(self, goal_id: str, user_id: str) -> Goal:
        goal = self._goals.get(goal_id)
        if goal is None:
            raise NotFoundError("goal", goal_id)
        if goal.user_id != user_id:
            raise AccessDeniedError("goal", goal_id)
        return goal.model_copy(deep=True)

    async def update_goal_progress(self, goal_id: str, user_id: str, percentage: int) -> Goal:
        goal = await self.get_goal(goal_id, user_id)
        ts = self._clock()
        goal.progress = GoalProgress(percentage=percentage, current_value=percentage, last_updated=ts)
        goal.updated_at = ts
        if percentage >= 100:
            goal.status = GoalStatus.COMPLETED
            goal.completed_at = ts
        self._goals[goal_id] = goal
        return goal.model_copy(deep=True)


class InMemoryNoteStore:
    def __init__(self, clock: Clock | None = None):
        self._clock = clock or default_clock
        self._notes: dict[str, Note] = {}

    def put(self, note: Note) -> Note:
        self._notes[note.id] = note.model_copy(deep=True)
        return note

    async def create_note(self, user_id: str, data: CreateNoteData) -> Note:
        ts = self._clock()
        note = Note(
            id=_new_id("note"),
            user_id=user_id,
            title=data.title,
            content=data.content,
            category=data.category,
            tags=list(data.tags),
            created_at=ts,
            updated_at=ts,
        )
        self._notes[note.id] = note
        logger.info("Created note %s for user %s", note.id, user_id)
        return note.model_copy(deep=True)

    async def get_notes(self, user_id: str) -> list[Note]:
        notes = [n for n in self._notes.values() if n.user_id == user_id]
        return [n.model_copy(deep=True) for n in _newest_first(notes, lambda n: n.created_at)]
