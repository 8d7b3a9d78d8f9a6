"""Collaborator interfaces for the task, goal and note stores.

The assistant only relies on these contracts; any backend (Firestore, SQL,
the in-memory stores in ``store.memory``) can sit behind them. Listings are
returned newest first, and the dispatcher's fuzzy matching depends on that
order.
"""

from typing import Protocol

from tools.models import (
    CreateGoalData,
    CreateNoteData,
    CreateTaskData,
    Goal,
    GoalFilters,
    Note,
    Task,
    TaskFilters,
    TaskUpdate,
)


class StoreError(Exception):
    """Base class for failures raised by a store."""


class NotFoundError(StoreError):
    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class AccessDeniedError(StoreError):
    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"Access denied to {kind} {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class TaskStore(Protocol):
    async def create_task(self, user_id: str, data: CreateTaskData) -> Task: ...

    async def get_tasks(self, user_id: str, filters: TaskFilters | None = None) -> list[Task]: ...

    async def get_task(self, task_id: str, user_id: str) -> Task: ...

    async def update_task(self, task_id: str, user_id: str, patch: TaskUpdate) -> Task: ...


class GoalStore(Protocol):
    async def create_goal(self, user_id: str, data: CreateGoalData) -> Goal: ...

    async def get_goals(self, user_id: str, filters: GoalFilters | None = None) -> list[Goal]: ...

    async def get_goal(self, goal_id: str, user_id: str) -> Goal: ...

    async def update_goal_progress(self, goal_id: str, user_id: str, percentage: int) -> Goal: ...


class NoteStore(Protocol):
    async def create_note(self, user_id: str, data: CreateNoteData) -> Note: ...

    async def get_notes(self, user_id: str) -> list[Note]: ...
