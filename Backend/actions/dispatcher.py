"""Turn a classified Command into one domain operation and a reply."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, TypeVar

from chat.replies import reply
from store.base import GoalStore, NoteStore, TaskStore
from tools.models import (
    Action,
    ActionDetails,
    ActionType,
    AssistantResponse,
    Command,
    CreateGoalData,
    CreateNoteData,
    CreateTaskData,
    GoalFilters,
    GoalStatus,
    Intent,
    NoteContent,
    TaskFilters,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
)
from utils.timezone import now as default_clock

from .errors import EntityMissing, NoMatchFound, StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

VOICE_TAG = "voice-created"
DEFAULT_TASK_TITLE = "New task"
DEFAULT_GOAL_TITLE = "New goal"
DEFAULT_NOTE_CONTENT = "Important information"
GOAL_DURATION = timedelta(days=30)
NOTE_TITLE_LIMIT = 50

GENERAL_CONFIDENCE = 0.6
UNRESOLVED_CONFIDENCE = 0.5
FAILURE_CONFIDENCE = 0.3


@dataclass
class Outcome:
    reply_key: str
    params: dict[str, Any] = field(default_factory=dict)
    actions: list[Action] = field(default_factory=list)


def note_title(content: str) -> str:
    if len(content) <= NOTE_TITLE_LIMIT:
        return content
    return content[: NOTE_TITLE_LIMIT - 3].rstrip() + "..."


def clamp_progress(value: int) -> int:
    return max(0, min(100, int(value)))


def completion_percentage(done: int, total: int) -> int:
    if total == 0:
        return 0
    # half-up, so 1 of 8 is 13%
    return (done * 200 + total) // (2 * total)


def find_by_title(records: list, query: str):
    """First record, in store order, whose title contains ``query`` (case-insensitive)."""
    needle = query.lower()
    for record in records:
        if needle in record.title.lower():
            return record
    return None


class ActionDispatcher:
    def __init__(
        self,
        tasks: TaskStore,
        goals: GoalStore,
        notes: NoteStore,
        clock: Callable[[], datetime] | None = None,
    ):
        self.tasks = tasks
        self.goals = goals
        self.notes = notes
        self._clock = clock or default_clock
        self._handlers: dict[Intent, Callable[[str, Command], Awaitable[Outcome]]] = {
            Intent.CREATE_TASK: self._create_task,
            Intent.CREATE_GOAL: self._create_goal,
            Intent.CREATE_NOTE: self._create_note,
            Intent.COMPLETE_TASK: self._complete_task,
            Intent.UPDATE_GOAL_PROGRESS: self._update_goal_progress,
            Intent.CHECK_PRIORITIES: self._check_priorities,
            Intent.CHECK_PROGRESS: self._check_progress,
        }

    async def dispatch(
        self,
        user_id: str,
        command: Command,
        context: dict | None = None,
    ) -> AssistantResponse:
        """
        Run the single operation ``command`` implies. Never raises: unresolved
        entities, missing matches and store failures each become a distinct,
        well-formed response with ``error`` set.
        """
        if context:
            logger.debug("Dispatch context for %s: %s", user_id, context)

        handler = self._handlers.get(command.intent)
        if handler is None:
            text, suggestions = reply("general", utterance=command.utterance)
            return AssistantResponse(
                text=text,
                suggestions=suggestions,
                confidence=GENERAL_CONFIDENCE,
                intent=command.intent,
            )

        try:
            outcome = await handler(user_id, command)
        except EntityMissing as e:
            logger.warning("Unresolved command for %s: %s", user_id, e)
            key = "task_unresolved" if command.intent == Intent.COMPLETE_TASK else "goal_unresolved"
            text, suggestions = reply(key)
            return AssistantResponse(
                text=text,
                suggestions=suggestions,
                confidence=UNRESOLVED_CONFIDENCE,
                intent=command.intent,
                error=e.code,
            )
        except NoMatchFound as e:
            logger.info("No %s matched %r for %s", e.kind, e.query, user_id)
            text, suggestions = reply(f"{e.kind}_not_found", query=e.query)
            return AssistantResponse(
                text=text,
                suggestions=suggestions,
                confidence=command.confidence,
                intent=command.intent,
                error=e.code,
            )
        except StoreUnavailable as e:
            logger.error("Store call failed while handling %s for %s: %s", command.intent.value, user_id, e.__cause__)
            text, suggestions = reply("store_unavailable")
            return AssistantResponse(
                text=text,
                suggestions=suggestions,
                confidence=FAILURE_CONFIDENCE,
                intent=command.intent,
                error=e.code,
            )

        text, suggestions = reply(outcome.reply_key, **outcome.params)
        logger.info("Dispatched %s for %s: %d action(s)", command.intent.value, user_id, len(outcome.actions))
        return AssistantResponse(
            text=text,
            actions=outcome.actions,
            suggestions=suggestions,
            confidence=command.confidence,
            intent=command.intent,
        )

    async def _store(self, call: Awaitable[T]) -> T:
        try:
            return await call
        except Exception as e:
            raise StoreUnavailable(str(e)) from e

    def _action(
        self,
        action_type: ActionType,
        description: str,
        entity_type: str,
        entity_id: str,
        data: dict,
        result: Any,
        metadata: dict | None = None,
    ) -> Action:
        ts = self._clock()
        return Action(
            id=f"action_{uuid.uuid4().hex}",
            type=action_type,
            description=description,
            timestamp=ts,
            details=ActionDetails(
                entity_type=entity_type,
                entity_id=entity_id,
                data=data,
                metadata={"source": "voice-command", **(metadata or {})},
            ),
            executed_at=ts,
            result=result,
        )

    async def _create_task(self, user_id: str, command: Command) -> Outcome:
        title = command.entity("task_title") or DEFAULT_TASK_TITLE
        data = CreateTaskData(
            title=title,
            description="Task created via voice command",
            category="general",
            tags=[VOICE_TAG],
            priority=TaskPriority.MEDIUM,
        )
        task = await self._store(self.tasks.create_task(user_id, data))
        action = self._action(
            ActionType.TASK_CREATED,
            f"Created task: {title}",
            "task",
            task.id,
            task.model_dump(mode="json"),
            task,
        )
        return Outcome("task_created", {"title": title}, [action])

    async def _create_goal(self, user_id: str, command: Command) -> Outcome:
        title = command.entity("goal_title") or DEFAULT_GOAL_TITLE
        start = self._clock()
        data = CreateGoalData(
            title=title,
            description="Goal set via voice command",
            category="personal",
            tags=[VOICE_TAG],
            start_date=start,
            due_date=start + GOAL_DURATION,
        )
        goal = await self._store(self.goals.create_goal(user_id, data))
        action = self._action(
            ActionType.GOAL_SET,
            f"Set goal: {title}",
            "goal",
            goal.id,
            goal.model_dump(mode="json"),
            goal,
        )
        return Outcome("goal_set", {"title": title}, [action])

    async def _create_note(self, user_id: str, command: Command) -> Outcome:
        content = command.entity("note_content") or DEFAULT_NOTE_CONTENT
        data = CreateNoteData(
            title=note_title(content),
            content=NoteContent(text=content),
            category="general",
            tags=[VOICE_TAG],
        )
        note = await self._store(self.notes.create_note(user_id, data))
        action = self._action(
            ActionType.NOTE_CREATED,
            f"Created note: {note.title}",
            "note",
            note.id,
            note.model_dump(mode="json"),
            note,
        )
        return Outcome("note_created", {}, [action])

    async def _complete_task(self, user_id: str, command: Command) -> Outcome:
        query = command.entity("task_title")
        if not query:
            raise EntityMissing(command.intent.value, ["task_title"])

        tasks = await self._store(self.tasks.get_tasks(user_id))
        match = find_by_title(tasks, str(query))
        if match is None:
            raise NoMatchFound("task", str(query))

        updated = await self._store(
            self.tasks.update_task(match.id, user_id, TaskUpdate(status=TaskStatus.DONE))
        )
        action = self._action(
            ActionType.CUSTOM,
            f"Completed task: {match.title}",
            "task",
            match.id,
            updated.model_dump(mode="json"),
            {"status": "completed"},
        )
        return Outcome("task_completed", {"title": match.title}, [action])

    async def _update_goal_progress(self, user_id: str, command: Command) -> Outcome:
        query = command.entity("goal_title")
        raw_progress = command.entity("progress_value")
        missing = [name for name, value in (("goal_title", query), ("progress_value", raw_progress)) if value in (None, "")]
        if missing:
            raise EntityMissing(command.intent.value, missing)

        progress = clamp_progress(raw_progress)
        if progress != raw_progress:
            logger.warning("Clamped goal progress %s%% to %s%%", raw_progress, progress)

        goals = await self._store(self.goals.get_goals(user_id))
        match = find_by_title(goals, str(query))
        if match is None:
            raise NoMatchFound("goal", str(query))

        updated = await self._store(self.goals.update_goal_progress(match.id, user_id, progress))
        action = self._action(
            ActionType.CUSTOM,
            f"Updated goal progress: {match.title} to {progress}%",
            "goal",
            match.id,
            updated.model_dump(mode="json"),
            {"progress": progress},
            metadata={"progress": progress},
        )
        return Outcome("goal_progress", {"title": match.title, "progress": progress}, [action])

    async def _check_priorities(self, user_id: str, command: Command) -> Outcome:
        tasks = await self._store(self.tasks.get_tasks(user_id, TaskFilters(priority=TaskPriority.HIGH)))
        goals = await self._store(self.goals.get_goals(user_id, GoalFilters(status=GoalStatus.ACTIVE)))
        return Outcome("priorities", {"tasks": len(tasks), "goals": len(goals)})

    async def _check_progress(self, user_id: str, command: Command) -> Outcome:
        tasks = await self._store(self.tasks.get_tasks(user_id))
        done = sum(1 for t in tasks if t.status == TaskStatus.DONE)
        return Outcome("progress", {"done": done, "total": len(tasks), "progress": completion_percentage(done, len(tasks))})
