"""Assistant facade: classify + dispatch, plus the read-only insight queries."""

import logging
from datetime import datetime
from typing import Callable

from actions.dispatcher import ActionDispatcher, completion_percentage
from chat.replies import DAILY_RECOMMENDATIONS, INSIGHT_SUGGESTIONS
from store.base import GoalStore, NoteStore, TaskStore
from tools.models import AssistantResponse, DailySummary, GoalStatus, TaskPriority, TaskStatus, UserInsights
from tools.nlp import classify
from utils.timezone import now as default_clock, start_of_day

logger = logging.getLogger(__name__)

RECENT_NOTES_LIMIT = 5


class AssistantService:
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
        self.dispatcher = ActionDispatcher(tasks, goals, notes, clock=self._clock)

    async def process_voice_input(
        self,
        user_id: str,
        transcription: str,
        context: dict | None = None,
    ) -> AssistantResponse:
        command = classify(transcription)
        return await self.dispatcher.dispatch(user_id, command, context)

    async def get_user_insights(self, user_id: str) -> UserInsights:
        tasks = await self.tasks.get_tasks(user_id)
        goals = await self.goals.get_goals(user_id)
        notes = await self.notes.get_notes(user_id)

        high_priority = [t for t in tasks if t.priority >= TaskPriority.HIGH]
        active_goals = [g for g in goals if g.status == GoalStatus.ACTIVE]
        recent_notes = notes[:RECENT_NOTES_LIMIT]
        done = sum(1 for t in tasks if t.status == TaskStatus.DONE)

        return UserInsights(
            priorities=[
                f"You have {len(high_priority)} high-priority tasks",
                f"You're working on {len(active_goals)} active goals",
                f"You've taken {len(recent_notes)} recent notes",
            ],
            suggestions=list(INSIGHT_SUGGESTIONS),
            progress=completion_percentage(done, len(tasks)),
        )

    async def get_daily_summary(self, user_id: str, now: datetime | None = None) -> DailySummary:
        """Counts of today's activity, where "today" starts at local midnight of ``now``."""
        today = start_of_day(now or self._clock())

        tasks = await self.tasks.get_tasks(user_id)
        goals = await self.goals.get_goals(user_id)
        notes = await self.notes.get_notes(user_id)

        summary = DailySummary(
            tasks_completed=sum(1 for t in tasks if t.status == TaskStatus.DONE and t.updated_at >= today),
            tasks_created=sum(1 for t in tasks if t.created_at >= today),
            goals_progress=sum(
                1 for g in goals if g.status == GoalStatus.ACTIVE and g.progress.last_updated >= today
            ),
            notes_taken=sum(1 for n in notes if n.created_at >= today),
            recommendations=list(DAILY_RECOMMENDATIONS),
        )
        logger.info("Daily summary for %s since %s: %s", user_id, today.isoformat(), summary.model_dump(exclude={"recommendations"}))
        return summary
