import logging
import secrets
from datetime import datetime
from typing import Callable

from tools.models import TranscriptionResult, VoiceSession, VoiceSessionStatus
from utils.timezone import now as default_clock

from .base import AccessDeniedError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20


class InMemoryVoiceSessionStore:
    """Voice sessions keyed by session id; each belongs to exactly one uid."""

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or default_clock
        self._sessions: dict[str, VoiceSession] = {}

    def _new_session_id(self, ts: datetime) -> str:
        return f"session_{int(ts.timestamp() * 1000)}_{secrets.token_hex(5)}"

    def _owned(self, session_id: str, uid: str) -> VoiceSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError("voice session", session_id)
        if session.uid != uid:
            raise AccessDeniedError("voice session", session_id)
        return session

    async def start_session(self, uid: str) -> VoiceSession:
        ts = self._clock()
        session = VoiceSession(session_id=self._new_session_id(ts), uid=uid, start_time=ts)
        self._sessions[session.session_id] = session
        logger.info("Started voice session %s for user %s", session.session_id, uid)
        return session.model_copy(deep=True)

    async def end_session(self, session_id: str, uid: str) -> VoiceSession:
        session = self._owned(session_id, uid)
        session.end_time = self._clock()
        session.status = VoiceSessionStatus.COMPLETED
        logger.info("Ended voice session %s (%d transcriptions)", session_id, len(session.transcriptions))
        return session.model_copy(deep=True)

    async def get_session(self, session_id: str, uid: str) -> VoiceSession:
        return self._owned(session_id, uid).model_copy(deep=True)

    async def list_sessions(self, uid: str, limit: int = DEFAULT_LIST_LIMIT) -> list[VoiceSession]:
        sessions = [s for s in self._sessions.values() if s.uid == uid]
        sessions = sorted(reversed(sessions), key=lambda s: s.start_time, reverse=True)
        return [s.model_copy(deep=True) for s in sessions[: max(limit, 0)]]

    async def add_transcription(self, session_id: str, uid: str, result: TranscriptionResult) -> VoiceSession:
        session = self._owned(session_id, uid)
        session.transcriptions.append(result.model_copy(deep=True))
        session.total_duration += result.duration
        return session.model_copy(deep=True)
