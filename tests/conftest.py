"""Shared test fixtures -- no Whisper, OpenAI or edge-tts needed."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from chat.assistant import AssistantService
from store.memory import InMemoryGoalStore, InMemoryNoteStore, InMemoryTaskStore
from store.sessions import InMemoryVoiceSessionStore
from tools.models import TranscriptionResult

FIXED_NOW = datetime(2025, 3, 14, 15, 30, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock; every call returns the current value."""

    def __init__(self, start: datetime = FIXED_NOW) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: Any) -> None:
        self.current = self.current + timedelta(**kwargs)


class BrokenStore:
    """Store whose every call fails, as if the backend were unreachable."""

    def __init__(self, message: str = "backend unreachable") -> None:
        self.message = message
        self.calls: list[str] = []

    def __getattr__(self, name: str):
        async def fail(*args: Any, **kwargs: Any):
            self.calls.append(name)
            raise ConnectionError(self.message)
        return fail


class FakeTranscriber:
    def __init__(self, text: str = "create task call the dentist", language: str = "en") -> None:
        self.text = text
        self.language = language
        self.calls: list[tuple[bytes, str, str | None, float]] = []

    async def __call__(self, audio_bytes: bytes, audio_format: str, language: str | None = None, duration: float = 0):
        self.calls.append((audio_bytes, audio_format, language, duration))
        return TranscriptionResult(
            text=self.text,
            confidence=0.9,
            language=self.language,
            duration=duration,
            timestamp=FIXED_NOW,
        )


class FakeSynthesizer:
    def __init__(self, audio: bytes = b"ID3-fake-audio", fail: bool = False) -> None:
        self.audio = audio
        self.fail = fail
        self.calls: list[str] = []

    async def __call__(self, text: str, lang: str = "en") -> bytes:
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("tts offline")
        return self.audio


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tasks(clock: FakeClock) -> InMemoryTaskStore:
    return InMemoryTaskStore(clock=clock)


@pytest.fixture
def goals(clock: FakeClock) -> InMemoryGoalStore:
    return InMemoryGoalStore(clock=clock)


@pytest.fixture
def notes(clock: FakeClock) -> InMemoryNoteStore:
    return InMemoryNoteStore(clock=clock)


@pytest.fixture
def sessions(clock: FakeClock) -> InMemoryVoiceSessionStore:
    return InMemoryVoiceSessionStore(clock=clock)


@pytest.fixture
def assistant(tasks, goals, notes, clock) -> AssistantService:
    return AssistantService(tasks, goals, notes, clock=clock)
