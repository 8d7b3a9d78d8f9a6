"""Request-scoped dependencies: bearer-token identity and app-wide services."""

import logging
import os

from fastapi import Header, HTTPException, Request

from chat.assistant import AssistantService
from store.sessions import InMemoryVoiceSessionStore

logger = logging.getLogger(__name__)


def parse_token_map(raw: str) -> dict[str, str]:
    """Parse ``token:uid,token2:uid2`` into a token -> uid mapping."""
    tokens: dict[str, str] = {}
    for pair in (raw or "").split(","):
        token, sep, uid = pair.strip().partition(":")
        if sep and token.strip() and uid.strip():
            tokens[token.strip()] = uid.strip()
    return tokens


API_TOKENS = parse_token_map(os.getenv("ASSISTANT_API_TOKENS", ""))


def resolve_user(token: str) -> str | None:
    # With no configured tokens (local development) the token is the user id.
    if not API_TOKENS:
        return token
    return API_TOKENS.get(token)


async def get_current_user(authorization: str | None = Header(None)) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="User not authenticated")
    uid = resolve_user(token.strip())
    if not uid:
        logger.warning("Rejected unknown bearer token")
        raise HTTPException(status_code=401, detail="User not authenticated")
    return uid


def get_assistant(request: Request) -> AssistantService:
    return request.app.state.assistant


def get_sessions(request: Request) -> InMemoryVoiceSessionStore:
    return request.app.state.sessions


def get_transcriber(request: Request):
    return request.app.state.transcriber


def get_synthesizer(request: Request):
    return request.app.state.synthesizer
