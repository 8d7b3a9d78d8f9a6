"""FastAPI routes for speech-to-text and voice sessions."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_current_user, get_sessions, get_transcriber
from store.base import AccessDeniedError, NotFoundError
from store.sessions import DEFAULT_LIST_LIMIT, InMemoryVoiceSessionStore
from tools.models import ApiModel, TranscriptionResult
from tools.speech import TranscriptionError, decode_audio_payload, normalize_format

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voice", tags=["voice"])


class ProcessVoiceRequest(ApiModel):
    audio_data: str
    audio_format: str
    language: Optional[str] = None
    session_id: Optional[str] = None
    duration: Optional[float] = None


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


async def transcribe_request(req: ProcessVoiceRequest, transcriber) -> TranscriptionResult:
    """Validate and transcribe an audio request, mapping failures onto HTTP errors."""
    if not req.audio_data or not req.audio_format:
        raise HTTPException(status_code=400, detail="Audio data and format are required")
    try:
        fmt = normalize_format(req.audio_format)
        audio_bytes = decode_audio_payload(req.audio_data)
    except TranscriptionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return await transcriber(audio_bytes, fmt, req.language, req.duration or 0)
    except TranscriptionError as e:
        logger.exception("Transcription failed")
        raise HTTPException(status_code=500, detail=f"Failed to process voice input: {str(e)[:200]}")


async def record_transcription(
    sessions: InMemoryVoiceSessionStore,
    session_id: Optional[str],
    uid: str,
    result: TranscriptionResult,
) -> None:
    if not session_id:
        return
    try:
        await sessions.add_transcription(session_id, uid, result)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Voice session not found")
    except AccessDeniedError:
        raise HTTPException(status_code=403, detail="Access denied to voice session")


# --- POST /api/voice/process ---

@router.post("/process")
async def process_voice(
    req: ProcessVoiceRequest,
    uid: str = Depends(get_current_user),
    transcriber=Depends(get_transcriber),
    sessions: InMemoryVoiceSessionStore = Depends(get_sessions),
):
    result = await transcribe_request(req, transcriber)
    await record_transcription(sessions, req.session_id, uid, result)
    return {
        "success": True,
        "message": "Voice input processed successfully",
        "data": {"transcription": _dump(result), "sessionId": req.session_id},
    }


# --- Voice sessions ---

@router.post("/session/start", status_code=201)
async def start_session(
    uid: str = Depends(get_current_user),
    sessions: InMemoryVoiceSessionStore = Depends(get_sessions),
):
    session = await sessions.start_session(uid)
    return {
        "success": True,
        "message": "Voice session started successfully",
        "data": {"session": _dump(session)},
    }


@router.post("/session/{session_id}/end")
async def end_session(
    session_id: str,
    uid: str = Depends(get_current_user),
    sessions: InMemoryVoiceSessionStore = Depends(get_sessions),
):
    try:
        session = await sessions.end_session(session_id, uid)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Voice session not found")
    except AccessDeniedError:
        raise HTTPException(status_code=403, detail="Access denied to voice session")
    return {
        "success": True,
        "message": "Voice session ended successfully",
        "data": {"session": _dump(session)},
    }


@router.get("/session/{session_id}")
async def get_session(
    session_id: str,
    uid: str = Depends(get_current_user),
    sessions: InMemoryVoiceSessionStore = Depends(get_sessions),
):
    try:
        session = await sessions.get_session(session_id, uid)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Voice session not found")
    except AccessDeniedError:
        raise HTTPException(status_code=403, detail="Access denied to voice session")
    return {"success": True, "data": {"session": _dump(session)}}


@router.get("/sessions")
async def list_sessions(
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=100),
    uid: str = Depends(get_current_user),
    sessions: InMemoryVoiceSessionStore = Depends(get_sessions),
):
    items = await sessions.list_sessions(uid, limit=limit)
    return {
        "success": True,
        "data": {
            "sessions": [_dump(s) for s in items],
            "total": len(items),
            "limit": limit,
        },
    }
