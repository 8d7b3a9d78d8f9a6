"""FastAPI routes for the voice assistant."""

import base64
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_assistant, get_current_user, get_sessions, get_synthesizer, get_transcriber
from api.voice import ProcessVoiceRequest, record_transcription, transcribe_request
from chat.assistant import AssistantService
from store.sessions import InMemoryVoiceSessionStore
from tools.models import ApiModel, AssistantResponse, VoiceResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


# --- Request Models ---

class VoiceCommandRequest(ApiModel):
    transcription: Optional[str] = None
    context: Optional[dict] = None
    include_audio: bool = False
    lang: str = "en"


class VoiceAudioRequest(ProcessVoiceRequest):
    context: Optional[dict] = None
    include_audio: bool = False


async def _reply_audio(synthesizer, text: str, lang: str) -> str:
    # TTS failures never fail the request; the reply just comes back without audio.
    try:
        audio_bytes = await synthesizer(text, lang=lang)
    except Exception as e:
        logger.exception("Text-to-speech failed: %s", e)
        return ""
    return base64.b64encode(audio_bytes).decode("utf-8")


async def _build_voice_response(
    transcription: str,
    response: AssistantResponse,
    synthesizer,
    include_audio: bool,
    lang: str,
    session_id: Optional[str] = None,
) -> VoiceResponse:
    audio_b64 = ""
    if include_audio and response.text:
        audio_b64 = await _reply_audio(synthesizer, response.text, lang)
    return VoiceResponse(
        transcription=transcription,
        response=response,
        audio_base64=audio_b64,
        session_id=session_id,
    )


async def _process(assistant: AssistantService, uid: str, transcription: str, context: Optional[dict]) -> AssistantResponse:
    try:
        return await assistant.process_voice_input(uid, transcription, context)
    except Exception as e:
        logger.exception("Assistant processing failed for %s", uid)
        raise HTTPException(status_code=500, detail=f"Failed to process voice input: {str(e)[:200]}")


# --- POST /api/assistant/voice ---

@router.post("/voice")
async def assistant_voice(
    req: VoiceCommandRequest,
    uid: str = Depends(get_current_user),
    assistant: AssistantService = Depends(get_assistant),
    synthesizer=Depends(get_synthesizer),
):
    transcription = (req.transcription or "").strip()
    if not transcription:
        raise HTTPException(status_code=400, detail="Transcription is required")

    response = await _process(assistant, uid, transcription, req.context)
    payload = await _build_voice_response(transcription, response, synthesizer, req.include_audio, req.lang)
    data = payload.response.model_dump(mode="json", by_alias=True)
    if req.include_audio:
        data["audioBase64"] = payload.audio_base64
    return {"success": True, "message": "Voice processed successfully", "data": data}


# --- POST /api/assistant/voice/audio ---

@router.post("/voice/audio")
async def assistant_voice_audio(
    req: VoiceAudioRequest,
    uid: str = Depends(get_current_user),
    assistant: AssistantService = Depends(get_assistant),
    transcriber=Depends(get_transcriber),
    synthesizer=Depends(get_synthesizer),
    sessions: InMemoryVoiceSessionStore = Depends(get_sessions),
):
    result = await transcribe_request(req, transcriber)
    await record_transcription(sessions, req.session_id, uid, result)

    transcription = result.text.strip()
    if not transcription:
        raise HTTPException(status_code=400, detail="I couldn't hear you clearly. Could you say it again?")

    response = await _process(assistant, uid, transcription, req.context)
    payload = await _build_voice_response(
        transcription,
        response,
        synthesizer,
        req.include_audio,
        result.language,
        session_id=req.session_id,
    )
    return {
        "success": True,
        "message": "Voice processed successfully",
        "data": payload.model_dump(mode="json", by_alias=True),
    }


# --- GET /api/assistant/insights ---

@router.get("/insights")
async def assistant_insights(
    uid: str = Depends(get_current_user),
    assistant: AssistantService = Depends(get_assistant),
):
    try:
        insights = await assistant.get_user_insights(uid)
    except Exception as e:
        logger.exception("Insights failed for %s", uid)
        raise HTTPException(status_code=500, detail=f"Failed to get user insights: {str(e)[:200]}")
    return {
        "success": True,
        "message": "User insights retrieved successfully",
        "data": insights.model_dump(mode="json", by_alias=True),
    }


# --- GET /api/assistant/summary ---

@router.get("/summary")
async def assistant_summary(
    uid: str = Depends(get_current_user),
    assistant: AssistantService = Depends(get_assistant),
):
    try:
        summary = await assistant.get_daily_summary(uid)
    except Exception as e:
        logger.exception("Daily summary failed for %s", uid)
        raise HTTPException(status_code=500, detail=f"Failed to get daily summary: {str(e)[:200]}")
    return {
        "success": True,
        "message": "Daily summary retrieved successfully",
        "data": summary.model_dump(mode="json", by_alias=True),
    }
