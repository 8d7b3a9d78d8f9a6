import asyncio
import base64
import binascii
import logging
import math
import os
import re
import tempfile
from functools import lru_cache

import edge_tts
from edge_tts.exceptions import NoAudioReceived, WebSocketError, UnexpectedResponse
from faster_whisper import WhisperModel
from openai import AsyncOpenAI

from utils.timezone import now

from .models import TranscriptionResult

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("wav", "mp3", "m4a", "webm")

STT_BACKEND = os.getenv("STT_BACKEND", "local").lower()
WHISPER_MODEL = os.getenv("WHISPER_MODEL", "small")
WHISPER_DEVICE = os.getenv("WHISPER_DEVICE", "cpu")
WHISPER_COMPUTE_TYPE = os.getenv("WHISPER_COMPUTE_TYPE", "int8")
OPENAI_TRANSCRIBE_MODEL = os.getenv("OPENAI_TRANSCRIBE_MODEL", "whisper-1")
# Whisper API 不返回置信度
OPENAI_DEFAULT_CONFIDENCE = 0.9

_DATA_URL = re.compile(r"^data:audio/[\w.+-]+(?:;[\w=.-]+)*;base64,", re.IGNORECASE)


class TranscriptionError(Exception):
  pass


class UnsupportedAudioFormat(TranscriptionError):
  pass


def _normalize_lang(lang: str | None) -> str | None:
  if not lang:
    return None
  return lang.lower().split("-")[0]


def normalize_format(audio_format: str) -> str:
  fmt = (audio_format or "").lower().lstrip(".")
  if fmt not in SUPPORTED_FORMATS:
    raise UnsupportedAudioFormat(f"Unsupported audio format: {audio_format}")
  return fmt


def decode_audio_payload(payload: str) -> bytes:
  # 支持纯 base64 或 data:audio/...;base64, 前缀
  data = _DATA_URL.sub("", (payload or "").strip())
  if not data:
    raise TranscriptionError("Audio data is empty")
  try:
    return base64.b64decode(data, validate=True)
  except (binascii.Error, ValueError) as e:
    raise TranscriptionError("Invalid audio data format. Expected base64 encoded audio or data URL") from e


# STT
@lru_cache(maxsize=1)
def _get_model() -> WhisperModel:
  logger.info("Loading Whisper model %s (%s, %s)", WHISPER_MODEL, WHISPER_DEVICE, WHISPER_COMPUTE_TYPE)
  return WhisperModel(WHISPER_MODEL, device=WHISPER_DEVICE, compute_type=WHISPER_COMPUTE_TYPE)


def _segment_confidence(segments: list) -> float:
  if not segments:
    return 0.0
  mean_logprob = sum(seg.avg_logprob for seg in segments) / len(segments)
  return max(0.0, min(1.0, math.exp(mean_logprob)))


def transcribe_audio(path: str, lang: str | None = None) -> tuple[str, float, str]:
  # 音频转文本 -> (text, confidence, language)
  segments, info = _get_model().transcribe(path, language=_normalize_lang(lang))
  segments = list(segments)
  text = "".join(seg.text for seg in segments).strip()
  return text, _segment_confidence(segments), info.language or _normalize_lang(lang) or "en"


_openai_client: AsyncOpenAI | None = None


def get_openai_client() -> AsyncOpenAI:
  global _openai_client
  if _openai_client is None:
    _openai_client = AsyncOpenAI(
      api_key=os.getenv("OPENAI_API_KEY"),
      base_url=os.getenv("OPENAI_BASE_URL") or None,
    )
  return _openai_client


async def transcribe_with_openai(audio_bytes: bytes, audio_format: str, lang: str | None = None) -> tuple[str, float, str]:
  if not os.getenv("OPENAI_API_KEY"):
    raise TranscriptionError("OpenAI API key not configured")
  kwargs = dict(
    model=OPENAI_TRANSCRIBE_MODEL,
    file=(f"audio.{audio_format}", audio_bytes),
  )
  normalized = _normalize_lang(lang)
  if normalized:
    kwargs["language"] = normalized
  result = await get_openai_client().audio.transcriptions.create(**kwargs)
  text = (getattr(result, "text", "") or "").strip()
  language = getattr(result, "language", None) or normalized or "en"
  return text, OPENAI_DEFAULT_CONFIDENCE, language


async def transcribe_payload(
  audio_bytes: bytes,
  audio_format: str,
  language: str | None = None,
  duration: float = 0,
) -> TranscriptionResult:
  """
  Transcribe one audio payload with the configured Whisper backend.
  Any backend failure is raised as TranscriptionError.
  """
  fmt = normalize_format(audio_format)
  if not audio_bytes:
    raise TranscriptionError("Audio data is empty")

  try:
    if STT_BACKEND == "openai":
      text, confidence, detected = await transcribe_with_openai(audio_bytes, fmt, language)
    else:
      text, confidence, detected = await _transcribe_local(audio_bytes, fmt, language)
  except TranscriptionError:
    raise
  except Exception as e:
    logger.exception("Whisper transcription failed (backend=%s)", STT_BACKEND)
    raise TranscriptionError(f"Whisper transcription failed: {e}") from e

  logger.info("Transcribed %d bytes of %s: %r", len(audio_bytes), fmt, text[:200])
  return TranscriptionResult(
    text=text,
    confidence=confidence,
    language=detected,
    duration=duration or 0,
    timestamp=now(),
  )


async def _transcribe_local(audio_bytes: bytes, audio_format: str, language: str | None) -> tuple[str, float, str]:
  with tempfile.NamedTemporaryFile(suffix=f".{audio_format}", delete=False) as f:
    f.write(audio_bytes)
    temp_path = f.name
  try:
    return await asyncio.to_thread(transcribe_audio, temp_path, language)
  finally:
    try:
      os.remove(temp_path)
    except OSError:
      pass


# TTS
VOICE_BY_LANG = {
  "en": "en-US-JennyNeural",
  "zh": "zh-CN-XiaoxiaoNeural",
}
VOICE_FALLBACKS = {
  "en": ["en-US-JennyNeural", "en-US-GuyNeural", "en-CA-ClaraNeural"],
  "zh": ["zh-CN-XiaoxiaoNeural", "zh-CN-XiaoyiNeural", "zh-CN-YunxiNeural"],
}

PROXY = os.getenv("HTTPS_PROXY") or os.getenv("HTTP_PROXY")
CONNECT_TIMEOUT = int(os.getenv("EDGE_TTS_CONNECT_TIMEOUT", "10"))
RECEIVE_TIMEOUT = int(os.getenv("EDGE_TTS_RECEIVE_TIMEOUT", "60"))


async def synthesize_speech(text: str, lang: str = "en") -> bytes:
  # 回复语音（mp3 二进制）
  normalized = _normalize_lang(lang) or "en"
  if normalized not in VOICE_BY_LANG:
    normalized = "en"
  primary_voice = VOICE_BY_LANG[normalized]
  voices = [primary_voice] + [v for v in VOICE_FALLBACKS.get(normalized, []) if v != primary_voice]
  last_error = None

  for voice in voices:
    try:
      communicate = edge_tts.Communicate(
        text,
        voice,
        proxy=PROXY,
        connect_timeout=CONNECT_TIMEOUT,
        receive_timeout=RECEIVE_TIMEOUT,
      )
      audio_bytes = b""
      async for chunk in communicate.stream():
        if chunk["type"] == "audio":
          audio_bytes += chunk["data"]
      if audio_bytes:
        return audio_bytes
      last_error = NoAudioReceived("No audio was received.")
    except (NoAudioReceived, WebSocketError, UnexpectedResponse) as e:
      logger.warning("TTS voice %s failed: %s", voice, e)
      last_error = e

  if last_error:
    raise last_error
  raise NoAudioReceived("No audio was received.")
