import logging
import os
from pathlib import Path

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.assistant import router as assistant_router
from api.voice import router as voice_router
from chat.assistant import AssistantService
from store.memory import InMemoryGoalStore, InMemoryNoteStore, InMemoryTaskStore
from store.sessions import InMemoryVoiceSessionStore
from tools.speech import STT_BACKEND, synthesize_speech, transcribe_payload
from utils.timezone import now

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
API_VERSION = "1.0.0"

logging.basicConfig(
  level=LOG_LEVEL,
  format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
  assistant: AssistantService | None = None,
  sessions: InMemoryVoiceSessionStore | None = None,
  transcriber=None,
  synthesizer=None,
) -> FastAPI:
  app = FastAPI(title="Lyra Assistant", version=API_VERSION)

  app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )

  # 未注入时使用内存存储（开发模式）
  app.state.assistant = assistant or AssistantService(
    InMemoryTaskStore(),
    InMemoryGoalStore(),
    InMemoryNoteStore(),
  )
  app.state.sessions = sessions or InMemoryVoiceSessionStore()
  app.state.transcriber = transcriber or transcribe_payload
  app.state.synthesizer = synthesizer or synthesize_speech

  app.include_router(assistant_router)
  app.include_router(voice_router)

  @app.get("/api/health")
  async def health():
    return {
      "success": True,
      "message": "Lyra Assistant API is running",
      "data": {
        "status": "healthy",
        "version": API_VERSION,
        "sttBackend": STT_BACKEND,
        "timestamp": now().isoformat(),
      },
    }

  return app


app = create_app()


if __name__ == "__main__":
  def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
      return default
    try:
      return int(raw)
    except ValueError:
      return default

  host = os.getenv("BACKEND_HOST", "127.0.0.1")
  port = _int_env("BACKEND_PORT", 8888)
  reload_enabled = os.getenv("BACKEND_RELOAD", "true").lower() in ("1", "true", "yes", "on")

  logger.info("Starting backend on %s:%s (reload=%s)", host, port, reload_enabled)
  uvicorn.run("main:app", host=host, port=port, reload=reload_enabled)
