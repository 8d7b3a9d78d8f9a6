"""MCP server for Lyra Assistant -- exposes the voice assistant as MCP tools."""

import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from mcp.server.fastmcp import FastMCP

from chat.assistant import AssistantService
from store.memory import InMemoryGoalStore, InMemoryNoteStore, InMemoryTaskStore
from tools.speech import TranscriptionError, transcribe_payload

# Logging to stderr only (stdout reserved for JSON-RPC over stdio transport)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("mcp_server")

mcp = FastMCP(
    "lyra-assistant",
    instructions="Lyra Assistant: create tasks, goals and notes by voice command, and check progress",
)

assistant = AssistantService(InMemoryTaskStore(), InMemoryGoalStore(), InMemoryNoteStore())


def _to_json(model) -> str:
    return json.dumps(model.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2)


@mcp.tool()
async def process_voice_input(user_id: str, transcription: str) -> str:
    """Run a spoken or typed command through the assistant.

    Recognised commands include "create task <title>", "set goal <title>",
    "take note <content>", "complete <task>", "update goal <name> to NN%",
    "what should I focus on" and "how am I doing".

    Args:
        user_id: The user the command acts on
        transcription: The command text
    """
    if not transcription.strip():
        return json.dumps({"error": "transcription is required"})
    response = await assistant.process_voice_input(user_id, transcription)
    return _to_json(response)


@mcp.tool()
async def get_user_insights(user_id: str) -> str:
    """Summarise the user's priorities, with suggestions and overall task progress.

    Args:
        user_id: The user to summarise
    """
    return _to_json(await assistant.get_user_insights(user_id))


@mcp.tool()
async def get_daily_summary(user_id: str) -> str:
    """Count tasks completed/created, goals progressed and notes taken since midnight.

    Args:
        user_id: The user to summarise
    """
    return _to_json(await assistant.get_daily_summary(user_id))


@mcp.tool()
async def transcribe_audio_file(path: str, language: str | None = None) -> str:
    """Transcribe a local audio file (wav, mp3, m4a or webm) with Whisper.

    Args:
        path: Path to the audio file
        language: Optional language code, e.g. "en"
    """
    audio_path = Path(path)
    if not audio_path.is_file():
        return json.dumps({"error": f"File not found: {path}"})
    try:
        result = await transcribe_payload(audio_path.read_bytes(), audio_path.suffix, language)
    except TranscriptionError as e:
        logger.exception("transcribe_audio_file error")
        return json.dumps({"error": str(e)[:300]})
    return _to_json(result)


if __name__ == "__main__":
    mcp.run()
