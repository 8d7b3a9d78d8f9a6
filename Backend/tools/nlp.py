import logging
import re
from dataclasses import dataclass
from typing import Callable

from .models import Command, Entity, Intent

logger = logging.getLogger(__name__)

CREATION_CONFIDENCE = 0.9
CHECK_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.6

TASK_PATTERN = re.compile(r"(?:create|add|new)\s+task\s+(?:to\s+)?(.+)", re.IGNORECASE)
GOAL_PATTERN = re.compile(r"(?:set|create|new)\s+goal\s+(?:to\s+)?(.+)", re.IGNORECASE)
NOTE_PATTERN = re.compile(r"(?:take|create)\s+note\s+(?:about\s+)?(.+)", re.IGNORECASE)
COMPLETE_PATTERN = re.compile(r"(?:complete|done|finished)\s+(.+)", re.IGNORECASE)
PROGRESS_PATTERN = re.compile(r"(?:update|set)\s+goal\s+(.+?)\s+(?:to|at)\s+(\d+)\s*%", re.IGNORECASE)

Extractor = Callable[[str], list[Entity]]


def normalize_text(raw: str) -> str:
  text = raw.strip()
  text = re.sub(r"\s+", " ", text)
  return text


def _clean_value(value: str) -> str:
  # 去掉 Whisper 常带的句末标点
  return value.strip().rstrip(".!?,;").strip()


def _capture(pattern: re.Pattern, entity_type: str, confidence: float) -> Extractor:
  def extract(text: str) -> list[Entity]:
    m = pattern.search(text)
    if not m:
      return []
    value = _clean_value(m.group(1))
    if not value:
      return []
    return [Entity(type=entity_type, value=value, confidence=confidence)]
  return extract


def _extract_progress(text: str) -> list[Entity]:
  m = PROGRESS_PATTERN.search(text)
  if not m:
    return []
  title = _clean_value(m.group(1))
  if not title:
    return []
  return [
    Entity(type="goal_title", value=title, confidence=0.8),
    Entity(type="progress_value", value=int(m.group(2)), confidence=0.9),
  ]


def _no_entities(text: str) -> list[Entity]:
  return []


@dataclass(frozen=True)
class IntentRule:
  intent: Intent
  triggers: tuple[str, ...]
  confidence: float
  extract: Extractor

  def matches(self, lowered: str) -> bool:
    return any(t in lowered for t in self.triggers)


# First match wins. Creation intents come first, then priority/progress
# checks, then completion, then goal progress updates.
INTENT_RULES: tuple[IntentRule, ...] = (
  IntentRule(
    Intent.CREATE_TASK,
    ("create task", "add task", "new task"),
    CREATION_CONFIDENCE,
    _capture(TASK_PATTERN, "task_title", 0.9),
  ),
  IntentRule(
    Intent.CREATE_GOAL,
    ("set goal", "create goal", "new goal"),
    CREATION_CONFIDENCE,
    _capture(GOAL_PATTERN, "goal_title", 0.9),
  ),
  IntentRule(
    Intent.CREATE_NOTE,
    ("take note", "create note", "remember"),
    CREATION_CONFIDENCE,
    _capture(NOTE_PATTERN, "note_content", 0.9),
  ),
  IntentRule(
    Intent.CHECK_PRIORITIES,
    ("priority", "focus", "important"),
    CHECK_CONFIDENCE,
    _no_entities,
  ),
  IntentRule(
    Intent.CHECK_PROGRESS,
    ("progress", "how am i doing", "status"),
    CHECK_CONFIDENCE,
    _no_entities,
  ),
  IntentRule(
    Intent.COMPLETE_TASK,
    ("complete", "done", "finished"),
    CHECK_CONFIDENCE,
    _capture(COMPLETE_PATTERN, "task_title", 0.8),
  ),
  IntentRule(
    Intent.UPDATE_GOAL_PROGRESS,
    ("update goal", "goal progress"),
    CHECK_CONFIDENCE,
    _extract_progress,
  ),
)


def classify(utterance: str) -> Command:
  """
  Map free text to a Command. Never raises: anything the rule table does
  not recognise becomes Intent.GENERAL at FALLBACK_CONFIDENCE.
  """
  text = normalize_text(utterance or "")
  lowered = text.lower()

  for rule in INTENT_RULES:
    if rule.matches(lowered):
      entities = tuple(rule.extract(text))
      logger.info(
        "Classified intent=%s entities=%s text=%r",
        rule.intent.value,
        [e.type for e in entities],
        text[:200],
      )
      return Command(
        intent=rule.intent,
        entities=entities,
        confidence=rule.confidence,
        utterance=text,
      )

  logger.info("No intent rule matched, falling back to general: %r", text[:200])
  return Command(intent=Intent.GENERAL, confidence=FALLBACK_CONFIDENCE, utterance=text)


if __name__ == "__main__":
  test_cases = [
    "create task call the dentist",
    "Add task to buy groceries.",
    "set goal run a marathon",
    "take note about the quarterly budget",
    "what should I focus on today",
    "how am I doing",
    "mark done buy milk",
    "update goal Learn Spanish to 40%",
    "update goal Learn Spanish",
    "what's the weather like",
  ]
  for text in test_cases:
    cmd = classify(text)
    print("原始文本:", text)
    print("  intent:", cmd.intent.value, "confidence:", cmd.confidence)
    for e in cmd.entities:
      print("  entity:", e.type, "=", repr(e.value))
    print("-" * 40)
