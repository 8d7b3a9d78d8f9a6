from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Intent(str, Enum):
  CREATE_TASK = "create_task"
  CREATE_GOAL = "create_goal"
  CREATE_NOTE = "create_note"
  COMPLETE_TASK = "complete_task"
  UPDATE_GOAL_PROGRESS = "update_goal_progress"
  CHECK_PRIORITIES = "check_priorities"
  CHECK_PROGRESS = "check_progress"
  GENERAL = "general"


@dataclass(frozen=True)
class Entity:
  # 从语句中抽取出的槽位
  type: str
  value: str | int
  confidence: float


@dataclass(frozen=True)
class Command:
  # classify() 的唯一产物，生成后不可变
  intent: Intent
  entities: tuple[Entity, ...] = ()
  confidence: float = 0.6
  utterance: str = ""

  def entity(self, entity_type: str) -> str | int | None:
    for e in self.entities:
      if e.type == entity_type:
        return e.value
    return None


class ApiModel(BaseModel):
  # JSON 上使用 camelCase
  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskStatus(str, Enum):
  TODO = "todo"
  IN_PROGRESS = "in-progress"
  DONE = "done"
  ARCHIVED = "archived"


class TaskPriority(IntEnum):
  LOW = 1
  MEDIUM = 2
  HIGH = 3
  URGENT = 4


class GoalStatus(str, Enum):
  ACTIVE = "active"
  COMPLETED = "completed"
  PAUSED = "paused"
  CANCELLED = "cancelled"


class Task(ApiModel):
  id: str
  user_id: str
  title: str
  description: str = ""
  category: str = "general"
  status: TaskStatus = TaskStatus.TODO
  priority: TaskPriority = TaskPriority.MEDIUM
  tags: list[str] = Field(default_factory=list)
  due_date: datetime | None = None
  completed_at: datetime | None = None
  created_at: datetime
  updated_at: datetime


class CreateTaskData(ApiModel):
  title: str
  description: str = ""
  category: str = "general"
  tags: list[str] = Field(default_factory=list)
  priority: TaskPriority = TaskPriority.MEDIUM
  due_date: datetime | None = None


class TaskUpdate(ApiModel):
  title: str | None = None
  description: str | None = None
  category: str | None = None
  tags: list[str] | None = None
  status: TaskStatus | None = None
  priority: TaskPriority | None = None
  due_date: datetime | None = None


class TaskFilters(ApiModel):
  status: TaskStatus | None = None
  priority: TaskPriority | None = None
  category: str | None = None


class GoalProgress(ApiModel):
  percentage: int = 0
  current_value: int = 0
  last_updated: datetime


class Goal(ApiModel):
  id: str
  user_id: str
  title: str
  description: str = ""
  category: str = "personal"
  status: GoalStatus = GoalStatus.ACTIVE
  tags: list[str] = Field(default_factory=list)
  start_date: datetime
  due_date: datetime | None = None
  progress: GoalProgress
  completed_at: datetime | None = None
  created_at: datetime
  updated_at: datetime


class CreateGoalData(ApiModel):
  title: str
  description: str = ""
  category: str = "personal"
  tags: list[str] = Field(default_factory=list)
  start_date: datetime | None = None
  due_date: datetime | None = None


class GoalFilters(ApiModel):
  status: GoalStatus | None = None
  category: str | None = None


class NoteContent(ApiModel):
  text: str


class Note(ApiModel):
  id: str
  user_id: str
  title: str
  content: NoteContent
  category: str = "general"
  tags: list[str] = Field(default_factory=list)
  created_at: datetime
  updated_at: datetime


class CreateNoteData(ApiModel):
  title: str
  content: NoteContent
  category: str = "general"
  tags: list[str] = Field(default_factory=list)


class ActionType(str, Enum):
  TASK_CREATED = "task-created"
  GOAL_SET = "goal-set"
  NOTE_CREATED = "note-created"
  REMINDER_SET = "reminder-set"
  INTEGRATION_TRIGGERED = "integration-triggered"
  CUSTOM = "custom"


class ActionStatus(str, Enum):
  PENDING = "pending"
  COMPLETED = "completed"
  FAILED = "failed"
  CANCELLED = "cancelled"


class ActionDetails(ApiModel):
  entity_type: str
  entity_id: str
  data: dict[str, Any] = Field(default_factory=dict)
  metadata: dict[str, Any] = Field(default_factory=dict)


class Action(ApiModel):
  id: str
  type: ActionType
  description: str
  timestamp: datetime
  status: ActionStatus = ActionStatus.COMPLETED
  details: ActionDetails
  executed_at: datetime | None = None
  executed_by: str = "ai-assistant"
  result: Any = None
  follow_up_required: bool = False


class AssistantResponse(ApiModel):
  text: str
  actions: list[Action] = Field(default_factory=list)
  suggestions: list[str] = Field(default_factory=list)
  confidence: float
  intent: Intent = Intent.GENERAL
  error: str | None = None


class UserInsights(ApiModel):
  priorities: list[str]
  suggestions: list[str]
  progress: int


class DailySummary(ApiModel):
  tasks_completed: int
  tasks_created: int
  goals_progress: int
  notes_taken: int
  recommendations: list[str]


class TranscriptionResult(ApiModel):
  text: str
  confidence: float
  language: str
  duration: float = 0
  timestamp: datetime


class VoiceSessionStatus(str, Enum):
  ACTIVE = "active"
  COMPLETED = "completed"
  CANCELLED = "cancelled"


class VoiceSession(ApiModel):
  session_id: str
  uid: str
  start_time: datetime
  end_time: datetime | None = None
  transcriptions: list[TranscriptionResult] = Field(default_factory=list)
  total_duration: float = 0
  status: VoiceSessionStatus = VoiceSessionStatus.ACTIVE


class VoiceResponse(ApiModel):
  # /api/assistant/voice
  transcription: str
  response: AssistantResponse
  audio_base64: str = ""  # 回复语音
  session_id: str | None = None
