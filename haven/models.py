from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlmodel import SQLModel, Field

MoodLabel = Literal["distressed", "anxious", "depressed", "angry", "happy", "neutral"]
Answer = Union[str, List[str]]


# --- Persisted tables ---
class Message(SQLModel, table=True):
    __table_args__ = {"extend_existing": True}
    # ISO-8601 timestamp; strictly increasing across the whole log
    id: str = Field(primary_key=True)
    role: str
    text: str
    mood: Optional[str] = None
    is_crisis: bool = Field(default=False)
    is_error: bool = Field(default=False)
    session_id: Optional[str] = Field(default=None, index=True)

    @property
    def timestamp(self) -> str:
        return self.id

    @property
    def created_at(self) -> datetime:
        return datetime.fromisoformat(self.id)

    def to_record(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "timestamp": self.id,
            "role": self.role,
            "text": self.text,
            "mood": self.mood,
            "isCrisis": self.is_crisis,
            "isError": self.is_error,
            "sessionId": self.session_id,
        }


class JournalEntryRow(SQLModel, table=True):
    __tablename__ = "journal_entry"
    __table_args__ = {"extend_existing": True}
    id: str = Field(primary_key=True)
    date: str = Field(index=True)
    timestamp: str
    mood: str = "Unknown"
    # JSON-encoded mapping of prompt id -> answer
    responses: str = "{}"
    summary: str = ""
    pending_delete: bool = Field(default=False, index=True)


class DraftRow(SQLModel, table=True):
    __tablename__ = "draft_state"
    __table_args__ = {"extend_existing": True}
    slot: int = Field(default=1, primary_key=True)
    payload: str


# --- Value types ---
class Signal(BaseModel):
    mood: MoodLabel = "neutral"
    is_crisis: bool = False


class Turn(BaseModel):
    role: str  # "user" | "assistant"
    content: str


class Reply(BaseModel):
    text: str
    is_crisis: bool = False
    is_error: bool = False


class JournalEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    date: str
    timestamp: str
    mood: str = "Unknown"
    responses: Dict[str, Answer] = PydanticField(default_factory=dict)
    summary: str = ""


class DraftState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    responses: Dict[str, Answer] = PydanticField(default_factory=dict)
    selected_mood: Optional[str] = PydanticField(default=None, alias="selectedMood")
    current_step: int = PydanticField(default=0, alias="currentStep")
    editing_id: Optional[str] = PydanticField(default=None, alias="editingId")
    date: Optional[str] = None


class Conversation(BaseModel):
    """A derived group of messages shown as one thread; never stored."""

    session_id: Optional[str] = None
    title: str
    start_timestamp: str
    dominant_mood: Optional[str] = None
    messages: List[Message]
