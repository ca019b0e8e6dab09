from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class ConversationRecord(SQLModel, table=True):
    __tablename__ = "conversations"

    id: str = Field(primary_key=True, max_length=64)
    owner_id: str = Field(index=True, max_length=255)
    status: str = Field(default="active", index=True, max_length=16)
    patient_info: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )

    total_duration: float = 0.0
    language_pairs: List[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    exchange_count: int = 0
    start_time: datetime
    end_time: Optional[datetime] = None

    next_sequence: int = 0
    created_at: datetime = Field(index=True)
    updated_at: datetime


class ExchangeRecord(SQLModel, table=True):
    __tablename__ = "exchanges"

    id: str = Field(primary_key=True, max_length=64)
    conversation_id: str = Field(foreign_key="conversations.id", index=True)
    sequence: int

    source_language: Optional[str] = Field(default=None, max_length=16)
    target_language: str = Field(max_length=16)
    status: str = Field(max_length=16)

    original_audio_kind: str = Field(max_length=16)
    original_audio_value: str
    translated_audio_kind: Optional[str] = Field(default=None, max_length=16)
    translated_audio_value: Optional[str] = None

    job_id: Optional[str] = Field(default=None, max_length=255)
    error_kind: Optional[str] = Field(default=None, max_length=32)
    error_message: Optional[str] = None

    duration_seconds: Optional[float] = None
    created_at: datetime
    updated_at: datetime
