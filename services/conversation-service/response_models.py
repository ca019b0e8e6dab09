"""Request and response models for the conversation API."""

from datetime import datetime

from pydantic import BaseModel, Field

from domain import ExchangeError, ExchangeStatus, PatientInfo


class StartConversationRequest(BaseModel):
    """Body for starting a new conversation."""

    owner_id: str = Field(min_length=1)
    patient_info: PatientInfo


class ExchangeResponse(BaseModel):
    """An exchange as returned by the API; audio is exposed by playback."""

    id: str
    source_language: str | None
    target_language: str
    status: ExchangeStatus
    created_at: datetime
    duration_seconds: float | None = None
    error: ExchangeError | None = None
