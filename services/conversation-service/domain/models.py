"""Domain models for dubbed clinical conversations."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

EPHEMERAL_PREFIX = "blob:"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _assume_utc(value: datetime) -> datetime:
    """Treats naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ExchangeStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ExchangeStatus.PROCESSING


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DUBBED = "dubbed"
    FAILED = "failed"


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class FailureKind(str, Enum):
    """Pipeline stage at which an exchange failed."""

    SUBMISSION = "submission"
    JOB_FAILED = "job_failed"
    TIMEOUT = "timeout"
    FETCH = "fetch"
    INTERNAL = "internal"


class AudioRefKind(str, Enum):
    EPHEMERAL = "ephemeral"
    DURABLE = "durable"


class AudioRef(BaseModel, frozen=True):
    """
    Tagged reference to a piece of audio.

    Ephemeral references are in-process handles (``blob:<hex>``) that only
    live as long as the service process. Durable references are object names
    in the blob store and stay resolvable indefinitely.
    """

    kind: AudioRefKind
    value: str = Field(min_length=1)

    @classmethod
    def ephemeral(cls, value: str) -> "AudioRef":
        return cls(kind=AudioRefKind.EPHEMERAL, value=value)

    @classmethod
    def durable(cls, value: str) -> "AudioRef":
        return cls(kind=AudioRefKind.DURABLE, value=value)

    @property
    def is_ephemeral(self) -> bool:
        return self.kind is AudioRefKind.EPHEMERAL


class Recording(BaseModel, frozen=True):
    """One finished take from the microphone."""

    data: bytes
    content_type: str = "audio/webm"
    started_at: datetime = Field(default_factory=utcnow)
    duration_seconds: float | None = Field(default=None, ge=0)

    _started_at_utc = field_validator("started_at")(_assume_utc)


class Language(BaseModel, frozen=True):
    code: str
    name: str


class DubbingJob(BaseModel):
    """Provider-side unit of work; lives only while its exchange is in flight."""

    job_id: str
    status: JobStatus
    target_language: str
    created_at: datetime = Field(default_factory=utcnow)
    error: str | None = None


class ExchangeError(BaseModel, frozen=True):
    kind: FailureKind
    message: str


class Exchange(BaseModel):
    """
    One recorded utterance and its dubbed counterpart.

    The translated audio reference is present exactly when the exchange is
    completed; completed and failed are terminal.
    """

    id: str
    source_language: str | None = None
    target_language: str = Field(min_length=1)
    original_audio_ref: AudioRef
    translated_audio_ref: AudioRef | None = None
    status: ExchangeStatus = ExchangeStatus.PROCESSING
    created_at: datetime = Field(default_factory=utcnow)
    duration_seconds: float | None = None
    sequence: int = 0
    job_id: str | None = None
    error: ExchangeError | None = None

    _created_at_utc = field_validator("created_at")(_assume_utc)

    @model_validator(mode="after")
    def _check_translated_audio(self) -> "Exchange":
        completed = self.status is ExchangeStatus.COMPLETED
        if completed != (self.translated_audio_ref is not None):
            raise ValueError(
                "translated_audio_ref must be set if and only if status is completed"
            )
        if self.status is ExchangeStatus.COMPLETED and self.error is not None:
            raise ValueError("completed exchange cannot carry an error")
        return self

    @property
    def language_pair(self) -> str:
        return f"{self.source_language or 'auto'}→{self.target_language}"


class PatientInfo(BaseModel):
    """Visit metadata captured when a session starts; opaque to the pipeline."""

    model_config = ConfigDict(extra="allow")

    patient_name: str
    patient_id: str | None = None
    doctor_name: str | None = None
    visit_type: str | None = None
    date: str | None = None
    time: str | None = None
    notes: str | None = None


class SessionInfo(BaseModel):
    total_duration: float = 0.0
    language_pairs: list[str] = Field(default_factory=list)
    exchange_count: int = 0
    start_time: datetime
    end_time: datetime | None = None


class Conversation(BaseModel):
    """A clinical session: ordered exchanges plus derived session info."""

    id: str
    owner_id: str
    patient_info: PatientInfo
    exchanges: list[Exchange] = Field(default_factory=list)
    session_info: SessionInfo
    status: ConversationStatus = ConversationStatus.ACTIVE
    created_at: datetime
    updated_at: datetime


class ConversationSummary(BaseModel):
    """Listing row for the conversation history."""

    id: str
    patient_name: str
    patient_id: str | None = None
    doctor_name: str | None = None
    visit_type: str | None = None
    status: ConversationStatus
    exchange_count: int
    total_duration: float
    language_pairs: list[str]
    created_at: datetime


class DurableAudioRefs(BaseModel, frozen=True):
    original: AudioRef
    translated: AudioRef


class PlaybackExchange(BaseModel):
    """An exchange with its audio resolved to playable URLs."""

    exchange_id: str
    source_language: str | None
    target_language: str
    status: ExchangeStatus
    created_at: datetime
    original_url: str | None = None
    translated_url: str | None = None
    audio_available: bool
    error: ExchangeError | None = None


class ConversationPlayback(BaseModel):
    conversation_id: str
    status: ConversationStatus
    exchanges: list[PlaybackExchange]
    unavailable_count: int


class PlaybackTrack(BaseModel):
    exchange_id: str
    language: str
    url: str
    is_original: bool
    created_at: datetime


DUBBING_LANGUAGES = (
    Language(code="es", name="Spanish"),
    Language(code="fr", name="French"),
    Language(code="de", name="German"),
    Language(code="it", name="Italian"),
    Language(code="pt", name="Portuguese"),
    Language(code="ar", name="Arabic"),
    Language(code="zh", name="Chinese"),
    Language(code="ja", name="Japanese"),
    Language(code="ko", name="Korean"),
    Language(code="hi", name="Hindi"),
    Language(code="en", name="English"),
)
