"""Domain layer exports."""

from .audio_capture import AudioCapture
from .models import (
    AudioRef,
    AudioRefKind,
    Conversation,
    ConversationPlayback,
    ConversationStatus,
    ConversationSummary,
    DubbingJob,
    DurableAudioRefs,
    Exchange,
    ExchangeError,
    ExchangeStatus,
    FailureKind,
    JobStatus,
    Language,
    PatientInfo,
    PlaybackExchange,
    PlaybackTrack,
    Recording,
    SessionInfo,
)
from .playback import AudioOutput, Player
from .poll_state import PollState, PollStateMachine
from .session_info import SessionInfoBuilder

__all__ = [
    "AudioCapture",
    "AudioOutput",
    "AudioRef",
    "AudioRefKind",
    "Conversation",
    "ConversationPlayback",
    "ConversationStatus",
    "ConversationSummary",
    "DubbingJob",
    "DurableAudioRefs",
    "Exchange",
    "ExchangeError",
    "ExchangeStatus",
    "FailureKind",
    "JobStatus",
    "Language",
    "PatientInfo",
    "PlaybackExchange",
    "PlaybackTrack",
    "Player",
    "PollState",
    "PollStateMachine",
    "Recording",
    "SessionInfo",
    "SessionInfoBuilder",
]
