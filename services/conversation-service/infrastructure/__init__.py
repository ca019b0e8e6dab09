"""Infrastructure layer exports."""

from .elevenlabs_dubbing import ElevenLabsDubbingProvider
from .ephemeral_audio import EphemeralAudio, EphemeralAudioCache
from .minio_storage import MinioStorageClient
from .mock_dubbing import MockDubbingProvider

__all__ = [
    "ElevenLabsDubbingProvider",
    "EphemeralAudio",
    "EphemeralAudioCache",
    "MinioStorageClient",
    "MockDubbingProvider",
]
