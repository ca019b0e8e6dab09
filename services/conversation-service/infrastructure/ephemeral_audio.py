"""In-process store for audio that has not (yet) reached durable storage."""

import threading
import uuid
from collections import OrderedDict

from pydantic import BaseModel

from domain.models import EPHEMERAL_PREFIX, AudioRef


class EphemeralAudio(BaseModel, frozen=True):
    data: bytes
    content_type: str


class EphemeralAudioCache:
    """
    Holds session-local audio behind ``blob:`` handles.

    Handles are valid only for the lifetime of this process and only while
    the entry has not been evicted; the oldest entries are dropped once
    ``max_entries`` is exceeded.
    """

    def __init__(self, max_entries: int = 256):
        self._max_entries = max_entries
        self._entries: OrderedDict[str, EphemeralAudio] = OrderedDict()
        self._lock = threading.Lock()

    def put(self, data: bytes, content_type: str) -> AudioRef:
        handle = f"{EPHEMERAL_PREFIX}{uuid.uuid4().hex}"
        with self._lock:
            self._entries[handle] = EphemeralAudio(data=data, content_type=content_type)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
        return AudioRef.ephemeral(handle)

    def get(self, handle: str) -> EphemeralAudio | None:
        with self._lock:
            entry = self._entries.get(handle)
            if entry is not None:
                self._entries.move_to_end(handle)
            return entry

    def contains(self, handle: str) -> bool:
        with self._lock:
            return handle in self._entries

    def discard(self, handle: str) -> None:
        with self._lock:
            self._entries.pop(handle, None)
