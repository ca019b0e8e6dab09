"""Exclusive audio output shared by every player in a session."""

import threading
from abc import ABC, abstractmethod


class Player(ABC):
    """Something that can play one track."""

    @abstractmethod
    def play(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass


class AudioOutput:
    """
    Owns the single "currently playing" handle.

    Starting a track always stops whichever track was playing before, so at
    most one player is audible at a time.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Player | None = None

    @property
    def current(self) -> Player | None:
        return self._current

    def play(self, player: Player) -> None:
        with self._lock:
            previous, self._current = self._current, None
            if previous is not None and previous is not player:
                previous.stop()
            player.play()
            self._current = player

    def stop(self, player: Player | None = None) -> None:
        """Stops the current track, or only ``player`` if it is the current one."""
        with self._lock:
            if self._current is None:
                return
            if player is not None and player is not self._current:
                return
            self._current.stop()
            self._current = None
