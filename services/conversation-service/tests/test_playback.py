import pytest

from domain import AudioOutput, Player


class FakePlayer(Player):
    def __init__(self, name, log):
        self.name = name
        self.log = log

    def play(self):
        self.log.append(("play", self.name))

    def stop(self):
        self.log.append(("stop", self.name))


def test_playing_stops_the_previous_track():
    log = []
    output = AudioOutput()
    original = FakePlayer("original", log)
    translated = FakePlayer("translated", log)

    output.play(original)
    output.play(translated)

    assert log == [("play", "original"), ("stop", "original"), ("play", "translated")]
    assert output.current is translated


def test_replaying_the_current_track_does_not_stop_it():
    log = []
    output = AudioOutput()
    player = FakePlayer("a", log)

    output.play(player)
    output.play(player)

    assert log == [("play", "a"), ("play", "a")]


def test_stop_only_affects_the_current_player():
    log = []
    output = AudioOutput()
    current = FakePlayer("current", log)
    stale = FakePlayer("stale", log)
    output.play(current)

    output.stop(stale)
    assert output.current is current

    output.stop()
    assert output.current is None
    assert log[-1] == ("stop", "current")


class BrokenPlayer(FakePlayer):
    def play(self):
        raise OSError("output device unavailable")


def test_failed_start_leaves_nothing_playing():
    log = []
    output = AudioOutput()
    output.play(FakePlayer("original", log))

    with pytest.raises(OSError):
        output.play(BrokenPlayer("translated", log))

    assert output.current is None
    assert log == [("play", "original"), ("stop", "original")]
