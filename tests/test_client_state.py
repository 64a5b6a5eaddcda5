"""
Tests for the dashboard's client-side state.

Covers:
- queue navigation wraps in both directions
- volume and seek clamping
- mood history ordering and cap
- logout resets everything
"""

from __future__ import annotations

import pytest

from client_state import MOOD_HISTORY_LIMIT, AppState, PlaybackQueue

SONGS = [{"id": 1, "title": "A", "duration": 200}, {"id": 2, "title": "B", "duration": 90}, {"id": 3, "title": "C"}]


@pytest.fixture()
def player() -> PlaybackQueue:
    queue = PlaybackQueue()
    for song in SONGS:
        queue.add(song)
    return queue


class TestPlaybackQueue:
    def test_next_wraps_to_first(self, player: PlaybackQueue) -> None:
        player.play_song(SONGS[2])
        assert player.play_next()["id"] == 1
        assert player.is_playing is True
        assert player.play_next()["id"] == 2

    def test_previous_wraps_to_last(self, player: PlaybackQueue) -> None:
        player.play_song(SONGS[0])
        assert player.play_previous()["id"] == 3
        assert player.play_previous()["id"] == 2

    def test_next_without_current_starts_at_head(self, player: PlaybackQueue) -> None:
        assert player.play_next()["id"] == 1

    def test_navigation_on_empty_queue(self) -> None:
        empty = PlaybackQueue()
        assert empty.play_next() is None
        assert empty.play_previous() is None
        assert empty.toggle_play() is False

    @pytest.mark.parametrize("requested, applied", [(1.4, 1.0), (-0.2, 0.0), (0.35, 0.35)])
    def test_volume_is_clamped(self, player: PlaybackQueue, requested: float, applied: float) -> None:
        assert player.set_volume(requested) == applied
        assert PlaybackQueue(volume=requested).volume == applied

    def test_seek_is_clamped_to_duration(self, player: PlaybackQueue) -> None:
        player.play_song(SONGS[1])
        player.seek(500)
        assert player.position == 90.0
        player.seek(-3)
        assert player.position == 0.0

    def test_seek_without_duration(self, player: PlaybackQueue) -> None:
        player.play_song(SONGS[2])
        player.seek(1234)
        assert player.position == 1234.0

    def test_toggle_and_stop(self, player: PlaybackQueue) -> None:
        player.play_song(SONGS[0])
        player.seek(30)
        assert player.toggle_play() is False
        assert player.toggle_play() is True
        player.stop()
        assert player.is_playing is False
        assert player.position == 0.0
        assert player.current_song == SONGS[0]

    def test_remove_and_clear(self, player: PlaybackQueue) -> None:
        player.play_song(SONGS[0])
        player.remove(2)
        assert [song["id"] for song in player.queue] == [1, 3]
        player.clear()
        assert player.queue == []
        assert player.current_song is None


class TestAppState:
    def test_record_mood_newest_first(self) -> None:
        state = AppState()
        state.record_mood({"mood": "sad", "intensity": 3})
        state.record_mood({"mood": "happy", "intensity": 8})

        assert [entry["mood"] for entry in state.mood_history] == ["happy", "sad"]
        assert state.current_mood["mood"] == "happy"
        assert "createdAt" in state.current_mood

    def test_history_is_capped(self) -> None:
        state = AppState()
        for intensity in range(MOOD_HISTORY_LIMIT + 5):
            state.record_mood({"mood": "calm", "intensity": intensity % 10 + 1, "n": intensity})
        assert len(state.mood_history) == MOOD_HISTORY_LIMIT
        assert state.mood_history[0]["n"] == MOOD_HISTORY_LIMIT + 4

    def test_preferences_set_volume(self) -> None:
        state = AppState()
        state.auth.login("token", {"preferences": {"defaultVolume": 0.25}})
        state.apply_preferences()
        assert state.player.volume == 0.25

    def test_reset(self) -> None:
        state = AppState()
        state.auth.login("token", {"username": "nova"})
        state.player.add(SONGS[0])
        state.record_mood({"mood": "happy", "intensity": 8})
        state.active_game = {"sessionId": "x"}
        old_session = state.session_id

        state.reset()

        assert state.auth.is_authenticated is False
        assert state.player.queue == []
        assert state.mood_history == []
        assert state.current_mood is None
        assert state.active_game is None
        assert state.session_id != old_session
