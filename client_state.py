"""
Transient client-side state for the Streamlit dashboard.

None of this is data of record: the backend owns moods, songs and playlists.
An ``AppState`` instance is created once per browser session and passed to
every render function.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

DEFAULT_VOLUME = 0.7
MOOD_HISTORY_LIMIT = 50


class PlaybackQueue:
    """Song queue plus the player's current song, position and volume"""

    def __init__(self, volume: float = DEFAULT_VOLUME):
        self.queue: List[Dict[str, Any]] = []
        self.current_song: Optional[Dict[str, Any]] = None
        self.is_playing = False
        self.position = 0.0
        self.volume = self._clamp(volume)

    @staticmethod
    def _clamp(volume: float) -> float:
        return min(max(float(volume), 0.0), 1.0)

    def _index_of_current(self) -> int:
        if self.current_song is None:
            return -1
        for index, song in enumerate(self.queue):
            if song.get("id") == self.current_song.get("id"):
                return index
        return -1

    def set_current(self, song: Optional[Dict[str, Any]]):
        """Load a song without starting it"""
        self.current_song = song
        self.is_playing = False
        self.position = 0.0

    def play_song(self, song: Dict[str, Any]):
        self.set_current(song)
        self.is_playing = True

    def toggle_play(self) -> bool:
        if self.current_song is None:
            return False
        self.is_playing = not self.is_playing
        return self.is_playing

    def play_next(self) -> Optional[Dict[str, Any]]:
        """Advance to the next queued song, wrapping to the first"""
        if not self.queue:
            return None
        index = self._index_of_current()
        next_song = self.queue[index + 1] if index + 1 < len(self.queue) else self.queue[0]
        self.play_song(next_song)
        return next_song

    def play_previous(self) -> Optional[Dict[str, Any]]:
        """Step back one song, wrapping to the last"""
        if not self.queue:
            return None
        index = self._index_of_current()
        previous_song = self.queue[index - 1] if index > 0 else self.queue[-1]
        self.play_song(previous_song)
        return previous_song

    def seek(self, seconds: float):
        if self.current_song is None:
            return
        duration = self.current_song.get("duration")
        position = max(float(seconds), 0.0)
        if duration:
            position = min(position, float(duration))
        self.position = position

    def stop(self):
        self.is_playing = False
        self.position = 0.0

    def set_volume(self, volume: float) -> float:
        self.volume = self._clamp(volume)
        return self.volume

    def add(self, song: Dict[str, Any]):
        self.queue.append(song)

    def remove(self, song_id: Any):
        self.queue = [song for song in self.queue if song.get("id") != song_id]

    def clear(self):
        self.queue = []
        self.set_current(None)


class AuthSession:
    def __init__(self):
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def login(self, token: str, user: Optional[Dict[str, Any]] = None):
        self.token = token
        self.user = user

    def logout(self):
        self.token = None
        self.user = None


class AppState:
    """Everything the dashboard keeps between reruns"""

    def __init__(self):
        self.auth = AuthSession()
        self.player = PlaybackQueue()
        self.mood_history: List[Dict[str, Any]] = []
        self.current_mood: Optional[Dict[str, Any]] = None
        self.active_game: Optional[Dict[str, Any]] = None
        # groups playback and mood logs from one dashboard visit
        self.session_id = uuid.uuid4().hex

    def record_mood(self, mood_log: Dict[str, Any]):
        """Newest first, capped at ``MOOD_HISTORY_LIMIT`` entries"""
        entry = dict(mood_log)
        entry.setdefault("createdAt", datetime.utcnow().isoformat())
        self.current_mood = entry
        self.mood_history = [entry] + self.mood_history[:MOOD_HISTORY_LIMIT - 1]

    def apply_preferences(self):
        preferences = (self.auth.user or {}).get("preferences") or {}
        if "defaultVolume" in preferences:
            self.player.set_volume(preferences["defaultVolume"])

    def reset(self):
        self.auth.logout()
        self.player = PlaybackQueue()
        self.mood_history = []
        self.current_mood = None
        self.active_game = None
        self.session_id = uuid.uuid4().hex
