from typing import Any, BinaryIO, Dict, List, Optional
from urllib.parse import urljoin
import logging

import requests

logger = logging.getLogger(__name__)

API_URL = "http://localhost:8000"
TIMEOUT = 10  # seconds


class APIError(ValueError):
    """A request failed; carries the server's error envelope when there is one"""

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[List[Dict]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


class APIClient:
    """Handle all API communications"""

    def __init__(self, base_url: str = API_URL, timeout: int = TIMEOUT, token: Optional[str] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.token = token

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """Make HTTP request with error handling"""
        url = urljoin(self.base_url, endpoint)
        kwargs["timeout"] = self.timeout
        kwargs["headers"] = {**self._headers(), **kwargs.get("headers", {})}
        logger.debug(f"{method} {url}")
        try:
            response = requests.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"API request failed: {str(e)}")
            raise APIError(f"Could not reach the API: {str(e)}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") or body.get("detail") or response.reason or "Request failed"
            logger.error(f"{method} {endpoint} returned {response.status_code}: {message}")
            raise APIError(str(message), response.status_code, body.get("errors"))
        return response

    def _data(self, method: str, endpoint: str, **kwargs) -> Any:
        """Unwrap the ``data`` member of a success envelope"""
        return self._make_request(method, endpoint, **kwargs).json().get("data")

    # Auth
    def login(self, username: str, password: str) -> Dict:
        """Exchange credentials for a token and keep it for later calls"""
        response = self._make_request(
            "POST",
            "/auth/token",
            data={"username": username, "password": password, "grant_type": "password"},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        result = response.json()
        self.token = result["access_token"]
        return result

    def register_user(self, email: str, username: str, name: str, password: str) -> Dict:
        data = self._data(
            "POST",
            "/auth/register",
            json={"email": email, "username": username, "name": name, "password": password},
        )
        self.token = data["accessToken"]
        return data

    def get_me(self) -> Dict:
        return self._data("GET", "/auth/me")["user"]

    def update_preferences(self, **preferences) -> Dict:
        return self._data("PUT", "/auth/me/preferences", json=preferences)["user"]

    # Moods
    def log_mood(self, mood: str, intensity: int, detection_method: str, **extra) -> Dict:
        payload = {"mood": mood, "intensity": intensity, "detectionMethod": detection_method, **extra}
        return self._data("POST", "/api/moods", json=payload)["moodLog"]

    def detect_mood(self, method: str, text: Optional[str] = None) -> Dict:
        return self._data("POST", "/api/moods/detect", json={"method": method, "text": text})["detection"]

    def list_moods(self, page: int = 1, limit: int = 20, **filters) -> Dict:
        return self._data("GET", "/api/moods", params={"page": page, "limit": limit, **filters})

    def mood_trends(self, days: int = 7) -> Dict:
        return self._data("GET", "/api/moods/trends", params={"days": days})

    def mood_frequency(self, days: int = 30) -> Dict:
        return self._data("GET", "/api/moods/frequency", params={"days": days})

    def mood_stats(self, days: int = 30) -> Dict:
        return self._data("GET", "/api/moods/stats", params={"days": days})

    def mood_patterns(self, days: int = 30) -> Dict:
        return self._data("GET", "/api/moods/insights/patterns", params={"days": days})

    # Songs
    def upload_song(self, audio_file: BinaryIO, filename: str, metadata: Dict[str, Any]) -> Dict:
        form = {key: value for key, value in metadata.items() if key != "moodTags"}
        fields = list(form.items()) + [("moodTags", tag) for tag in metadata.get("moodTags", [])]
        return self._data(
            "POST",
            "/api/songs/upload",
            data=fields,
            files={"audioFile": (filename, audio_file)},
        )["song"]

    def list_songs(self, page: int = 1, limit: int = 20, **filters) -> Dict:
        return self._data("GET", "/api/songs", params={"page": page, "limit": limit, **filters})

    def recommend_songs(
        self,
        mood: Optional[str] = None,
        energy: Optional[int] = None,
        valence: Optional[int] = None,
        limit: int = 20,
    ) -> List[Dict]:
        params = {"mood": mood, "energy": energy, "valence": valence, "limit": limit}
        params = {key: value for key, value in params.items() if value is not None}
        return self._data("GET", "/api/songs/recommendations", params=params)["songs"]

    def play_song(self, song_id: int) -> int:
        return self._data("POST", f"/api/songs/{song_id}/play")["playCount"]

    # Playlists
    def list_playlists(self, page: int = 1, limit: int = 20, only_mine: bool = False) -> Dict:
        return self._data(
            "GET", "/api/playlists", params={"page": page, "limit": limit, "onlyMine": str(only_mine).lower()}
        )

    def create_playlist(self, name: str, description: str = "", mood: Optional[str] = None, is_public: bool = False) -> Dict:
        payload = {"name": name, "description": description, "mood": mood, "isPublic": is_public}
        return self._data("POST", "/api/playlists", json=payload)["playlist"]

    def auto_generate_playlist(
        self,
        mood: Optional[str] = None,
        tempo: Optional[str] = None,
        genre: Optional[str] = None,
        limit: int = 20,
    ) -> Dict:
        payload = {"mood": mood, "tempo": tempo, "genre": genre, "limit": limit}
        return self._data("POST", "/api/playlists/auto-generate", json=payload)["playlist"]

    def add_song_to_playlist(self, playlist_id: int, song_id: int) -> Dict:
        return self._data("POST", f"/api/playlists/{playlist_id}/songs", json={"songId": song_id})["playlist"]

    def remove_song_from_playlist(self, playlist_id: int, song_id: int) -> Dict:
        return self._data("DELETE", f"/api/playlists/{playlist_id}/songs/{song_id}")["playlist"]

    def follow_playlist(self, playlist_id: int) -> Dict:
        return self._data("POST", f"/api/playlists/{playlist_id}/follow")

    # Playback
    def log_playback(self, song_id: int, **details) -> Dict:
        return self._data("POST", "/api/playback", json={"songId": song_id, **details})["playbackLog"]

    # Games
    def list_games(self, **filters) -> Dict:
        return self._data("GET", "/api/games", params=filters)

    def recommend_games(self, mood: Optional[str] = None, limit: int = 10) -> List[Dict]:
        params = {"limit": limit}
        if mood:
            params["mood"] = mood
        return self._data("GET", "/api/games/recommendations", params=params)["games"]

    def start_game(self, game_id: str, mood_before: Dict[str, Any], difficulty: Optional[str] = None) -> Dict:
        payload = {"moodBefore": mood_before}
        if difficulty:
            payload["difficulty"] = difficulty
        return self._data("POST", f"/api/games/{game_id}/start", json=payload)

    def complete_game(
        self,
        session_id: str,
        mood_after: Dict[str, Any],
        score: int,
        max_score: Optional[int] = None,
        game_data: Optional[Dict[str, Any]] = None,
    ) -> Dict:
        payload = {"moodAfter": mood_after, "score": score, "maxScore": max_score, "gameData": game_data or {}}
        return self._data("PUT", f"/api/games/sessions/{session_id}/complete", json=payload)

    def rate_game(self, game_id: str, rating: int, feedback: Optional[str] = None) -> Dict:
        return self._data("POST", f"/api/games/{game_id}/rate", json={"rating": rating, "feedback": feedback})

    def game_stats(self, days: int = 30) -> Dict:
        return self._data("GET", "/api/games/stats/user", params={"days": days})

    # Analytics
    def dashboard(self, days: int = 30) -> Dict:
        return self._data("GET", "/api/analytics/dashboard", params={"days": days})

    def analytics(self, report: str, days: int = 30, **params) -> Dict:
        """Fetch one of the analytics reports, e.g. ``mood-trends`` or ``correlations``"""
        return self._data("GET", f"/api/analytics/{report}", params={"days": days, **params})
