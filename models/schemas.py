"""
Pydantic request/response schemas.

Field names are snake_case in Python and camelCase on the wire; both
spellings are accepted on input.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models.enums import (
    Benefit, DetectionMethod, DetectionMode, DeviceType, Difficulty, Genre, Language,
    Mood, PlaybackSource, SessionMood, SkipReason, SongMood, Tempo, Theme, TimeOfDay,
    Trigger, Weather,
)


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
        validate_default=True,
    )


def _strip(value):
    return value.strip() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserPreferences(APIModel):
    language: Language = Language.EN
    theme: Theme = Theme.LIGHT
    detection_mode: DetectionMode = DetectionMode.AUTO
    auto_play_music: bool = True
    show_mood_suggestions: bool = True
    enable_notifications: bool = True
    default_volume: float = Field(default=0.7, ge=0.0, le=1.0)


class PreferencesUpdate(APIModel):
    language: Optional[Language] = None
    theme: Optional[Theme] = None
    detection_mode: Optional[DetectionMode] = None
    auto_play_music: Optional[bool] = None
    show_mood_suggestions: Optional[bool] = None
    enable_notifications: Optional[bool] = None
    default_volume: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class UserCreate(APIModel):
    email: str = Field(pattern=r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$", max_length=254)
    username: str = Field(min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_.-]+$")
    name: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=6, max_length=72)

    _trim = field_validator("email", "username", "name", mode="before")(_strip)


class UserOut(APIModel):
    id: int
    email: str
    username: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    preferences: Dict[str, Any] = {}
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ---------------------------------------------------------------------------
# Mood logs
# ---------------------------------------------------------------------------

class MoodContext(APIModel):
    location: Optional[str] = Field(default=None, max_length=100)
    activity: Optional[str] = Field(default=None, max_length=100)
    weather: Weather = Weather.UNKNOWN
    time_of_day: Optional[TimeOfDay] = None

    _trim = field_validator("location", "activity", mode="before")(_strip)


class MoodContextUpdate(APIModel):
    location: Optional[str] = Field(default=None, max_length=100)
    activity: Optional[str] = Field(default=None, max_length=100)
    weather: Optional[Weather] = None
    time_of_day: Optional[TimeOfDay] = None


class MoodLogCreate(APIModel):
    mood: Mood
    intensity: int = Field(ge=1, le=10)
    detection_method: DetectionMethod
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    notes: Optional[str] = Field(default=None, max_length=500)
    context: MoodContext = Field(default_factory=MoodContext)
    triggers: List[Trigger] = []
    session_id: Optional[str] = Field(default=None, max_length=100)

    _trim = field_validator("notes", mode="before")(_strip)


class MoodLogUpdate(APIModel):
    notes: Optional[str] = Field(default=None, max_length=500)
    context: Optional[MoodContextUpdate] = None
    triggers: Optional[List[Trigger]] = None

    _trim = field_validator("notes", mode="before")(_strip)


class MoodLogOut(APIModel):
    id: int
    user_id: int
    mood: str
    intensity: int
    detection_method: str
    confidence: float
    notes: Optional[str] = None
    context: Dict[str, Any] = {}
    triggers: List[str] = []
    previous_mood: Optional[Dict[str, Any]] = None
    session_id: Optional[str] = None
    created_at: datetime


class MoodDetectRequest(APIModel):
    method: DetectionMethod = DetectionMethod.TEXT
    text: Optional[str] = Field(default=None, max_length=2000)


class MoodDetectionOut(APIModel):
    mood: Mood
    intensity: int
    confidence: float
    method: DetectionMethod


# ---------------------------------------------------------------------------
# Songs
# ---------------------------------------------------------------------------

class SongCreate(APIModel):
    title: str = Field(min_length=1, max_length=100)
    artist: str = Field(min_length=1, max_length=100)
    album: Optional[str] = Field(default=None, max_length=100)
    genre: Genre = Genre.OTHER
    mood_tags: List[SongMood] = []
    language: Language = Language.EN
    duration: int = Field(ge=1)
    tempo: Tempo = Tempo.MEDIUM
    energy: int = Field(default=5, ge=1, le=10)
    valence: int = Field(default=5, ge=1, le=10)
    is_public: bool = True

    _trim = field_validator("title", "artist", "album", mode="before")(_strip)


class SongUpdate(APIModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    artist: Optional[str] = Field(default=None, min_length=1, max_length=100)
    album: Optional[str] = Field(default=None, max_length=100)
    genre: Optional[Genre] = None
    mood_tags: Optional[List[SongMood]] = None
    language: Optional[Language] = None
    tempo: Optional[Tempo] = None
    energy: Optional[int] = Field(default=None, ge=1, le=10)
    valence: Optional[int] = Field(default=None, ge=1, le=10)
    is_public: Optional[bool] = None

    _trim = field_validator("title", "artist", "album", mode="before")(_strip)


class SongSummary(APIModel):
    id: int
    title: str
    artist: str
    album: Optional[str] = None
    duration: int
    genre: str
    mood_tags: List[str] = []
    cover_image: Optional[str] = None


class SongOut(SongSummary):
    language: str
    file_path: str
    uploaded_by: int
    is_public: bool
    play_count: int
    likes: int
    tempo: str
    energy: int
    valence: int
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Playlists
# ---------------------------------------------------------------------------

class PlaylistCreate(APIModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    mood: Optional[SongMood] = None
    tags: List[str] = []
    cover_image: Optional[str] = None
    is_public: bool = False

    _trim = field_validator("name", "description", mode="before")(_strip)


class PlaylistUpdate(APIModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    mood: Optional[SongMood] = None
    tags: Optional[List[str]] = None
    cover_image: Optional[str] = None
    is_public: Optional[bool] = None

    _trim = field_validator("name", "description", mode="before")(_strip)


class AutoGenerateRequest(APIModel):
    mood: Optional[SongMood] = None
    tempo: Optional[Tempo] = None
    genre: Optional[Genre] = None
    limit: int = Field(default=20, ge=5, le=50)


class AddSongRequest(APIModel):
    song_id: int


class PlaylistOut(APIModel):
    id: int
    name: str
    description: Optional[str] = None
    owner_id: int
    mood: Optional[str] = None
    tags: List[str] = []
    cover_image: Optional[str] = None
    is_public: bool
    is_auto_generated: bool
    generated_for: Optional[Dict[str, Any]] = None
    play_count: int
    likes: int
    followers: List[int] = []
    follower_count: int
    song_count: int
    songs: List[SongSummary] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Playback logs
# ---------------------------------------------------------------------------

class MoodSnapshot(APIModel):
    mood: Mood
    intensity: int = Field(ge=1, le=10)


class PlaybackLogCreate(APIModel):
    song_id: int
    playlist_id: Optional[int] = None
    mood_at_playtime: Optional[MoodSnapshot] = None
    play_duration: int = Field(default=0, ge=0)
    completion_percentage: float = Field(default=0, ge=0, le=100)
    skipped: bool = False
    skip_reason: Optional[SkipReason] = None
    liked: bool = False
    source: PlaybackSource
    device_type: DeviceType = DeviceType.UNKNOWN
    session_id: str = Field(min_length=1, max_length=100)


class PlaybackLogOut(APIModel):
    id: int
    song_id: Optional[int] = None
    playlist_id: Optional[int] = None
    mood_at_playtime: Optional[Dict[str, Any]] = None
    play_duration: int
    completion_percentage: float
    skipped: bool
    skip_reason: Optional[str] = None
    liked: bool
    source: str
    device_type: str
    session_id: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

class SessionMoodIn(APIModel):
    mood: SessionMood
    intensity: int = Field(ge=1, le=10)


class GameData(APIModel):
    """Typed view over a session's game data bag.

    ``is_first_play``, ``expected_duration`` (seconds) and ``average_score``
    drive achievement rules; games may attach extra keys of their own.
    """
    model_config = ConfigDict(extra="allow")

    is_first_play: bool = False
    expected_duration: int = 300
    average_score: float = 0.0


class GameStartRequest(APIModel):
    mood_before: SessionMoodIn
    difficulty: Optional[Difficulty] = None
    device_type: DeviceType = DeviceType.UNKNOWN


class GameCompleteRequest(APIModel):
    mood_after: SessionMoodIn
    score: int = Field(ge=0)
    max_score: Optional[int] = Field(default=None, ge=0)
    game_data: Dict[str, Any] = {}


class GameRateRequest(APIModel):
    rating: int = Field(ge=1, le=5)
    feedback: Optional[str] = Field(default=None, max_length=500)

    _trim = field_validator("feedback", mode="before")(_strip)


class GameSummary(APIModel):
    id: int
    name: str
    type: str
    difficulty: str


class GameOut(APIModel):
    id: int
    game_id: str
    name: str
    type: str
    category: str
    description: str
    instructions: List[Dict[str, Any]] = []
    difficulty: str
    estimated_duration: int
    target_moods: List[str] = []
    benefits: List[Benefit] = []
    is_active: bool
    icon: Optional[str] = None
    tags: List[str] = []
    play_count: int
    average_rating: float
    rating_count: int


class GameSessionOut(APIModel):
    session_id: str
    game_id: int
    game: Optional[GameSummary] = None
    mood_before: Dict[str, Any]
    mood_after: Optional[Dict[str, Any]] = None
    mood_improvement: Optional[int] = None
    score: int
    max_score: int
    duration: int
    completed: bool
    completion_percentage: float
    difficulty: str
    game_data: Dict[str, Any] = {}
    achievements: List[str] = []
    rating: Optional[int] = None
    feedback: Optional[str] = None
    device_type: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    created_at: datetime
