from enum import Enum


class Mood(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ENERGETIC = "energetic"
    CALM = "calm"
    ANXIOUS = "anxious"
    EXCITED = "excited"
    MELANCHOLIC = "melancholic"
    FOCUSED = "focused"
    ANGRY = "angry"
    PEACEFUL = "peaceful"
    ROMANTIC = "romantic"
    NOSTALGIC = "nostalgic"


class SongMood(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ENERGETIC = "energetic"
    CALM = "calm"
    ANXIOUS = "anxious"
    EXCITED = "excited"
    MELANCHOLIC = "melancholic"
    FOCUSED = "focused"
    ROMANTIC = "romantic"
    ANGRY = "angry"
    PEACEFUL = "peaceful"
    UPLIFTING = "uplifting"
    NOSTALGIC = "nostalgic"
    MYSTERIOUS = "mysterious"
    DRAMATIC = "dramatic"


class SessionMood(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ENERGETIC = "energetic"
    CALM = "calm"
    ANXIOUS = "anxious"
    EXCITED = "excited"
    MELANCHOLIC = "melancholic"
    FOCUSED = "focused"
    ANGRY = "angry"
    PEACEFUL = "peaceful"
    STRESSED = "stressed"
    BORED = "bored"
    LONELY = "lonely"
    OVERWHELMED = "overwhelmed"


class TargetMood(str, Enum):
    SAD = "sad"
    ANXIOUS = "anxious"
    STRESSED = "stressed"
    ANGRY = "angry"
    LONELY = "lonely"
    BORED = "bored"
    TIRED = "tired"
    OVERWHELMED = "overwhelmed"


class DetectionMethod(str, Enum):
    CAMERA = "camera"
    VOICE = "voice"
    TEXT = "text"
    MANUAL = "manual"
    ACTIVITY = "activity"
    JOURNAL = "journal"


class Weather(str, Enum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    SNOWY = "snowy"
    STORMY = "stormy"
    FOGGY = "foggy"
    UNKNOWN = "unknown"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class Trigger(str, Enum):
    WORK = "work"
    FAMILY = "family"
    FRIENDS = "friends"
    HEALTH = "health"
    MONEY = "money"
    RELATIONSHIP = "relationship"
    ACHIEVEMENT = "achievement"
    LOSS = "loss"
    STRESS = "stress"
    EXERCISE = "exercise"
    MUSIC = "music"
    NATURE = "nature"
    OTHER = "other"


class Genre(str, Enum):
    POP = "pop"
    ROCK = "rock"
    JAZZ = "jazz"
    CLASSICAL = "classical"
    ELECTRONIC = "electronic"
    HIP_HOP = "hip-hop"
    COUNTRY = "country"
    FOLK = "folk"
    BLUES = "blues"
    REGGAE = "reggae"
    AMBIENT = "ambient"
    INDIE = "indie"
    ALTERNATIVE = "alternative"
    METAL = "metal"
    PUNK = "punk"
    RNB = "r&b"
    SOUL = "soul"
    FUNK = "funk"
    DISCO = "disco"
    HOUSE = "house"
    TECHNO = "techno"
    TRANCE = "trance"
    DUBSTEP = "dubstep"
    OTHER = "other"


class Language(str, Enum):
    EN = "en"
    ES = "es"
    FR = "fr"
    DE = "de"
    IT = "it"
    PT = "pt"
    RU = "ru"
    JA = "ja"
    KO = "ko"
    ZH = "zh"
    INSTRUMENTAL = "instrumental"


class Tempo(str, Enum):
    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"


class PlaybackSource(str, Enum):
    RECOMMENDATION = "recommendation"
    SEARCH = "search"
    PLAYLIST = "playlist"
    SHUFFLE = "shuffle"
    MANUAL = "manual"


class SkipReason(str, Enum):
    DISLIKED = "disliked"
    WRONG_MOOD = "wrong_mood"
    POOR_QUALITY = "poor_quality"
    HEARD_RECENTLY = "heard_recently"
    OTHER = "other"


class DeviceType(str, Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"
    TABLET = "tablet"
    UNKNOWN = "unknown"


class GameType(str, Enum):
    MOOD_UPLIFTMENT = "mood-upliftment"
    MEMORY = "memory"
    RHYTHM = "rhythm"
    PUZZLE = "puzzle"
    BREATHING = "breathing"
    MEDITATION = "meditation"
    COGNITIVE = "cognitive"
    SOCIAL = "social"


class GameCategory(str, Enum):
    QUICK = "quick"
    MEDIUM = "medium"
    LONG = "long"
    CHALLENGE = "challenge"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Benefit(str, Enum):
    STRESS_RELIEF = "stress-relief"
    MOOD_BOOST = "mood-boost"
    FOCUS = "focus"
    RELAXATION = "relaxation"
    ENERGY = "energy"
    CONFIDENCE = "confidence"
    MINDFULNESS = "mindfulness"
    SOCIAL_CONNECTION = "social-connection"


class Achievement(str, Enum):
    FIRST_PLAY = "first-play"
    PERFECT_SCORE = "perfect-score"
    QUICK_FINISH = "quick-finish"
    MOOD_IMPROVER = "mood-improver"
    # streaks are part of the vocabulary but not awarded yet
    STREAK_3 = "streak-3"
    STREAK_7 = "streak-7"
    HIGH_SCORER = "high-scorer"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


class DetectionMode(str, Enum):
    CAMERA = "camera"
    VOICE = "voice"
    TEXT = "text"
    AUTO = "auto"
