"""Default mood-upliftment games seeded into an empty catalog."""
import logging

from sqlalchemy.orm import Session

from models.database_models import Game

logger = logging.getLogger(__name__)


def _steps(*texts):
    return [{"step": number, "text": text} for number, text in enumerate(texts, start=1)]


DEFAULT_GAMES = [
    {
        "game_id": "tap-notes",
        "name": "Tap the Notes",
        "type": "rhythm",
        "category": "quick",
        "description": (
            "Catch musical notes as they appear on screen. A simple but engaging game "
            "to distract from negative thoughts and boost your mood."
        ),
        "instructions": _steps(
            "Musical notes will appear randomly on screen",
            "Tap them quickly to score points",
            "Try to catch as many as possible in 30 seconds",
            "Each successful catch brings you closer to a better mood!",
        ),
        "difficulty": "easy",
        "estimated_duration": 5,
        "target_moods": ["sad", "bored", "stressed"],
        "benefits": ["mood-boost", "focus"],
        "icon": "music-note",
        "tags": ["distraction", "music"],
    },
    {
        "game_id": "mood-quiz",
        "name": "Mood Quiz",
        "type": "cognitive",
        "category": "quick",
        "description": (
            "Answer fun questions about your day and discover positive aspects "
            "you might have overlooked."
        ),
        "instructions": _steps(
            "Answer simple questions about your day",
            "Reflect on positive moments",
            "Discover things to be grateful for",
            "Shift your perspective to the positive",
        ),
        "difficulty": "easy",
        "estimated_duration": 7,
        "target_moods": ["sad", "lonely", "bored"],
        "benefits": ["mood-boost", "mindfulness"],
        "icon": "psychology",
        "tags": ["self-reflection", "gratitude", "perspective"],
    },
    {
        "game_id": "breathing-exercise",
        "name": "Breathing Exercise",
        "type": "breathing",
        "category": "medium",
        "description": "Follow guided breathing patterns to calm your mind and reduce anxiety or stress.",
        "instructions": _steps(
            "Follow the visual breathing guide",
            "Inhale and exhale at the rhythm shown",
            "Focus on your breath",
            "Let go of racing thoughts",
        ),
        "difficulty": "easy",
        "estimated_duration": 10,
        "target_moods": ["anxious", "stressed", "overwhelmed", "angry"],
        "benefits": ["stress-relief", "relaxation", "focus"],
        "icon": "favorite",
        "tags": ["calmness", "breathing"],
    },
    {
        "game_id": "gratitude-journal",
        "name": "Gratitude Journal",
        "type": "mood-upliftment",
        "category": "medium",
        "description": "Write down three things you're grateful for today, no matter how small they may seem.",
        "instructions": _steps(
            "Think about your day",
            "Write down three things you're grateful for",
            "They can be big or small",
            "Reflect on why they matter to you",
        ),
        "difficulty": "easy",
        "estimated_duration": 10,
        "target_moods": ["sad", "lonely", "tired", "overwhelmed"],
        "benefits": ["mood-boost", "mindfulness"],
        "icon": "star",
        "tags": ["gratitude", "positivity", "journaling"],
    },
]


def build_game(entry: dict) -> Game:
    fields = dict(entry)
    target_moods = fields.pop("target_moods", [])
    game = Game(**fields)
    game.target_moods = target_moods
    return game


def seed_game_catalog(db: Session) -> int:
    """Insert the default games when the catalog is empty; returns how many were added."""
    if db.query(Game).count():
        return 0
    for entry in DEFAULT_GAMES:
        db.add(build_game(entry))
    db.commit()
    logger.info(f"Seeded game catalog with {len(DEFAULT_GAMES)} games")
    return len(DEFAULT_GAMES)
