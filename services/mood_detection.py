"""
Pluggable mood detectors.

A detector maps an input (free text, a voice transcript, a camera frame)
onto ``{mood, intensity, confidence}``. The shipped detectors are simple
stand-ins for real inference: a keyword matcher for text and voice, and a
seeded random picker for the camera.
"""
from typing import Any, Dict, Optional, Protocol
import random

from models.enums import DetectionMethod, Mood

KEYWORD_CONFIDENCE = 0.75

# first matching rule wins
KEYWORD_RULES = [
    (("happy", "upbeat"), Mood.HAPPY, 8),
    (("sad", "down"), Mood.SAD, 6),
    (("energetic", "workout"), Mood.ENERGETIC, 9),
    (("anxious", "stressed"), Mood.ANXIOUS, 7),
    (("focused", "concentration"), Mood.FOCUSED, 8),
    (("calm", "relax"), Mood.CALM, 6),
]
KEYWORD_FALLBACK = (Mood.CALM, 5)

CAMERA_READINGS = [
    (Mood.HAPPY, 8, 0.85),
    (Mood.CALM, 6, 0.78),
    (Mood.FOCUSED, 7, 0.82),
    (Mood.ENERGETIC, 9, 0.91),
    (Mood.SAD, 4, 0.72),
    (Mood.ANXIOUS, 5, 0.68),
]


class MoodDetector(Protocol):
    def detect(self, data: Any) -> Dict[str, Any]:
        ...


def _reading(mood: Mood, intensity: int, confidence: float) -> Dict[str, Any]:
    return {"mood": mood.value, "intensity": intensity, "confidence": confidence}


class KeywordMoodDetector:
    """Matches mood keywords in text or a voice transcript."""

    def detect(self, data: Any) -> Dict[str, Any]:
        text = (data or "").lower()
        for keywords, mood, intensity in KEYWORD_RULES:
            if any(keyword in text for keyword in keywords):
                return _reading(mood, intensity, KEYWORD_CONFIDENCE)
        mood, intensity = KEYWORD_FALLBACK
        return _reading(mood, intensity, KEYWORD_CONFIDENCE)


class RandomMoodDetector:
    """Simulated facial-expression reading."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def detect(self, data: Any = None) -> Dict[str, Any]:
        mood, intensity, confidence = self.rng.choice(CAMERA_READINGS)
        return _reading(mood, intensity, confidence)


def detector_for(method: str, rng: Optional[random.Random] = None) -> MoodDetector:
    if method == DetectionMethod.CAMERA.value:
        return RandomMoodDetector(rng)
    return KeywordMoodDetector()
