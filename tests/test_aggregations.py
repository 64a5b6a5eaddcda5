"""
Tests for the pandas group/reduce stages behind the analytics endpoints.

Frames are built from unsaved ORM rows; every function must also
handle an empty frame.
"""

from __future__ import annotations

from datetime import datetime

import pandas as pd
import pytest

from models.database_models import Game, GameSession, MoodLog, PlaybackLog, Song
from services import aggregations as agg


def _mood(at: datetime, mood: str = "happy", intensity: int = 5, triggers=(), previous=None, time_of_day=None):
    return MoodLog(
        mood=mood,
        intensity=intensity,
        detection_method="text",
        confidence=1.0,
        context={"timeOfDay": time_of_day} if time_of_day else {},
        triggers=list(triggers),
        previous_mood=previous,
        created_at=at,
    )


def _play(at: datetime, song: Song, mood: str = None, liked: bool = False, duration: int = 60, completion: float = 50):
    return PlaybackLog(
        song_id=song.id,
        song=song,
        mood_at_playtime={"mood": mood, "intensity": 5} if mood else None,
        play_duration=duration,
        completion_percentage=completion,
        liked=liked,
        source="manual",
        created_at=at,
    )


def _session(game_type: str, before: int, after=None, score: int = 0, achievements=(), mood: str = "sad"):
    return GameSession(
        game=Game(type=game_type),
        mood_before={"mood": mood, "intensity": before},
        mood_after={"mood": "calm", "intensity": after} if after is not None else None,
        completed=after is not None,
        score=score,
        duration=100,
        achievements=list(achievements),
        created_at=datetime(2024, 5, 1, 12),
    )


EMPTY_MOODS = agg.mood_log_frame([])


class TestEmptyFrames:
    def test_overview_zero_records(self) -> None:
        assert agg.mood_overview(EMPTY_MOODS) == {
            "totalMoodLogs": 0,
            "avgMoodIntensity": 0,
            "uniqueMoods": [],
            "detectionMethods": [],
        }
        assert agg.listening_overview(agg.playback_frame([]))["totalPlays"] == 0
        assert agg.playlist_overview(agg.playlist_frame([]))["totalPlaylists"] == 0
        assert agg.game_overview(agg.game_session_frame([]))["totalGameSessions"] == 0

    @pytest.mark.parametrize(
        "stage",
        [
            lambda: agg.mood_trends(EMPTY_MOODS, "week"),
            lambda: agg.weekly_patterns(EMPTY_MOODS),
            lambda: agg.trigger_analysis(EMPTY_MOODS),
            lambda: agg.mood_transitions(EMPTY_MOODS),
            lambda: agg.time_based_patterns(EMPTY_MOODS),
            lambda: agg.most_played_songs(agg.playback_frame([])),
            lambda: agg.genre_preferences(agg.playback_frame([])),
            lambda: agg.hourly_listening(agg.playback_frame([])),
            lambda: agg.performance_by_game_type(agg.game_session_frame([])),
            lambda: agg.mood_game_correlations(agg.game_session_frame([])),
        ],
    )
    def test_list_stages_return_empty_lists(self, stage) -> None:
        assert stage() == []

    def test_distribution_of_nothing(self) -> None:
        assert agg.mood_distribution(EMPTY_MOODS) == ([], 0)


class TestMoodStages:
    def test_trends_by_day(self) -> None:
        frame = agg.mood_log_frame([
            _mood(datetime(2024, 1, 1, 9), "happy", 6),
            _mood(datetime(2024, 1, 1, 19), "happy", 9),
            _mood(datetime(2024, 1, 2, 9), "sad", 3),
        ])

        rows = agg.mood_trends(frame, "day")

        assert rows == [
            {"date": "2024-01-01", "mood": "happy", "count": 2, "avgIntensity": 7.5, "maxIntensity": 9, "minIntensity": 6},
            {"date": "2024-01-02", "mood": "sad", "count": 1, "avgIntensity": 3.0, "maxIntensity": 3, "minIntensity": 3},
        ]

    def test_bucket_keys(self) -> None:
        stamps = pd.Series(pd.to_datetime(["2024-01-01", "2024-12-30"]))
        assert agg.bucket_keys(stamps, "week").tolist() == ["2024-W01", "2025-W01"]
        assert agg.bucket_keys(stamps, "month").tolist() == ["2024-01", "2024-12"]
        assert agg.bucket_keys(stamps, "day").tolist() == ["2024-01-01", "2024-12-30"]

    def test_distribution_percentages(self) -> None:
        frame = agg.mood_log_frame([
            _mood(datetime(2024, 1, 1), "happy"),
            _mood(datetime(2024, 1, 2), "happy"),
            _mood(datetime(2024, 1, 3), "calm"),
        ])
        rows, total = agg.mood_distribution(frame)
        assert total == 3
        assert [(row["mood"], row["percentage"]) for row in rows] == [("happy", 66.67), ("calm", 33.33)]

    def test_weekly_patterns_use_iso_weekdays(self) -> None:
        # 2024-01-01 was a Monday, 2024-01-07 a Sunday
        frame = agg.mood_log_frame([
            _mood(datetime(2024, 1, 1, 8), intensity=4),
            _mood(datetime(2024, 1, 7, 8), intensity=8),
        ])
        days = [(row["dayOfWeek"], row["avgIntensity"]) for row in agg.weekly_patterns(frame)]
        assert days == [(1, 4.0), (7, 8.0)]

    def test_trigger_analysis(self) -> None:
        frame = agg.mood_log_frame([
            _mood(datetime(2024, 1, 1), "anxious", 7, triggers=["work", "money"]),
            _mood(datetime(2024, 1, 2), "sad", 3, triggers=["work"]),
            _mood(datetime(2024, 1, 3), "calm", 5),
        ])
        rows = agg.trigger_analysis(frame)
        assert rows[0] == {"trigger": "work", "count": 2, "avgIntensity": 5.0, "associatedMoods": ["anxious", "sad"]}
        assert rows[1]["trigger"] == "money"

    def test_transitions(self) -> None:
        frame = agg.mood_log_frame([
            _mood(datetime(2024, 1, 1), "sad", 3),
            _mood(datetime(2024, 1, 2), "happy", 7, previous={"mood": "sad", "intensity": 3}),
            _mood(datetime(2024, 1, 3), "happy", 5, previous={"mood": "sad", "intensity": 4}),
        ])
        assert agg.mood_transitions(frame) == [
            {"from": "sad", "to": "happy", "count": 2, "avgIntensityChange": 2.5}
        ]

    def test_stats_time_patterns(self) -> None:
        frame = agg.mood_log_frame([
            _mood(datetime(2024, 1, 1, 9), "happy", 8, time_of_day="morning"),
            _mood(datetime(2024, 1, 1, 10), "calm", 6, time_of_day="morning"),
        ])
        stats = agg.mood_stats(frame)
        assert stats["overview"]["totalEntries"] == 2
        assert stats["overview"]["highestIntensity"] == 8
        assert stats["overview"]["mostCommonMood"] == "calm"
        assert stats["timePatterns"] == [
            {"timeOfDay": "morning", "count": 2, "avgIntensity": 7.0, "commonMoods": ["calm", "happy"]}
        ]


class TestListeningStages:
    def test_most_played_and_genres(self) -> None:
        rock = Song(id=1, title="Loud", artist="Amps", genre="rock")
        jazz = Song(id=2, title="Smooth", artist="Keys", genre="jazz")
        frame = agg.playback_frame([
            _play(datetime(2024, 1, 1, 20), rock, liked=True, duration=100, completion=100),
            _play(datetime(2024, 1, 1, 21), rock, duration=50, completion=50),
            _play(datetime(2024, 1, 2, 20), jazz, mood="calm"),
        ])

        top = agg.most_played_songs(frame)
        assert top[0]["songId"] == 1
        assert top[0]["playCount"] == 2

        genres = agg.genre_preferences(frame)
        assert genres[0] == {
            "genre": "rock",
            "playCount": 2,
            "totalDuration": 150,
            "avgCompletion": 75.0,
            "likeRate": 0.5,
        }

        hours = {row["hour"]: row["playCount"] for row in agg.hourly_listening(frame)}
        assert hours == {20: 2, 21: 1}

    def test_plays_of_deleted_songs_are_counted_but_not_ranked(self) -> None:
        kept = Song(id=1, title="Kept", artist="Amps", genre="rock")
        orphan = PlaybackLog(
            song_id=2, playlist_id=7, play_duration=30, completion_percentage=10,
            liked=False, source="manual", created_at=datetime(2024, 1, 1, 20),
        )
        frame = agg.playback_frame([_play(datetime(2024, 1, 1, 21), kept), orphan])

        assert [row["songId"] for row in agg.most_played_songs(frame)] == [1]
        assert agg.most_played_playlists(frame) == []
        overview = agg.listening_overview(frame)
        assert overview["totalPlays"] == 2
        assert overview["uniqueSongs"] == [1]


class TestGameStages:
    def test_improvement_summary(self) -> None:
        frame = agg.game_session_frame([
            _session("breathing", 3, 7),
            _session("breathing", 5, 4),
            _session("rhythm", 2),
        ])
        assert agg.mood_improvement_summary(frame) == {
            "totalSessions": 2,
            "avgMoodImprovement": 1.5,
            "positiveImprovements": 1,
            "maxImprovement": 4,
            "minImprovement": -1,
        }

    def test_performance_by_type(self) -> None:
        frame = agg.game_session_frame([
            _session("breathing", 3, 7, score=10),
            _session("breathing", 4),
            _session("rhythm", 2, 3, score=30),
        ])
        rows = {row["gameType"]: row for row in agg.performance_by_game_type(frame)}
        assert rows["breathing"]["totalSessions"] == 2
        assert rows["breathing"]["completionRate"] == 0.5
        assert rows["breathing"]["avgScore"] == 10.0
        assert rows["rhythm"]["moodImprovements"] == 1

    def test_achievement_frequency(self) -> None:
        frame = agg.game_session_frame([
            _session("breathing", 3, 7, achievements=["first-play", "quick-finish"]),
            _session("breathing", 3, 4, achievements=["quick-finish"]),
        ])
        assert agg.achievement_frequency(frame) == [
            {"achievement": "quick-finish", "count": 2},
            {"achievement": "first-play", "count": 1},
        ]

    def test_mood_game_correlations(self) -> None:
        frame = agg.game_session_frame([
            _session("breathing", 3, 7, mood="anxious"),
            _session("breathing", 6, 5, mood="anxious"),
        ])
        assert agg.mood_game_correlations(frame) == [
            {
                "moodBefore": "anxious",
                "gameType": "breathing",
                "sessionCount": 2,
                "avgMoodImprovement": 1.5,
                "successRate": 0.5,
            }
        ]
