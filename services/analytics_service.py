"""
Windowed analytics over a user's mood, listening, playlist and game history.

Each report first loads the user's rows for the trailing window with a SQL
filter, turns them into DataFrames and hands them to ``services.aggregations``
for grouping. Reports are read-only.
"""
from datetime import datetime
from typing import Any, Dict, List
import logging

from sqlalchemy.orm import Session

from models.database_models import GameSession, MoodLog, Playlist, PlaybackLog, User
from services import aggregations as agg

logger = logging.getLogger(__name__)

RECENT_ITEMS = 5


class AnalyticsService:
    def __init__(self, db: Session):
        self.db = db

    # -- windowed loaders ---------------------------------------------------

    def _mood_logs(self, user: User, since: datetime) -> List[MoodLog]:
        return (
            self.db.query(MoodLog)
            .filter(MoodLog.user_id == user.id, MoodLog.created_at >= since)
            .order_by(MoodLog.created_at.asc(), MoodLog.id.asc())
            .all()
        )

    def _playbacks(self, user: User, since: datetime) -> List[PlaybackLog]:
        return (
            self.db.query(PlaybackLog)
            .filter(PlaybackLog.user_id == user.id, PlaybackLog.created_at >= since)
            .order_by(PlaybackLog.created_at.asc(), PlaybackLog.id.asc())
            .all()
        )

    def _playlists(self, user: User, since: datetime) -> List[Playlist]:
        return (
            self.db.query(Playlist)
            .filter(Playlist.owner_id == user.id, Playlist.created_at >= since)
            .all()
        )

    def _sessions(self, user: User, since: datetime) -> List[GameSession]:
        return (
            self.db.query(GameSession)
            .filter(GameSession.user_id == user.id, GameSession.created_at >= since)
            .order_by(GameSession.created_at.asc(), GameSession.id.asc())
            .all()
        )

    def _recent(self, model, user: User, limit: int = RECENT_ITEMS):
        return (
            self.db.query(model)
            .filter(model.user_id == user.id)
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(limit)
            .all()
        )

    # -- reports ------------------------------------------------------------

    def dashboard(self, user: User, days: int = 30) -> Dict[str, Any]:
        start = agg.window_start(days)
        logger.info(f"Building dashboard for user {user.id} over {days} days")
        return {
            "overview": {
                "mood": agg.mood_overview(agg.mood_log_frame(self._mood_logs(user, start))),
                "listening": agg.listening_overview(agg.playback_frame(self._playbacks(user, start))),
                "playlists": agg.playlist_overview(agg.playlist_frame(self._playlists(user, start))),
                "games": agg.game_overview(agg.game_session_frame(self._sessions(user, start))),
            },
            "recentActivity": {
                "moods": self._recent(MoodLog, user),
                "listening": self._recent(PlaybackLog, user),
                "games": self._recent(GameSession, user),
            },
            "period": agg.period(days, start),
        }

    def mood_trends(self, user: User, days: int = 30, group_by: str = "day") -> Dict[str, Any]:
        start = agg.window_start(days)
        frame = agg.mood_log_frame(self._mood_logs(user, start))
        distribution, total = agg.mood_distribution(frame)
        return {
            "trends": agg.mood_trends(frame, group_by),
            "moodDistribution": distribution,
            "summary": {
                "totalEntries": total,
                "period": f"{days} days",
                "groupBy": group_by,
                "startDate": start,
                "endDate": datetime.utcnow(),
            },
        }

    def listening_patterns(self, user: User, days: int = 30) -> Dict[str, Any]:
        start = agg.window_start(days)
        frame = agg.playback_frame(self._playbacks(user, start))
        return {
            "mostPlayedSongs": agg.most_played_songs(frame),
            "listeningByMood": agg.listening_by_mood(frame),
            "dailyStats": agg.daily_listening(frame, agg.window_start(min(days, 30))),
            "genrePreferences": agg.genre_preferences(frame),
            "timePatterns": agg.hourly_listening(frame),
            "period": agg.period(days, start),
        }

    def playlist_usage(self, user: User, days: int = 30) -> Dict[str, Any]:
        start = agg.window_start(days)
        plays = agg.playback_frame(self._playbacks(user, start))
        engagement = (
            self.db.query(Playlist)
            .filter(Playlist.owner_id == user.id)
            .order_by(Playlist.play_count.desc(), Playlist.id.asc())
            .limit(10)
            .all()
        )
        return {
            "mostPlayedPlaylists": agg.most_played_playlists(plays),
            "stats": agg.playlist_creation_stats(agg.playlist_frame(self._playlists(user, start))),
            "engagement": [
                {
                    "id": playlist.id,
                    "name": playlist.name,
                    "playCount": playlist.play_count,
                    "likes": playlist.likes,
                    "followerCount": playlist.follower_count,
                    "songCount": playlist.song_count,
                    "isAutoGenerated": playlist.is_auto_generated,
                    "createdAt": playlist.created_at,
                }
                for playlist in engagement
            ],
            "period": agg.period(days, start),
        }

    def game_performance(self, user: User, days: int = 30) -> Dict[str, Any]:
        start = agg.window_start(days)
        frame = agg.game_session_frame(self._sessions(user, start))
        return {
            "moodImprovement": agg.mood_improvement_summary(frame),
            "gamePerformance": agg.performance_by_game_type(frame),
            "recentSessions": self._recent(GameSession, user, limit=10),
            "achievements": agg.achievement_frequency(frame),
            "period": agg.period(days, start),
        }

    def correlations(self, user: User, days: int = 30) -> Dict[str, Any]:
        start = agg.window_start(days)
        return {
            "moodMusicCorrelations": agg.mood_music_correlations(agg.playback_frame(self._playbacks(user, start))),
            "moodGameCorrelations": agg.mood_game_correlations(agg.game_session_frame(self._sessions(user, start))),
            "timeBasedPatterns": agg.time_based_patterns(agg.mood_log_frame(self._mood_logs(user, start))),
            "insights": {"period": f"{days} days", "startDate": start, "endDate": datetime.utcnow()},
        }
