"""
Group/reduce stages for the analytics endpoints.

Every function takes a pandas DataFrame that has already been filtered to a
single user and time window (that filter runs in SQL), and returns plain
Python structures with camelCase keys ready for the JSON envelope. Empty
frames produce empty lists or the documented zero records, never None.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from models.database_models import GameSession, MoodLog, Playlist, PlaybackLog

MOOD_COLUMNS = [
    "created_at", "mood", "intensity", "detection_method", "confidence",
    "time_of_day", "triggers", "prev_mood", "prev_intensity",
]
PLAYBACK_COLUMNS = [
    "created_at", "song_id", "title", "artist", "genre", "playlist_id", "playlist_name",
    "mood", "play_duration", "completion_percentage", "liked",
]
PLAYLIST_COLUMNS = ["created_at", "is_public", "is_auto_generated", "song_count"]
SESSION_COLUMNS = [
    "created_at", "game_type", "completed", "score", "duration",
    "mood_before", "before_intensity", "after_intensity", "achievements",
]

EMPTY_MOOD_OVERVIEW = {"totalMoodLogs": 0, "avgMoodIntensity": 0, "uniqueMoods": [], "detectionMethods": []}
EMPTY_LISTENING_OVERVIEW = {
    "totalPlays": 0, "totalListeningTime": 0, "avgCompletion": 0, "uniqueSongs": [], "likedSongs": 0,
}
EMPTY_PLAYLIST_OVERVIEW = {
    "totalPlaylists": 0, "totalSongsInPlaylists": 0, "avgPlaylistSize": 0, "publicPlaylists": 0,
}
EMPTY_GAME_OVERVIEW = {
    "totalGameSessions": 0, "completedSessions": 0, "avgScore": 0, "totalGameTime": 0, "moodImprovements": 0,
}


def window_start(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or datetime.utcnow()) - timedelta(days=days)


def period(days: int, start: datetime, end: Optional[datetime] = None) -> Dict[str, Any]:
    return {"days": days, "startDate": start, "endDate": end or datetime.utcnow()}


# ---------------------------------------------------------------------------
# Frame builders
# ---------------------------------------------------------------------------

def _frame(rows: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    frame = pd.DataFrame.from_records(rows, columns=columns)
    frame["created_at"] = pd.to_datetime(frame["created_at"])
    return frame


def mood_log_frame(logs: Iterable[MoodLog]) -> pd.DataFrame:
    rows = []
    for log in logs:
        previous = log.previous_mood or {}
        rows.append({
            "created_at": log.created_at,
            "mood": log.mood,
            "intensity": log.intensity,
            "detection_method": log.detection_method,
            "confidence": log.confidence,
            "time_of_day": log.time_of_day,
            "triggers": list(log.triggers or []),
            "prev_mood": previous.get("mood"),
            "prev_intensity": previous.get("intensity"),
        })
    return _frame(rows, MOOD_COLUMNS)


def playback_frame(logs: Iterable[PlaybackLog]) -> pd.DataFrame:
    """One row per play; ids of deleted songs or playlists are blanked, so per-song
    and per-playlist rankings skip them while totals still count the play."""
    rows = []
    for log in logs:
        song, playlist = log.song, log.playlist
        rows.append({
            "created_at": log.created_at,
            "song_id": song.id if song else None,
            "title": song.title if song else None,
            "artist": song.artist if song else None,
            "genre": song.genre if song else None,
            "playlist_id": playlist.id if playlist else None,
            "playlist_name": playlist.name if playlist else None,
            "mood": (log.mood_at_playtime or {}).get("mood"),
            "play_duration": log.play_duration or 0,
            "completion_percentage": log.completion_percentage or 0,
            "liked": bool(log.liked),
        })
    return _frame(rows, PLAYBACK_COLUMNS)


def playlist_frame(playlists: Iterable[Playlist]) -> pd.DataFrame:
    rows = [
        {
            "created_at": playlist.created_at,
            "is_public": bool(playlist.is_public),
            "is_auto_generated": bool(playlist.is_auto_generated),
            "song_count": playlist.song_count,
        }
        for playlist in playlists
    ]
    return _frame(rows, PLAYLIST_COLUMNS)


def game_session_frame(sessions: Iterable[GameSession]) -> pd.DataFrame:
    rows = []
    for session in sessions:
        before = session.mood_before or {}
        after = session.mood_after or {}
        rows.append({
            "created_at": session.created_at,
            "game_type": session.game.type if session.game else None,
            "completed": bool(session.completed),
            "score": session.score or 0,
            "duration": session.duration or 0,
            "mood_before": before.get("mood"),
            "before_intensity": before.get("intensity"),
            "after_intensity": after.get("intensity"),
            "achievements": list(session.achievements or []),
        })
    return _frame(rows, SESSION_COLUMNS)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _avg(value) -> float:
    if value is None or pd.isna(value):
        return 0.0
    return round(float(value), 2)


def _ranked(values: pd.Series) -> List[str]:
    """Distinct values, most frequent first, ties alphabetical."""
    counts = values.dropna().value_counts()
    return sorted((str(v) for v in counts.index), key=lambda v: (-int(counts[v]), v))


def _sorted_unique(values: pd.Series) -> List:
    return sorted(values.dropna().unique().tolist())


def bucket_keys(created_at: pd.Series, group_by: str) -> pd.Series:
    """Calendar bucket label: YYYY-MM-DD, ISO YYYY-Www, or YYYY-MM."""
    if group_by == "week":
        iso = created_at.dt.isocalendar()
        return iso["year"].astype(int).astype(str) + "-W" + iso["week"].astype(int).map("{:02d}".format)
    if group_by == "month":
        return created_at.dt.strftime("%Y-%m")
    return created_at.dt.strftime("%Y-%m-%d")


def iso_weekday(created_at: pd.Series) -> pd.Series:
    """1 = Monday ... 7 = Sunday."""
    return created_at.dt.dayofweek + 1


def _with_improvement(frame: pd.DataFrame) -> pd.DataFrame:
    done = frame[frame["completed"] & frame["after_intensity"].notna() & frame["before_intensity"].notna()].copy()
    done["improvement"] = done["after_intensity"].astype(float) - done["before_intensity"].astype(float)
    return done


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def mood_overview(frame: pd.DataFrame) -> Dict[str, Any]:
    if frame.empty:
        return dict(EMPTY_MOOD_OVERVIEW)
    return {
        "totalMoodLogs": int(len(frame)),
        "avgMoodIntensity": _avg(frame["intensity"].mean()),
        "uniqueMoods": _sorted_unique(frame["mood"]),
        "detectionMethods": _sorted_unique(frame["detection_method"]),
    }


def listening_overview(frame: pd.DataFrame) -> Dict[str, Any]:
    if frame.empty:
        return dict(EMPTY_LISTENING_OVERVIEW)
    return {
        "totalPlays": int(len(frame)),
        "totalListeningTime": int(frame["play_duration"].sum()),
        "avgCompletion": _avg(frame["completion_percentage"].mean()),
        "uniqueSongs": [int(song_id) for song_id in _sorted_unique(frame["song_id"])],
        "likedSongs": int(frame["liked"].sum()),
    }


def playlist_overview(frame: pd.DataFrame) -> Dict[str, Any]:
    if frame.empty:
        return dict(EMPTY_PLAYLIST_OVERVIEW)
    return {
        "totalPlaylists": int(len(frame)),
        "totalSongsInPlaylists": int(frame["song_count"].sum()),
        "avgPlaylistSize": _avg(frame["song_count"].mean()),
        "publicPlaylists": int(frame["is_public"].sum()),
    }


def game_overview(frame: pd.DataFrame) -> Dict[str, Any]:
    if frame.empty:
        return dict(EMPTY_GAME_OVERVIEW)
    improved = _with_improvement(frame)
    return {
        "totalGameSessions": int(len(frame)),
        "completedSessions": int(frame["completed"].sum()),
        "avgScore": _avg(frame["score"].mean()),
        "totalGameTime": int(frame["duration"].sum()),
        "moodImprovements": int((improved["improvement"] > 0).sum()),
    }


# ---------------------------------------------------------------------------
# Mood
# ---------------------------------------------------------------------------

def mood_trends(frame: pd.DataFrame, group_by: str = "day") -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    frame = frame.assign(bucket=bucket_keys(frame["created_at"], group_by))
    grouped = (
        frame.groupby(["bucket", "mood"])
        .agg(
            entries=("intensity", "size"),
            avg_intensity=("intensity", "mean"),
            max_intensity=("intensity", "max"),
            min_intensity=("intensity", "min"),
        )
        .reset_index()
        .sort_values(["bucket", "mood"])
    )
    return [
        {
            "date": row["bucket"],
            "mood": row["mood"],
            "count": int(row["entries"]),
            "avgIntensity": _avg(row["avg_intensity"]),
            "maxIntensity": int(row["max_intensity"]),
            "minIntensity": int(row["min_intensity"]),
        }
        for row in grouped.to_dict("records")
    ]


def daily_mood_trends(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    return [
        {key: row[key] for key in ("date", "mood", "avgIntensity", "count")}
        for row in mood_trends(frame, "day")
    ]


def mood_distribution(frame: pd.DataFrame) -> Tuple[List[Dict[str, Any]], int]:
    """Per-mood counts with percentage shares; returns ``(rows, total)``."""
    total = int(len(frame))
    if frame.empty:
        return [], 0
    grouped = (
        frame.groupby("mood")
        .agg(entries=("intensity", "size"), avg_intensity=("intensity", "mean"))
        .reset_index()
    )
    grouped = grouped.sort_values(["entries", "mood"], ascending=[False, True])
    rows = [
        {
            "mood": row["mood"],
            "count": int(row["entries"]),
            "avgIntensity": _avg(row["avg_intensity"]),
            "percentage": round(int(row["entries"]) / total * 100, 2) if total else 0,
        }
        for row in grouped.to_dict("records")
    ]
    return rows, total


def mood_stats(frame: pd.DataFrame) -> Dict[str, Any]:
    if frame.empty:
        return {
            "overview": {
                "totalEntries": 0,
                "avgIntensity": 0,
                "mostCommonMood": None,
                "highestIntensity": 0,
                "lowestIntensity": 0,
                "detectionMethods": [],
                "uniqueMoods": [],
                "avgConfidence": 0,
            },
            "moodDistribution": [],
            "detectionMethodStats": [],
            "timePatterns": [],
        }

    distribution, _ = mood_distribution(frame)

    methods = (
        frame.groupby("detection_method")
        .agg(entries=("confidence", "size"), avg_confidence=("confidence", "mean"))
        .reset_index()
        .sort_values(["entries", "detection_method"], ascending=[False, True])
    )

    time_patterns = []
    for time_of_day, group in frame.dropna(subset=["time_of_day"]).groupby("time_of_day"):
        time_patterns.append({
            "timeOfDay": time_of_day,
            "count": int(len(group)),
            "avgIntensity": _avg(group["intensity"].mean()),
            "commonMoods": _ranked(group["mood"]),
        })

    return {
        "overview": {
            "totalEntries": int(len(frame)),
            "avgIntensity": _avg(frame["intensity"].mean()),
            "mostCommonMood": _ranked(frame["mood"])[0],
            "highestIntensity": int(frame["intensity"].max()),
            "lowestIntensity": int(frame["intensity"].min()),
            "detectionMethods": _sorted_unique(frame["detection_method"]),
            "uniqueMoods": _sorted_unique(frame["mood"]),
            "avgConfidence": _avg(frame["confidence"].mean()),
        },
        "moodDistribution": [
            {key: row[key] for key in ("mood", "count", "avgIntensity")} for row in distribution
        ],
        "detectionMethodStats": [
            {
                "method": row["detection_method"],
                "count": int(row["entries"]),
                "avgConfidence": _avg(row["avg_confidence"]),
            }
            for row in methods.to_dict("records")
        ],
        "timePatterns": time_patterns,
    }


def weekly_patterns(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    frame = frame.assign(day_of_week=iso_weekday(frame["created_at"]))
    patterns = []
    for day, group in frame.groupby("day_of_week"):
        patterns.append({
            "dayOfWeek": int(day),
            "avgIntensity": _avg(group["intensity"].mean()),
            "count": int(len(group)),
            "commonMoods": _ranked(group["mood"]),
        })
    return patterns


def trigger_analysis(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    exploded = frame[["triggers", "intensity", "mood"]].explode("triggers").dropna(subset=["triggers"])
    results = []
    for trigger, group in exploded.groupby("triggers"):
        results.append({
            "trigger": trigger,
            "count": int(len(group)),
            "avgIntensity": _avg(group["intensity"].mean()),
            "associatedMoods": _ranked(group["mood"]),
        })
    return sorted(results, key=lambda row: (-row["count"], row["trigger"]))


def mood_transitions(frame: pd.DataFrame, limit: int = 20) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    linked = frame.dropna(subset=["prev_mood", "prev_intensity"]).copy()
    if linked.empty:
        return []
    linked["change"] = linked["intensity"].astype(float) - linked["prev_intensity"].astype(float)
    grouped = (
        linked.groupby(["prev_mood", "mood"])
        .agg(entries=("change", "size"), avg_change=("change", "mean"))
        .reset_index()
        .sort_values(["entries", "prev_mood", "mood"], ascending=[False, True, True])
        .head(limit)
    )
    return [
        {
            "from": row["prev_mood"],
            "to": row["mood"],
            "count": int(row["entries"]),
            "avgIntensityChange": _avg(row["avg_change"]),
        }
        for row in grouped.to_dict("records")
    ]


def time_based_patterns(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Day-of-week by hour heatmap of mood intensity."""
    if frame.empty:
        return []
    frame = frame.assign(day_of_week=iso_weekday(frame["created_at"]), hour=frame["created_at"].dt.hour)
    cells = []
    for (day, hour), group in frame.groupby(["day_of_week", "hour"]):
        cells.append({
            "dayOfWeek": int(day),
            "hour": int(hour),
            "avgIntensity": _avg(group["intensity"].mean()),
            "moodCount": int(len(group)),
            "commonMoods": _ranked(group["mood"]),
        })
    return cells


# ---------------------------------------------------------------------------
# Listening
# ---------------------------------------------------------------------------

def most_played_songs(frame: pd.DataFrame, limit: int = 10) -> List[Dict[str, Any]]:
    known = frame.dropna(subset=["song_id"])
    if known.empty:
        return []
    grouped = (
        known.groupby("song_id")
        .agg(
            plays=("liked", "size"),
            total_duration=("play_duration", "sum"),
            avg_completion=("completion_percentage", "mean"),
            like_count=("liked", "sum"),
            title=("title", "first"),
            artist=("artist", "first"),
            genre=("genre", "first"),
        )
        .reset_index()
        .sort_values(["plays", "song_id"], ascending=[False, True])
        .head(limit)
    )
    return [
        {
            "songId": int(row["song_id"]),
            "title": row["title"],
            "artist": row["artist"],
            "genre": row["genre"],
            "playCount": int(row["plays"]),
            "totalDuration": int(row["total_duration"]),
            "avgCompletion": _avg(row["avg_completion"]),
            "likeCount": int(row["like_count"]),
        }
        for row in grouped.to_dict("records")
    ]


def _mood_genre(frame: pd.DataFrame) -> pd.DataFrame:
    tagged = frame.dropna(subset=["mood", "genre"])
    if tagged.empty:
        return tagged
    return (
        tagged.groupby(["mood", "genre"])
        .agg(
            plays=("liked", "size"),
            avg_completion=("completion_percentage", "mean"),
            like_rate=("liked", "mean"),
        )
        .reset_index()
        .sort_values(["plays", "mood", "genre"], ascending=[False, True, True])
    )


def listening_by_mood(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    grouped = _mood_genre(frame)
    return [
        {
            "mood": row["mood"],
            "genre": row["genre"],
            "playCount": int(row["plays"]),
            "avgCompletion": _avg(row["avg_completion"]),
        }
        for row in grouped.to_dict("records")
    ]


def mood_music_correlations(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    grouped = _mood_genre(frame)
    return [
        {
            "mood": row["mood"],
            "genre": row["genre"],
            "playCount": int(row["plays"]),
            "avgCompletion": _avg(row["avg_completion"]),
            "likeRate": _avg(row["like_rate"]),
        }
        for row in grouped.to_dict("records")
    ]


def daily_listening(frame: pd.DataFrame, since: datetime) -> List[Dict[str, Any]]:
    recent = frame[frame["created_at"] >= pd.Timestamp(since)]
    if recent.empty:
        return []
    recent = recent.assign(day=recent["created_at"].dt.strftime("%Y-%m-%d"))
    days = []
    for day, group in recent.groupby("day"):
        days.append({
            "date": day,
            "totalPlays": int(len(group)),
            "totalDuration": int(group["play_duration"].sum()),
            "uniqueSongCount": int(group["song_id"].dropna().nunique()),
            "avgCompletion": _avg(group["completion_percentage"].mean()),
        })
    return days


def genre_preferences(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    known = frame.dropna(subset=["genre"])
    if known.empty:
        return []
    grouped = (
        known.groupby("genre")
        .agg(
            plays=("liked", "size"),
            total_duration=("play_duration", "sum"),
            avg_completion=("completion_percentage", "mean"),
            like_rate=("liked", "mean"),
        )
        .reset_index()
        .sort_values(["plays", "genre"], ascending=[False, True])
    )
    return [
        {
            "genre": row["genre"],
            "playCount": int(row["plays"]),
            "totalDuration": int(row["total_duration"]),
            "avgCompletion": _avg(row["avg_completion"]),
            "likeRate": _avg(row["like_rate"]),
        }
        for row in grouped.to_dict("records")
    ]


def hourly_listening(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    frame = frame.assign(hour=frame["created_at"].dt.hour)
    grouped = (
        frame.groupby("hour")
        .agg(plays=("liked", "size"), avg_duration=("play_duration", "mean"))
        .reset_index()
        .sort_values("hour")
    )
    return [
        {"hour": int(row["hour"]), "playCount": int(row["plays"]), "avgDuration": _avg(row["avg_duration"])}
        for row in grouped.to_dict("records")
    ]


# ---------------------------------------------------------------------------
# Playlists
# ---------------------------------------------------------------------------

def most_played_playlists(frame: pd.DataFrame, limit: int = 10) -> List[Dict[str, Any]]:
    known = frame.dropna(subset=["playlist_id"])
    if known.empty:
        return []
    grouped = (
        known.groupby("playlist_id")
        .agg(
            plays=("liked", "size"),
            total_duration=("play_duration", "sum"),
            avg_completion=("completion_percentage", "mean"),
            name=("playlist_name", "first"),
        )
        .reset_index()
        .sort_values(["plays", "playlist_id"], ascending=[False, True])
        .head(limit)
    )
    return [
        {
            "playlistId": int(row["playlist_id"]),
            "name": row["name"],
            "playCount": int(row["plays"]),
            "totalDuration": int(row["total_duration"]),
            "avgCompletion": _avg(row["avg_completion"]),
        }
        for row in grouped.to_dict("records")
    ]


def playlist_creation_stats(frame: pd.DataFrame) -> Dict[str, Any]:
    if frame.empty:
        return {"totalPlaylists": 0, "autoGenerated": 0, "publicPlaylists": 0, "avgSongsPerPlaylist": 0, "totalSongs": 0}
    return {
        "totalPlaylists": int(len(frame)),
        "autoGenerated": int(frame["is_auto_generated"].sum()),
        "publicPlaylists": int(frame["is_public"].sum()),
        "avgSongsPerPlaylist": _avg(frame["song_count"].mean()),
        "totalSongs": int(frame["song_count"].sum()),
    }


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

def mood_improvement_summary(frame: pd.DataFrame) -> Dict[str, Any]:
    done = _with_improvement(frame) if not frame.empty else frame
    if done.empty:
        return {
            "totalSessions": 0, "avgMoodImprovement": 0, "positiveImprovements": 0,
            "maxImprovement": 0, "minImprovement": 0,
        }
    return {
        "totalSessions": int(len(done)),
        "avgMoodImprovement": _avg(done["improvement"].mean()),
        "positiveImprovements": int((done["improvement"] > 0).sum()),
        "maxImprovement": int(done["improvement"].max()),
        "minImprovement": int(done["improvement"].min()),
    }


def performance_by_game_type(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Per game type: completion rate over all sessions, score/duration over completed ones."""
    typed = frame.dropna(subset=["game_type"])
    if typed.empty:
        return []
    improved = _with_improvement(typed)
    results = []
    for game_type, group in typed.groupby("game_type"):
        completed = group[group["completed"]]
        gains = improved[improved["game_type"] == game_type]["improvement"]
        results.append({
            "gameType": game_type,
            "totalSessions": int(len(group)),
            "completedSessions": int(len(completed)),
            "avgScore": _avg(completed["score"].mean()),
            "avgDuration": _avg(completed["duration"].mean()),
            "completionRate": _avg(len(completed) / len(group)),
            "moodImprovements": int((gains > 0).sum()),
        })
    return sorted(results, key=lambda row: (-row["totalSessions"], row["gameType"]))


def achievement_frequency(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    exploded = frame["achievements"].explode().dropna()
    counts = exploded.value_counts()
    return [
        {"achievement": name, "count": int(counts[name])}
        for name in sorted(counts.index, key=lambda name: (-int(counts[name]), name))
    ]


def mood_game_correlations(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    done = _with_improvement(frame).dropna(subset=["game_type", "mood_before"])
    if done.empty:
        return []
    done = done.assign(success=done["improvement"] > 0)
    grouped = (
        done.groupby(["mood_before", "game_type"])
        .agg(
            sessions=("improvement", "size"),
            avg_improvement=("improvement", "mean"),
            success_rate=("success", "mean"),
        )
        .reset_index()
        .sort_values(["sessions", "mood_before", "game_type"], ascending=[False, True, True])
    )
    return [
        {
            "moodBefore": row["mood_before"],
            "gameType": row["game_type"],
            "sessionCount": int(row["sessions"]),
            "avgMoodImprovement": _avg(row["avg_improvement"]),
            "successRate": _avg(row["success_rate"]),
        }
        for row in grouped.to_dict("records")
    ]
