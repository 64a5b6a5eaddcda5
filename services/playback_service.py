from typing import Dict, List, Tuple
import logging

from sqlalchemy.orm import Session

from errors import AuthorizationError, NotFoundError
from models.database_models import PlaybackLog, Playlist, Song, User
from models.schemas import PlaybackLogCreate
from services.pagination import paginate

logger = logging.getLogger(__name__)


class PlaybackService:
    """Records playback events; play counts are bumped separately by the song endpoints."""

    def __init__(self, db: Session):
        self.db = db

    def log_playback(self, user: User, data: PlaybackLogCreate) -> PlaybackLog:
        song = self.db.query(Song).filter(Song.id == data.song_id).first()
        if not song:
            raise NotFoundError("Song not found")
        if not song.is_public and song.uploaded_by != user.id:
            raise AuthorizationError("Access denied to this song")
        if data.playlist_id is not None:
            if not self.db.query(Playlist.id).filter(Playlist.id == data.playlist_id).first():
                raise NotFoundError("Playlist not found")

        log = PlaybackLog(
            user_id=user.id,
            song_id=song.id,
            playlist_id=data.playlist_id,
            mood_at_playtime=data.mood_at_playtime.model_dump() if data.mood_at_playtime else None,
            play_duration=data.play_duration,
            completion_percentage=data.completion_percentage,
            skipped=data.skipped,
            skip_reason=data.skip_reason,
            liked=data.liked,
            source=data.source,
            device_type=data.device_type,
            session_id=data.session_id,
        )
        self.db.add(log)
        self.db.commit()
        self.db.refresh(log)
        logger.info(f"User {user.id} played song {song.id} ({log.completion_percentage}% via {log.source})")
        return log

    def history(self, user: User, page: int = 1, limit: int = 20) -> Tuple[List[PlaybackLog], Dict[str, int]]:
        query = (
            self.db.query(PlaybackLog)
            .filter(PlaybackLog.user_id == user.id)
            .order_by(PlaybackLog.created_at.desc(), PlaybackLog.id.desc())
        )
        return paginate(query, page, limit)
