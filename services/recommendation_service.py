from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from errors import NotFoundError
from models.database_models import Playlist, Song, SongMoodTag, User
from services.song_service import visible_to

logger = logging.getLogger(__name__)

# energy/valence targets match songs within this distance
FEATURE_WINDOW = 2


def _title(value: str) -> str:
    return value[:1].upper() + value[1:]


def feature_band(value: int, window: int = FEATURE_WINDOW):
    """Inclusive range around ``value`` clamped to the 1-10 scale."""
    return max(1, value - window), min(10, value + window)


def playlist_name(mood: Optional[str] = None, tempo: Optional[str] = None, genre: Optional[str] = None) -> str:
    name = f"{_title(mood)} Mix" if mood else "Auto-Generated Playlist"
    if tempo:
        name += f" ({_title(tempo)} Tempo)"
    if genre:
        name += f" - {_title(genre)}"
    return name


class RecommendationService:
    def __init__(self, db: Session):
        self.db = db

    def recommend_songs(
        self,
        user: User,
        mood: Optional[str] = None,
        energy: Optional[int] = None,
        valence: Optional[int] = None,
        limit: int = 20,
    ) -> List[Song]:
        """Songs the user can see, near the requested mood/energy/valence, most played first"""
        query = self.db.query(Song).filter(visible_to(user))
        if mood:
            query = query.filter(Song.tag_rows.any(SongMoodTag.mood == mood))
        if energy is not None:
            low, high = feature_band(energy)
            query = query.filter(Song.energy >= low, Song.energy <= high)
        if valence is not None:
            low, high = feature_band(valence)
            query = query.filter(Song.valence >= low, Song.valence <= high)

        songs = (
            query.order_by(Song.play_count.desc(), Song.likes.desc(), Song.created_at.desc(), Song.id.desc())
            .limit(limit)
            .all()
        )
        logger.info(f"Found {len(songs)} recommendations for user {user.id} (mood={mood}, energy={energy}, valence={valence})")
        return songs

    def auto_generate(
        self,
        user: User,
        mood: Optional[str] = None,
        tempo: Optional[str] = None,
        genre: Optional[str] = None,
        limit: int = 20,
    ) -> Playlist:
        """Build and persist a private playlist from the top matching songs"""
        query = self.db.query(Song).filter(visible_to(user))
        if mood:
            query = query.filter(Song.tag_rows.any(SongMoodTag.mood == mood))
        if tempo:
            query = query.filter(Song.tempo == tempo)
        if genre:
            query = query.filter(Song.genre == genre)

        songs = query.order_by(Song.play_count.desc(), Song.likes.desc(), Song.id.asc()).limit(limit).all()
        if not songs:
            logger.warning(f"No songs matched auto-generate request for user {user.id}")
            raise NotFoundError("No songs found matching the criteria")

        playlist = Playlist(
            name=playlist_name(mood, tempo, genre),
            description="Automatically generated playlist based on your preferences",
            owner_id=user.id,
            mood=mood,
            tags=[],
            is_public=False,
            is_auto_generated=True,
            generated_for={"mood": mood, "tempo": tempo, "genre": genre},
            followers=[],
        )
        for song in songs:
            playlist.add_song(song)

        self.db.add(playlist)
        self.db.commit()
        self.db.refresh(playlist)
        logger.info(f"Auto-generated playlist {playlist.id} '{playlist.name}' with {len(songs)} songs")
        return playlist
