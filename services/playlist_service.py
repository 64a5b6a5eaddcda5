from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from errors import AuthorizationError, NotFoundError
from models.database_models import Playlist, PlaylistSong, Song, User
from models.schemas import PlaylistCreate, PlaylistUpdate
from services.pagination import paginate

logger = logging.getLogger(__name__)


class PlaylistService:
    def __init__(self, db: Session):
        self.db = db

    def _find(self, playlist_id: int) -> Playlist:
        playlist = self.db.query(Playlist).filter(Playlist.id == playlist_id).first()
        if not playlist:
            raise NotFoundError("Playlist not found")
        return playlist

    def _owned(self, user: User, playlist_id: int, action: str = "modify") -> Playlist:
        playlist = self._find(playlist_id)
        if playlist.owner_id != user.id:
            raise AuthorizationError(f"Access denied. You can only {action} your own playlists")
        return playlist

    def create_playlist(self, user: User, data: PlaylistCreate) -> Playlist:
        playlist = Playlist(
            name=data.name,
            description=data.description,
            owner_id=user.id,
            mood=data.mood,
            tags=list(data.tags),
            cover_image=data.cover_image,
            is_public=data.is_public,
            is_auto_generated=False,
            followers=[],
        )
        self.db.add(playlist)
        self.db.commit()
        self.db.refresh(playlist)
        logger.info(f"User {user.id} created playlist {playlist.id}: {playlist.name}")
        return playlist

    def list_playlists(
        self,
        user: User,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        only_mine: bool = False,
    ) -> Tuple[List[Playlist], Dict[str, int]]:
        query = self.db.query(Playlist)
        if only_mine:
            query = query.filter(Playlist.owner_id == user.id)
        else:
            query = query.filter(or_(Playlist.owner_id == user.id, Playlist.is_public.is_(True)))
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Playlist.name.ilike(pattern), Playlist.description.ilike(pattern)))

        if sort_by == "songCount":
            song_count = (
                self.db.query(func.count(PlaylistSong.id))
                .filter(PlaylistSong.playlist_id == Playlist.id)
                .correlate(Playlist)
                .scalar_subquery()
            )
            column = song_count
        else:
            column = {
                "name": Playlist.name,
                "playCount": Playlist.play_count,
            }.get(sort_by, Playlist.created_at)

        order = column.asc() if sort_order == "asc" else column.desc()
        return paginate(query.order_by(order, Playlist.id.desc()), page, limit)

    def get_playlist(self, user: User, playlist_id: int) -> Playlist:
        playlist = self._find(playlist_id)
        if not playlist.is_public and playlist.owner_id != user.id:
            raise AuthorizationError("Access denied to this playlist")
        return playlist

    def update_playlist(self, user: User, playlist_id: int, data: PlaylistUpdate) -> Playlist:
        playlist = self._owned(user, playlist_id, "update")
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if field == "tags":
                playlist.tags = list(value or [])
            elif value is not None or field in ("description", "mood", "cover_image"):
                setattr(playlist, field, value)
        self.db.commit()
        self.db.refresh(playlist)
        logger.info(f"User {user.id} updated playlist {playlist_id}: {sorted(changes)}")
        return playlist

    def delete_playlist(self, user: User, playlist_id: int) -> None:
        playlist = self._owned(user, playlist_id, "delete")
        self.db.delete(playlist)
        self.db.commit()
        logger.info(f"User {user.id} deleted playlist {playlist_id}")

    def add_song(self, user: User, playlist_id: int, song_id: int) -> Playlist:
        """Append a visible song; adding one that is already present changes nothing."""
        playlist = self._owned(user, playlist_id)
        song = self.db.query(Song).filter(Song.id == song_id).first()
        if not song:
            raise NotFoundError("Song not found")
        if not song.is_public and song.uploaded_by != user.id:
            raise AuthorizationError("Access denied to this song")

        if playlist.add_song(song):
            self.db.commit()
            self.db.refresh(playlist)
            logger.info(f"Added song {song_id} to playlist {playlist_id}")
        return playlist

    def remove_song(self, user: User, playlist_id: int, song_id: int) -> Playlist:
        playlist = self._owned(user, playlist_id)
        if playlist.remove_song(song_id):
            self.db.commit()
            self.db.refresh(playlist)
            logger.info(f"Removed song {song_id} from playlist {playlist_id}")
        return playlist

    def play(self, user: User, playlist_id: int) -> int:
        playlist = self.get_playlist(user, playlist_id)
        playlist.play_count = (playlist.play_count or 0) + 1
        self.db.commit()
        return playlist.play_count

    def toggle_follow(self, user: User, playlist_id: int) -> Dict[str, Any]:
        playlist = self._find(playlist_id)
        if not playlist.is_public:
            raise AuthorizationError("Cannot follow private playlists")

        followers = list(playlist.followers or [])
        following = user.id in followers
        if following:
            followers = [follower for follower in followers if follower != user.id]
        else:
            followers.append(user.id)
        playlist.followers = followers
        self.db.commit()
        logger.info(f"User {user.id} {'unfollowed' if following else 'followed'} playlist {playlist_id}")
        return {"isFollowing": not following, "followerCount": len(followers)}
