from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Tuple
import json
import logging
import os
import uuid

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import Settings
from errors import AuthorizationError, NotFoundError, ValidationError, field_error, field_errors
from models.database_models import Song, SongMoodTag, User
from models.schemas import SongCreate, SongUpdate
from services.pagination import paginate

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

SORT_FIELDS = {
    "createdAt": Song.created_at,
    "title": Song.title,
    "artist": Song.artist,
    "playCount": Song.play_count,
    "likes": Song.likes,
    "duration": Song.duration,
}


def visible_to(user: User):
    """Songs a user may see: public ones and their own uploads."""
    return or_(Song.is_public.is_(True), Song.uploaded_by == user.id)


def remove_file(path: Optional[str]) -> None:
    if path and os.path.exists(path):
        os.remove(path)
        logger.info(f"Removed audio file {path}")


class SongService:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    # -- upload -------------------------------------------------------------

    def _save_audio(self, filename: str, stream: BinaryIO) -> str:
        extension = Path(filename or "").suffix.lower().lstrip(".")
        if extension not in self.settings.ALLOWED_AUDIO_EXTENSIONS:
            allowed = ", ".join(self.settings.ALLOWED_AUDIO_EXTENSIONS)
            raise ValidationError(
                "Only audio files are allowed",
                [field_error("audioFile", f"Allowed extensions: {allowed}")],
            )

        upload_dir = Path(self.settings.UPLOAD_PATH)
        upload_dir.mkdir(parents=True, exist_ok=True)
        stamp = int(datetime.utcnow().timestamp() * 1000)
        target = upload_dir / f"audioFile-{stamp}-{uuid.uuid4().hex[:9]}.{extension}"

        written = 0
        with open(target, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.settings.MAX_FILE_SIZE:
                    break
                out.write(chunk)

        if written > self.settings.MAX_FILE_SIZE:
            remove_file(str(target))
            raise ValidationError(
                "File too large",
                [field_error("audioFile", f"File exceeds {self.settings.MAX_FILE_SIZE} bytes")],
            )
        return str(target)

    @staticmethod
    def _parse_form(form: Dict[str, Any]) -> SongCreate:
        fields = {key: value for key, value in form.items() if value is not None}
        mood_tags = fields.get("moodTags")
        if isinstance(mood_tags, str):
            try:
                fields["moodTags"] = json.loads(mood_tags) if mood_tags.strip().startswith("[") else [
                    tag.strip() for tag in mood_tags.split(",") if tag.strip()
                ]
            except json.JSONDecodeError:
                raise ValidationError(errors=[field_error("moodTags", "Mood tags must be a JSON list")])
        try:
            return SongCreate.model_validate(fields)
        except SchemaValidationError as e:
            raise ValidationError(errors=field_errors(e.errors()))

    def upload(self, user: User, filename: str, stream: BinaryIO, form: Dict[str, Any]) -> Song:
        """Store the audio file, then validate metadata; the file is removed on any failure."""
        file_path = self._save_audio(filename, stream)
        try:
            data = self._parse_form(form)
        except ValidationError:
            remove_file(file_path)
            logger.warning(f"Upload by user {user.id} rejected, invalid metadata")
            raise

        song = Song(
            title=data.title,
            artist=data.artist,
            album=data.album,
            genre=data.genre,
            language=data.language,
            duration=data.duration,
            file_path=file_path,
            uploaded_by=user.id,
            is_public=data.is_public,
            tempo=data.tempo,
            energy=data.energy,
            valence=data.valence,
        )
        song.mood_tags = data.mood_tags
        try:
            self.db.add(song)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            remove_file(file_path)
            raise
        self.db.refresh(song)
        logger.info(f"User {user.id} uploaded song {song.id}: {song.title} by {song.artist}")
        return song

    # -- queries ------------------------------------------------------------

    def list_songs(
        self,
        user: User,
        page: int = 1,
        limit: int = 20,
        mood: Optional[str] = None,
        genre: Optional[str] = None,
        language: Optional[str] = None,
        tempo: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[Song], Dict[str, int]]:
        query = self.db.query(Song).filter(visible_to(user))
        if mood:
            query = query.filter(Song.tag_rows.any(SongMoodTag.mood == mood))
        if genre:
            query = query.filter(Song.genre == genre)
        if language:
            query = query.filter(Song.language == language)
        if tempo:
            query = query.filter(Song.tempo == tempo)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Song.title.ilike(pattern), Song.artist.ilike(pattern), Song.album.ilike(pattern)))

        column = SORT_FIELDS.get(sort_by, Song.created_at)
        order = column.asc() if sort_order == "asc" else column.desc()
        return paginate(query.order_by(order, Song.id.desc()), page, limit)

    def my_songs(self, user: User, page: int = 1, limit: int = 20) -> Tuple[List[Song], Dict[str, int]]:
        query = self.db.query(Song).filter(Song.uploaded_by == user.id).order_by(Song.created_at.desc(), Song.id.desc())
        return paginate(query, page, limit)

    def get_song(self, user: User, song_id: int) -> Song:
        song = self.db.query(Song).filter(Song.id == song_id).first()
        if not song:
            raise NotFoundError("Song not found")
        if not song.is_public and song.uploaded_by != user.id:
            raise AuthorizationError("Access denied to this song")
        return song

    def _owned_song(self, user: User, song_id: int, action: str) -> Song:
        song = self.db.query(Song).filter(Song.id == song_id).first()
        if not song:
            raise NotFoundError("Song not found")
        if song.uploaded_by != user.id:
            raise AuthorizationError(f"Access denied. You can only {action} your own songs")
        return song

    # -- mutations ----------------------------------------------------------

    def update_song(self, user: User, song_id: int, data: SongUpdate) -> Song:
        song = self._owned_song(user, song_id, "update")
        changes = data.model_dump(exclude_unset=True)
        mood_tags = changes.pop("mood_tags", None)
        for field, value in changes.items():
            if value is not None:
                setattr(song, field, value)
        if mood_tags is not None:
            song.mood_tags = mood_tags

        self.db.commit()
        self.db.refresh(song)
        logger.info(f"User {user.id} updated song {song_id}: {sorted(changes)}")
        return song

    def delete_song(self, user: User, song_id: int) -> None:
        song = self._owned_song(user, song_id, "delete")
        file_path = song.file_path
        self.db.delete(song)
        self.db.commit()
        remove_file(file_path)
        logger.info(f"User {user.id} deleted song {song_id}")

    def play(self, user: User, song_id: int) -> int:
        """Bump the song's play count; returns the new count."""
        song = self.get_song(user, song_id)
        song.play_count = (song.play_count or 0) + 1
        self.db.commit()
        return song.play_count
