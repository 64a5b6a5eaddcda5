from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile
import logging

from config import Settings, get_settings
from database import get_db
from errors import ValidationError, field_error
from models.database_models import User
from models.enums import Genre, Language, SongMood, Tempo
from models.schemas import SongOut, SongUpdate
from routers.auth import get_current_user
from routers.responses import SORT_ORDER, PageParams, page, success
from services.recommendation_service import RecommendationService
from services.song_service import SongService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_song(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Multipart upload: ``audioFile`` plus the song metadata as form fields"""
    form = await request.form()
    audio = form.get("audioFile")
    if not isinstance(audio, UploadFile):
        raise ValidationError("Audio file is required", [field_error("audioFile", "Audio file is required")])

    fields = {}
    for key in form.keys():
        if key == "audioFile":
            continue
        values = form.getlist(key)
        fields[key] = values if key == "moodTags" and len(values) > 1 else values[0]

    song = SongService(db, settings).upload(current_user, audio.filename, audio.file, fields)
    return success({"song": SongOut.model_validate(song)}, "Song uploaded successfully")


@router.get("")
async def list_songs(
    paging: PageParams = Depends(),
    mood: Optional[SongMood] = None,
    genre: Optional[Genre] = None,
    language: Optional[Language] = None,
    tempo: Optional[Tempo] = None,
    search: Optional[str] = Query(None, max_length=100),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|title|artist|playCount|likes|duration)$"),
    sort_order: str = SORT_ORDER,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    items, pagination = SongService(db, settings).list_songs(
        current_user,
        page=paging.page,
        limit=paging.limit,
        mood=mood.value if mood else None,
        genre=genre.value if genre else None,
        language=language.value if language else None,
        tempo=tempo.value if tempo else None,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success(page(items, pagination, SongOut))


@router.get("/recommendations")
async def recommend_songs(
    mood: Optional[SongMood] = None,
    energy: Optional[int] = Query(None, ge=1, le=10),
    valence: Optional[int] = Query(None, ge=1, le=10),
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Songs matching a mood and an energy/valence target"""
    songs = RecommendationService(db).recommend_songs(
        current_user,
        mood=mood.value if mood else None,
        energy=energy,
        valence=valence,
        limit=limit,
    )
    return success({"songs": [SongOut.model_validate(song) for song in songs]})


@router.get("/mine")
async def my_songs(
    paging: PageParams = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    items, pagination = SongService(db, settings).my_songs(current_user, paging.page, paging.limit)
    return success(page(items, pagination, SongOut))


@router.get("/{song_id}")
async def get_song(
    song_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    song = SongService(db, settings).get_song(current_user, song_id)
    return success({"song": SongOut.model_validate(song)})


@router.put("/{song_id}")
async def update_song(
    song_id: int,
    data: SongUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    song = SongService(db, settings).update_song(current_user, song_id, data)
    return success({"song": SongOut.model_validate(song)}, "Song updated successfully")


@router.delete("/{song_id}")
async def delete_song(
    song_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    SongService(db, settings).delete_song(current_user, song_id)
    return success(message="Song deleted successfully")


@router.post("/{song_id}/play")
async def play_song(
    song_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    play_count = SongService(db, settings).play(current_user, song_id)
    return success({"playCount": play_count}, "Play count updated")
