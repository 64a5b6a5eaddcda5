from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.database_models import User
from models.schemas import AddSongRequest, AutoGenerateRequest, PlaylistCreate, PlaylistOut, PlaylistUpdate
from routers.auth import get_current_user
from routers.responses import SORT_ORDER, PageParams, page, success
from services.playlist_service import PlaylistService
from services.recommendation_service import RecommendationService

router = APIRouter()


def _playlist(playlist):
    return {"playlist": PlaylistOut.model_validate(playlist)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_playlist(
    data: PlaylistCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    playlist = PlaylistService(db).create_playlist(current_user, data)
    return success(_playlist(playlist), "Playlist created successfully")


@router.get("")
async def list_playlists(
    paging: PageParams = Depends(),
    search: Optional[str] = Query(None, max_length=100),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(name|createdAt|playCount|songCount)$"),
    sort_order: str = SORT_ORDER,
    only_mine: bool = Query(False, alias="onlyMine"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Own and public playlists, or only the caller's with ``onlyMine``"""
    items, pagination = PlaylistService(db).list_playlists(
        current_user,
        page=paging.page,
        limit=paging.limit,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        only_mine=only_mine,
    )
    return success(page(items, pagination, PlaylistOut))


@router.post("/auto-generate", status_code=status.HTTP_201_CREATED)
async def auto_generate_playlist(
    request: AutoGenerateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    playlist = RecommendationService(db).auto_generate(
        current_user,
        mood=request.mood,
        tempo=request.tempo,
        genre=request.genre,
        limit=request.limit,
    )
    return success(_playlist(playlist), "Playlist auto-generated successfully")


@router.get("/{playlist_id}")
async def get_playlist(
    playlist_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success(_playlist(PlaylistService(db).get_playlist(current_user, playlist_id)))


@router.put("/{playlist_id}")
async def update_playlist(
    playlist_id: int,
    data: PlaylistUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    playlist = PlaylistService(db).update_playlist(current_user, playlist_id, data)
    return success(_playlist(playlist), "Playlist updated successfully")


@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    PlaylistService(db).delete_playlist(current_user, playlist_id)
    return success(message="Playlist deleted successfully")


@router.post("/{playlist_id}/songs")
async def add_song(
    playlist_id: int,
    request: AddSongRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    playlist = PlaylistService(db).add_song(current_user, playlist_id, request.song_id)
    return success(_playlist(playlist), "Song added to playlist successfully")


@router.delete("/{playlist_id}/songs/{song_id}")
async def remove_song(
    playlist_id: int,
    song_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    playlist = PlaylistService(db).remove_song(current_user, playlist_id, song_id)
    return success(_playlist(playlist), "Song removed from playlist successfully")


@router.post("/{playlist_id}/play")
async def play_playlist(
    playlist_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    play_count = PlaylistService(db).play(current_user, playlist_id)
    return success({"playCount": play_count}, "Play count updated")


@router.post("/{playlist_id}/follow")
async def follow_playlist(
    playlist_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = PlaylistService(db).toggle_follow(current_user, playlist_id)
    return success(result, "Playlist followed" if result["isFollowing"] else "Playlist unfollowed")
