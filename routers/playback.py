from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from models.database_models import User
from models.schemas import PlaybackLogCreate, PlaybackLogOut
from routers.auth import get_current_user
from routers.responses import PageParams, page, success
from services.playback_service import PlaybackService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def log_playback(
    data: PlaybackLogCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    log = PlaybackService(db).log_playback(current_user, data)
    return success({"playbackLog": PlaybackLogOut.model_validate(log)}, "Playback logged successfully")


@router.get("")
async def playback_history(
    paging: PageParams = Depends(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, pagination = PlaybackService(db).history(current_user, paging.page, paging.limit)
    return success(page(items, pagination, PlaybackLogOut))
