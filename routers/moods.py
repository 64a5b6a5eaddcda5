from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from database import get_db
from errors import ValidationError, field_error
from models.database_models import User
from models.enums import DetectionMethod, Mood
from models.schemas import MoodDetectionOut, MoodDetectRequest, MoodLogCreate, MoodLogOut, MoodLogUpdate
from routers.auth import get_current_user
from routers.responses import SORT_ORDER, PageParams, page, success
from services.mood_detection import detector_for
from services.mood_service import MoodService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", status_code=status.HTTP_201_CREATED)
async def log_mood(
    data: MoodLogCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    mood_log = MoodService(db).log_mood(current_user, data)
    return success({"moodLog": MoodLogOut.model_validate(mood_log)}, "Mood logged successfully")


@router.get("")
async def list_moods(
    paging: PageParams = Depends(),
    mood: Optional[Mood] = None,
    detection_method: Optional[DetectionMethod] = Query(None, alias="detectionMethod"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|mood|intensity|confidence|detectionMethod)$"),
    sort_order: str = SORT_ORDER,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mood history with filters, newest first by default"""
    items, pagination = MoodService(db).list_moods(
        current_user,
        page=paging.page,
        limit=paging.limit,
        mood=mood.value if mood else None,
        detection_method=detection_method.value if detection_method else None,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success(page(items, pagination, MoodLogOut))


@router.post("/detect")
async def detect_mood(
    request: MoodDetectRequest,
    current_user: User = Depends(get_current_user),
):
    """Run a detector over text, a voice transcript or a camera capture"""
    if request.method in (DetectionMethod.TEXT.value, DetectionMethod.VOICE.value) and not (request.text or "").strip():
        raise ValidationError(errors=[field_error("text", "Text is required for text and voice detection")])
    reading = detector_for(request.method).detect(request.text)
    logger.info(f"Detected {reading['mood']} for user {current_user.id} via {request.method}")
    return success({"detection": MoodDetectionOut(method=request.method, **reading)})


@router.get("/trends")
async def mood_trends(
    days: int = Query(7, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success({"trends": MoodService(db).trends(current_user, days)})


@router.get("/frequency")
async def mood_frequency(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success(MoodService(db).frequency(current_user, days))


@router.get("/stats")
async def mood_stats(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success(MoodService(db).stats(current_user, days))


@router.get("/insights/patterns")
async def mood_patterns(
    days: int = Query(30, ge=7, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success(MoodService(db).patterns(current_user, days))


@router.get("/{mood_id}")
async def get_mood(
    mood_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    mood_log = MoodService(db).get_mood(current_user, mood_id)
    return success({"moodLog": MoodLogOut.model_validate(mood_log)})


@router.put("/{mood_id}")
async def update_mood(
    mood_id: int,
    data: MoodLogUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    mood_log = MoodService(db).update_mood(current_user, mood_id, data)
    return success({"moodLog": MoodLogOut.model_validate(mood_log)}, "Mood log updated successfully")


@router.delete("/{mood_id}")
async def delete_mood(
    mood_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    MoodService(db).delete_mood(current_user, mood_id)
    return success(message="Mood log deleted successfully")
