from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.database_models import User
from models.schemas import GameSessionOut, MoodLogOut, PlaybackLogOut
from routers.auth import get_current_user
from routers.responses import success
from services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/dashboard")
async def dashboard(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Window summaries plus the latest moods, plays and game sessions"""
    report = AnalyticsService(db).dashboard(current_user, days)
    recent = report["recentActivity"]
    report["recentActivity"] = {
        "moods": [MoodLogOut.model_validate(log) for log in recent["moods"]],
        "listening": [PlaybackLogOut.model_validate(log) for log in recent["listening"]],
        "games": [GameSessionOut.model_validate(session) for session in recent["games"]],
    }
    return success(report)


@router.get("/mood-trends")
async def mood_trends(
    days: int = Query(30, ge=7, le=365),
    group_by: str = Query("day", alias="groupBy", pattern="^(day|week|month)$"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success(AnalyticsService(db).mood_trends(current_user, days, group_by))


@router.get("/listening-patterns")
async def listening_patterns(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success(AnalyticsService(db).listening_patterns(current_user, days))


@router.get("/playlist-usage")
async def playlist_usage(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success(AnalyticsService(db).playlist_usage(current_user, days))


@router.get("/game-performance")
async def game_performance(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    report = AnalyticsService(db).game_performance(current_user, days)
    report["recentSessions"] = [GameSessionOut.model_validate(session) for session in report["recentSessions"]]
    return success(report)


@router.get("/correlations")
async def correlations(
    days: int = Query(30, ge=7, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return success(AnalyticsService(db).correlations(current_user, days))
