from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.database_models import User
from models.enums import Difficulty, GameType, TargetMood
from models.schemas import (
    GameCompleteRequest, GameOut, GameRateRequest, GameSessionOut, GameStartRequest,
)
from routers.auth import get_current_user
from routers.responses import SORT_ORDER, page, success
from services.game_service import GameService

router = APIRouter()


@router.get("")
async def list_games(
    game_type: Optional[GameType] = Query(None, alias="type"),
    difficulty: Optional[Difficulty] = None,
    target_mood: Optional[TargetMood] = Query(None, alias="targetMood"),
    page_number: int = Query(1, alias="page", ge=1),
    limit: int = Query(20, ge=1, le=50),
    sort_by: str = Query(
        "averageRating", alias="sortBy", pattern="^(averageRating|playCount|name|estimatedDuration|createdAt)$"
    ),
    sort_order: str = SORT_ORDER,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, pagination = GameService(db).list_games(
        page=page_number,
        limit=limit,
        game_type=game_type.value if game_type else None,
        difficulty=difficulty.value if difficulty else None,
        target_mood=target_mood.value if target_mood else None,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return success(page(items, pagination, GameOut))


@router.get("/recommendations")
async def recommend_games(
    mood: Optional[TargetMood] = None,
    limit: int = Query(10, ge=1, le=20),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    games = GameService(db).recommend_games(mood.value if mood else None, limit)
    return success({"games": [GameOut.model_validate(game) for game in games]})


@router.get("/stats/user")
async def user_game_stats(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stats = GameService(db).user_stats(current_user, days)
    stats["recentSessions"] = [GameSessionOut.model_validate(session) for session in stats["recentSessions"]]
    return success(stats)


@router.get("/sessions/history")
async def session_history(
    game_id: Optional[str] = Query(None, alias="gameId"),
    completed: Optional[bool] = None,
    page_number: int = Query(1, alias="page", ge=1),
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, pagination = GameService(db).session_history(
        current_user, page=page_number, limit=limit, game_ref=game_id, completed=completed
    )
    return success(page(items, pagination, GameSessionOut))


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = GameService(db).get_session(current_user, session_id)
    return success({"gameSession": GameSessionOut.model_validate(session)})


@router.put("/sessions/{session_id}/complete")
async def complete_session(
    session_id: str,
    data: GameCompleteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = GameService(db).complete_session(current_user, session_id, data)
    return success(
        {
            "sessionId": session.session_id,
            "score": session.score,
            "maxScore": session.max_score,
            "moodImprovement": session.mood_improvement,
            "achievements": session.achievements,
            "duration": session.duration,
            "gameSession": GameSessionOut.model_validate(session),
        },
        "Game session completed successfully",
    )


@router.get("/{game_id}")
async def get_game(
    game_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Look a game up by numeric id or slug; inactive games are not found"""
    return success({"game": GameOut.model_validate(GameService(db).get_game(game_id))})


@router.post("/{game_id}/start", status_code=status.HTTP_201_CREATED)
async def start_session(
    game_id: str,
    data: GameStartRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = GameService(db).start_session(current_user, game_id, data)
    game = session.game
    return success(
        {
            "sessionId": session.session_id,
            "game": {
                "id": game.id,
                "gameId": game.game_id,
                "name": game.name,
                "type": game.type,
                "difficulty": session.difficulty,
                "instructions": game.instructions,
                "estimatedDuration": game.estimated_duration,
            },
            "gameSession": GameSessionOut.model_validate(session),
        },
        "Game session started successfully",
    )


@router.post("/{game_id}/rate")
async def rate_game(
    game_id: str,
    data: GameRateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    game = GameService(db).rate_game(current_user, game_id, data)
    return success(
        {"averageRating": game.average_rating, "ratingCount": game.rating_count},
        "Game rated successfully",
    )
