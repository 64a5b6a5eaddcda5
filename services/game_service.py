from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import func
from sqlalchemy.orm import Session

from errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from models.database_models import Game, GameSession, GameTargetMood, User
from models.enums import Achievement
from models.schemas import GameCompleteRequest, GameData, GameRateRequest, GameStartRequest
from services import aggregations as agg
from services.pagination import paginate

logger = logging.getLogger(__name__)

DEFAULT_EXPECTED_DURATION = 300  # seconds
MOOD_IMPROVER_DELTA = 2
HIGH_SCORE_FACTOR = 1.5

GAME_SORT_FIELDS = {
    "averageRating": Game.average_rating,
    "playCount": Game.play_count,
    "name": Game.name,
    "estimatedDuration": Game.estimated_duration,
    "createdAt": Game.created_at,
}


def compute_achievements(
    score: int,
    max_score: int,
    duration: int,
    mood_improvement: Optional[int],
    game_data: GameData,
) -> List[str]:
    achievements = []
    if game_data.is_first_play:
        achievements.append(Achievement.FIRST_PLAY.value)
    if max_score > 0 and score == max_score:
        achievements.append(Achievement.PERFECT_SCORE.value)
    if duration < (game_data.expected_duration or DEFAULT_EXPECTED_DURATION):
        achievements.append(Achievement.QUICK_FINISH.value)
    if mood_improvement is not None and mood_improvement >= MOOD_IMPROVER_DELTA:
        achievements.append(Achievement.MOOD_IMPROVER.value)
    if score > (game_data.average_score or 0) * HIGH_SCORE_FACTOR:
        achievements.append(Achievement.HIGH_SCORER.value)
    return achievements


class GameService:
    def __init__(self, db: Session):
        self.db = db

    # -- catalog ------------------------------------------------------------

    def _find_game(self, game_ref: str) -> Optional[Game]:
        """Look a game up by numeric id or by slug."""
        query = self.db.query(Game)
        if str(game_ref).isdigit():
            return query.filter(Game.id == int(game_ref)).first()
        return query.filter(Game.game_id == game_ref).first()

    def get_game(self, game_ref: str) -> Game:
        game = self._find_game(game_ref)
        if not game or not game.is_active:
            raise NotFoundError("Game not found or not available")
        return game

    def list_games(
        self,
        page: int = 1,
        limit: int = 20,
        game_type: Optional[str] = None,
        difficulty: Optional[str] = None,
        target_mood: Optional[str] = None,
        sort_by: str = "averageRating",
        sort_order: str = "desc",
    ) -> Tuple[List[Game], Dict[str, int]]:
        query = self.db.query(Game).filter(Game.is_active.is_(True))
        if game_type:
            query = query.filter(Game.type == game_type)
        if difficulty:
            query = query.filter(Game.difficulty == difficulty)
        if target_mood:
            query = query.filter(Game.target_mood_rows.any(GameTargetMood.mood == target_mood))

        column = GAME_SORT_FIELDS.get(sort_by, Game.average_rating)
        order = column.asc() if sort_order == "asc" else column.desc()
        return paginate(query.order_by(order, Game.id.asc()), page, limit)

    def recommend_games(self, mood: Optional[str] = None, limit: int = 10) -> List[Game]:
        """Games for a target mood (best rated first) or the most played ones."""
        query = self.db.query(Game).filter(Game.is_active.is_(True))
        if mood:
            query = query.filter(Game.target_mood_rows.any(GameTargetMood.mood == mood))
            query = query.order_by(Game.average_rating.desc(), Game.play_count.desc(), Game.id.asc())
        else:
            query = query.order_by(Game.play_count.desc(), Game.average_rating.desc(), Game.id.asc())
        return query.limit(limit).all()

    # -- sessions -----------------------------------------------------------

    def start_session(
        self, user: User, game_ref: str, data: GameStartRequest, now: Optional[datetime] = None
    ) -> GameSession:
        game = self.get_game(game_ref)
        now = now or datetime.utcnow()

        previous = self.db.query(GameSession).filter(
            GameSession.user_id == user.id, GameSession.game_id == game.id
        )
        average_score = (
            self.db.query(func.avg(GameSession.score))
            .filter(
                GameSession.user_id == user.id,
                GameSession.game_id == game.id,
                GameSession.completed.is_(True),
            )
            .scalar()
        )
        game_data = GameData(
            is_first_play=previous.count() == 0,
            expected_duration=(game.estimated_duration or 0) * 60,
            average_score=float(average_score or 0),
        )

        stamp = int(now.timestamp() * 1000)
        session = GameSession(
            session_id=f"{user.id}_{game.id}_{stamp}_{uuid.uuid4().hex[:8]}",
            user_id=user.id,
            game_id=game.id,
            mood_before=data.mood_before.model_dump(),
            difficulty=data.difficulty or game.difficulty,
            device_type=data.device_type,
            game_data=game_data.model_dump(by_alias=True),
            achievements=[],
            started_at=now,
            created_at=now,
        )
        game.increment_play_count()
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        logger.info(f"User {user.id} started session {session.session_id} of {game.game_id}")
        return session

    def get_session(self, user: User, session_id: str) -> GameSession:
        session = self.db.query(GameSession).filter(GameSession.session_id == session_id).first()
        if not session:
            raise NotFoundError("Game session not found")
        if session.user_id != user.id:
            raise AuthorizationError("Access denied to this game session")
        return session

    def complete_session(
        self, user: User, session_id: str, data: GameCompleteRequest, now: Optional[datetime] = None
    ) -> GameSession:
        """Finish a started session; a session can only be completed once."""
        session = self.get_session(user, session_id)
        if session.completed:
            logger.warning(f"Session {session_id} already completed")
            raise ConflictError("Game session already completed")

        completed_at = now or datetime.utcnow()
        duration = max(0, int((completed_at - session.started_at).total_seconds()))
        max_score = data.score if data.max_score is None else data.max_score
        game_data = GameData.model_validate({**(session.game_data or {}), **data.game_data})
        mood_after = data.mood_after.model_dump()
        improvement = mood_after["intensity"] - (session.mood_before or {}).get("intensity", 0)

        session.mood_after = mood_after
        session.score = data.score
        session.max_score = max_score
        session.completed = True
        session.completed_at = completed_at
        session.duration = duration
        session.completion_percentage = 100
        session.game_data = game_data.model_dump(by_alias=True)
        session.achievements = compute_achievements(data.score, max_score, duration, improvement, game_data)

        self.db.commit()
        self.db.refresh(session)
        logger.info(
            f"User {user.id} completed session {session_id}: score {data.score}/{max_score}, "
            f"improvement {improvement}, achievements {session.achievements}"
        )
        return session

    def session_history(
        self,
        user: User,
        page: int = 1,
        limit: int = 20,
        game_ref: Optional[str] = None,
        completed: Optional[bool] = None,
    ) -> Tuple[List[GameSession], Dict[str, int]]:
        query = self.db.query(GameSession).filter(GameSession.user_id == user.id)
        if game_ref:
            game = self._find_game(game_ref)
            if not game:
                raise NotFoundError("Game not found")
            query = query.filter(GameSession.game_id == game.id)
        if completed is not None:
            query = query.filter(GameSession.completed.is_(completed))
        query = query.order_by(GameSession.created_at.desc(), GameSession.id.desc())
        return paginate(query, page, limit)

    # -- rating -------------------------------------------------------------

    def rate_game(self, user: User, game_ref: str, data: GameRateRequest) -> Game:
        game = self._find_game(game_ref)
        if not game:
            raise NotFoundError("Game not found")

        latest = (
            self.db.query(GameSession)
            .filter(
                GameSession.user_id == user.id,
                GameSession.game_id == game.id,
                GameSession.completed.is_(True),
            )
            .order_by(GameSession.completed_at.desc(), GameSession.id.desc())
            .first()
        )
        if not latest:
            raise ValidationError("You must complete a game session before rating")

        game.update_rating(data.rating)
        latest.rating = data.rating
        latest.feedback = data.feedback
        self.db.commit()
        self.db.refresh(game)
        logger.info(f"User {user.id} rated {game.game_id} {data.rating}/5")
        return game

    # -- stats --------------------------------------------------------------

    def user_stats(self, user: User, days: int = 30) -> Dict[str, Any]:
        history = (
            self.db.query(GameSession)
            .filter(GameSession.user_id == user.id)
            .order_by(GameSession.created_at.desc(), GameSession.id.desc())
            .limit(100)
            .all()
        )
        total = len(history)
        completed = sum(1 for session in history if session.completed)
        average_score = sum(session.score or 0 for session in history) / total if total else 0
        total_time = sum(session.duration or 0 for session in history)

        achievements: Dict[str, int] = {}
        for session in history:
            for achievement in session.achievements or []:
                achievements[achievement] = achievements.get(achievement, 0) + 1

        start = agg.window_start(days)
        windowed = (
            self.db.query(GameSession)
            .filter(GameSession.user_id == user.id, GameSession.created_at >= start)
            .all()
        )
        return {
            "overview": {
                "totalSessions": total,
                "completedSessions": completed,
                "completionRate": round(completed / total * 100, 2) if total else 0,
                "averageScore": round(average_score),
                "totalGameTime": round(total_time / 60),  # minutes
            },
            "moodImprovement": agg.mood_improvement_summary(agg.game_session_frame(windowed)),
            "achievements": achievements,
            "recentSessions": history[:10],
            "period": agg.period(days, start),
        }
