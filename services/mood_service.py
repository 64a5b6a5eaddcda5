from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from errors import AuthorizationError, NotFoundError
from models.database_models import MoodLog, User
from models.enums import TimeOfDay
from models.schemas import MoodLogCreate, MoodLogUpdate
from services import aggregations as agg
from services.pagination import paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "createdAt": MoodLog.created_at,
    "mood": MoodLog.mood,
    "intensity": MoodLog.intensity,
    "confidence": MoodLog.confidence,
    "detectionMethod": MoodLog.detection_method,
}


def time_of_day(hour: int) -> str:
    """Map an hour (0-23) onto a part of the day."""
    if 5 <= hour < 12:
        return TimeOfDay.MORNING.value
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON.value
    if 17 <= hour < 21:
        return TimeOfDay.EVENING.value
    return TimeOfDay.NIGHT.value


class MoodService:
    def __init__(self, db: Session):
        self.db = db

    def _latest(self, user_id: int) -> Optional[MoodLog]:
        return (
            self.db.query(MoodLog)
            .filter(MoodLog.user_id == user_id)
            .order_by(MoodLog.created_at.desc(), MoodLog.id.desc())
            .first()
        )

    def log_mood(self, user: User, data: MoodLogCreate, now: Optional[datetime] = None) -> MoodLog:
        """Store a mood observation linked to the user's previous one.

        ``timeOfDay`` defaults from the server's local wall clock, or from
        ``now`` when one is passed; ``created_at`` is stored in UTC.
        """
        wall_clock = now or datetime.now()
        now = now or datetime.utcnow()
        previous = self._latest(user.id)

        context = data.context.model_dump(by_alias=True)
        if not context.get("timeOfDay"):
            context["timeOfDay"] = time_of_day(wall_clock.hour)

        mood_log = MoodLog(
            user_id=user.id,
            mood=data.mood,
            intensity=data.intensity,
            detection_method=data.detection_method,
            confidence=data.confidence,
            notes=data.notes,
            context=context,
            triggers=list(dict.fromkeys(data.triggers)),
            previous_mood={
                "mood": previous.mood,
                "intensity": previous.intensity,
                "timestamp": previous.created_at.isoformat(),
            } if previous else None,
            session_id=data.session_id,
            created_at=now,
        )
        self.db.add(mood_log)
        self.db.commit()
        self.db.refresh(mood_log)
        logger.info(f"User {user.id} logged mood {mood_log.mood} ({mood_log.intensity}) via {mood_log.detection_method}")
        return mood_log

    def list_moods(
        self,
        user: User,
        page: int = 1,
        limit: int = 20,
        mood: Optional[str] = None,
        detection_method: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[MoodLog], Dict[str, int]]:
        query = self.db.query(MoodLog).filter(MoodLog.user_id == user.id)
        if mood:
            query = query.filter(MoodLog.mood == mood)
        if detection_method:
            query = query.filter(MoodLog.detection_method == detection_method)
        if start_date:
            query = query.filter(MoodLog.created_at >= start_date)
        if end_date:
            query = query.filter(MoodLog.created_at <= end_date)

        column = SORT_FIELDS.get(sort_by, MoodLog.created_at)
        if sort_order == "asc":
            query = query.order_by(column.asc(), MoodLog.id.asc())
        else:
            query = query.order_by(column.desc(), MoodLog.id.desc())
        return paginate(query, page, limit)

    def get_mood(self, user: User, mood_id: int) -> MoodLog:
        mood_log = self.db.query(MoodLog).filter(MoodLog.id == mood_id).first()
        if not mood_log:
            raise NotFoundError("Mood log not found")
        if mood_log.user_id != user.id:
            raise AuthorizationError("Access denied to this mood log")
        return mood_log

    def update_mood(self, user: User, mood_id: int, data: MoodLogUpdate) -> MoodLog:
        """Only notes, context (merged) and triggers can change."""
        mood_log = self.get_mood(user, mood_id)
        fields = data.model_fields_set

        if "notes" in fields:
            mood_log.notes = data.notes
        if "context" in fields and data.context is not None:
            changes = data.context.model_dump(by_alias=True, exclude_unset=True)
            mood_log.context = {**(mood_log.context or {}), **changes}
        if "triggers" in fields and data.triggers is not None:
            mood_log.triggers = list(dict.fromkeys(data.triggers))

        self.db.commit()
        self.db.refresh(mood_log)
        logger.info(f"User {user.id} updated mood log {mood_id}")
        return mood_log

    def delete_mood(self, user: User, mood_id: int) -> None:
        mood_log = self.get_mood(user, mood_id)
        self.db.delete(mood_log)
        self.db.commit()
        logger.info(f"User {user.id} deleted mood log {mood_id}")

    # -- windowed summaries -------------------------------------------------

    def logs_since(self, user: User, since: datetime) -> List[MoodLog]:
        return (
            self.db.query(MoodLog)
            .filter(MoodLog.user_id == user.id, MoodLog.created_at >= since)
            .order_by(MoodLog.created_at.asc(), MoodLog.id.asc())
            .all()
        )

    def _frame(self, user: User, days: int):
        start = agg.window_start(days)
        return agg.mood_log_frame(self.logs_since(user, start)), start

    def trends(self, user: User, days: int = 7) -> List[Dict[str, Any]]:
        frame, _ = self._frame(user, days)
        return agg.daily_mood_trends(frame)

    def frequency(self, user: User, days: int = 30) -> Dict[str, Any]:
        frame, _ = self._frame(user, days)
        rows, total = agg.mood_distribution(frame)
        return {"frequency": rows, "total": total}

    def stats(self, user: User, days: int = 30) -> Dict[str, Any]:
        frame, start = self._frame(user, days)
        return {**agg.mood_stats(frame), "period": agg.period(days, start)}

    def patterns(self, user: User, days: int = 30) -> Dict[str, Any]:
        frame, start = self._frame(user, days)
        return {
            "weeklyPatterns": agg.weekly_patterns(frame),
            "triggerAnalysis": agg.trigger_analysis(frame),
            "moodTransitions": agg.mood_transitions(frame),
            "insights": {"period": f"{days} days", "startDate": start, "endDate": datetime.utcnow()},
        }
