"""Daily learning statistics."""
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linguaquiz.models.base import utcnow
from linguaquiz.models.models import LearningStats

logger = logging.getLogger(__name__)


def utc_today() -> date:
    """Current calendar day in UTC, the bucket used for all daily statistics."""
    return utcnow().date()


class StatsService:
    """Maintains one LearningStats row per user and UTC day."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_day(self, user_id: str, day: date) -> Optional[LearningStats]:
        return (
            self.db.query(LearningStats)
            .filter(LearningStats.user_id == user_id, LearningStats.date == day)
            .first()
        )

    def record_activity(
        self,
        user_id: str,
        quizzes_taken: int = 0,
        words_reviewed: int = 0,
        total_questions: int = 0,
        correct_answers: int = 0,
        day: Optional[date] = None,
    ) -> LearningStats:
        """Increment the counters for the day, creating the row on first activity."""
        day = day or utc_today()
        stats = self.get_day(user_id, day)
        if stats is None:
            stats = LearningStats(
                user_id=user_id,
                date=day,
                quizzes_taken=quizzes_taken,
                words_reviewed=words_reviewed,
                total_questions=total_questions,
                correct_answers=correct_answers,
            )
            self.db.add(stats)
            try:
                self.db.commit()
                return stats
            except IntegrityError:
                self.db.rollback()
                stats = self.get_day(user_id, day)

        stats.quizzes_taken += quizzes_taken
        stats.words_reviewed += words_reviewed
        stats.total_questions += total_questions
        stats.correct_answers += correct_answers
        self.db.commit()
        logger.debug(f"Recorded activity for user {user_id} on {day}")
        return stats
