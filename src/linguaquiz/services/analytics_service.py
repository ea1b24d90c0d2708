"""Learning analytics: streaks, progress summaries and recommendations."""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Union

from sqlalchemy.orm import Session, joinedload

from linguaquiz.config import settings
from linguaquiz.models.base import as_utc, is_valid_object_id, utcnow
from linguaquiz.models.models import (
    LearningStats,
    QuizAnswer,
    QuizAttempt,
    Word,
    WordProgress,
)
from linguaquiz.services.stats_service import utc_today

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def _as_day(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return as_utc(value).date()
    return value


def calculate_streak(activity_dates: Iterable[Union[date, datetime]], today: Optional[date] = None) -> int:
    """Count consecutive active days ending today or yesterday.

    ``activity_dates`` must be in descending order. Datetimes are bucketed by
    their UTC calendar day and duplicate days are ignored.
    """
    today = today or utc_today()
    days = [_as_day(value) for value in activity_dates]
    if not days:
        return 0

    latest = days[0]
    if latest != today and latest != today - ONE_DAY:
        return 0

    streak = 1
    previous = latest
    for current in days[1:]:
        if current == previous:
            continue
        if previous - current == ONE_DAY:
            streak += 1
            previous = current
        else:
            break
    return streak


@dataclass
class ProgressSummary:
    """Headline numbers for the progress dashboard."""

    total_words: int = 0
    mastered_words: int = 0
    needs_review: int = 0
    current_streak: int = 0
    max_word_streak: int = 0
    total_quizzes_taken: int = 0
    avg_score: float = 0.0


@dataclass
class ProgressReport:
    """Everything shown on the progress dashboard."""

    summary: ProgressSummary
    learning_stats: List[LearningStats] = field(default_factory=list)
    word_progress: List[WordProgress] = field(default_factory=list)
    recent_attempts: List[QuizAttempt] = field(default_factory=list)


@dataclass
class PerformanceRecord:
    """Correctness of one answer for one word."""

    word_id: str
    score: float
    date: Optional[datetime] = None


@dataclass
class Recommendations:
    """Study recommendations."""

    focus_areas: List[str]
    recommended_word_ids: List[str]
    study_plan: str
    estimated_time: int  # minutes
    recommended_words: List[Word] = field(default_factory=list)


@dataclass
class AdaptiveDifficulty:
    """Difficulty suggested from the learner's word progress."""

    recommended_difficulty: str
    confidence: float
    next_review_date: datetime


def summarize(
    word_progress: Sequence[WordProgress],
    attempts: Sequence[QuizAttempt],
    current_streak: int,
    recent_window: int = 10,
) -> ProgressSummary:
    """Summary statistics. ``attempts`` must be newest first."""
    recent = attempts[:recent_window]
    avg_score = sum(attempt.score or 0 for attempt in recent) / len(recent) if recent else 0.0
    return ProgressSummary(
        total_words=len(word_progress),
        mastered_words=sum(1 for wp in word_progress if wp.mastery == 1.0),
        needs_review=sum(1 for wp in word_progress if wp.mastery < 1.0),
        current_streak=current_streak,
        max_word_streak=max((wp.streak or 0 for wp in word_progress), default=0),
        total_quizzes_taken=len(attempts),
        avg_score=avg_score,
    )


def build_recommendations(
    word_progress: Sequence[WordProgress],
    performance: Sequence[PerformanceRecord],
    weak_mastery: float = 0.6,
) -> Recommendations:
    """Rule-based study recommendations from word progress and recent answers."""
    weak_words = [wp.word_id for wp in word_progress if wp.mastery < weak_mastery]
    avg_recent_score = (
        sum(record.score for record in performance) / len(performance) if performance else 0.5
    )

    focus_areas = []
    if weak_words:
        focus_areas.append("vocabulary_review")
    if avg_recent_score < 0.7:
        focus_areas.append("practice_questions")
    if any((wp.streak or 0) < 2 for wp in word_progress):
        focus_areas.append("consistency_building")

    if "vocabulary_review" in focus_areas:
        study_plan = "Focus on reviewing difficult words with contextual examples"
    else:
        study_plan = "Continue with regular practice and introduce new vocabulary"

    return Recommendations(
        focus_areas=focus_areas,
        recommended_word_ids=weak_words,
        study_plan=study_plan,
        estimated_time=len(focus_areas) * 15,
    )


def calculate_adaptive_difficulty(
    word_progress: Sequence[WordProgress], now: Optional[datetime] = None
) -> AdaptiveDifficulty:
    """Recommend a quiz difficulty from average mastery and word streaks.

    Success rate treats a streak of 5 as full marks. The next review is
    2 ** (average review count) days away, capped at 30 days.
    """
    now = now or utcnow()
    if not word_progress:
        return AdaptiveDifficulty("medium", 0.5, now + ONE_DAY)

    count = len(word_progress)
    avg_mastery = sum(wp.mastery for wp in word_progress) / count
    success_rate = sum(wp.streak or 0 for wp in word_progress) / (count * 5)

    if avg_mastery >= 0.8 and success_rate >= 0.8:
        difficulty, confidence = "hard", 0.9
    elif avg_mastery >= 0.6 and success_rate >= 0.6:
        difficulty, confidence = "medium", 0.7
    else:
        difficulty, confidence = "easy", 0.8

    avg_reviews = sum(wp.review_count or 0 for wp in word_progress) / count
    days = min(2 ** min(avg_reviews, 5), 30)
    return AdaptiveDifficulty(difficulty, confidence, now + timedelta(days=days))


class AnalyticsService:
    """Service computing learning progress for the dashboard."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def calculate_streak(self, user_id: str, today: Optional[date] = None) -> int:
        """Current consecutive-day learning streak of the user."""
        dates = [
            row.date
            for row in (
                self.db.query(LearningStats.date)
                .filter(LearningStats.user_id == user_id)
                .order_by(LearningStats.date.desc())
                .limit(settings.learning.streak_lookback_days)
                .all()
            )
        ]
        return calculate_streak(dates, today)

    def _word_progress(self, user_id: str) -> List[WordProgress]:
        return (
            self.db.query(WordProgress)
            .options(joinedload(WordProgress.word))
            .filter(WordProgress.user_id == user_id)
            .order_by(WordProgress.last_reviewed.desc())
            .all()
        )

    def get_progress_summary(self, user_id: str) -> ProgressReport:
        """Summary stats, daily stats, word progress and recent attempts."""
        learning = settings.learning
        learning_stats = (
            self.db.query(LearningStats)
            .filter(LearningStats.user_id == user_id)
            .order_by(LearningStats.date.desc())
            .limit(learning.stats_window)
            .all()
        )
        word_progress = self._word_progress(user_id)
        attempts = (
            self.db.query(QuizAttempt)
            .filter(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.created_at.desc())
            .all()
        )
        current_streak = self.calculate_streak(user_id)

        return ProgressReport(
            summary=summarize(word_progress, attempts, current_streak, learning.recent_attempts),
            learning_stats=learning_stats,
            word_progress=word_progress,
            recent_attempts=attempts[: learning.recent_attempts],
        )

    def _recent_performance(self, user_id: str) -> List[PerformanceRecord]:
        attempts = (
            self.db.query(QuizAttempt)
            .filter(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.created_at.desc())
            .limit(settings.learning.recommendation_attempts)
            .all()
        )
        if not attempts:
            return []
        answers = (
            self.db.query(QuizAnswer)
            .options(joinedload(QuizAnswer.question))
            .filter(QuizAnswer.attempt_id.in_([attempt.id for attempt in attempts]))
            .all()
        )
        return [
            PerformanceRecord(
                word_id=(answer.question.word_id if answer.question else None) or "",
                score=1.0 if answer.is_correct else 0.0,
                date=answer.created_at,
            )
            for answer in answers
        ]

    def get_recommendations(self, user_id: str) -> Recommendations:
        """Focus areas, weak words, a study plan and an estimated study time."""
        word_progress = self._word_progress(user_id)
        performance = self._recent_performance(user_id)
        recommendations = build_recommendations(
            word_progress, performance, settings.learning.weak_mastery
        )

        word_ids = [word_id for word_id in recommendations.recommended_word_ids if is_valid_object_id(word_id)]
        recommendations.recommended_word_ids = word_ids
        if word_ids:
            recommendations.recommended_words = self.db.query(Word).filter(Word.id.in_(word_ids)).all()
        logger.info(
            f"Recommendations for user {user_id}: focus={recommendations.focus_areas} "
            f"words={len(word_ids)}"
        )
        return recommendations

    def get_adaptive_difficulty(self, user_id: str) -> AdaptiveDifficulty:
        """Difficulty suggestion for the user's next quiz."""
        word_progress = (
            self.db.query(WordProgress).filter(WordProgress.user_id == user_id).all()
        )
        return calculate_adaptive_difficulty(word_progress)
