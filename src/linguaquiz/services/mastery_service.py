"""Mastery engine turning quiz results into per-word spaced repetition state."""
import asyncio
import logging
import math
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import AsyncIterator, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linguaquiz import monitoring
from linguaquiz.config import settings
from linguaquiz.models.base import is_valid_object_id, utcnow
from linguaquiz.models.models import Word, WordProgress

logger = logging.getLogger(__name__)


@dataclass
class WordTally:
    """Correct/total answers for one word within a quiz attempt."""

    correct: int = 0
    total: int = 0

    @property
    def correctness(self) -> float:
        return self.correct / self.total if self.total > 0 else 0.0


def review_interval_days(mastery: float) -> int:
    """Days until the next review.

    min(1, floor(mastery * 7)) yields 0 below mastery 1/7 and 1 day otherwise.
    """
    return min(1, math.floor(mastery * 7))


def status_for(mastery: float) -> str:
    return "learning" if mastery < 1.0 else "mastered"


class WordLocks:
    """Per-(user, word) asyncio locks, dropped once nobody holds or waits on them."""

    def __init__(self):
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._users: Dict[Tuple[str, str], int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, user_id: str, word_id: str) -> AsyncIterator[None]:
        key = (user_id, word_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                self._locks.pop(key, None)


_word_locks = WordLocks()


class MasteryService:
    """Updates WordProgress records from aggregated quiz results."""

    def __init__(self, db: Session, locks: Optional[WordLocks] = None):
        """Initialize the service with a database session."""
        self.db = db
        self.locks = locks or _word_locks

    async def apply_quiz_results(
        self,
        tallies: Mapping[str, WordTally],
        user_id: str,
        now: Optional[datetime] = None,
    ) -> List[WordProgress]:
        """Update mastery for every word in ``tallies``.

        Words are updated independently and concurrently; invalid ids and
        deleted words are skipped. Returns the progress records written.
        """
        now = now or utcnow()
        results = await asyncio.gather(
            *(self._update_word(word_id, tally, user_id, now) for word_id, tally in tallies.items())
        )
        return [progress for progress in results if progress is not None]

    async def _update_word(
        self, word_id: str, tally: WordTally, user_id: str, now: datetime
    ) -> Optional[WordProgress]:
        if not is_valid_object_id(word_id):
            logger.warning(f"Skipping progress update for invalid word id: {word_id!r}")
            monitoring.skipped_word_updates.labels(reason="invalid_id").inc()
            return None

        async with self.locks.hold(user_id, word_id):
            if self.db.get(Word, word_id) is None:
                logger.warning(f"Skipping progress update for non-existent word: {word_id}")
                monitoring.skipped_word_updates.labels(reason="missing_word").inc()
                return None

            progress = self._get_progress(user_id, word_id)
            if progress is None:
                progress = WordProgress(user_id=user_id, word_id=word_id)
                self._apply_first_review(progress, tally, now)
                self.db.add(progress)
                try:
                    self.db.commit()
                except IntegrityError:
                    # created concurrently elsewhere, fall back to updating it
                    self.db.rollback()
                    progress = self._get_progress(user_id, word_id)
                    self._apply_review(progress, tally, now)
                    self.db.commit()
            else:
                self._apply_review(progress, tally, now)
                self.db.commit()

        monitoring.words_reviewed.labels(status=progress.status).inc()
        logger.debug(
            f"Word {word_id} for user {user_id}: mastery={progress.mastery} "
            f"streak={progress.streak} reviews={progress.review_count}"
        )
        return progress

    def _get_progress(self, user_id: str, word_id: str) -> Optional[WordProgress]:
        return (
            self.db.query(WordProgress)
            .filter(WordProgress.user_id == user_id, WordProgress.word_id == word_id)
            .first()
        )

    def _apply_first_review(self, progress: WordProgress, tally: WordTally, now: datetime) -> None:
        correctness = tally.correctness
        progress.mastery = correctness
        progress.review_count = tally.total
        progress.streak = 1 if correctness >= 0.5 else 0
        self._schedule(progress, now)

    def _apply_review(self, progress: WordProgress, tally: WordTally, now: datetime) -> None:
        """Asymmetric update: wrong answers cost four times what right ones earn."""
        correctness = tally.correctness
        progress.review_count = (progress.review_count or 0) + tally.total
        progress.streak = (progress.streak or 0) + 1 if correctness >= 0.5 else 0

        mastery = progress.mastery or 0.0
        if correctness > 0.5:
            mastery = min(1.0, mastery + settings.learning.mastery_reward)
        else:
            mastery = max(0.0, mastery - settings.learning.mastery_penalty)
        progress.mastery = round(mastery, 2)
        self._schedule(progress, now)

    @staticmethod
    def _schedule(progress: WordProgress, now: datetime) -> None:
        progress.status = status_for(progress.mastery)
        progress.last_reviewed = now
        progress.next_review = now + timedelta(days=review_interval_days(progress.mastery))
