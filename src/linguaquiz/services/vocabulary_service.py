"""Service for generated vocabulary content and manual word progress."""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from linguaquiz.errors import NotFoundError
from linguaquiz.models.artifacts import ComplexityReport, WordSentences
from linguaquiz.models.base import is_valid_object_id, utcnow
from linguaquiz.models.models import VocabularyList, Word, WordProgress
from linguaquiz.services.generation_client import GenerationClient, get_generation_client
from linguaquiz.services.mastery_service import review_interval_days, status_for
from linguaquiz.services.stats_service import StatsService

logger = logging.getLogger(__name__)

STATUS_MASTERY = {"learning": 0.0, "mastered": 1.0}


@dataclass
class WordProgressView:
    """Progress of a word, with defaults for words never reviewed."""

    mastery: float = 0.0
    status: str = "not_started"
    review_count: int = 0
    streak: int = 0


class VocabularyService:
    """Generates vocabulary lists and sentences and tracks manual reviews."""

    def __init__(self, db: Session, generation_client: Optional[GenerationClient] = None):
        """Initialize the service with a database session."""
        self.db = db
        self._generation_client = generation_client
        self.stats_service = StatsService(db)

    @property
    def generation_client(self) -> GenerationClient:
        if self._generation_client is None:
            self._generation_client = get_generation_client()
        return self._generation_client

    def _get_list(self, list_id: str, user_id: str) -> VocabularyList:
        if not is_valid_object_id(list_id):
            raise NotFoundError("Vocabulary list", list_id)
        vocabulary_list = (
            self.db.query(VocabularyList)
            .filter(VocabularyList.id == list_id, VocabularyList.user_id == user_id)
            .first()
        )
        if vocabulary_list is None:
            raise NotFoundError("Vocabulary list", list_id)
        return vocabulary_list

    async def generate_sentences(self, list_id: str, user_id: str) -> List[WordSentences]:
        """Generate contextual sentences for every word of a list."""
        vocabulary_list = self._get_list(list_id, user_id)
        if not vocabulary_list.words:
            raise ValueError("No words in vocabulary list")
        return await self.generation_client.generate_contextual_sentences(
            vocabulary_list.words,
            vocabulary_list.target_language,
            vocabulary_list.native_language,
        )

    async def generate_ai_list(
        self,
        name: str,
        target_language: str,
        native_language: str,
        prompt: str,
        user_id: str,
        word_count: int = 10,
        description: Optional[str] = None,
    ) -> VocabularyList:
        """Create a vocabulary list populated with generated words."""
        entries = await self.generation_client.generate_vocabulary_list(
            prompt, target_language, native_language, word_count
        )
        vocabulary_list = VocabularyList(
            name=name,
            description=description,
            target_language=target_language,
            native_language=native_language,
            user_id=user_id,
        )
        vocabulary_list.words = [
            Word(
                text=entry.word,
                translation=entry.translation,
                part_of_speech=entry.part_of_speech,
                difficulty=entry.difficulty or "medium",
            )
            for entry in entries
        ]
        self.db.add(vocabulary_list)
        self.db.commit()
        self.db.refresh(vocabulary_list)
        logger.info(f"Created list {vocabulary_list.id} with {len(entries)} generated words for user {user_id}")
        return vocabulary_list

    async def analyze_text(self, text: str, target_language: str) -> ComplexityReport:
        """Complexity report for a text."""
        return await self.generation_client.analyze_text_complexity(text, target_language)

    def _get_owned_word(self, word_id: str, user_id: str) -> Word:
        if not is_valid_object_id(word_id):
            raise NotFoundError("Word", word_id)
        word = (
            self.db.query(Word)
            .join(VocabularyList)
            .filter(Word.id == word_id, VocabularyList.user_id == user_id)
            .first()
        )
        if word is None:
            raise NotFoundError("Word", word_id)
        return word

    def update_word_progress(
        self,
        word_id: str,
        user_id: str,
        mastery: Optional[float] = None,
        status: Optional[str] = None,
    ) -> WordProgress:
        """Set a word's progress directly, e.g. when the learner marks it mastered.

        Mastery is derived from the status when only a status is given, and the
        stored status always follows the resulting mastery.
        """
        word = self._get_owned_word(word_id, user_id)
        if status is not None and status not in STATUS_MASTERY:
            raise ValueError(f"Invalid status: {status}")
        if mastery is None:
            mastery = STATUS_MASTERY.get(status, 0.0)
        mastery = min(1.0, max(0.0, mastery))
        status = status_for(mastery)
        now = utcnow()

        progress = (
            self.db.query(WordProgress)
            .filter(WordProgress.user_id == user_id, WordProgress.word_id == word.id)
            .first()
        )
        if progress is None:
            progress = WordProgress(user_id=user_id, word_id=word.id, review_count=0, streak=0)
            self.db.add(progress)
        progress.mastery = mastery
        progress.status = status
        progress.review_count = (progress.review_count or 0) + 1
        progress.last_reviewed = now
        progress.next_review = now + timedelta(days=review_interval_days(mastery))
        self.db.commit()

        self.stats_service.record_activity(user_id, words_reviewed=1)
        return progress

    def get_word_progress(self, word_id: str, user_id: str) -> WordProgressView:
        """Progress of a word for the user, or not-started defaults."""
        progress = None
        if is_valid_object_id(word_id):
            progress = (
                self.db.query(WordProgress)
                .filter(WordProgress.user_id == user_id, WordProgress.word_id == word_id)
                .first()
            )
        if progress is None:
            return WordProgressView()
        return WordProgressView(
            mastery=progress.mastery,
            status=progress.status,
            review_count=progress.review_count,
            streak=progress.streak,
        )
