"""Service for generating quizzes and scoring submissions."""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from linguaquiz import monitoring
from linguaquiz.config import settings
from linguaquiz.errors import NotFoundError
from linguaquiz.models.base import is_valid_object_id, utcnow
from linguaquiz.models.models import (
    Quiz,
    QuizAnswer,
    QuizAttempt,
    QuizQuestion,
    VocabularyList,
    Word,
)
from linguaquiz.services.generation_client import GenerationClient, get_generation_client
from linguaquiz.services.mastery_service import MasteryService, WordTally
from linguaquiz.services.stats_service import StatsService

logger = logging.getLogger(__name__)


@dataclass
class QuizOptions:
    """Options for quiz generation."""

    question_count: Optional[int] = None
    difficulty: Optional[str] = None


@dataclass
class SubmittedAnswer:
    """Answer text submitted for one question."""

    question_id: str
    answer: str


@dataclass
class ProcessedAnswer:
    """Scored answer."""

    question_id: str
    answer: str
    is_correct: bool
    word_id: Optional[str] = None


@dataclass
class ScoredAttempt:
    """Result of scoring a quiz submission."""

    id: str
    score: float
    completed: bool
    correct_answers: int
    total_questions: int
    answers: List[ProcessedAnswer] = field(default_factory=list)


def answers_match(given: str, expected: str) -> bool:
    """Case-insensitive, whitespace-trimmed exact comparison."""
    return given.strip().lower() == expected.strip().lower()


def tally_by_word(answers: Sequence[ProcessedAnswer]) -> Dict[str, WordTally]:
    """Group answer correctness by word, ignoring malformed word ids."""
    tallies: Dict[str, WordTally] = {}
    for answer in answers:
        if not answer.word_id:
            continue
        if not is_valid_object_id(answer.word_id):
            logger.warning(
                f"Question {answer.question_id} references invalid word id {answer.word_id!r}, "
                f"skipping progress update"
            )
            continue
        tally = tallies.setdefault(answer.word_id, WordTally())
        tally.total += 1
        if answer.is_correct:
            tally.correct += 1
    return tallies


class QuizService:
    """Generates quizzes from vocabulary lists and scores attempts."""

    def __init__(
        self,
        db: Session,
        generation_client: Optional[GenerationClient] = None,
        mastery_service: Optional[MasteryService] = None,
    ):
        """Initialize the service with a database session."""
        self.db = db
        self._generation_client = generation_client
        self.mastery_service = mastery_service or MasteryService(db)
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

    def _get_quiz(self, quiz_id: str, user_id: str) -> Quiz:
        if not is_valid_object_id(quiz_id):
            raise NotFoundError("Quiz", quiz_id)
        quiz = self.db.query(Quiz).filter(Quiz.id == quiz_id, Quiz.user_id == user_id).first()
        if quiz is None:
            raise NotFoundError("Quiz", quiz_id)
        return quiz

    async def generate_quiz(
        self, list_id: str, options: Optional[QuizOptions], user_id: str
    ) -> Quiz:
        """Generate a quiz for a vocabulary list and persist it with its questions."""
        options = options or QuizOptions()
        vocabulary_list = self._get_list(list_id, user_id)

        words = self.db.query(Word).filter(Word.vocabulary_list_id == vocabulary_list.id).all()
        if not words:
            raise ValueError("No words in vocabulary list")

        question_count = options.question_count or settings.learning.default_question_count
        difficulty = options.difficulty or settings.learning.default_difficulty

        generated = await self.generation_client.generate_questions(
            words,
            vocabulary_list.target_language,
            vocabulary_list.native_language or "en",
            question_count,
            difficulty,
        )

        quiz = Quiz(
            title=f"Quiz: {vocabulary_list.name}",
            description=f"AI-generated quiz from {vocabulary_list.name}",
            difficulty=difficulty,
            question_count=question_count,
            user_id=user_id,
            vocabulary_list_id=vocabulary_list.id,
        )
        quiz.questions = [
            QuizQuestion(
                question=item.question,
                type=item.type,
                correct_answer=item.correct_answer,
                options=item.options,
                context=item.context,
                difficulty=item.difficulty,
                word_id=item.word_id,
            )
            for item in generated
        ]
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)

        monitoring.quizzes_generated.inc()
        logger.info(f"Generated quiz {quiz.id} with {len(quiz.questions)} questions for user {user_id}")
        return quiz

    def get_user_quizzes(self, user_id: str) -> List[Quiz]:
        """Get the user's quizzes, newest first."""
        return (
            self.db.query(Quiz)
            .filter(Quiz.user_id == user_id)
            .order_by(Quiz.created_at.desc())
            .all()
        )

    def get_quiz_by_id(self, quiz_id: str, user_id: str) -> Quiz:
        """Get a quiz owned by the user."""
        return self._get_quiz(quiz_id, user_id)

    def get_quiz_results(self, quiz_id: str, user_id: str) -> List[QuizAttempt]:
        """Get the user's attempts for a quiz, newest first, with their answers."""
        quiz = self._get_quiz(quiz_id, user_id)
        return (
            self.db.query(QuizAttempt)
            .filter(QuizAttempt.quiz_id == quiz.id, QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.created_at.desc())
            .all()
        )

    async def submit_quiz_answers(
        self, quiz_id: str, answers: Sequence[SubmittedAnswer], user_id: str
    ) -> ScoredAttempt:
        """Score a submission, update word mastery and record the attempt."""
        quiz = self._get_quiz(quiz_id, user_id)
        questions = {question.id: question for question in quiz.questions}
        total_questions = len(questions)

        processed: List[ProcessedAnswer] = []
        for submitted in answers:
            question = questions.get(submitted.question_id)
            if question is None:
                raise NotFoundError("Question", submitted.question_id)
            if any(answer.question_id == question.id for answer in processed):
                raise ValueError(f"Question {question.id} answered more than once")
            processed.append(
                ProcessedAnswer(
                    question_id=question.id,
                    answer=submitted.answer,
                    is_correct=answers_match(submitted.answer, question.correct_answer),
                    word_id=question.word_id,
                )
            )
        correct_answers = sum(1 for answer in processed if answer.is_correct)

        tallies = tally_by_word(processed)
        await self.mastery_service.apply_quiz_results(tallies, user_id)

        score = correct_answers / total_questions if total_questions > 0 else 0.0
        now = utcnow()
        attempt = QuizAttempt(quiz_id=quiz.id, user_id=user_id, score=score, completed=True, created_at=now)
        attempt.answers = [
            QuizAnswer(
                question_id=answer.question_id,
                user_id=user_id,
                answer=answer.answer,
                is_correct=answer.is_correct,
                created_at=now,
            )
            for answer in processed
        ]
        self.db.add(attempt)
        self.db.commit()

        self.stats_service.record_activity(
            user_id,
            quizzes_taken=1,
            words_reviewed=len(tallies),
            total_questions=total_questions,
            correct_answers=correct_answers,
        )

        monitoring.quizzes_submitted.inc()
        logger.info(
            f"User {user_id} scored {correct_answers}/{total_questions} on quiz {quiz.id}"
        )
        return ScoredAttempt(
            id=attempt.id,
            score=score,
            completed=True,
            correct_answers=correct_answers,
            total_questions=total_questions,
            answers=processed,
        )
