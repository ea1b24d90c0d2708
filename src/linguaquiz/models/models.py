"""Database models for the learning core."""
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from linguaquiz.models.base import Base, TimestampMixin, new_object_id, utcnow

WORD_STATUSES = ("not_started", "learning", "mastered")
QUESTION_TYPES = ("multiple_choice", "fill_blank", "sentence_completion")
DIFFICULTIES = ("easy", "medium", "hard")


class VocabularyList(Base, TimestampMixin):
    """Vocabulary list model."""

    __tablename__ = "vocabulary_lists"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String, nullable=False)
    description = Column(String)
    target_language = Column(String, nullable=False)
    native_language = Column(String, nullable=False, default="en")
    user_id = Column(String, nullable=False, index=True)

    # Relationships
    words = relationship("Word", back_populates="vocabulary_list", cascade="all, delete-orphan")


class Word(Base, TimestampMixin):
    """Word model."""

    __tablename__ = "words"

    id = Column(String(24), primary_key=True, default=new_object_id)
    text = Column(String, nullable=False)
    translation = Column(String, nullable=False)
    part_of_speech = Column(String)
    difficulty = Column(String, nullable=False, default="medium")
    vocabulary_list_id = Column(
        String(24), ForeignKey("vocabulary_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Relationships
    vocabulary_list = relationship("VocabularyList", back_populates="words")
    progress = relationship("WordProgress", back_populates="word", cascade="all, delete-orphan")


class WordProgress(Base, TimestampMixin):
    """Per-user learning state of a word."""

    __tablename__ = "word_progress"
    __table_args__ = (UniqueConstraint("user_id", "word_id", name="uix_word_progress_user_word"),)

    id = Column(String(24), primary_key=True, default=new_object_id)
    user_id = Column(String, nullable=False, index=True)
    word_id = Column(String(24), ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    mastery = Column(Float, nullable=False, default=0.0)  # 0.0-1.0
    status = Column(String, nullable=False, default="not_started")
    review_count = Column(Integer, nullable=False, default=0)
    streak = Column(Integer, nullable=False, default=0)
    last_reviewed = Column(DateTime(timezone=True))
    next_review = Column(DateTime(timezone=True))

    # Relationships
    word = relationship("Word", back_populates="progress")


class Quiz(Base, TimestampMixin):
    """Generated quiz model."""

    __tablename__ = "quizzes"

    id = Column(String(24), primary_key=True, default=new_object_id)
    title = Column(String, nullable=False)
    description = Column(String)
    difficulty = Column(String, nullable=False, default="medium")
    question_count = Column(Integer, nullable=False)
    user_id = Column(String, nullable=False, index=True)
    vocabulary_list_id = Column(String(24), ForeignKey("vocabulary_lists.id", ondelete="CASCADE"))

    # Relationships
    questions = relationship("QuizQuestion", back_populates="quiz", cascade="all, delete-orphan")
    attempts = relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")


class QuizQuestion(Base):
    """Quiz question model."""

    __tablename__ = "quiz_questions"

    id = Column(String(24), primary_key=True, default=new_object_id)
    quiz_id = Column(String(24), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(String, nullable=False)
    type = Column(String, nullable=False)  # multiple_choice, fill_blank, sentence_completion
    correct_answer = Column(String, nullable=False)
    options = Column(JSON)
    context = Column(String)
    difficulty = Column(String, nullable=False, default="medium")
    word_id = Column(String)  # as returned by the backend, not guaranteed to exist
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    quiz = relationship("Quiz", back_populates="questions")


class QuizAttempt(Base):
    """Scored submission of a quiz."""

    __tablename__ = "quiz_attempts"

    id = Column(String(24), primary_key=True, default=new_object_id)
    quiz_id = Column(String(24), ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    score = Column(Float, nullable=False, default=0.0)
    completed = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    # Relationships
    quiz = relationship("Quiz", back_populates="attempts")
    answers = relationship("QuizAnswer", back_populates="attempt", cascade="all, delete-orphan")


class QuizAnswer(Base):
    """Single submitted answer."""

    __tablename__ = "quiz_answers"

    id = Column(String(24), primary_key=True, default=new_object_id)
    attempt_id = Column(String(24), ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(24), ForeignKey("quiz_questions.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String, nullable=False)
    answer = Column(String, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    attempt = relationship("QuizAttempt", back_populates="answers")
    question = relationship("QuizQuestion")


class LearningStats(Base, TimestampMixin):
    """Daily learning activity counters, one row per user and UTC day."""

    __tablename__ = "learning_stats"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uix_learning_stats_user_date"),)

    id = Column(String(24), primary_key=True, default=new_object_id)
    user_id = Column(String, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    quizzes_taken = Column(Integer, nullable=False, default=0)
    words_reviewed = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
