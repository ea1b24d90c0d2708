"""Tests for database models."""
from datetime import date

import pytest
from faker import Faker
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linguaquiz.models.base import get_db, is_valid_object_id, new_object_id
from linguaquiz.models.models import LearningStats, VocabularyList, Word, WordProgress

fake = Faker()


def test_object_ids() -> None:
    """Ids are 24 lowercase hex characters."""
    assert is_valid_object_id(new_object_id())
    assert not is_valid_object_id("invalidWordId")
    assert not is_valid_object_id("A" * 24)
    assert not is_valid_object_id("a" * 24 + "\n")
    assert not is_valid_object_id("a" * 25)
    assert not is_valid_object_id(None)


def test_vocabulary_list_creation(db: Session, make_list) -> None:
    """Test vocabulary list creation with words."""
    vocabulary_list = make_list()

    assert is_valid_object_id(vocabulary_list.id)
    assert vocabulary_list.native_language == "en"
    assert vocabulary_list.created_at is not None
    assert len(vocabulary_list.words) == 2
    assert all(word.difficulty == "medium" for word in vocabulary_list.words)


def test_word_progress_defaults(db: Session, make_list) -> None:
    """Test word progress defaults."""
    word = make_list().words[0]
    progress = WordProgress(user_id=fake.uuid4(), word_id=word.id)
    db.add(progress)
    db.commit()
    db.refresh(progress)

    assert progress.mastery == 0.0
    assert progress.status == "not_started"
    assert progress.review_count == 0
    assert progress.streak == 0
    assert progress.last_reviewed is None


def test_word_progress_unique_per_user_and_word(db: Session, make_list) -> None:
    """Test that a user has at most one progress record per word."""
    word = make_list().words[0]
    user_id = fake.uuid4()
    db.add(WordProgress(user_id=user_id, word_id=word.id))
    db.commit()

    db.add(WordProgress(user_id=user_id, word_id=word.id))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_learning_stats_unique_per_day(db: Session) -> None:
    """Test that a user has at most one stats row per day."""
    user_id = fake.uuid4()
    db.add(LearningStats(user_id=user_id, date=date(2024, 5, 10)))
    db.commit()

    db.add(LearningStats(user_id=user_id, date=date(2024, 5, 10)))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_deleting_list_removes_words(db: Session, make_list) -> None:
    """Test that words and their progress go with their list."""
    vocabulary_list = make_list()
    word = vocabulary_list.words[0]
    db.add(WordProgress(user_id=fake.uuid4(), word_id=word.id))
    db.commit()

    db.delete(vocabulary_list)
    db.commit()

    assert db.query(VocabularyList).count() == 0
    assert db.query(Word).count() == 0
    assert db.query(WordProgress).count() == 0


def test_get_db_yields_session() -> None:
    """Test that get_db yields a usable session and closes it."""
    sessions = get_db()
    session = next(sessions)
    assert isinstance(session, Session)
    sessions.close()
