"""Test configuration."""
import json
import os
from pathlib import Path
from typing import Callable, Generator, List, Union

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite://")

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import Session  # noqa: E402

from linguaquiz.models.base import Base, SessionLocal, engine, init_db  # noqa: E402
from linguaquiz.models.models import VocabularyList, Word  # noqa: E402
from linguaquiz.resilience.circuit_breaker import CircuitBreaker  # noqa: E402
from linguaquiz.resilience.request_queue import RequestQueue  # noqa: E402
from linguaquiz.resilience.retry import RetryOrchestrator  # noqa: E402
from linguaquiz.services.generation_client import GenerationClient  # noqa: E402

fake = Faker()


class ScriptedBackend:
    """Backend returning queued responses; exceptions in the script are raised."""

    def __init__(self, responses: List[Union[str, Exception]] = None):
        self.responses = list(responses or [])
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise RuntimeError("No scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSleep:
    """Replacement for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def user_id() -> str:
    return fake.uuid4()


@pytest.fixture
def make_list(db: Session, user_id: str) -> Callable[..., VocabularyList]:
    """Factory creating a vocabulary list with words."""

    def _make_list(words=(("bonjour", "hello"), ("merci", "thank you")), owner: str = None) -> VocabularyList:
        vocabulary_list = VocabularyList(
            name=fake.word(),
            target_language="fr",
            native_language="en",
            user_id=owner or user_id,
        )
        vocabulary_list.words = [
            Word(text=text, translation=translation, part_of_speech="noun") for text, translation in words
        ]
        db.add(vocabulary_list)
        db.commit()
        db.refresh(vocabulary_list)
        return vocabulary_list

    return _make_list


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def generation_client(backend: ScriptedBackend, sleep: RecordingSleep) -> GenerationClient:
    """Client with fresh resilience state and no real backoff waits."""
    breaker = CircuitBreaker(failure_threshold=5, reset_timeout=30)
    queue = RequestQueue(concurrency=3, rate_limit=100, interval=60)
    orchestrator = RetryOrchestrator(queue, breaker, max_retries=3, initial_delay=1.0, sleep=sleep)
    return GenerationClient(backend, breaker=breaker, queue=queue, orchestrator=orchestrator)


def questions_json(items: list) -> str:
    """Backend-style fenced JSON payload."""
    return f"```json\n{json.dumps(items)}\n```"
