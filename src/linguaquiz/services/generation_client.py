"""Client for generating learning content with the external generative backend."""
import json
import logging
import re
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from pydantic import TypeAdapter, ValidationError

from linguaquiz.config import settings
from linguaquiz.errors import ResponseParseError, ResponseValidationError
from linguaquiz.models.artifacts import (
    ComplexityReport,
    GeneratedQuestion,
    VocabularyEntry,
    WordInput,
    WordSentences,
)
from linguaquiz.resilience.circuit_breaker import CircuitBreaker
from linguaquiz.resilience.request_queue import RequestQueue
from linguaquiz.resilience.retry import RetryOrchestrator
from linguaquiz.services import prompts
from linguaquiz.services.backend import GeminiBackend, TextBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

CODE_FENCE_PATTERN = re.compile(r"```[a-z]*\n?|```", re.IGNORECASE)

FALLBACK_COMPLEXITY = ComplexityReport(
    complexity="medium",
    score=0.5,
    suggestions=["Unable to analyze complexity"],
)

_questions_adapter = TypeAdapter(List[GeneratedQuestion])
_sentences_adapter = TypeAdapter(List[WordSentences])
_vocabulary_adapter = TypeAdapter(List[VocabularyEntry])


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences around a JSON payload."""
    return CODE_FENCE_PATTERN.sub("", text).strip()


def parse_json(text: str) -> Any:
    """Parse a backend response as JSON, ignoring Markdown fencing."""
    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON in backend response: {e}") from e


def validate_payload(adapter: TypeAdapter, payload: Any, artifact: str) -> Any:
    """Validate parsed JSON against the expected artifact shape."""
    try:
        return adapter.validate_python(payload)
    except ValidationError as e:
        raise ResponseValidationError(
            f"Backend {artifact} response failed validation: {e.error_count()} error(s)"
        ) from e


class GenerationClient:
    """Generates questions, sentences, vocabulary and complexity reports.

    Every backend call goes through a retry loop that submits it to the
    request queue and circuit breaker owned by this client.
    """

    def __init__(
        self,
        backend: TextBackend,
        breaker: Optional[CircuitBreaker] = None,
        queue: Optional[RequestQueue] = None,
        orchestrator: Optional[RetryOrchestrator] = None,
    ):
        resilience = settings.resilience
        self.backend = backend
        self.breaker = breaker or CircuitBreaker(
            failure_threshold=resilience.failure_threshold,
            reset_timeout=resilience.reset_timeout,
        )
        self.queue = queue or RequestQueue(
            concurrency=resilience.concurrency,
            rate_limit=resilience.rate_limit,
            interval=resilience.interval,
            poll_delay=resilience.poll_delay,
        )
        self.orchestrator = orchestrator or RetryOrchestrator(
            self.queue,
            self.breaker,
            max_retries=resilience.max_retries,
            initial_delay=resilience.initial_delay,
        )
        logger.info("GenerationClient initialized")

    async def _generate(self, prompt: str, parse: Callable[[str], T]) -> T:
        text = await self.backend.generate(prompt)
        return parse(text)

    async def generate_questions(
        self,
        words: Sequence[Any],
        target_language: str,
        native_language: str,
        question_count: int = 10,
        difficulty: str = "medium",
    ) -> List[GeneratedQuestion]:
        """Generate quiz questions testing the given words."""
        word_inputs = [WordInput.model_validate(word) for word in words]
        prompt = prompts.questions_prompt(
            word_inputs, target_language, native_language, question_count, difficulty
        )

        def parse(text: str) -> List[GeneratedQuestion]:
            questions = validate_payload(_questions_adapter, parse_json(text), "questions")
            if not questions:
                raise ResponseValidationError("Backend returned no questions")
            return questions[:question_count]

        questions = await self.orchestrator.run(
            "generate_questions", lambda: self._generate(prompt, parse)
        )
        logger.info(f"Generated {len(questions)} questions for {len(word_inputs)} words")
        return questions

    async def generate_contextual_sentences(
        self,
        words: Sequence[Any],
        target_language: str,
        native_language: str,
    ) -> List[WordSentences]:
        """Generate three example sentences for each word."""
        word_inputs = [WordInput.model_validate(word) for word in words]
        prompt = prompts.sentences_prompt(word_inputs, target_language, native_language)

        def parse(text: str) -> List[WordSentences]:
            return validate_payload(_sentences_adapter, parse_json(text), "sentences")

        return await self.orchestrator.run(
            "generate_contextual_sentences", lambda: self._generate(prompt, parse)
        )

    async def generate_vocabulary_list(
        self,
        topic: str,
        target_language: str,
        native_language: str,
        word_count: int = 10,
    ) -> List[VocabularyEntry]:
        """Generate vocabulary entries for a topic, or an empty list on failure."""
        prompt = prompts.vocabulary_prompt(topic, target_language, native_language, word_count)

        def parse(text: str) -> List[VocabularyEntry]:
            return validate_payload(_vocabulary_adapter, parse_json(text), "vocabulary")

        entries = await self.orchestrator.run(
            "generate_vocabulary_list",
            lambda: self._generate(prompt, parse),
            fallback=[],
        )
        return entries[:word_count]

    async def analyze_text_complexity(self, text: str, target_language: str) -> ComplexityReport:
        """Assess text difficulty, falling back to a medium guess on failure."""
        prompt = prompts.complexity_prompt(text, target_language)

        def parse(raw: str) -> ComplexityReport:
            return validate_payload(TypeAdapter(ComplexityReport), parse_json(raw), "complexity")

        return await self.orchestrator.run(
            "analyze_text_complexity",
            lambda: self._generate(prompt, parse),
            fallback=FALLBACK_COMPLEXITY.model_copy(deep=True),
        )

    async def check_health(self) -> bool:
        """Probe the backend with a trivial prompt. Errors propagate."""
        text = await self.queue.add(
            lambda: self.breaker.execute(lambda: self.backend.generate(prompts.HEALTH_PROMPT))
        )
        return bool(text and text.strip())


_default_client: Optional[GenerationClient] = None


def get_generation_client() -> GenerationClient:
    """Process-wide client shared by every caller, created on first use."""
    global _default_client
    if _default_client is None:
        _default_client = GenerationClient(GeminiBackend())
    return _default_client
