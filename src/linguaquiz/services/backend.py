"""Transport to the external generative-text backend."""
import logging
from typing import Optional, Protocol

import google.generativeai as genai

from linguaquiz.config import settings

logger = logging.getLogger(__name__)


class TextBackend(Protocol):
    """Anything that turns a text prompt into a text response."""

    async def generate(self, prompt: str) -> str:
        ...


class GeminiBackend:
    """Google Gemini backend using the generativeai SDK."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        api_key = api_key if api_key is not None else settings.generation.api_key
        if not api_key:
            raise ValueError("GOOGLE_AI_API_KEY is required")
        genai.configure(api_key=api_key)
        self.model_name = model or settings.generation.model
        self.timeout = timeout if timeout is not None else settings.generation.timeout
        self._model = genai.GenerativeModel(self.model_name)

    async def generate(self, prompt: str) -> str:
        """Send a prompt and return the text of the first candidate.

        Raises ValueError when the response carries no text, e.g. when the
        prompt was blocked.
        """
        response = await self._model.generate_content_async(
            prompt, request_options={"timeout": self.timeout}
        )
        text = response.text
        logger.debug(f"Backend returned {len(text)} characters")
        return text
