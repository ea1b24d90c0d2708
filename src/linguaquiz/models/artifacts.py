"""Pydantic models for artifacts produced by the generative backend."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

QuestionType = Literal["multiple_choice", "fill_blank", "sentence_completion"]
Difficulty = Literal["easy", "medium", "hard"]


class WordInput(BaseModel):
    """Word as embedded into a generation prompt."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    text: str
    translation: str
    part_of_speech: Optional[str] = None
    difficulty: str = "medium"


class GeneratedQuestion(BaseModel):
    """Quiz question returned by the backend."""

    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(min_length=1)
    type: QuestionType
    correct_answer: str = Field(alias="correctAnswer", min_length=1)
    options: Optional[List[str]] = Field(default=None, validate_default=True)
    context: Optional[str] = None
    difficulty: Difficulty = "medium"
    word_id: Optional[str] = Field(default=None, alias="wordId")

    @field_validator("options")
    @classmethod
    def validate_options(cls, value: Optional[List[str]], info) -> Optional[List[str]]:
        if info.data.get("type") == "multiple_choice" and (not value or len(value) < 2):
            raise ValueError("Multiple choice questions require at least two options")
        return value

    @field_validator("word_id", mode="before")
    @classmethod
    def coerce_word_id(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)


class WordSentences(BaseModel):
    """Contextual example sentences for one word."""

    model_config = ConfigDict(populate_by_name=True)

    word_id: str = Field(alias="wordId")
    sentences: List[str] = Field(min_length=3)


class VocabularyEntry(BaseModel):
    """Vocabulary item proposed for a topic."""

    model_config = ConfigDict(populate_by_name=True)

    word: str = Field(min_length=1)
    translation: str = Field(min_length=1)
    part_of_speech: Optional[str] = Field(default=None, alias="partOfSpeech")
    difficulty: Optional[Difficulty] = None


class ComplexityReport(BaseModel):
    """Difficulty assessment of a piece of text."""

    complexity: Difficulty
    score: float = Field(ge=0.0, le=1.0)
    suggestions: List[str] = Field(default_factory=list)
