"""Prompt templates for the generative backend."""
from typing import Sequence

from linguaquiz.models.artifacts import WordInput

HEALTH_PROMPT = "Reply with the single word OK."


def _word_lines(words: Sequence[WordInput], with_part_of_speech: bool = True) -> str:
    lines = []
    for word in words:
        line = f"- [id: {word.id}] {word.text} ({word.translation})"
        if with_part_of_speech:
            line += f" - {word.part_of_speech or 'unknown'}"
        lines.append(line)
    return "\n".join(lines)


def questions_prompt(
    words: Sequence[WordInput],
    target_language: str,
    native_language: str,
    question_count: int,
    difficulty: str,
) -> str:
    return f"""
Generate {question_count} language learning questions for the following vocabulary words.
Target language: {target_language}
Native language: {native_language}
Difficulty level: {difficulty}

Vocabulary words:
{_word_lines(words)}

Requirements:
1. Create a mix of question types: multiple choice, fill-in-the-blank, and sentence completion
2. Questions should be contextual and practical
3. Include 3-4 options for multiple choice questions
4. Provide explanations or context where helpful
5. Ensure questions are appropriate for {difficulty} level
6. Set "wordId" to the exact 24-character id shown in brackets for the word the question tests

Return the response as a JSON array with the following structure:
[
  {{
    "question": "Question text",
    "type": "multiple_choice|fill_blank|sentence_completion",
    "correctAnswer": "Correct answer",
    "options": ["option1", "option2", "option3", "option4"],
    "context": "Additional context or explanation",
    "difficulty": "easy|medium|hard",
    "wordId": "id of the tested word"
  }}
]
"""


def sentences_prompt(words: Sequence[WordInput], target_language: str, native_language: str) -> str:
    return f"""
Generate 3 contextual sentences for each vocabulary word in {target_language}.
Provide natural, everyday usage examples that help learners whose native language is
{native_language} understand the word in context.

Words:
{_word_lines(words, with_part_of_speech=False)}

Return as JSON, using the id shown in brackets as "wordId":
[
  {{
    "wordId": "word id",
    "sentences": [
      "Sentence 1 in {target_language}",
      "Sentence 2 in {target_language}",
      "Sentence 3 in {target_language}"
    ]
  }}
]
"""


def vocabulary_prompt(topic: str, target_language: str, native_language: str, word_count: int) -> str:
    return f"""
Generate a list of {word_count} useful vocabulary words for language learners based on the following topic or keywords: "{topic}".
Target language: {target_language}
Native language: {native_language}

For each word, provide:
- The word in the target language
- Its translation in the native language
- Part of speech (if possible)
- Difficulty (easy, medium, or hard)

Return the result as a JSON array with this structure:
[
  {{ "word": "...", "translation": "...", "partOfSpeech": "...", "difficulty": "easy|medium|hard" }}
]
"""


def complexity_prompt(text: str, target_language: str) -> str:
    return f"""
Analyze the complexity of this {target_language} text and provide a difficulty assessment.

Text: "{text}"

Provide analysis in JSON format:
{{
  "complexity": "easy|medium|hard",
  "score": 0.0-1.0,
  "suggestions": ["suggestion1", "suggestion2"]
}}

Consider:
- Vocabulary difficulty
- Grammar complexity
- Sentence structure
- Cultural context
"""
