"""Flashcards, answer keys, Q&A and practice helpers built on the Gemini generator.

Provider failures (``GeminiError``) propagate to the routes. A reply that is
not the JSON shape asked for is logged and treated as "nothing usable".
"""
from __future__ import annotations

import json
from typing import Any, List

from pydantic import ValidationError

from aprovamed.core.logging_setup import logger
from aprovamed.schemas.questions import QuizQuestion
from aprovamed.schemas.study import AnswerKeyEntry, Flashcard
from aprovamed.services.gemini import clean_json
from aprovamed.services.question_extraction import QUESTION_SCHEMA, TextGenerator, normalize_question

FLASHCARD_MAX_CHARS = 30000
ANSWER_KEY_MAX_CHARS = 20000
QUESTIONS_SUMMARY_MAX_CHARS = 20000
ANSWER_CONTEXT_MAX_CHARS = 40000

NO_ANSWER = "Sem resposta."
NO_HINT = "Dica indisponível."

FLASHCARD_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "question": {"type": "STRING"},
            "answer": {"type": "STRING"},
            "tag": {"type": "STRING"},
            "mnemonic": {"type": "STRING"},
        },
        "required": ["question", "answer", "tag"],
    },
}

FLASHCARD_PROMPT = "Crie flashcards P/R deste texto:\n{text}"
ANSWER_KEY_PROMPT = "Extraia gabarito JSON (identifier, option, explanation):\n{text}"
QUESTIONS_SUMMARY_PROMPT = "Resumo didático baseado nestas questões:\n{context}"
ANSWER_PROMPT = (
    "Responda com base no documento. Seja fiel aos termos técnicos do texto.\n\n"
    "TEXTO: {text}\n"
    'PERGUNTA: "{question}"'
)
HINT_PROMPT = "Dica sutil para esta questão (não revele a resposta):\n{question}\n\nAlternativas:\n{options}"
SIMILAR_QUESTION_PROMPT = "Crie questão similar:\n{question}"


def _parse_json(raw: str, operation: str) -> Any:
    try:
        return json.loads(clean_json(raw) or "null")
    except ValueError as exc:
        logger.warning("Resposta inválida do Gemini em %s: %s", operation, exc)
        return None


class StudyMaterialService:
    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator

    def extract_flashcards(self, text: str) -> List[Flashcard]:
        raw = self.generator.generate(
            FLASHCARD_PROMPT.format(text=text[:FLASHCARD_MAX_CHARS]),
            response_schema=FLASHCARD_SCHEMA,
        )
        parsed = _parse_json(raw, "flashcards")
        if not isinstance(parsed, list):
            return []
        cards: list[Flashcard] = []
        for item in parsed:
            try:
                cards.append(Flashcard.model_validate(item))
            except ValidationError:
                logger.debug("Flashcard descartado: %r", item)
        return cards

    def process_answer_key(self, text: str) -> List[AnswerKeyEntry] | None:
        """Parse an answer key; ``None`` when the reply is not a JSON list."""
        raw = self.generator.generate(
            ANSWER_KEY_PROMPT.format(text=text[:ANSWER_KEY_MAX_CHARS]),
            json_response=True,
        )
        parsed = _parse_json(raw, "gabarito")
        if not isinstance(parsed, list):
            return None
        entries: list[AnswerKeyEntry] = []
        for item in parsed:
            try:
                entries.append(AnswerKeyEntry.model_validate(item))
            except ValidationError:
                logger.debug("Item de gabarito descartado: %r", item)
        return entries

    def summarize_questions(self, context: str) -> str:
        return self.generator.generate(
            QUESTIONS_SUMMARY_PROMPT.format(context=context[:QUESTIONS_SUMMARY_MAX_CHARS])
        ).strip()

    def answer_question(self, text: str, question: str) -> str:
        answer = self.generator.generate(
            ANSWER_PROMPT.format(text=text[:ANSWER_CONTEXT_MAX_CHARS], question=question)
        ).strip()
        return answer or NO_ANSWER

    def hint(self, question: str, options: List[str]) -> str:
        listed = "\n".join(f"{chr(ord('A') + index)}) {option}" for index, option in enumerate(options))
        hint = self.generator.generate(HINT_PROMPT.format(question=question, options=listed)).strip()
        return hint or NO_HINT

    def similar_question(self, original: QuizQuestion) -> QuizQuestion | None:
        payload = json.dumps(original.model_dump(by_alias=True), ensure_ascii=False)
        raw = self.generator.generate(
            SIMILAR_QUESTION_PROMPT.format(question=payload),
            response_schema=QUESTION_SCHEMA["items"],
        )
        return normalize_question(_parse_json(raw, "questão similar"))
