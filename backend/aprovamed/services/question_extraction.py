from __future__ import annotations

import json
from typing import Any, Iterable, List, Protocol

from pydantic import ValidationError

from aprovamed.core.logging_setup import logger
from aprovamed.schemas.questions import QuizQuestion
from aprovamed.services.gemini import GeminiError, clean_json

CHUNK_SIZE = 40000
CHUNK_OVERLAP = 2000
# Gabaritos e questões costumam ficar no fim do PDF
END_FOCUS_START = 0.6
EXPLANATION_BATCH_SIZE = 4
SUMMARY_MAX_CHARS = 30000
MIN_QUESTION_LENGTH = 15
MIN_OPTIONS = 2

QUESTION_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "question": {
                "type": "STRING",
                "description": "O texto INTEGRAL, LITERAL e ABSOLUTAMENTE COMPLETO do enunciado da questão.",
            },
            "options": {
                "type": "ARRAY",
                "items": {"type": "STRING"},
                "description": "Lista das alternativas (A, B, C, D, E) copiadas NA ÍNTEGRA.",
            },
            "correctAnswerIndex": {"type": "INTEGER", "description": "O índice (0-4) da resposta correta."},
            "explanation": {"type": "STRING", "description": "Comentário didático explicando a questão."},
        },
        "required": ["question", "options"],
    },
}

EXPLANATION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "explanations": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "INTEGER"},
                    "explanation": {"type": "STRING"},
                },
                "required": ["id", "explanation"],
            },
        }
    },
    "required": ["explanations"],
}

EXTRACTION_PROMPT = """Você é um robô de transcrição de alta precisão para provas médicas. Sua função é converter texto bruto em JSON estruturado com 100% de fidelidade.

DIRETRIZES DE RIGIDEZ TOTAL:
1. ENUNCIADO: Copie o texto completo, incluindo casos clínicos, dados epidemiológicos e perguntas finais. NÃO mude nenhuma palavra.
2. ALTERNATIVAS: Copie as alternativas EXATAMENTE como estão. Se a alternativa for longa, copie ela inteira. NÃO resuma.
3. INTEGRALIDADE: Mantenha nomes de hospitais, anos da prova e bancas se estiverem no texto da questão.

PROIBIÇÕES ABSOLUTAS:
- PROIBIDO parafrasear.
- PROIBIDO corrigir gramática ou digitação do original.
- PROIBIDO encurtar frases para economizar espaço.
- PROIBIDO inventar informações.

TEXTO ORIGINAL PARA TRANSCRIÇÃO:
\"\"\"
{chunk}
\"\"\""""

EXPLANATION_PROMPT = """Você é um Professor de Medicina Sênior.
Escreva um COMENTÁRIO DIDÁTICO para as questões abaixo.

AVISO DE SEGURANÇA:
Você está proibido de modificar o "enunciado_original" ou as "alternativas_originais".
Sua saída deve conter APENAS o comentário pedagógico.

QUESTÕES:
{questions}"""

SUMMARY_PROMPT = "Crie um resumo médico deste texto:\n{text}"


class TextGenerator(Protocol):
    def generate(
        self,
        prompt: str,
        *,
        response_schema: dict[str, Any] | None = None,
        json_response: bool = False,
    ) -> str:
        ...


def chunk_text(text: str, size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> list[str]:
    """Split ``text`` in windows of ``size`` characters, consecutive windows sharing ``overlap``."""
    if size <= 0 or not 0 <= overlap < size:
        raise ValueError("chunk size must be positive and larger than the overlap")
    if len(text) < size:
        return [text]
    step = size - overlap
    return [text[start:start + size] for start in range(0, len(text), step)]


def focus_text(text: str, focus: str = "all") -> str:
    if focus == "end":
        return text[int(len(text) * END_FOCUS_START):]
    return text


def deduplicate(questions: Iterable[QuizQuestion]) -> list[QuizQuestion]:
    """Collapse questions with the same trimmed statement; the last copy wins, the first position is kept."""
    unique: dict[str, QuizQuestion] = {}
    for question in questions:
        unique[question.question.strip()] = question
    return list(unique.values())


def normalize_question(raw: Any) -> QuizQuestion | None:
    if not isinstance(raw, dict):
        return None
    try:
        question = QuizQuestion(
            question=str(raw.get("question") or "").strip(),
            options=[str(option) for option in (raw.get("options") or [])],
            correctAnswerIndex=raw.get("correctAnswerIndex"),
            explanation=str(raw.get("explanation") or ""),
        )
    except ValidationError:
        return None
    if len(question.question) <= MIN_QUESTION_LENGTH or len(question.options) < MIN_OPTIONS:
        return None
    return question


class QuestionExtractionService:
    def __init__(self, generator: TextGenerator) -> None:
        self.generator = generator

    def extract_questions(self, text: str, focus: str = "all") -> List[QuizQuestion]:
        chunks = chunk_text(focus_text(text, focus), CHUNK_SIZE, CHUNK_OVERLAP)
        logger.info("Extraindo questões de %s trecho(s) (%s caracteres)", len(chunks), len(text))
        collected: list[QuizQuestion] = []
        for index, chunk in enumerate(chunks):
            collected.extend(self._extract_from_chunk(index, chunk))
        return deduplicate(collected)

    def _extract_from_chunk(self, index: int, chunk: str) -> list[QuizQuestion]:
        try:
            raw = self.generator.generate(EXTRACTION_PROMPT.format(chunk=chunk), response_schema=QUESTION_SCHEMA)
            cleaned = clean_json(raw)
            parsed = json.loads(cleaned) if cleaned else []
        except (GeminiError, ValueError) as exc:
            logger.error("Erro ao extrair questões do trecho %s: %s", index, exc)
            return []
        if not isinstance(parsed, list):
            logger.warning("Trecho %s devolveu JSON inesperado (%s)", index, type(parsed).__name__)
            return []
        return [question for question in map(normalize_question, parsed) if question is not None]

    def generate_explanations(self, questions: List[QuizQuestion]) -> List[QuizQuestion]:
        updated = [question.model_copy() for question in questions]
        for offset in range(0, len(updated), EXPLANATION_BATCH_SIZE):
            batch = updated[offset:offset + EXPLANATION_BATCH_SIZE]
            for_ai = [
                {
                    "id": idx,
                    "enunciado_original": question.question,
                    "alternativas_originais": question.options,
                    "gabarito_index": (
                        question.correct_answer_index
                        if question.correct_answer_index is not None
                        else "Desconhecido"
                    ),
                }
                for idx, question in enumerate(batch)
            ]
            prompt = EXPLANATION_PROMPT.format(questions=json.dumps(for_ai, ensure_ascii=False))
            try:
                parsed = json.loads(clean_json(self.generator.generate(prompt, response_schema=EXPLANATION_SCHEMA)) or "{}")
            except (GeminiError, ValueError) as exc:
                logger.error("Erro no lote %s: %s", offset, exc)
                continue
            items = parsed.get("explanations") if isinstance(parsed, dict) else None
            for item in items or []:
                try:
                    position = offset + int(item["id"])
                except (KeyError, TypeError, ValueError):
                    continue
                if offset <= position < min(offset + EXPLANATION_BATCH_SIZE, len(updated)):
                    updated[position].explanation = str(item.get("explanation") or "")
        return updated

    def generate_summary(self, text: str) -> str:
        return self.generator.generate(SUMMARY_PROMPT.format(text=text[:SUMMARY_MAX_CHARS])).strip()
