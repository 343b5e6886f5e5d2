from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from aprovamed.api.deps import get_study_service
from aprovamed.core.logging_setup import logger
from aprovamed.schemas.questions import QuizQuestion, SummaryRead
from aprovamed.schemas.study import (
    AnswerKeyEntry,
    AnswerRead,
    AnswerRequest,
    Flashcard,
    HintRead,
    HintRequest,
    QuestionsSummaryRequest,
    TextRequest,
)
from aprovamed.services.gemini import GeminiError
from aprovamed.services.study_material import StudyMaterialService

router = APIRouter(tags=["study"])


def _provider_failure(operation: str, exc: GeminiError) -> HTTPException:
    logger.error("Falha ao gerar %s: %s", operation, exc)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.post("/flashcards", response_model=List[Flashcard])
def extract_flashcards(
    payload: TextRequest,
    service: StudyMaterialService = Depends(get_study_service),
) -> List[Flashcard]:
    try:
        return service.extract_flashcards(payload.text)
    except GeminiError as exc:
        raise _provider_failure("flashcards", exc) from exc


@router.post("/answer-keys", response_model=List[AnswerKeyEntry])
def process_answer_key(
    payload: TextRequest,
    service: StudyMaterialService = Depends(get_study_service),
) -> List[AnswerKeyEntry]:
    try:
        entries = service.process_answer_key(payload.text)
    except GeminiError as exc:
        raise _provider_failure("gabarito", exc) from exc
    if entries is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Não foi possível interpretar o gabarito.",
        )
    return entries


@router.post("/summaries/from-questions", response_model=SummaryRead)
def summarize_questions(
    payload: QuestionsSummaryRequest,
    service: StudyMaterialService = Depends(get_study_service),
) -> SummaryRead:
    try:
        return SummaryRead(summary=service.summarize_questions(payload.context))
    except GeminiError as exc:
        raise _provider_failure("resumo das questões", exc) from exc


@router.post("/answers", response_model=AnswerRead)
def answer_question(
    payload: AnswerRequest,
    service: StudyMaterialService = Depends(get_study_service),
) -> AnswerRead:
    try:
        return AnswerRead(answer=service.answer_question(payload.text, payload.question))
    except GeminiError as exc:
        raise _provider_failure("resposta", exc) from exc


@router.post("/questions/hint", response_model=HintRead)
def question_hint(
    payload: HintRequest,
    service: StudyMaterialService = Depends(get_study_service),
) -> HintRead:
    try:
        return HintRead(hint=service.hint(payload.question, payload.options))
    except GeminiError as exc:
        raise _provider_failure("dica", exc) from exc


@router.post("/questions/similar", response_model=QuizQuestion, response_model_by_alias=True)
def similar_question(
    payload: QuizQuestion,
    service: StudyMaterialService = Depends(get_study_service),
) -> QuizQuestion:
    try:
        question = service.similar_question(payload)
    except GeminiError as exc:
        raise _provider_failure("questão similar", exc) from exc
    if question is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Não foi possível gerar uma questão similar.",
        )
    return question
