from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from aprovamed.api.deps import get_question_service
from aprovamed.core.logging_setup import logger
from aprovamed.schemas.questions import (
    ExplanationRequest,
    QuestionExtractionRequest,
    QuizQuestion,
    SummaryRead,
    SummaryRequest,
)
from aprovamed.services.gemini import GeminiError
from aprovamed.services.question_extraction import QuestionExtractionService

router = APIRouter(tags=["questions"])


@router.post("/questions/extract", response_model=List[QuizQuestion], response_model_by_alias=True)
def extract_questions(
    payload: QuestionExtractionRequest,
    service: QuestionExtractionService = Depends(get_question_service),
) -> List[QuizQuestion]:
    return service.extract_questions(payload.text, focus=payload.focus)


@router.post("/questions/explanations", response_model=List[QuizQuestion], response_model_by_alias=True)
def generate_explanations(
    payload: ExplanationRequest,
    service: QuestionExtractionService = Depends(get_question_service),
) -> List[QuizQuestion]:
    return service.generate_explanations(payload.questions)


@router.post("/summaries", response_model=SummaryRead)
def generate_summary(
    payload: SummaryRequest,
    service: QuestionExtractionService = Depends(get_question_service),
) -> SummaryRead:
    try:
        summary = service.generate_summary(payload.text)
    except GeminiError as exc:
        logger.error("Falha ao gerar resumo: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return SummaryRead(summary=summary)
