from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlmodel import Session

from aprovamed.db.session import get_session
from aprovamed.services.checkout import CheckoutService
from aprovamed.services.question_extraction import QuestionExtractionService
from aprovamed.services.student import StudentStore
from aprovamed.services.study_material import StudyMaterialService


def get_db() -> Session:
    yield from get_session()


def get_checkout_service(request: Request) -> CheckoutService:
    service = getattr(request.app.state, "checkout_service", None)
    if service is None:  # pragma: no cover - lifespan garante a construção
        raise RuntimeError("Serviço de checkout não inicializado.")
    return service


def get_subscriber_store(session: Annotated[Session, Depends(get_db)]) -> StudentStore:
    return StudentStore(session)


def get_question_service(request: Request) -> QuestionExtractionService:
    service = getattr(request.app.state, "question_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Serviço de IA não configurado.",
        )
    return service


def get_study_service(request: Request) -> StudyMaterialService:
    service = getattr(request.app.state, "study_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Serviço de IA não configurado.",
        )
    return service

