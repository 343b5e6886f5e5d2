from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from aprovamed.api.deps import get_checkout_service, get_subscriber_store
from aprovamed.core.cors import OPEN_CORS_HEADERS
from aprovamed.core.logging_setup import logger
from aprovamed.schemas.checkout import CheckoutPayload, PlanRead
from aprovamed.services.checkout import CheckoutService
from aprovamed.services.plans import list_plans
from aprovamed.services.student import StudentStore

router = APIRouter(tags=["checkout"])

INVALID_BODY_MESSAGE = "Corpo da requisição inválido (JSON esperado)."


def _error(message: str) -> JSONResponse:
    return JSONResponse(content={"error": message}, headers=OPEN_CORS_HEADERS)


@router.get("/plans", response_model=List[PlanRead])
def get_plans() -> List[PlanRead]:
    return [
        PlanRead(
            id=plan.plan_type.value,
            label=plan.label,
            price=plan.price_label,
            period=plan.period,
            description=plan.blurb,
            badge=plan.badge,
            value=plan.value,
            cycle=plan.cycle,
        )
        for plan in list_plans()
    ]


@router.post("/create-checkout")
async def create_checkout(
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
    store: StudentStore = Depends(get_subscriber_store),
) -> JSONResponse:
    """Cria a assinatura no Asaas e devolve o link da fatura.

    A resposta é sempre 200: ``{"paymentUrl": ...}`` em caso de sucesso ou
    ``{"error": ...}`` em falhas e quando a cobrança ainda está em processamento.
    """
    try:
        body = await request.json()
    except ValueError:
        return _error(INVALID_BODY_MESSAGE)
    if not isinstance(body, dict):
        return _error(INVALID_BODY_MESSAGE)

    try:
        payload = CheckoutPayload.model_validate(body)
    except ValidationError as exc:
        logger.warning("Checkout com payload inválido: %s", exc.errors())
        return _error(INVALID_BODY_MESSAGE)

    result = await run_in_threadpool(service.checkout, payload, store)
    return JSONResponse(content=result.to_response(), headers=OPEN_CORS_HEADERS)
