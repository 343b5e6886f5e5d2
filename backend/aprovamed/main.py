from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from aprovamed.api.routes import checkout, health, questions, study
from aprovamed.core.config import CheckoutConfig, ConfigurationError, GeminiConfig, settings
from aprovamed.core.cors import OPEN_CORS_HEADERS
from aprovamed.core.logging_setup import logger
from aprovamed.db.session import init_db
from aprovamed.services.asaas import AsaasClient
from aprovamed.services.checkout import build_checkout_service
from aprovamed.services.gemini import GeminiClient
from aprovamed.services.question_extraction import QuestionExtractionService
from aprovamed.services.study_material import StudyMaterialService


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    # Sem a chave do Asaas a API não sobe.
    checkout_config = CheckoutConfig.from_settings(settings)
    init_db()

    asaas_client = AsaasClient(checkout_config)
    application.state.checkout_service = build_checkout_service(checkout_config, gateway=asaas_client)

    try:
        gemini_config = GeminiConfig.from_settings(settings)
    except ConfigurationError as exc:
        logger.warning("Rotas de IA desativadas: %s", exc)
    else:
        gemini_client = GeminiClient(gemini_config)
        application.state.question_service = QuestionExtractionService(gemini_client)
        application.state.study_service = StudyMaterialService(gemini_client)

    yield

    asaas_client.close()


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.project_name,
        debug=settings.debug,
        lifespan=lifespan,
    )

    logger.info("AprovaMed API inicializada")

    # ===============================================================
    # CORS aberto (página de assinatura hospedada em outro domínio)
    # ===============================================================
    @application.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(f"Exceção durante a requisição: {exc}")
            response = JSONResponse(status_code=500, content={"detail": str(exc)})

        origin = request.headers.get("origin")
        allow_origin = "*" if "*" in settings.allowed_origins else (
            origin if origin in settings.allowed_origins else None
        )
        if allow_origin:
            response.headers.update({**OPEN_CORS_HEADERS, "Access-Control-Allow-Origin": allow_origin})
        return response

    @application.options("/{rest_of_path:path}")
    async def preflight_handler(rest_of_path: str) -> JSONResponse:
        return JSONResponse(content={"ok": True}, headers=OPEN_CORS_HEADERS)

    # ===============================================================
    # ROTAS
    # ===============================================================
    application.include_router(health.router, prefix="/health")
    application.include_router(checkout.router, prefix=settings.api_v1_str)
    application.include_router(questions.router, prefix=settings.api_v1_str)
    application.include_router(study.router, prefix=settings.api_v1_str)

    @application.get("/")
    def root():
        return {"service": settings.project_name}

    return application


app = create_app()
