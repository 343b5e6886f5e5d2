from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request) -> dict[str, object]:
    return {
        "status": "ready",
        "checkout": getattr(request.app.state, "checkout_service", None) is not None,
        "ai": getattr(request.app.state, "question_service", None) is not None,
    }
