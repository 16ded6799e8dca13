from fastapi import APIRouter, Request

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Public health probe")
async def health(request: Request) -> dict[str, str]:
    ready = getattr(request.app.state, "ticket_service", None) is not None
    return {"status": "ok", "tickets": "ready" if ready else "unavailable"}
