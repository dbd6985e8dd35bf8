from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    status: str = "ok"
    active_sessions: int = 0


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(request: Request):
    """Simple health check endpoint."""
    return HealthResponse(active_sessions=len(request.app.state.sessions))
