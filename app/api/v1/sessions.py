from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.deps import get_analysis_session, get_registry
from app.schemas.dashboard import DashboardMetrics
from app.schemas.sessions import SessionRead
from app.services.session_service import AnalysisSession, SessionRegistry

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _to_read(session: AnalysisSession) -> SessionRead:
    return SessionRead(id=session.id, created_at=session.created_at, record_count=len(session.history))


@router.post("", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def start_session(registry: SessionRegistry = Depends(get_registry)):
    return _to_read(registry.create())


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(session: AnalysisSession = Depends(get_analysis_session)):
    return _to_read(session)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    if not registry.discard(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{session_id}/dashboard", response_model=DashboardMetrics)
async def dashboard(session: AnalysisSession = Depends(get_analysis_session)):
    """Dashboard statistics; demo figures until the first analysis lands."""
    return session.metrics()
