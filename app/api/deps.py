from fastapi import Depends, HTTPException, Request

from app.models.analysis_record import AnalysisRecord
from app.services.session_service import AnalysisSession, SessionRegistry
from app.utils.file_utils import ImageUploadHandler


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_analysis_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> AnalysisSession:
    session = registry.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def get_upload_handler() -> ImageUploadHandler:
    return ImageUploadHandler()


def find_record(session: AnalysisSession, record_id: str) -> AnalysisRecord:
    # ids are not deduplicated; the earliest entry wins
    matches = session.history.search(lambda r: r.id == record_id)
    if not matches:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return matches[0]
