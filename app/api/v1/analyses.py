from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.api.deps import find_record, get_analysis_session, get_registry, get_upload_handler
from app.models.analysis_record import AnalysisRecord
from app.schemas.analysis import CaptureRequest, QuestionRequest, QuestionResponse
from app.services.gemini_service import (
    analyze_construction_image,
    ask_about_image,
    parse_data_url,
    to_data_url,
)
from app.services.session_service import AnalysisSession, SessionRegistry
from app.utils.file_utils import ImagePayload, ImageUploadHandler

router = APIRouter(prefix="/sessions/{session_id}/analyses", tags=["analyses"])


async def _analyze_and_record(registry: SessionRegistry, session: AnalysisSession, image: ImagePayload) -> AnalysisRecord:
    record = await analyze_construction_image(
        image.data,
        mime_type=image.mime_type,
        image_url=to_data_url(image.data, image.mime_type),
    )
    # only reached when the provider produced a complete record; a session
    # ended while the call was in flight gets nothing appended
    if registry.get(session.id) is not session:
        raise HTTPException(status_code=404, detail="Session not found")
    session.history.append(record)
    return record


@router.post("", response_model=AnalysisRecord, status_code=status.HTTP_201_CREATED)
async def analyze_upload(
    image: UploadFile = File(...),
    session: AnalysisSession = Depends(get_analysis_session),
    uploads: ImageUploadHandler = Depends(get_upload_handler),
    registry: SessionRegistry = Depends(get_registry),
):
    payload = await uploads.read(image)
    return await _analyze_and_record(registry, session, payload)


@router.post("/capture", response_model=AnalysisRecord, status_code=status.HTTP_201_CREATED)
async def analyze_capture(
    body: CaptureRequest,
    session: AnalysisSession = Depends(get_analysis_session),
    uploads: ImageUploadHandler = Depends(get_upload_handler),
    registry: SessionRegistry = Depends(get_registry),
):
    try:
        data, mime_type = parse_data_url(body.image)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    payload = uploads.check(data, mime_type)
    return await _analyze_and_record(registry, session, payload)


@router.get("", response_model=List[AnalysisRecord])
async def list_analyses(session: AnalysisSession = Depends(get_analysis_session)):
    return list(session.history.all())


@router.get("/{record_id}", response_model=AnalysisRecord)
async def get_analysis(record_id: str, session: AnalysisSession = Depends(get_analysis_session)):
    return find_record(session, record_id)


@router.post("/{record_id}/ask", response_model=QuestionResponse)
async def ask_about_analysis(
    record_id: str,
    body: QuestionRequest,
    session: AnalysisSession = Depends(get_analysis_session),
):
    record = find_record(session, record_id)
    if not record.image_url:
        raise HTTPException(status_code=409, detail="Analysis has no image attached")
    data, mime_type = parse_data_url(record.image_url)
    answer = await ask_about_image(data, body.question, mime_type=mime_type)
    return QuestionResponse(question=body.question, answer=answer, record_id=record.id)
