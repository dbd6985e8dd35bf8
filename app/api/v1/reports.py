import io
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.api.deps import find_record, get_analysis_session
from app.schemas.reports import PrintableReport, ReportListResponse
from app.services.report_service import build_report, export_history, list_reports, summarize
from app.services.session_service import AnalysisSession

router = APIRouter(prefix="/sessions/{session_id}/reports", tags=["reports"])


@router.get("", response_model=ReportListResponse)
async def get_reports(q: Optional[str] = None, session: AnalysisSession = Depends(get_analysis_session)):
    items = [summarize(r) for r in list_reports(session.history, q)]
    return ReportListResponse(items=items, total=len(items), query=q)


@router.get("/export")
async def export(format: Literal["csv", "json"] = "csv", session: AnalysisSession = Depends(get_analysis_session)):
    data = export_history(session.history.all(), fmt=format)

    if format == "json":
        return StreamingResponse(io.BytesIO(data), media_type="application/json", headers={"Content-Disposition": "attachment; filename=inspection_reports.json"})

    return StreamingResponse(io.BytesIO(data), media_type="text/csv", headers={"Content-Disposition": "attachment; filename=inspection_reports.csv"})


@router.get("/{record_id}", response_model=PrintableReport)
async def get_report(record_id: str, session: AnalysisSession = Depends(get_analysis_session)):
    return build_report(find_record(session, record_id))
