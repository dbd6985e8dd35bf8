from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.analysis_record import ComplianceStatus

ScoreBand = Literal["good", "warning", "critical"]


class ReportSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    timestamp: datetime
    compliance_status: ComplianceStatus
    safety_score: int
    score_band: ScoreBand
    hazard_count: int


class ReportListResponse(BaseModel):
    items: List[ReportSummary]
    total: int
    query: Optional[str] = None


class PrintableReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    report_id: str
    record_id: str
    generated_at: datetime
    safety_score: int
    score_band: ScoreBand
    compliance_status: ComplianceStatus
    progress_estimate: int
    hazards: List[str]
    hazards_note: Optional[str] = None
    recommendations: List[str]
    evidence_image_url: Optional[str] = None
