import csv
import io
import json
from typing import Callable, List, Optional, Sequence

from app.models.analysis_record import AnalysisRecord
from app.schemas.reports import PrintableReport, ReportSummary
from app.services.history_store import HistoryStore

NO_HAZARDS_NOTE = "No specific hazards detected."
EXPORT_COLUMNS = [
    "id",
    "timestamp",
    "safety_score",
    "compliance_status",
    "progress_estimate",
    "hazards",
    "recommendations",
]


def score_band(score: int) -> str:
    if score > 80:
        return "good"
    if score > 50:
        return "warning"
    return "critical"


def matches_search_term(term: Optional[str]) -> Callable[[AnalysisRecord], bool]:
    """Build a predicate matching id, compliance status or any hazard text.

    Matching is a case-insensitive substring test; a blank term matches all.
    """
    needle = (term or "").strip().lower()

    def predicate(record: AnalysisRecord) -> bool:
        if not needle:
            return True
        return (
            needle in record.id.lower()
            or needle in record.compliance_status.value.lower()
            or any(needle in h.lower() for h in record.hazards)
        )

    return predicate


def list_reports(store: HistoryStore, term: Optional[str] = None) -> List[AnalysisRecord]:
    # newest first; the sort is stable so equal timestamps keep append order
    matches = store.search(matches_search_term(term))
    return sorted(matches, key=lambda r: r.timestamp, reverse=True)


def summarize(record: AnalysisRecord) -> ReportSummary:
    return ReportSummary(
        id=record.id,
        timestamp=record.timestamp,
        compliance_status=record.compliance_status,
        safety_score=record.safety_score,
        score_band=score_band(record.safety_score),
        hazard_count=len(record.hazards),
    )


def build_report(record: AnalysisRecord) -> PrintableReport:
    return PrintableReport(
        report_id=record.id[:8].upper(),
        record_id=record.id,
        generated_at=record.timestamp,
        safety_score=record.safety_score,
        score_band=score_band(record.safety_score),
        compliance_status=record.compliance_status,
        progress_estimate=record.progress_estimate,
        hazards=list(record.hazards),
        hazards_note=None if record.hazards else NO_HAZARDS_NOTE,
        recommendations=list(record.recommendations),
        evidence_image_url=record.image_url,
    )


def export_history(records: Sequence[AnalysisRecord], fmt: str = "csv") -> bytes:
    if fmt == "json":
        payload = [r.model_dump(mode="json", by_alias=True, exclude={"image_url"}) for r in records]
        return json.dumps(payload).encode("utf-8")

    # default CSV; list columns are joined with "; "
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)
    for r in records:
        writer.writerow([
            r.id,
            r.timestamp.isoformat(),
            r.safety_score,
            r.compliance_status.value,
            r.progress_estimate,
            "; ".join(r.hazards),
            "; ".join(r.recommendations),
        ])
    return buf.getvalue().encode("utf-8")
