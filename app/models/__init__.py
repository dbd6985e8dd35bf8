from .analysis_record import AnalysisRecord, ComplianceStatus, new_record_id, utcnow

__all__ = [
    "AnalysisRecord",
    "ComplianceStatus",
    "new_record_id",
    "utcnow",
]
