import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ComplianceStatus(str, Enum):
    COMPLIANT = "Compliant"
    MINOR_VIOLATIONS = "Minor Violations"
    CRITICAL_RISK = "Critical Risk"


def new_record_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisRecord(BaseModel):
    """One completed site inspection.

    Records are frozen once built; a correction is a new record appended to
    the history, never an edit of an existing one.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(default_factory=new_record_id)
    safety_score: int = Field(ge=0, le=100)
    hazards: Tuple[str, ...] = ()
    progress_estimate: int = Field(ge=0, le=100)
    compliance_status: ComplianceStatus
    recommendations: Tuple[str, ...] = ()
    timestamp: datetime = Field(default_factory=utcnow)
    image_url: Optional[str] = None
