from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.analysis_record import ComplianceStatus


class ProviderAnalysis(BaseModel):
    """Structured payload expected back from the analysis model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    safety_score: int = Field(ge=0, le=100)
    hazards: List[str]
    progress_estimate: int = Field(ge=0, le=100)
    compliance_status: ComplianceStatus
    recommendations: List[str]


class CaptureRequest(BaseModel):
    # data URL as produced by a browser canvas, e.g. "data:image/jpeg;base64,..."
    image: str = Field(min_length=1)


class QuestionRequest(BaseModel):
    question: str = Field(min_length=1, max_length=2000)


class QuestionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question: str
    answer: str
    record_id: Optional[str] = None


class GeneratedImageResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image_url: str
    fallback: bool = False
