# app/services/gemini_service.py

import asyncio
import base64
import binascii
import logging
import re
from typing import Any, Optional, Tuple

from google import genai
from google.genai import types
from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import ProviderError
from app.core.logging import request_id_ctx_var
from app.models.analysis_record import AnalysisRecord
from app.schemas.analysis import ProviderAnalysis


logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = (
    "Analyze this construction site image. Act as a strict OSHA safety inspector. "
    "Identify safety hazards, estimate progress, and provide a safety score."
)
ANALYSIS_SYSTEM_INSTRUCTION = (
    "You are an expert AI Construction Safety Officer. "
    "Your job is to analyze site photos to prevent accidents and track progress."
)
CHAT_SYSTEM_INSTRUCTION = "You are a helpful construction site assistant. Answer brief and concise."
CHAT_EMPTY_ANSWER = "I couldn't analyze that detail."
GENERATION_PROMPT = (
    "A realistic, high-resolution photo of a busy construction site. Include scaffolding, "
    "concrete structures, and workers. Add some subtle safety hazards like debris on the ground "
    "or a worker missing a vest to test safety inspection software."
)

ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "safetyScore": types.Schema(
            type=types.Type.INTEGER,
            description="A score from 0 to 100 representing safety compliance (100 is perfect).",
        ),
        "hazards": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
            description="List of specific safety hazards detected (e.g., 'Missing hard hat', 'Debris on walkway').",
        ),
        "progressEstimate": types.Schema(
            type=types.Type.INTEGER,
            description="Estimated percentage of completion for the visible construction phase (0-100).",
        ),
        "complianceStatus": types.Schema(
            type=types.Type.STRING,
            enum=["Compliant", "Minor Violations", "Critical Risk"],
            description="Overall compliance status summary.",
        ),
        "recommendations": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
            description="Actionable steps to fix the issues.",
        ),
    },
    required=["safetyScore", "hazards", "progressEstimate", "complianceStatus", "recommendations"],
)

FALLBACK_SVG = """
<svg width="800" height="600" xmlns="http://www.w3.org/2000/svg">
  <rect width="800" height="600" fill="#f8fafc"/>
  <rect x="0" y="500" width="800" height="100" fill="#94a3b8"/>
  <rect x="100" y="200" width="200" height="400" fill="#cbd5e1"/>
  <rect x="150" y="250" width="100" height="350" fill="#e2e8f0"/>
  <rect x="400" y="150" width="300" height="450" fill="#cbd5e1"/>
  <rect x="450" y="200" width="200" height="400" fill="#e2e8f0"/>
  <circle cx="700" cy="100" r="50" fill="#fbbf24" opacity="0.5"/>
  <text x="400" y="300" font-family="sans-serif" font-size="24" text-anchor="middle" fill="#64748b">Simulated Construction Site</text>
  <text x="400" y="340" font-family="sans-serif" font-size="16" text-anchor="middle" fill="#94a3b8">(AI Generation Fallback Mode)</text>
</svg>
"""

_DATA_URL_RE = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_url(value: str, default_mime: str = "image/jpeg") -> Tuple[bytes, str]:
    """Decode an image data URL (or bare base64) into ``(bytes, mime_type)``.

    Raises:
        ValueError: if the payload is not valid base64.
    """
    match = _DATA_URL_RE.match(value.strip())
    if match:
        mime_type, payload = match.group("mime"), match.group("data")
    else:
        mime_type, payload = default_mime, value.strip()
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError) as exc:
        raise ValueError("image is not valid base64 data") from exc


def _configure_google_client() -> genai.Client:
    if not settings.GEMINI_API_KEY:
        raise RuntimeError("GEMINI_API_KEY is not configured")
    return genai.Client(api_key=settings.GEMINI_API_KEY)


async def _generate(contents: list, config: Optional[types.GenerateContentConfig] = None, model: Optional[str] = None) -> Any:
    client = _configure_google_client()
    model_name = model or settings.GEMINI_MODEL

    def sync_call():
        return client.models.generate_content(
            model=model_name,
            contents=contents,
            config=config,
        )

    return await asyncio.to_thread(sync_call)


def parse_analysis_payload(text: Optional[str]) -> ProviderAnalysis:
    if not text:
        raise ValueError("No response from AI")
    return ProviderAnalysis.model_validate_json(text)


async def analyze_construction_image(
    image_bytes: bytes,
    mime_type: str = "image/jpeg",
    image_url: Optional[str] = None,
    model: Optional[str] = None,
) -> AnalysisRecord:
    """Score a site photo and return a new, not yet recorded, AnalysisRecord.

    The record id and timestamp are generated here; ``image_url`` is attached
    as the evidence reference. Every failure mode (configuration, transport,
    empty or malformed payload) is raised as a single ``ProviderError``.
    """
    config = types.GenerateContentConfig(
        response_mime_type="application/json",
        response_schema=ANALYSIS_SCHEMA,
        system_instruction=ANALYSIS_SYSTEM_INSTRUCTION,
    )
    contents = [
        {"inline_data": {"mime_type": mime_type, "data": image_bytes}},
        {"text": ANALYSIS_PROMPT},
    ]

    try:
        response = await _generate(contents, config=config, model=model)
        result = parse_analysis_payload(getattr(response, "text", None))
    except (ValidationError, ValueError) as exc:
        logger.warning("Analysis payload rejected: %s", exc, extra={"request_id": request_id_ctx_var.get()})
        raise ProviderError("Analysis failed") from exc
    except Exception as exc:
        logger.exception("Analysis failed", extra={"request_id": request_id_ctx_var.get()})
        raise ProviderError("Analysis failed") from exc

    return AnalysisRecord(
        safety_score=result.safety_score,
        hazards=tuple(result.hazards),
        progress_estimate=result.progress_estimate,
        compliance_status=result.compliance_status,
        recommendations=tuple(result.recommendations),
        image_url=image_url,
    )


async def ask_about_image(
    image_bytes: bytes,
    question: str,
    mime_type: str = "image/jpeg",
    model: Optional[str] = None,
) -> str:
    config = types.GenerateContentConfig(system_instruction=CHAT_SYSTEM_INSTRUCTION)
    contents = [
        {"inline_data": {"mime_type": mime_type, "data": image_bytes}},
        {"text": f"Answer this question about the construction image provided: {question}"},
    ]

    try:
        response = await _generate(contents, config=config, model=model)
    except Exception as exc:
        logger.exception("Chat failed", extra={"request_id": request_id_ctx_var.get()})
        raise ProviderError("Question could not be answered", operation="chat") from exc

    return getattr(response, "text", None) or CHAT_EMPTY_ANSWER


def _first_inline_image(response: Any) -> Optional[str]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return None
    for part in candidates[0].content.parts or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return to_data_url(inline.data, inline.mime_type or "image/png")
    return None


def fallback_image_url() -> str:
    return to_data_url(FALLBACK_SVG.encode("utf-8"), "image/svg+xml")


async def generate_construction_image(model: Optional[str] = None) -> Tuple[str, bool]:
    """Produce a synthetic site photo for trying the analyzer out.

    Returns ``(data_url, fallback)``. Generation failures are not errors for
    the caller: a placeholder SVG is returned with ``fallback=True``.
    """
    try:
        response = await _generate([{"text": GENERATION_PROMPT}], model=model or settings.GEMINI_IMAGE_MODEL)
        image_url = _first_inline_image(response)
        if image_url is None:
            raise ValueError("Generation failed - No image data returned")
        return image_url, False
    except Exception as exc:
        logger.warning("Image generation failed, using fallback: %s", exc)
        return fallback_image_url(), True
