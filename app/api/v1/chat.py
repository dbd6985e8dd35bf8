from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.deps import get_upload_handler
from app.schemas.analysis import GeneratedImageResponse, QuestionResponse
from app.services.gemini_service import ask_about_image, generate_construction_image
from app.utils.file_utils import ImageUploadHandler

router = APIRouter(tags=["assistant"])


@router.post("/chat", response_model=QuestionResponse)
async def chat(
    image: UploadFile = File(...),
    question: str = Form(..., min_length=1, max_length=2000),
    uploads: ImageUploadHandler = Depends(get_upload_handler),
):
    payload = await uploads.read(image)
    answer = await ask_about_image(payload.data, question, mime_type=payload.mime_type)
    return QuestionResponse(question=question, answer=answer)


@router.post("/images/generate", response_model=GeneratedImageResponse)
async def generate_image():
    """Generate a synthetic site photo to try the analyzer with."""
    image_url, fallback = await generate_construction_image()
    return GeneratedImageResponse(image_url=image_url, fallback=fallback)
