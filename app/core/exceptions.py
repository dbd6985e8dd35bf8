import logging
from fastapi.exceptions import RequestValidationError
from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """The hosted analysis service failed or returned an unusable payload.

    ``public_message`` is what the caller sees; the underlying cause stays
    in the logs via ``__cause__``.
    """

    def __init__(self, public_message: str = "Analysis failed", *, operation: str = "analysis"):
        super().__init__(public_message)
        self.public_message = public_message
        self.operation = operation


def register_exception_handlers(app):
    @app.exception_handler(ProviderError)
    async def provider_exception_handler(request: Request, exc: ProviderError):
        logger.warning(
            "Provider call failed",
            extra={"operation": exc.operation, "cause": repr(exc.__cause__)},
        )
        return JSONResponse({"error": exc.public_message}, status_code=502)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.info("HTTP exception", extra={"status_code": exc.status_code})
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info("Validation error", extra={"errors": exc.errors()})
        return JSONResponse(
            {"error": "Validation error", "details": jsonable_encoder(exc.errors())},
            status_code=422,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse({"error": "Internal server error"}, status_code=500)
