"""
FastAPI service that removes photo backgrounds with rembg and composites
the cutout over a solid color.
"""
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from app.config import settings
from app.core.errors import ImageProcessingError, NoFileProvided, ServiceUnavailable
from app.core.logging import configure_logging
from app.core.model_manager import ModelManager
from app.models.background import BackgroundSpec
from app.models.response import ErrorResponse, HealthResponse
from app.services.pipeline import ImageProcessingPipeline
from app.services.uploads import read_upload

configure_logging(settings.LOG_LEVEL)
log = structlog.get_logger(__name__)

# Global model manager instance
model_manager: Optional[ModelManager] = None
pipeline: Optional[ImageProcessingPipeline] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for loading the model on startup and cleanup on shutdown."""
    global model_manager, pipeline

    log.info("Starting service initialization...")

    model_manager = ModelManager()
    if settings.PRELOAD_MODEL:
        await model_manager.initialize()

    pipeline = ImageProcessingPipeline(model_manager)

    log.info("Service initialization complete. Ready to process requests.")

    yield

    # Cleanup
    log.info("Shutting down service...")
    if model_manager:
        await model_manager.cleanup()
    log.info("Service shutdown complete.")


app = FastAPI(
    title="Background Remover Service",
    description="Background removal with rembg and solid color compositing",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ImageProcessingError)
async def image_processing_error_handler(request: Request, exc: ImageProcessingError):
    body = ErrorResponse(error=exc.error, message=str(exc) or None)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # An 'image' part sent as a plain form field instead of a file
    if any(tuple(error.get("loc", ()))[:2] == ("body", "image") for error in exc.errors()):
        log.warning("Rejected request without an image file", path=request.url.path)
        return await image_processing_error_handler(request, NoFileProvided("The 'image' field is not a file"))
    return await request_validation_exception_handler(request, exc)


def get_pipeline() -> ImageProcessingPipeline:
    if not pipeline:
        raise ServiceUnavailable("The image pipeline has not started yet")
    return pipeline


def _png_response(content: bytes) -> Response:
    return Response(content=content, media_type="image/png")


router = APIRouter(prefix="/api")


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(model_loaded=model_manager.is_initialized if model_manager else False)


@router.post("/remove-background")
async def remove_background(
    image: Optional[UploadFile] = File(None),
    pipeline: ImageProcessingPipeline = Depends(get_pipeline),
):
    """Remove the background from an uploaded image and return a transparent PNG."""
    payload = await read_upload(image)
    log.info("Received remove-background request", filename=payload.filename, size=payload.size)

    try:
        result = await pipeline.remove_only(payload)
    except ImageProcessingError:
        raise
    except Exception as e:
        log.exception("Error in /remove-background", filename=payload.filename)
        raise ImageProcessingError(str(e)) from e

    return _png_response(result)


@router.post("/apply-background")
async def apply_background(
    image: Optional[UploadFile] = File(None),
    backgroundColor: Optional[str] = Form(None),
    pipeline: ImageProcessingPipeline = Depends(get_pipeline),
):
    """Apply a background color to an already transparent image."""
    payload = await read_upload(image)
    background = BackgroundSpec.parse(backgroundColor)
    log.info("Received apply-background request", filename=payload.filename, background=str(background))

    try:
        result = await pipeline.recolor(payload.data, background)
    except ImageProcessingError:
        raise
    except Exception as e:
        log.exception("Error in /apply-background", filename=payload.filename)
        raise ImageProcessingError(str(e)) from e

    return _png_response(result)


@router.post("/process-image")
async def process_image(
    image: Optional[UploadFile] = File(None),
    backgroundColor: Optional[str] = Form(None),
    pipeline: ImageProcessingPipeline = Depends(get_pipeline),
):
    """Remove the background and optionally apply a color in one request."""
    payload = await read_upload(image)
    background = BackgroundSpec.parse(backgroundColor)
    log.info("Received process-image request", filename=payload.filename, background=str(background))

    try:
        result = await pipeline.remove_and_recolor(payload, background)
    except ImageProcessingError:
        raise
    except Exception as e:
        log.exception("Error in /process-image", filename=payload.filename)
        raise ImageProcessingError(str(e)) from e

    return _png_response(result)


app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "Background Remover Service",
        "version": "1.0.0",
        "endpoints": {
            "health": "/api/health",
            "remove_background": "/api/remove-background",
            "apply_background": "/api/apply-background",
            "process_image": "/api/process-image"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower()
    )
