# app/services/pipeline.py
import asyncio
from datetime import datetime

import structlog

from app.core.model_manager import ModelManager
from app.models.background import BackgroundSpec
from app.models.payload import ImagePayload
from app.modules.compositor import process as compositor_process
from app.modules.remover import process as remover_process

log = structlog.get_logger(__name__)


class ImageProcessingPipeline:
    """
    Orchestrates background removal and compositing for one request.

    Every call is independent: nothing is cached between requests, so
    identical uploads pay the full inference cost each time.
    """

    def __init__(self, model_manager: ModelManager):
        self.model_manager = model_manager
        log.info("Pipeline initialized")

    async def remove_only(self, payload: ImagePayload) -> bytes:
        """Run the extractor only and return the alpha-masked cutout."""
        start_time = datetime.now()
        log.info("Starting background removal", filename=payload.filename, size=payload.size)

        await self._ensure_model()
        cutout = await remover_process.run(payload.data, self.model_manager)

        elapsed = (datetime.now() - start_time).total_seconds()
        log.info("Background removal complete", filename=payload.filename, elapsed_seconds=elapsed)
        return cutout

    async def recolor(self, cutout: bytes, background: BackgroundSpec) -> bytes:
        """Run the compositor only, on a cutout the caller already has."""
        log.info("Applying background color", color=str(background))
        return await asyncio.to_thread(compositor_process.composite, cutout, background)

    async def remove_and_recolor(self, payload: ImagePayload, background: BackgroundSpec) -> bytes:
        """Run the extractor then the compositor in sequence."""
        log.info("Processing image", filename=payload.filename, background=str(background))
        cutout = await self.remove_only(payload)
        if background.is_transparent:
            return cutout
        return await self.recolor(cutout, background)

    async def _ensure_model(self):
        if not self.model_manager.is_initialized:
            log.info("Model not preloaded, loading on first request")
            await self.model_manager.initialize()
