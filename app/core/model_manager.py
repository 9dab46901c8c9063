"""
Model manager for the background removal inference session.
"""
import asyncio
from typing import Optional

import structlog
from rembg import new_session, remove
from rembg.sessions.base import BaseSession

from app.modules.remover.config import settings as remover_settings

log = structlog.get_logger(__name__)


class ModelManager:
    """Owns the single rembg session shared by every request."""

    def __init__(self, model_name: Optional[str] = None):
        self.model_name = model_name or remover_settings.MODEL_NAME
        self.session: Optional[BaseSession] = None
        self.is_initialized = False
        self._init_lock = asyncio.Lock()
        log.info("ModelManager created", model=self.model_name)

    async def initialize(self):
        async with self._init_lock:
            if self.is_initialized:
                return
            log.info("Loading background removal model...", model=self.model_name)
            # new_session downloads the weights on first use, keep it off the event loop
            self.session = await asyncio.to_thread(new_session, self.model_name)
            self.is_initialized = True
            log.info("Background removal model loaded", model=self.model_name)

    def remove(self, png_bytes: bytes) -> bytes:
        """Run inference on PNG bytes and return alpha-masked PNG bytes. Blocking."""
        if self.session is None:
            raise RuntimeError("Background removal session is not initialized in ModelManager.")
        return remove(
            png_bytes,
            session=self.session,
            alpha_matting=remover_settings.ALPHA_MATTING,
            post_process_mask=remover_settings.POST_PROCESS_MASK,
        )

    async def cleanup(self):
        log.info("Cleaning up ModelManager...")
        self.session = None
        self.is_initialized = False
        log.info("ModelManager cleanup complete")
