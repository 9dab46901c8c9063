# app/modules/remover/process.py
"""
Background extractor: PNG normalisation followed by a timeout-bounded rembg call.
"""
import asyncio
import threading
from typing import TYPE_CHECKING, Optional

import structlog
from filelock import Timeout as LockTimeout

from app.core.errors import ExtractionFailure, ExtractionTimeout, ImageProcessingError
from app.core.process_lock import inference_lock
from .config import settings
from . import utils

if TYPE_CHECKING:
    from app.core.model_manager import ModelManager

log = structlog.get_logger(__name__)


def _remove_safely(
    png_bytes: bytes,
    model_manager: "ModelManager",
    lock_timeout: float,
    abandoned: threading.Event,
) -> Optional[bytes]:
    """Synchronous helper to run inference with a cross-process lock."""
    with inference_lock.acquire(timeout=lock_timeout):
        if abandoned.is_set():
            log.info("Remover: Caller gave up while waiting for the lock, skipping inference")
            return None
        log.debug("Inference lock acquired")
        result = model_manager.remove(png_bytes)
    log.debug("Inference lock released")
    return result


async def run(image_bytes: bytes, model_manager: "ModelManager", timeout: Optional[float] = None) -> bytes:
    """
    Removes the background from an uploaded image.

    Args:
        image_bytes: Raw JPEG, PNG or WebP bytes
        model_manager: The manager holding the rembg session
        timeout: Seconds to wait for inference, defaults to REMOVER_TIMEOUT_SECONDS

    Returns:
        PNG bytes with the background made transparent

    Raises:
        UnsupportedFormat: If the input cannot be decoded
        ExtractionTimeout: If inference does not finish in time
        ExtractionFailure: If the inference lock stays busy, or for any other inference error
    """
    timeout = settings.TIMEOUT_SECONDS if timeout is None else timeout

    png_bytes = utils.normalize_to_png(image_bytes)
    log.info("Remover: Input normalized to PNG", input_bytes=len(image_bytes), png_bytes=len(png_bytes))

    # Waiting for the lock counts against the same budget as inference
    lock_timeout = min(settings.LOCK_TIMEOUT_SECONDS, timeout)
    abandoned = threading.Event()

    try:
        # On timeout a running inference cannot be stopped; its result is dropped.
        # A thread still queued for the lock sees `abandoned` and skips inference.
        result = await asyncio.wait_for(
            asyncio.to_thread(_remove_safely, png_bytes, model_manager, lock_timeout, abandoned),
            timeout=timeout,
        )
    except LockTimeout as e:
        log.error("Remover: Could not acquire inference lock", lock_timeout_seconds=lock_timeout)
        raise ExtractionFailure("Background removal model is busy") from e
    except asyncio.TimeoutError as e:
        abandoned.set()
        log.error("Remover: Inference timed out", timeout_seconds=timeout)
        raise ExtractionTimeout(f"Background removal did not finish within {timeout:g} seconds") from e
    except ImageProcessingError:
        raise
    except Exception as e:
        log.exception("Remover: Inference failed")
        raise ExtractionFailure(f"Failed to remove background: {e}") from e

    log.info("Remover: Background removal complete",
             output_bytes=len(result),
             alpha_coverage=round(utils.alpha_coverage(result), 4))
    return result
