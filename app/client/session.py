"""
Client session: one upload -> process -> review -> export cycle.

States::

    idle --select_image--> uploading --> idle | error
    idle --request_removal + confirm_removal--> processing --> completed | error
    error --confirm_removal (after request_removal)--> processing
    completed --set_background--> completed
    idle | completed | error --reset--> idle

Recoloring after a removal runs the compositor locally and never calls
the server again.
"""
import asyncio
import mimetypes
import time
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import structlog

from app.config import settings as server_settings
from app.core.errors import InvalidTransition, UnsupportedFormat
from app.models.background import BackgroundSpec
from app.modules.compositor import process as compositor_process
from .api import BackgroundRemoverClient
from .progress import ProgressCallback

log = structlog.get_logger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


_TRANSITIONS = {
    SessionStatus.IDLE: {SessionStatus.UPLOADING, SessionStatus.PROCESSING},
    SessionStatus.UPLOADING: {SessionStatus.IDLE, SessionStatus.ERROR},
    SessionStatus.PROCESSING: {SessionStatus.COMPLETED, SessionStatus.ERROR},
    SessionStatus.COMPLETED: {SessionStatus.COMPLETED, SessionStatus.UPLOADING},
    SessionStatus.ERROR: {SessionStatus.UPLOADING, SessionStatus.PROCESSING},
}


def is_valid_image_type(content_type: Optional[str]) -> bool:
    return content_type in server_settings.ALLOWED_MIME_TYPES


class Session:
    """The state of a single user's editing session."""

    def __init__(self, client: BackgroundRemoverClient, on_progress: Optional[ProgressCallback] = None):
        self.client = client
        self.on_progress = on_progress
        self.status = SessionStatus.IDLE
        self.background = BackgroundSpec.transparent()
        self.awaiting_confirmation = False
        self.last_error: Optional[Exception] = None

        self.original: Optional[bytes] = None
        self.filename: Optional[str] = None
        self.content_type: Optional[str] = None
        self.cutout: Optional[bytes] = None
        self.composited: Optional[bytes] = None

        self.composite_count = 0

    @property
    def is_busy(self) -> bool:
        return self.status in (SessionStatus.UPLOADING, SessionStatus.PROCESSING)

    def _transition(self, new_status: SessionStatus):
        if new_status not in _TRANSITIONS[self.status]:
            raise InvalidTransition(f"Cannot go from {self.status.value} to {new_status.value}")
        log.debug("Session transition", old=self.status.value, new=new_status.value)
        self.status = new_status

    async def select_image(
        self,
        source: Union[str, Path, bytes],
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ):
        """
        Load a new original image, replacing any previous results.

        Accepts a file path, or raw bytes with an explicit content type.
        Unsupported types and unreadable files leave the session in error.
        """
        self._transition(SessionStatus.UPLOADING)
        self.awaiting_confirmation = False
        self.cutout = None
        self.composited = None

        if isinstance(source, (str, Path)):
            path = Path(source)
            filename = filename or path.name
            content_type = content_type or mimetypes.guess_type(path.name)[0]
        else:
            path = None

        try:
            if not is_valid_image_type(content_type):
                raise UnsupportedFormat(f"Unsupported image type: {content_type or 'unknown'}")
            data = await asyncio.to_thread(path.read_bytes) if path is not None else source
        except (OSError, UnsupportedFormat) as e:
            log.error("Error reading file", filename=filename, error=str(e))
            self.last_error = e
            self._transition(SessionStatus.ERROR)
            raise

        self.original = data
        self.filename = filename or "image"
        self.content_type = content_type
        self.last_error = None
        self._transition(SessionStatus.IDLE)
        log.info("Image selected", filename=self.filename, size=len(data))

    def request_removal(self):
        """Ask for confirmation before the expensive extraction call."""
        if self.original is None:
            raise InvalidTransition("No image selected")
        if self.status not in (SessionStatus.IDLE, SessionStatus.ERROR):
            raise InvalidTransition(f"Cannot start removal while {self.status.value}")
        self.awaiting_confirmation = True

    def cancel_removal(self):
        self.awaiting_confirmation = False

    async def confirm_removal(self) -> bytes:
        """
        Run the confirmed removal: one server call, then a local composite
        with the current background.

        Returns the composited PNG. On failure the session moves to error,
        keeps the original image for a retry and re-raises.
        """
        if not self.awaiting_confirmation:
            raise InvalidTransition("Removal has not been requested")
        self.awaiting_confirmation = False
        self._transition(SessionStatus.PROCESSING)

        try:
            cutout = await self.client.remove_background(
                self.original,
                filename=self.filename,
                content_type=self.content_type,
                on_progress=self.on_progress,
            )
            composited = await self._composite(cutout, self.background)
        except Exception as e:
            log.error("Error processing image", filename=self.filename, error=str(e))
            self.last_error = e
            self._transition(SessionStatus.ERROR)
            raise

        self.cutout = cutout
        self.composited = composited
        self.last_error = None
        self._transition(SessionStatus.COMPLETED)
        return composited

    async def set_background(self, background: Union[BackgroundSpec, str]) -> Optional[bytes]:
        """Change the background color; recomposites locally when a cutout exists."""
        if isinstance(background, str):
            background = BackgroundSpec.parse(background)
        if self.is_busy:
            raise InvalidTransition(f"Cannot change background while {self.status.value}")

        self.background = background
        if self.status is not SessionStatus.COMPLETED:
            return None

        self.composited = await self._composite(self.cutout, background)
        self._transition(SessionStatus.COMPLETED)
        return self.composited

    async def export(self, destination: Union[str, Path, None] = None) -> Path:
        """Write the composited image to disk and return its path."""
        if self.composited is None:
            raise InvalidTransition("Nothing to export yet")
        path = Path(destination) if destination else Path(f"removed-bg-{int(time.time() * 1000)}.png")
        if path.is_dir():
            path = path / f"removed-bg-{int(time.time() * 1000)}.png"
        await asyncio.to_thread(path.write_bytes, self.composited)
        log.info("Image exported", path=str(path))
        return path

    def reset(self):
        """Drop every image and go back to a fresh idle session."""
        if self.is_busy:
            raise InvalidTransition(f"Cannot reset while {self.status.value}")
        self.original = None
        self.filename = None
        self.content_type = None
        self.cutout = None
        self.composited = None
        self.background = BackgroundSpec.transparent()
        self.awaiting_confirmation = False
        self.last_error = None
        self.status = SessionStatus.IDLE

    async def _composite(self, cutout: bytes, background: BackgroundSpec) -> bytes:
        self.composite_count += 1
        return await asyncio.to_thread(compositor_process.composite, cutout, background)
