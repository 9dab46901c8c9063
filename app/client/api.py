"""
Async HTTP client for the background remover API.
"""
from typing import Optional

import httpx
import structlog

from app.models.background import BackgroundSpec
from .config import ClientSettings, get_api_base_url
from .progress import ProgressCallback, ProgressSimulator

log = structlog.get_logger(__name__)


class ApiError(Exception):
    """A failed API call, carrying the server's error body when there is one."""

    def __init__(self, message: str, status_code: Optional[int] = None, error: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error = error

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        error = body.get("error") or body.get("detail") or "Unknown error"
        message = body.get("message") or error
        return cls(message, status_code=response.status_code, error=error)


class BackgroundRemoverClient:
    """
    Client for the four API endpoints.

    ``remove_background`` drives a ProgressSimulator while the request is in
    flight; the other calls are quick and report no progress.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[ClientSettings] = None,
    ):
        settings = settings or ClientSettings()
        self.base_url = (base_url or get_api_base_url(settings)).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url + "/",
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def health(self) -> dict:
        response = await self._send("GET", "health")
        return response.json()

    async def remove_background(
        self,
        image: bytes,
        filename: str = "image.png",
        content_type: str = "image/png",
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Upload an image and return the transparent PNG cutout."""
        log.info("Uploading image to server for processing...", filename=filename, size=len(image))
        files = {"image": (filename, image, content_type)}

        async with ProgressSimulator(on_progress) as progress:
            response = await self._send("POST", "remove-background", files=files)
            # Real completion pre-empts whatever the simulation was showing
            progress.complete()

        log.info("Background removal completed successfully", size=len(response.content))
        return response.content

    async def apply_background(
        self,
        cutout: bytes,
        background: BackgroundSpec,
        filename: str = "cutout.png",
    ) -> bytes:
        """Composite a cutout over a color on the server."""
        files = {"image": (filename, cutout, "image/png")}
        data = {"backgroundColor": background.to_hex()}
        response = await self._send("POST", "apply-background", files=files, data=data)
        return response.content

    async def process_image(
        self,
        image: bytes,
        background: Optional[BackgroundSpec] = None,
        filename: str = "image.png",
        content_type: str = "image/png",
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Remove the background and apply a color in a single request."""
        files = {"image": (filename, image, content_type)}
        data = {"backgroundColor": background.to_hex()} if background is not None else None

        async with ProgressSimulator(on_progress) as progress:
            response = await self._send("POST", "process-image", files=files, data=data)
            progress.complete()

        return response.content

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            log.error("Request timed out", path=path)
            raise ApiError(f"Request to {path} timed out") from e
        except httpx.RequestError as e:
            log.error("Network error", path=path, error=str(e))
            raise ApiError(f"Could not reach the server: {e}") from e

        if response.is_error:
            error = ApiError.from_response(response)
            log.warning("API request failed", path=path, status_code=response.status_code, error=error.error)
            raise error
        return response

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> "BackgroundRemoverClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
