"""
Shared fixtures: synthetic images and a fake model manager standing in for rembg.
"""
import os
import sys
import time
from io import BytesIO

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image, ImageDraw

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import main
from app.client.api import BackgroundRemoverClient
from app.services.pipeline import ImageProcessingPipeline

FOREGROUND = (230, 180, 20, 255)


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def make_photo(size=(500, 500), color=(120, 160, 200), fmt: str = "JPEG") -> bytes:
    """A solid color photo in the given format."""
    return encode(Image.new("RGB", size, color), fmt)


def make_circle_cutout(size=(500, 500), color=FOREGROUND) -> bytes:
    """A transparent PNG with an opaque circle in the middle."""
    image = Image.new("RGBA", size, (0, 0, 0, 0))
    width, height = size
    ImageDraw.Draw(image).ellipse(
        (width // 4, height // 4, width * 3 // 4, height * 3 // 4), fill=color
    )
    return encode(image)


def open_png(data: bytes) -> Image.Image:
    image = Image.open(BytesIO(data))
    image.load()
    return image


class FakeModelManager:
    """Model manager double: returns a circle cutout the size of the input."""

    def __init__(self, delay: float = 0.0, error: Exception = None, initialized: bool = True):
        self.delay = delay
        self.error = error
        self.is_initialized = initialized
        self.initialize_calls = 0
        self.inputs = []

    @property
    def calls(self) -> int:
        return len(self.inputs)

    async def initialize(self):
        self.initialize_calls += 1
        self.is_initialized = True

    def remove(self, png_bytes: bytes) -> bytes:
        self.inputs.append(png_bytes)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return make_circle_cutout(open_png(png_bytes).size)

    async def cleanup(self):
        self.is_initialized = False


class CountingTransport(httpx.AsyncBaseTransport):
    """Forwards to the ASGI app and counts requests that reach the server."""

    def __init__(self, app):
        self._transport = httpx.ASGITransport(app=app)
        self.requests = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return await self._transport.handle_async_request(request)


@pytest.fixture
def fake_manager():
    return FakeModelManager()


@pytest.fixture
def pipeline(fake_manager):
    return ImageProcessingPipeline(fake_manager)


@pytest.fixture
def api_app(pipeline):
    main.app.dependency_overrides[main.get_pipeline] = lambda: pipeline
    yield main.app
    main.app.dependency_overrides.clear()


@pytest.fixture
def api_client(api_app):
    return TestClient(api_app)


@pytest.fixture
def counting_transport(api_app):
    return CountingTransport(api_app)


@pytest.fixture
async def remover_client(counting_transport):
    client = BackgroundRemoverClient(base_url="http://testserver/api", transport=counting_transport)
    yield client
    await client.aclose()
