"""
Tests for the async API client.

Run with:
    pytest tests/test_client.py -v
"""
import httpx
import pytest

from app.client.api import ApiError, BackgroundRemoverClient
from app.client.config import ClientSettings, get_api_base_url
from app.models.background import BackgroundSpec
from conftest import make_circle_cutout, make_photo, open_png


class TestApiBaseUrl:
    def test_explicit_override_wins(self):
        settings = ClientSettings(API_URL="https://bg.example.com/api/", DEV=True)
        assert get_api_base_url(settings) == "https://bg.example.com/api"

    def test_development_default(self):
        assert get_api_base_url(ClientSettings(API_URL=None, DEV=True)) == "http://localhost:3001/api"

    def test_production_uses_same_origin(self):
        settings = ClientSettings(API_URL=None, DEV=False, PUBLIC_ORIGIN="https://photos.example.com/")
        assert get_api_base_url(settings) == "https://photos.example.com/api"

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("BGREMOVER_DEV", "false")
        monkeypatch.setenv("BGREMOVER_PUBLIC_ORIGIN", "https://photos.example.com")
        assert get_api_base_url(ClientSettings()) == "https://photos.example.com/api"


class TestClientAgainstApp:
    async def test_health(self, remover_client):
        assert (await remover_client.health())["status"] == "ok"

    async def test_remove_background_reports_progress(self, remover_client, counting_transport):
        updates = []
        cutout = await remover_client.remove_background(
            make_photo(), filename="photo.jpg", content_type="image/jpeg", on_progress=updates.append
        )

        assert open_png(cutout).size == (500, 500)
        assert len(counting_transport.requests) == 1
        assert counting_transport.requests[0].url.path == "/api/remove-background"
        assert updates[0].percent == 0.0
        assert updates[-1].key == "completed"
        assert updates[-1].percent == 100.0
        percents = [u.percent for u in updates]
        assert percents == sorted(percents)

    async def test_apply_background(self, remover_client):
        result = await remover_client.apply_background(make_circle_cutout(), BackgroundSpec.parse("#0000FF"))
        assert open_png(result).getpixel((0, 0)) == (0, 0, 255, 255)

    async def test_process_image(self, remover_client):
        result = await remover_client.process_image(
            make_photo(), BackgroundSpec.parse("#DB1514"), content_type="image/jpeg"
        )
        assert open_png(result).getpixel((0, 0)) == (219, 21, 20, 255)

    async def test_server_error_becomes_api_error(self, remover_client, fake_manager):
        fake_manager.error = RuntimeError("model crashed")
        updates = []

        with pytest.raises(ApiError) as excinfo:
            await remover_client.remove_background(make_photo(), content_type="image/jpeg",
                                                   on_progress=updates.append)

        assert excinfo.value.status_code == 500
        assert excinfo.value.error == "Failed to remove background"
        assert "model crashed" in str(excinfo.value)
        assert all(u.key != "completed" for u in updates)

    async def test_client_error(self, remover_client):
        with pytest.raises(ApiError) as excinfo:
            await remover_client.remove_background(b"GIF89a", filename="a.gif", content_type="image/gif")
        assert excinfo.value.status_code == 400


class TestTransportFailures:
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with BackgroundRemoverClient(base_url="http://bg.test/api",
                                           transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ApiError, match="Could not reach the server"):
                await client.health()

    async def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        async with BackgroundRemoverClient(base_url="http://bg.test/api",
                                           transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ApiError) as excinfo:
                await client.remove_background(make_photo((10, 10)))

        assert excinfo.value.status_code == 502
        assert excinfo.value.error == "Unknown error"
