"""
API integration tests for the branding endpoints.

Tests the complete branding API:
- default scheme
- URL/data-URL mode and upload mode
- fallback vs strict handling of unloadable logos
- upload validation and metrics
"""
import base64
from unittest.mock import patch

import pytest
import requests

from conftest import mock_image_response

HEX_KEYS = {"primary", "secondary", "accent", "text", "background"}


def _data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def test_default_scheme(test_client):
    response = test_client.get("/v1/branding/default")

    assert response.status_code == 200
    assert response.json() == {
        "primary": "#2563eb",
        "secondary": "#64748b",
        "accent": "#f59e0b",
        "text": "#1f2937",
        "background": "#ffffff",
    }


class TestExtractFromUrl:
    """Test the /v1/branding/extract endpoint"""

    def test_data_url_logo(self, test_client, logo_png):
        response = test_client.post("/v1/branding/extract", json={"image_url": _data_url(logo_png)})

        assert response.status_code == 200
        data = response.json()
        assert set(data["scheme"]) == HEX_KEYS
        assert data["scheme"]["primary"] == "#4060a0"
        assert data["scheme"]["secondary"] == "#e08020"
        assert data["dominant_colors"] == ["#4060a0", "#e08020"]
        assert data["fallback_used"] is False
        assert data["warning"] is None
        assert (data["width"], data["height"]) == (64, 64)
        assert data["sampled_pixels"] == 64 * 64 // 4
        assert data["css_variables"]["--primary-color"] == "#4060a0"
        assert data["artifacts"] is None
        assert data["request_id"].startswith("brand-")

    @pytest.mark.usefixtures("public_dns")
    def test_http_url_logo(self, test_client, logo_png):
        with patch("serviceplan.services.branding.sampler.requests.get",
                   return_value=mock_image_response(logo_png)) as mock_get:
            response = test_client.post("/v1/branding/extract",
                                        json={"image_url": "https://cdn.example.com/logo.png"})

        assert response.status_code == 200
        assert response.json()["scheme"]["primary"] == "#4060a0"
        assert mock_get.call_args[0][0] == "https://cdn.example.com/logo.png"

    @pytest.mark.usefixtures("public_dns")
    def test_unreachable_logo_falls_back(self, test_client):
        with patch("serviceplan.services.branding.sampler.requests.get",
                   side_effect=requests.ConnectionError("connection refused")):
            response = test_client.post("/v1/branding/extract",
                                        json={"image_url": "https://cdn.example.com/logo.png"})

        assert response.status_code == 200
        data = response.json()
        assert data["fallback_used"] is True
        assert "Failed to fetch image" in data["warning"]
        assert data["scheme"]["primary"] == "#2563eb"
        assert data["scheme"]["secondary"] == "#64748b"
        assert data["dominant_colors"] == []

    @pytest.mark.usefixtures("public_dns")
    def test_unreachable_logo_strict_mode(self, test_client):
        with patch("serviceplan.services.branding.sampler.requests.get",
                   side_effect=requests.ConnectionError("connection refused")):
            response = test_client.post("/v1/branding/extract?strict=true",
                                        json={"image_url": "https://cdn.example.com/logo.png"})

        assert response.status_code == 422
        assert "Could not load logo" in response.json()["detail"]

    def test_loopback_url_is_not_fetched(self, test_client):
        with patch("serviceplan.services.branding.sampler.requests.get") as mock_get:
            response = test_client.post("/v1/branding/extract",
                                        json={"image_url": "http://127.0.0.1:8080/logo.png"})

        assert response.status_code == 200
        data = response.json()
        assert data["fallback_used"] is True
        assert "non-public host" in data["warning"]
        mock_get.assert_not_called()

    def test_private_url_strict_mode(self, test_client):
        response = test_client.post("/v1/branding/extract?strict=true",
                                    json={"image_url": "http://10.0.0.7/logo.png"})
        assert response.status_code == 422

    @pytest.mark.usefixtures("public_dns")
    def test_oversized_download_falls_back(self, test_client):
        big = mock_image_response(b"", headers={"Content-Length": str(40 * 1024 * 1024)})
        with patch("serviceplan.services.branding.sampler.requests.get", return_value=big):
            response = test_client.post("/v1/branding/extract",
                                        json={"image_url": "https://cdn.example.com/big.png"})

        assert response.json()["fallback_used"] is True
        assert "too large" in response.json()["warning"]
        big.iter_content.assert_not_called()

    def test_unsupported_reference_falls_back(self, test_client):
        response = test_client.post("/v1/branding/extract", json={"image_url": "ftp://example.com/logo.png"})
        assert response.status_code == 200
        assert response.json()["fallback_used"] is True

    def test_missing_body_is_rejected(self, test_client):
        response = test_client.post("/v1/branding/extract", json={})
        assert response.status_code == 422

    def test_swatch_artifact(self, test_client, logo_png):
        response = test_client.post("/v1/branding/extract?include_swatch=true",
                                    json={"image_url": _data_url(logo_png)})

        assert response.status_code == 200
        swatch_b64 = response.json()["artifacts"]["swatch_png_b64"]
        assert base64.b64decode(swatch_b64).startswith(b"\x89PNG")


class TestExtractFromUpload:
    """Test the /v1/branding/extract/upload endpoint"""

    def test_upload_png(self, test_client, logo_png):
        response = test_client.post(
            "/v1/branding/extract/upload",
            files={"file": ("logo.png", logo_png, "image/png")}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["scheme"]["primary"] == "#4060a0"
        assert data["scheme"]["accent"] == "#8040a0"
        assert data["scheme"]["text"] == "#f9fafb"
        assert data["scheme"]["background"] == "#f8fafc"

    def test_unsupported_media_type(self, test_client):
        response = test_client.post(
            "/v1/branding/extract/upload",
            files={"file": ("logo.txt", b"hello", "text/plain")}
        )
        assert response.status_code == 415

    def test_corrupt_upload_falls_back(self, test_client):
        response = test_client.post(
            "/v1/branding/extract/upload",
            files={"file": ("logo.png", b"\x89PNG\r\n\x1a\nbroken", "image/png")}
        )

        assert response.status_code == 200
        assert response.json()["fallback_used"] is True

    def test_corrupt_upload_strict(self, test_client):
        response = test_client.post(
            "/v1/branding/extract/upload?strict=true",
            files={"file": ("logo.png", b"\x89PNG\r\n\x1a\nbroken", "image/png")}
        )
        assert response.status_code == 422

    def test_oversized_upload(self, test_client, logo_png):
        with patch("serviceplan.api.v1.config") as mock_config:
            mock_config.SUPPORTED_MIME_TYPES = ["image/png"]
            mock_config.MAX_FILE_MB = 0
            mock_config.max_file_bytes.return_value = 10
            response = test_client.post(
                "/v1/branding/extract/upload",
                files={"file": ("logo.png", logo_png, "image/png")}
            )

        assert response.status_code == 400
        assert "too large" in response.json()["detail"]


def test_metrics_track_requests_and_fallbacks(test_client, logo_png):
    test_client.post("/v1/branding/extract", json={"image_url": _data_url(logo_png)})
    test_client.post("/v1/branding/extract", json={"image_url": "ftp://nowhere/logo.png"})

    response = test_client.get("/v1/branding/metrics")
    assert response.status_code == 200
    counters = response.json()["counters"]
    assert counters["branding_extract_requests_total"] == 2
    assert counters["branding_extract_mode_total_url"] == 2
    assert counters["branding_fallback_total"] == 1
    assert counters["branding_load_failed_total_loadfailure"] == 1
    assert response.json()["timing_stats"]["branding_extract_duration_ms"]["count"] == 2
