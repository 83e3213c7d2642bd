"""
Test configuration and fixtures for the branding service.
"""
import io
from typing import Dict, List, Optional, Sequence, Tuple
from unittest.mock import Mock, patch

import numpy as np
import pytest
import requests
from fastapi.testclient import TestClient
from PIL import Image

from main import app
from serviceplan.services.branding.sampler import PixelBuffer

RGBA = Tuple[int, int, int, int]


def make_buffer(pixels: Sequence[RGBA], width: int = None) -> PixelBuffer:
    """Build a PixelBuffer from a row-major list of RGBA tuples."""
    if width is None:
        width = len(pixels)
    height = len(pixels) // width
    array = np.array(pixels, dtype=np.uint8).reshape(height, width, 4)
    return PixelBuffer.from_array(array)


def solid_buffer(rgba: RGBA, width: int = 8, height: int = 8) -> PixelBuffer:
    """Uniform PixelBuffer."""
    array = np.zeros((height, width, 4), dtype=np.uint8)
    array[:, :] = rgba
    return PixelBuffer.from_array(array)


def encode_png(pixels: List[RGBA], width: int) -> bytes:
    """Encode a row-major list of RGBA tuples as PNG bytes."""
    height = len(pixels) // width
    array = np.array(pixels, dtype=np.uint8).reshape(height, width, 4)
    out = io.BytesIO()
    Image.fromarray(array).save(out, format="PNG")
    return out.getvalue()


def two_tone_logo_png(width: int = 64, height: int = 64) -> bytes:
    """Logo with a blue left 3/4 and an orange right 1/4 on no background."""
    array = np.zeros((height, width, 4), dtype=np.uint8)
    array[:, :, 3] = 255
    split = width * 3 // 4
    array[:, :split, :3] = (0x30, 0x50, 0xA0)
    array[:, split:, :3] = (0xE0, 0x80, 0x20)
    out = io.BytesIO()
    Image.fromarray(array).save(out, format="PNG")
    return out.getvalue()


def mock_image_response(content: bytes, content_type: str = "image/png", status: int = 200,
                        headers: Optional[Dict[str, str]] = None) -> Mock:
    """Stand-in for a streamed ``requests.Response``."""
    response = Mock()
    response.status_code = status
    response.headers = {"Content-Type": content_type, **(headers or {})}
    response.iter_content.return_value = [content[i:i + 1024] for i in range(0, len(content), 1024)]
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Client Error")
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def test_client():
    """Create test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def logo_png() -> bytes:
    return two_tone_logo_png()


@pytest.fixture
def public_dns():
    """Resolve every hostname to a public address so fetch tests stay offline."""
    with patch("serviceplan.services.branding.sampler.resolve_host_addresses",
               return_value=["93.184.216.34"]) as resolver:
        yield resolver


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    from serviceplan.utils.metrics import reset_metrics
    reset_metrics()
