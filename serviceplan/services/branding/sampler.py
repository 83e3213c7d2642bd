"""
Logo Image Sampler
Resolves an image reference (bytes, data URL, or http(s) URL) and decodes it
into an RGBA pixel buffer. Does no filtering or interpretation of pixels.
"""
import base64
import binascii
import io
import ipaddress
import socket
import time
from dataclasses import dataclass
from typing import List, Optional, Protocol, Union
from urllib.parse import urljoin, urlparse

import numpy as np
import requests
from loguru import logger
from PIL import Image, UnidentifiedImageError

from serviceplan.config import config

ImageReference = Union[bytes, bytearray, str]

REDIRECT_STATUSES = {301, 302, 303, 307, 308}
MAX_REDIRECTS = 3
FETCH_CHUNK_BYTES = 64 * 1024


class LoadFailure(Exception):
    """The image could not be fetched or decoded."""

    def __init__(self, message: str, reference: str = ""):
        super().__init__(message)
        self.reference = reference


class LoadTimeout(LoadFailure):
    """The image did not finish loading within the allowed time."""


@dataclass(frozen=True)
class PixelBuffer:
    """Decoded RGBA pixels shaped (height, width, 4), uint8."""
    pixels: np.ndarray
    width: int
    height: int

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "PixelBuffer":
        """Wrap an (H, W, 4) uint8 RGBA array."""
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got shape {pixels.shape}")
        height, width = pixels.shape[:2]
        return cls(pixels=pixels.astype(np.uint8, copy=False), width=width, height=height)

    def flat(self) -> np.ndarray:
        """Row-major (width*height, 4) view of the pixels."""
        return self.pixels.reshape(-1, 4)


class ImageDecoder(Protocol):
    """Capability that turns an image reference into pixels."""

    def decode(self, ref: ImageReference) -> PixelBuffer:
        ...


def describe_reference(ref: ImageReference) -> str:
    """Short, log-safe description of an image reference."""
    if isinstance(ref, (bytes, bytearray)):
        return f"<{len(ref)} bytes>"
    if ref.startswith("data:"):
        return ref[:ref.find(",")] if "," in ref else "data:<malformed>"
    return ref[:200]


def decode_data_url(data_url: str) -> bytes:
    """
    Decode a ``data:image/...;base64,`` URL to raw bytes.

    Raises:
        LoadFailure: For non-image, non-base64 or corrupt payloads
    """
    reference = describe_reference(data_url)
    header, sep, payload = data_url.partition(",")
    if not sep:
        raise LoadFailure("Malformed data URL", reference)

    media_type = header[len("data:"):].split(";")[0].lower()
    if not media_type.startswith("image/"):
        raise LoadFailure(f"Unsupported MIME type: {media_type or 'unknown'}", reference)
    if ";base64" not in header.lower():
        raise LoadFailure("Data URL is not base64 encoded", reference)

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise LoadFailure(f"Invalid base64 image data: {e}", reference) from e


def decode_image_bytes(data: bytes, reference: str = "", max_edge: Optional[int] = None) -> PixelBuffer:
    """
    Decode encoded image bytes into an RGBA pixel buffer.

    Args:
        data: Encoded image (PNG, JPEG, WebP, GIF)
        reference: Description of the source, for error messages
        max_edge: Downscale so the long edge is at most this many pixels

    Returns:
        PixelBuffer in RGBA order

    Raises:
        LoadFailure: For oversized, unsupported or corrupt images
    """
    if max_edge is None:
        max_edge = config.MAX_EDGE

    if not data:
        raise LoadFailure("Empty image payload", reference)
    if len(data) > config.max_file_bytes():
        raise LoadFailure(f"Image too large. Maximum size: {config.MAX_FILE_MB}MB", reference)

    try:
        image = Image.open(io.BytesIO(data))
        image_format = image.format
        if image_format not in config.SUPPORTED_FORMATS:
            raise LoadFailure(f"Unsupported image format: {image_format}", reference)

        image.load()
        if image.width == 0 or image.height == 0:
            raise LoadFailure("Image has no pixels", reference)

        if max(image.width, image.height) > max_edge:
            image.thumbnail((max_edge, max_edge))
            logger.debug(f"Downscaled {reference} to {image.width}x{image.height}")

        # Palette, grayscale and RGB images all become RGBA
        if image.mode != "RGBA":
            image = image.convert("RGBA")

        pixels = np.array(image, dtype=np.uint8)
    except LoadFailure:
        raise
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise LoadFailure(f"Failed to decode image: {e}", reference) from e

    return PixelBuffer.from_array(pixels)


def resolve_host_addresses(hostname: str) -> List[str]:
    """All addresses a hostname resolves to."""
    return [info[4][0] for info in socket.getaddrinfo(hostname, None)]


def is_public_host(hostname: str) -> bool:
    """
    Whether every address of ``hostname`` is globally routable.

    Loopback, private, link-local, reserved and multicast addresses, and
    hosts that do not resolve, are not public.
    """
    try:
        addresses = resolve_host_addresses(hostname)
    except (OSError, UnicodeError):
        return False
    if not addresses:
        return False

    for address in addresses:
        # Strip an IPv6 zone id such as fe80::1%eth0
        ip = ipaddress.ip_address(address.split("%")[0])
        if not ip.is_global or ip.is_multicast:
            return False
    return True


def check_fetch_url(url: str, reference: str = "") -> None:
    """
    Reject URLs the server must not fetch on a caller's behalf.

    Raises:
        LoadFailure: If the scheme is not http(s) or the host is not public
    """
    parsed = urlparse(url)
    if parsed.scheme.lower() not in ("http", "https") or not parsed.hostname:
        raise LoadFailure("Invalid image URL", reference)
    if not is_public_host(parsed.hostname):
        raise LoadFailure(f"Refusing to fetch from non-public host: {parsed.hostname}", reference)


class PillowImageDecoder:
    """
    Default ImageDecoder backed by Pillow and requests.

    Accepts raw bytes, base64 data URLs and http(s) URLs.
    """

    def __init__(self, fetch_timeout_s: Optional[float] = None, max_edge: Optional[int] = None,
                 session: Optional[requests.Session] = None):
        self.fetch_timeout_s = fetch_timeout_s if fetch_timeout_s is not None else config.fetch_timeout_s()
        self.max_edge = max_edge if max_edge is not None else config.MAX_EDGE
        self.session = session

    def decode(self, ref: ImageReference) -> PixelBuffer:
        reference = describe_reference(ref)

        if isinstance(ref, (bytes, bytearray)):
            data = bytes(ref)
        elif isinstance(ref, str) and ref.startswith("data:"):
            data = decode_data_url(ref)
        elif isinstance(ref, str) and ref.lower().startswith(("http://", "https://")):
            data = self._fetch(ref)
        else:
            raise LoadFailure("Unsupported image reference", reference)

        buffer = decode_image_bytes(data, reference=reference, max_edge=self.max_edge)
        logger.debug(f"Decoded {reference} into {buffer.width}x{buffer.height} RGBA pixels")
        return buffer

    def _fetch(self, url: str) -> bytes:
        """
        Download image bytes from a public http(s) host.

        Redirects are followed by hand so every hop is checked against
        ``check_fetch_url``. The body is streamed and abandoned once it
        passes the size limit or the fetch deadline.

        Raises:
            LoadFailure: For blocked hosts, transport errors, non-image
                responses and oversized or slow downloads
        """
        reference = describe_reference(url)
        getter = self.session.get if self.session is not None else requests.get
        deadline = time.monotonic() + self.fetch_timeout_s
        current = url

        for _ in range(MAX_REDIRECTS + 1):
            check_fetch_url(current, reference)
            try:
                response = getter(current, timeout=self.fetch_timeout_s,
                                  stream=True, allow_redirects=False)
            except requests.RequestException as e:
                raise LoadFailure(f"Failed to fetch image: {e}", reference) from e

            try:
                if response.status_code in REDIRECT_STATUSES:
                    location = response.headers.get("Location")
                    if not location:
                        raise LoadFailure("Redirect without Location header", reference)
                    current = urljoin(current, location)
                    continue
                return self._read_image_body(response, reference, deadline)
            finally:
                response.close()

        raise LoadFailure(f"Too many redirects (max {MAX_REDIRECTS})", reference)

    def _read_image_body(self, response: requests.Response, reference: str, deadline: float) -> bytes:
        try:
            response.raise_for_status()
        except requests.RequestException as e:
            raise LoadFailure(f"Failed to fetch image: {e}", reference) from e

        content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
        if content_type and not content_type.startswith("image/"):
            raise LoadFailure(f"Unsupported MIME type: {content_type}", reference)

        max_bytes = config.max_file_bytes()
        too_large = f"Image too large. Maximum size: {config.MAX_FILE_MB}MB"
        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > max_bytes:
            raise LoadFailure(too_large, reference)

        body = bytearray()
        try:
            for chunk in response.iter_content(chunk_size=FETCH_CHUNK_BYTES):
                body.extend(chunk)
                if len(body) > max_bytes:
                    raise LoadFailure(too_large, reference)
                if time.monotonic() > deadline:
                    raise LoadFailure(f"Image download exceeded {self.fetch_timeout_s:.1f}s", reference)
        except requests.RequestException as e:
            raise LoadFailure(f"Failed to fetch image: {e}", reference) from e

        return bytes(body)
