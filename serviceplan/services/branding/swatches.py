"""
Swatch Rendering Module

Renders a color scheme as a PNG strip so the branding form can preview it.
"""

import base64
from typing import Tuple

import cv2
import numpy as np
from loguru import logger

from .color_space import hex_to_rgb
from .scheme import ColorScheme, SCHEME_FIELDS


def hex_to_bgr(hex_color: str) -> Tuple[int, int, int]:
    """Convert hex color to BGR tuple for OpenCV."""
    r, g, b = hex_to_rgb(hex_color)
    return (b, g, r)


def render_scheme_swatch(scheme: ColorScheme, chip_size: int = 40,
                         border_color: Tuple[int, int, int] = (0, 0, 0),
                         border_width: int = 1) -> str:
    """
    Render a horizontal strip with one chip per scheme field.

    Args:
        scheme: Scheme to preview; chips follow primary, secondary, accent,
            text, background order
        chip_size: Size of each color chip in pixels
        border_color: BGR color of the outline drawn around every chip
        border_width: Outline width in pixels, 0 disables

    Returns:
        Base64-encoded PNG image string
    """
    if chip_size < 4:
        raise ValueError(f"chip_size must be at least 4, got {chip_size}")

    colors = [getattr(scheme, name) for name in SCHEME_FIELDS]
    img = np.zeros((chip_size, chip_size * len(colors), 3), dtype=np.uint8)

    for i, hex_color in enumerate(colors):
        x_start = i * chip_size
        x_end = (i + 1) * chip_size
        img[:, x_start:x_end, :] = hex_to_bgr(hex_color)

        # Outline keeps the white background chip visible
        if border_width > 0:
            cv2.rectangle(img, (x_start, 0), (x_end - 1, chip_size - 1), border_color, border_width)

    success, buffer = cv2.imencode(".png", img)
    if not success:
        raise RuntimeError("Failed to encode swatch as PNG")

    b64_string = base64.b64encode(buffer.tobytes()).decode("ascii")
    logger.debug(f"Encoded scheme swatch: {img.shape[1]}x{img.shape[0]} -> {len(b64_string)} chars")
    return b64_string
