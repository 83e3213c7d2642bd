"""
Dominant color extraction for logo images.

Reduces an RGBA pixel buffer to a frequency table of coarse color buckets and
ranks the buckets into candidate brand colors. Empty or fully-filtered
images give an empty table and an empty ranking.
"""

from collections import Counter
from typing import List, Tuple

import numpy as np
from loguru import logger

from .color_space import rgb_to_hex
from .sampler import PixelBuffer

QUANTIZATION_STEP = 32
DEFAULT_SAMPLE_STRIDE = 4
MIN_ALPHA = 128
MIN_BRIGHTNESS = 30
MAX_BRIGHTNESS = 225
MAX_DOMINANT_COLORS = 5

QuantizedColorKey = Tuple[int, int, int]


def quantize_channel(value: int) -> int:
    """
    Round a channel to the nearest multiple of 32, halves rounding up.

    Values from 240 up round to 256 and are clamped to 255.
    """
    return min(255, ((int(value) + QUANTIZATION_STEP // 2) // QUANTIZATION_STEP) * QUANTIZATION_STEP)


def is_candidate_pixel(r: int, g: int, b: int, a: int) -> bool:
    """Whether a pixel is opaque enough and mid-toned enough to count."""
    if a < MIN_ALPHA:
        return False
    brightness = (r + g + b) / 3
    return MIN_BRIGHTNESS <= brightness <= MAX_BRIGHTNESS


def sample_pixels(buffer: PixelBuffer, stride: int = DEFAULT_SAMPLE_STRIDE) -> np.ndarray:
    """Every ``stride``-th pixel of the row-major scan, as an (N, 4) array."""
    if stride < 1:
        raise ValueError(f"stride must be >= 1, got {stride}")
    return buffer.flat()[::stride]


def filter_candidate_pixels(samples: np.ndarray) -> np.ndarray:
    """
    Drop transparent, near-black and near-white pixels.

    Brightness bounds are checked on the integer channel sum, which is exact
    for ``(r + g + b) / 3 < 30`` and ``> 225``.
    """
    if samples.size == 0:
        return samples.reshape(0, 4)

    channels = samples.astype(np.int32)
    channel_sum = channels[:, 0] + channels[:, 1] + channels[:, 2]

    keep_mask = channels[:, 3] >= MIN_ALPHA
    keep_mask &= channel_sum >= MIN_BRIGHTNESS * 3
    keep_mask &= channel_sum <= MAX_BRIGHTNESS * 3

    return samples[keep_mask]


def quantize_pixels(pixels: np.ndarray) -> np.ndarray:
    """Vectorized ``quantize_channel`` over the RGB columns of (N, 4) pixels."""
    rgb = pixels[:, :3].astype(np.int32)
    quantized = ((rgb + QUANTIZATION_STEP // 2) // QUANTIZATION_STEP) * QUANTIZATION_STEP
    return np.minimum(quantized, 255)


def build_frequency_table(buffer: PixelBuffer, stride: int = DEFAULT_SAMPLE_STRIDE) -> "Counter[QuantizedColorKey]":
    """
    Count quantized colors among the sampled candidate pixels.

    Args:
        buffer: Decoded RGBA pixels
        stride: Examine one pixel out of every ``stride`` in scan order

    Returns:
        Counter keyed by quantized (r, g, b); key order is first encounter
    """
    samples = sample_pixels(buffer, stride)
    candidates = filter_candidate_pixels(samples)
    table: Counter = Counter(
        (int(r), int(g), int(b)) for r, g, b in quantize_pixels(candidates)
    )

    logger.debug(f"Sampled {len(samples)} pixels, {len(candidates)} candidates, "
                 f"{len(table)} buckets")
    return table


def rank_dominant_colors(table: "Counter[QuantizedColorKey]", limit: int = MAX_DOMINANT_COLORS) -> List[str]:
    """
    Order buckets by descending count, ties kept in first-encounter order.

    Returns:
        Up to ``limit`` hex color strings, possibly empty
    """
    # sorted() is stable, so equal counts keep insertion order
    ranked = sorted(table.items(), key=lambda item: -item[1])[:limit]
    return [rgb_to_hex(*key) for key, _ in ranked]


def extract_dominant_colors(buffer: PixelBuffer, stride: int = DEFAULT_SAMPLE_STRIDE,
                            limit: int = MAX_DOMINANT_COLORS) -> List[str]:
    """Frequency table then ranking, in one call."""
    return rank_dominant_colors(build_frequency_table(buffer, stride), limit)
