"""
Branding Extraction Orchestrator

Runs the logo pipeline (load -> filter/quantize -> rank -> synthesize) as one
asynchronous operation, applies the load timeout, and substitutes the default
scheme when the logo cannot be loaded.
"""

import asyncio
import itertools
import time
from dataclasses import dataclass
from typing import List, Optional

from serviceplan.config import config
from serviceplan.schemas import (
    BrandingArtifacts, BrandingExtractResponse, ColorSchemeModel
)
from serviceplan.utils.ids import generate_request_id
from serviceplan.utils.logging import get_logger
from serviceplan.utils.metrics import get_metrics

from .extraction import (
    DEFAULT_SAMPLE_STRIDE, build_frequency_table, rank_dominant_colors, sample_pixels
)
from .sampler import (
    ImageDecoder, ImageReference, LoadFailure, LoadTimeout, PillowImageDecoder,
    PixelBuffer, describe_reference
)
from .scheme import ColorScheme, generate_color_scheme, get_default_color_scheme
from .swatches import render_scheme_swatch


@dataclass(frozen=True)
class ExtractionResult:
    """Scheme plus the intermediate figures that produced it."""
    scheme: ColorScheme
    dominant_colors: List[str]
    width: int
    height: int
    sampled_pixels: int
    counted_pixels: int


@dataclass(frozen=True)
class SchemeOutcome:
    """Extracted scheme, or the default one with the reason it was needed."""
    scheme: ColorScheme
    fallback_used: bool
    result: Optional[ExtractionResult] = None
    warning: Optional[str] = None


def run_extraction(buffer: PixelBuffer, stride: int = DEFAULT_SAMPLE_STRIDE) -> ExtractionResult:
    """Synchronous, side-effect-free stages after the image is decoded."""
    table = build_frequency_table(buffer, stride)
    dominant_colors = rank_dominant_colors(table)

    return ExtractionResult(
        scheme=generate_color_scheme(dominant_colors),
        dominant_colors=dominant_colors,
        width=buffer.width,
        height=buffer.height,
        sampled_pixels=len(sample_pixels(buffer, stride)),
        counted_pixels=sum(table.values()),
    )


async def load_pixels(ref: ImageReference, decoder: Optional[ImageDecoder] = None,
                      timeout_s: Optional[float] = None) -> PixelBuffer:
    """
    Decode an image reference off the event loop, bounded by a timeout.

    Raises:
        LoadTimeout: If decoding does not finish within ``timeout_s``
        LoadFailure: If the decoder cannot fetch or decode the image
    """
    if decoder is None:
        decoder = PillowImageDecoder()
    if timeout_s is None:
        timeout_s = config.extraction_timeout_s()

    try:
        # The worker thread is not cancelled on timeout; its result is discarded
        return await asyncio.wait_for(asyncio.to_thread(decoder.decode, ref), timeout=timeout_s)
    except asyncio.TimeoutError as e:
        raise LoadTimeout(
            f"Image did not load within {timeout_s:.1f}s", describe_reference(ref)
        ) from e


async def extract_color_scheme(ref: ImageReference, decoder: Optional[ImageDecoder] = None,
                               timeout_s: Optional[float] = None,
                               stride: int = DEFAULT_SAMPLE_STRIDE) -> ExtractionResult:
    """
    Extract a color scheme from a logo.

    Args:
        ref: Raw bytes, data URL, or http(s) URL of the logo
        decoder: ImageDecoder to use (defaults to PillowImageDecoder)
        timeout_s: Load timeout in seconds (defaults to config)
        stride: Pixel sampling stride

    Returns:
        ExtractionResult with the synthesized scheme

    Raises:
        LoadFailure: If the image cannot be loaded; callers decide on fallback
    """
    buffer = await load_pixels(ref, decoder, timeout_s)
    return run_extraction(buffer, stride)


async def extract_color_scheme_or_default(ref: ImageReference, decoder: Optional[ImageDecoder] = None,
                                          timeout_s: Optional[float] = None,
                                          stride: int = DEFAULT_SAMPLE_STRIDE) -> SchemeOutcome:
    """Like ``extract_color_scheme`` but returns the default scheme on LoadFailure."""
    try:
        result = await extract_color_scheme(ref, decoder, timeout_s, stride)
    except LoadFailure as e:
        get_logger().warning(f"Could not extract colors from logo, using defaults: {e}",
                             extra={"reference": e.reference, "error_type": type(e).__name__})
        return SchemeOutcome(scheme=get_default_color_scheme(), fallback_used=True, warning=str(e))

    return SchemeOutcome(scheme=result.scheme, fallback_used=False, result=result)


class LatestRequestGuard:
    """
    Drops results of extractions superseded by a newer request.

    The pipeline itself cannot be cancelled; a stale run still completes but
    ``run`` returns None for it.
    """

    def __init__(self, decoder: Optional[ImageDecoder] = None, timeout_s: Optional[float] = None):
        self.decoder = decoder
        self.timeout_s = timeout_s
        self._sequence = itertools.count(1)
        self._latest = 0

    def begin(self) -> int:
        self._latest = next(self._sequence)
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest

    async def run(self, ref: ImageReference) -> Optional[SchemeOutcome]:
        token = self.begin()
        outcome = await extract_color_scheme_or_default(ref, self.decoder, self.timeout_s)
        if not self.is_current(token):
            get_logger().debug("Discarding stale extraction result", extra={"token": token})
            return None
        return outcome


async def handle_extract(ref: ImageReference, mode: str, include_swatch: bool = False,
                         strict: bool = False, decoder: Optional[ImageDecoder] = None,
                         stride: Optional[int] = None) -> BrandingExtractResponse:
    """
    HTTP-facing orchestration with logging and metrics.

    Args:
        ref: Image reference from the request
        mode: Input mode label ("url" or "upload") for logs and metrics
        include_swatch: Render a PNG preview of the scheme
        strict: Re-raise LoadFailure instead of substituting defaults
        decoder: Optional ImageDecoder override
        stride: Pixel sampling stride (defaults to config)

    Raises:
        LoadFailure: Only when ``strict`` is set
    """
    log = get_logger()
    metrics = get_metrics()
    request_id = generate_request_id("brand")
    start_time = time.time()
    if stride is None:
        stride = config.SAMPLE_STRIDE
    if not config.validate_stride(stride):
        log.warning(f"Invalid sample stride {stride}, using {DEFAULT_SAMPLE_STRIDE}",
                    extra={"request_id": request_id})
        stride = DEFAULT_SAMPLE_STRIDE

    log.info("Starting branding extraction",
             extra={"request_id": request_id, "mode": mode, "reference": describe_reference(ref)})
    metrics.increment_request_count(mode)

    try:
        result = await extract_color_scheme(ref, decoder=decoder, stride=stride)
        outcome = SchemeOutcome(scheme=result.scheme, fallback_used=False, result=result)
    except LoadFailure as e:
        metrics.increment_failure_count(type(e).__name__.lower())
        log.warning(f"Logo load failed: {e}",
                    extra={"request_id": request_id, "error_type": type(e).__name__, "strict": strict})
        if strict:
            raise
        metrics.increment_fallback_count()
        outcome = SchemeOutcome(scheme=get_default_color_scheme(), fallback_used=True, warning=str(e))

    artifacts = None
    if include_swatch:
        artifacts = BrandingArtifacts(swatch_png_b64=render_scheme_swatch(outcome.scheme))

    result = outcome.result
    response = BrandingExtractResponse(
        request_id=request_id,
        scheme=ColorSchemeModel(**outcome.scheme.to_dict()),
        dominant_colors=result.dominant_colors if result else [],
        width=result.width if result else 0,
        height=result.height if result else 0,
        sampled_pixels=result.sampled_pixels if result else 0,
        counted_pixels=result.counted_pixels if result else 0,
        fallback_used=outcome.fallback_used,
        warning=outcome.warning,
        css_variables=outcome.scheme.to_css_variables(),
        artifacts=artifacts,
    )

    total_ms = (time.time() - start_time) * 1000
    metrics.record_timing("branding_extract", total_ms)
    log.info("Branding extraction completed",
             extra={
                 "request_id": request_id,
                 "mode": mode,
                 "primary": outcome.scheme.primary,
                 "dominant_count": len(response.dominant_colors),
                 "fallback_used": outcome.fallback_used,
                 "ms_total": total_ms,
             })
    return response
