"""
ServicePlan Branding API Routes
Implements the /v1/branding endpoints used by the branding form.
"""
from typing import Any, Dict

from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from serviceplan.config import config
from serviceplan.schemas import (
    BrandingExtractRequest, BrandingExtractResponse, ColorSchemeModel, ErrorResponse
)
from serviceplan.services.branding.extract_api import handle_extract
from serviceplan.services.branding.sampler import LoadFailure
from serviceplan.services.branding.scheme import get_default_color_scheme
from serviceplan.utils.metrics import get_metrics

router = APIRouter(prefix="/v1/branding", tags=["Branding"])


@router.get("/default", response_model=ColorSchemeModel,
            summary="Default Color Scheme")
def default_scheme() -> ColorSchemeModel:
    """Scheme applied when no logo is available or extraction fails."""
    return ColorSchemeModel(**get_default_color_scheme().to_dict())


@router.post("/extract", response_model=BrandingExtractResponse,
             responses={422: {"model": ErrorResponse}},
             summary="Extract Scheme From Logo URL")
async def extract_from_url(
    request_body: BrandingExtractRequest,
    include_swatch: bool = Query(False, description="Include a PNG preview of the scheme"),
    strict: bool = Query(False, description="Return 422 instead of the default scheme when the logo cannot be loaded")
) -> BrandingExtractResponse:
    """
    Extract a five-color scheme from a logo referenced by URL.

    - **image_url**: http(s) URL (the server fetches it) or a data:image base64 URL
    - **include_swatch**: add `artifacts.swatch_png_b64`
    - **strict**: fail instead of falling back to the default scheme
    """
    try:
        return await handle_extract(request_body.image_url, mode="url",
                                    include_swatch=include_swatch, strict=strict)
    except LoadFailure as e:
        raise HTTPException(status_code=422, detail=f"Could not load logo: {e}")


@router.post("/extract/upload", response_model=BrandingExtractResponse,
             responses={400: {"model": ErrorResponse}, 415: {"model": ErrorResponse},
                        422: {"model": ErrorResponse}},
             summary="Extract Scheme From Uploaded Logo")
async def extract_from_upload(
    file: UploadFile = File(..., description="Logo image (PNG, JPEG, WebP or GIF)"),
    include_swatch: bool = Query(False, description="Include a PNG preview of the scheme"),
    strict: bool = Query(False, description="Return 422 instead of the default scheme when the logo cannot be decoded")
) -> BrandingExtractResponse:
    """Extract a five-color scheme from an uploaded logo file."""
    if file.content_type not in config.SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported media type. Supported: {', '.join(config.SUPPORTED_MIME_TYPES)}"
        )

    try:
        file_bytes = await file.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read file: {str(e)}")

    if len(file_bytes) > config.max_file_bytes():
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )

    try:
        return await handle_extract(file_bytes, mode="upload",
                                    include_swatch=include_swatch, strict=strict)
    except LoadFailure as e:
        raise HTTPException(status_code=422, detail=f"Could not decode logo: {e}")


@router.get("/metrics", summary="Branding Metrics")
def branding_metrics() -> Dict[str, Any]:
    """In-process extraction counters and timings."""
    return get_metrics().get_summary()
