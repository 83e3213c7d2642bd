"""
ServicePlan API Schemas
Pydantic models for branding color extraction request/response validation.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

HEX_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("serviceplan-branding", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


class ColorSchemeModel(BaseModel):
    """Five-color branding scheme bound to the branding form's color pickers."""
    primary: str = Field(..., pattern=HEX_PATTERN, description="Main brand color #RRGGBB")
    secondary: str = Field(..., pattern=HEX_PATTERN, description="Secondary brand color #RRGGBB")
    accent: str = Field(..., pattern=HEX_PATTERN, description="Accent/highlight color #RRGGBB")
    text: str = Field(..., pattern=HEX_PATTERN, description="Body text color #RRGGBB")
    background: str = Field(..., pattern=HEX_PATTERN, description="Widget background color #RRGGBB")


class BrandingExtractRequest(BaseModel):
    """Extract from a logo referenced by URL."""
    image_url: str = Field(
        ...,
        min_length=1,
        max_length=10 * 1024 * 1024,
        description="http(s) URL of the logo, or a data:image/...;base64 URL"
    )


class BrandingArtifacts(BaseModel):
    """Optional preview artifacts."""
    swatch_png_b64: Optional[str] = Field(
        None,
        description="Base64-encoded PNG strip of the scheme colors"
    )


class BrandingExtractResponse(BaseModel):
    """Result of extracting a color scheme from a logo."""
    request_id: str = Field(..., description="Request identifier for tracing")
    scheme: ColorSchemeModel = Field(..., description="Extracted or default color scheme")
    dominant_colors: List[str] = Field(
        default_factory=list,
        max_length=5,
        description="Ranked dominant colors found in the logo (0-5)"
    )
    width: int = Field(0, ge=0, description="Decoded image width, 0 when loading failed")
    height: int = Field(0, ge=0, description="Decoded image height, 0 when loading failed")
    sampled_pixels: int = Field(0, ge=0, description="Pixels examined after subsampling")
    counted_pixels: int = Field(0, ge=0, description="Pixels that passed the alpha and brightness filters")
    fallback_used: bool = Field(..., description="Whether the default scheme was substituted")
    warning: Optional[str] = Field(None, description="Why the default scheme was used")
    css_variables: dict = Field(default_factory=dict, description="CSS custom properties for the widget")
    artifacts: Optional[BrandingArtifacts] = Field(None, description="Optional preview artifacts")
