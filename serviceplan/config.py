"""
ServicePlan Branding Configuration
Manages environment variables and defaults for the branding service.
"""
import os
from typing import List, Optional

# Share of the extraction timeout the image download may use
FETCH_TIMEOUT_SHARE = 0.75


class Config:
    """Configuration class for the ServicePlan branding service."""

    # Upload and download limits
    MAX_FILE_MB: int = int(os.environ.get("SERVICEPLAN_MAX_FILE_MB", "5"))
    MAX_EDGE: int = int(os.environ.get("SERVICEPLAN_MAX_EDGE", "2048"))

    # Timeouts
    FETCH_TIMEOUT_S: float = float(os.environ.get("SERVICEPLAN_FETCH_TIMEOUT_S", "5"))
    EXTRACTION_TIMEOUT_MS: int = int(os.environ.get("SERVICEPLAN_EXTRACTION_TIMEOUT_MS", "8000"))

    # Logging
    LOG_LEVEL: str = os.environ.get("SERVICEPLAN_LOG_LEVEL", "INFO")
    LOG_JSON: bool = os.environ.get("SERVICEPLAN_LOG_JSON", "false").lower() == "true"

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get("SERVICEPLAN_ALLOWED_ORIGINS", "")

    # Sampling
    SAMPLE_STRIDE: int = int(os.environ.get("SERVICEPLAN_SAMPLE_STRIDE", "4"))

    # Supported image formats
    SUPPORTED_MIME_TYPES = ["image/png", "image/jpeg", "image/webp", "image/gif"]
    SUPPORTED_FORMATS = {"PNG", "JPEG", "WEBP", "GIF"}

    @classmethod
    def allowed_origins(cls) -> List[str]:
        """Origins for the CORS middleware, defaulting to local dev servers."""
        if cls.ALLOWED_ORIGINS:
            return [origin.strip() for origin in cls.ALLOWED_ORIGINS.split(",") if origin.strip()]
        return ["http://localhost:3000", "http://localhost:5000", "http://localhost:5173"]

    @classmethod
    def max_file_bytes(cls) -> int:
        """Maximum accepted image payload in bytes."""
        return cls.MAX_FILE_MB * 1024 * 1024

    @classmethod
    def extraction_timeout_s(cls, override_ms: Optional[int] = None) -> float:
        """Timeout around the image load step, in seconds."""
        return (override_ms if override_ms is not None else cls.EXTRACTION_TIMEOUT_MS) / 1000.0

    @classmethod
    def fetch_timeout_s(cls) -> float:
        """Download timeout in seconds, never above 75% of the extraction timeout."""
        return min(cls.FETCH_TIMEOUT_S, cls.extraction_timeout_s() * FETCH_TIMEOUT_SHARE)

    @classmethod
    def validate_stride(cls, stride: int) -> bool:
        """Validate pixel sampling stride."""
        return 1 <= stride <= 64


# Global config instance
config = Config()
