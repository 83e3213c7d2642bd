from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before config is read
load_dotenv()

from serviceplan import __version__  # noqa: E402
from serviceplan.api.v1 import router as v1_router  # noqa: E402
from serviceplan.config import config  # noqa: E402
from serviceplan.schemas import HealthResponse  # noqa: E402
from serviceplan.utils.logging import get_logger  # noqa: E402

app = FastAPI(
    title="ServicePlan Pro Branding API",
    description="Logo color extraction for the subscription widget branding form",
    version=__version__
)

# The branding form calls this API from the dashboard origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"]
)

app.include_router(v1_router)

get_logger().info("ServicePlan branding API initialised", extra={"version": __version__})


@app.get("/healthz", response_model=HealthResponse)
def health_check():
    """Health check endpoint."""
    return HealthResponse(
        ok=True,
        version=__version__,
        service="serviceplan-branding"
    )


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "ServicePlan Pro Branding API",
        "version": __version__,
        "docs": "/docs"
    }
