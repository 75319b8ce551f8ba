"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from app.api.deps import get_token_service
from app.api.http_setup import register_exception_handlers, register_security_headers
from app.api.limiter import limiter
from app.api.v1 import router as v1_router
from app.core.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

# Build the token service before serving: a dev secret in production aborts startup here.
get_token_service()

app = FastAPI(
    title="Sentinel API",
    version="0.1.0",
    docs_url="/docs" if settings.APP_ENV == "dev" else None,
    redoc_url="/redoc" if settings.APP_ENV == "dev" else None,
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

if settings.CORS_ALLOW_ORIGIN_SUFFIX:
    _suffix = settings.CORS_ALLOW_ORIGIN_SUFFIX.lstrip(".").replace(".", r"\.")
    _origin_regex: str | None = rf"https?://([a-z0-9-]+\.)*{_suffix}(:\d+)?"
else:
    _origin_regex = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or (["*"] if settings.APP_ENV == "dev" else []),
    allow_origin_regex=_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_security_headers(app)
register_exception_handlers(app)

app.include_router(v1_router, prefix=settings.API_PREFIX)

logger.info("Sentinel API configured", extra={"environment": settings.APP_ENV})


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Sentinel API"}
