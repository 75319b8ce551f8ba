"""Health check endpoint with database connectivity and auth configuration summary."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_token_service
from app.core.config import Settings, get_settings
from app.core.database import check_db_connected, get_db
from app.core.tokens import TokenService
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring. Unauthenticated.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        access_key_count=len(tokens.access_keys),
    )
