"""Health check: database connectivity and whether the base client is provisioned."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from authstarr.core.config import get_settings
from authstarr.core.database import check_db_connected, get_db
from authstarr.models import Client
from authstarr.schemas.health import HealthResponse

router = APIRouter()


def _base_client_provisioned(db: Session, name: str) -> bool:
    try:
        return db.query(Client.id).filter(Client.name == name).first() is not None
    except Exception:
        return False


@router.get("/", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """
    Return service health, database connectivity and base client state.
    Used by load balancers and monitoring.
    """
    settings = get_settings()
    if not check_db_connected(db):
        return HealthResponse(environment=settings.APP_ENV, database="disconnected")
    provisioned = _base_client_provisioned(db, settings.BASE_CLIENT_NAME)
    return HealthResponse(
        environment=settings.APP_ENV,
        database="connected",
        base_client="provisioned" if provisioned else "missing",
    )
