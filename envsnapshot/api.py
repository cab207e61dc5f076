"""HTTP API for the environment snapshot service."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from .config import settings
from .domain import EnvironmentReport, Location
from .environment_service import EnvironmentService
from .errors import InvalidSearchQuery, LocationDenied, SourceUnavailable
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="envsnapshot/api")

router = APIRouter()
SERVICE = EnvironmentService(settings=settings)


def get_service() -> EnvironmentService:
    """Dependency hook; tests override it with their own instance."""
    return SERVICE


class DevicePosition(BaseModel):
    """Coordinates reported by the client device after the user granted permission."""
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


@router.get("/environment", response_model=EnvironmentReport)
def get_environment(service: EnvironmentService = Depends(get_service)):
    """Return the current environment report (cached for the configured TTL)."""
    return service.get_environment_data()


@router.post("/environment/clear", status_code=status.HTTP_204_NO_CONTENT)
def clear_environment(service: EnvironmentService = Depends(get_service)):
    """Drop the cached report and re-resolve location on the next request."""
    service.clear_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/location", response_model=Location)
def get_location(service: EnvironmentService = Depends(get_service)):
    """Return the location reports are currently built for."""
    return service.current_location()


@router.get("/location/search", response_model=List[Location])
def search_location(q: str = Query(default="", max_length=200), service: EnvironmentService = Depends(get_service)):
    """Geocode a place name into candidate locations."""
    try:
        return service.search_location(q)
    except InvalidSearchQuery as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except SourceUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Geocoding service unavailable") from exc


@router.post("/location", response_model=Location)
def set_location(location: Location, service: EnvironmentService = Depends(get_service)):
    """Persist a manually chosen location."""
    return service.set_location(location)


@router.post("/location/gps", response_model=Location)
def upgrade_to_gps(position: DevicePosition, service: EnvironmentService = Depends(get_service)):
    """Adopt device-precise coordinates sent by the client."""
    def reported_position(_timeout: float):
        return position.latitude, position.longitude

    try:
        return service.upgrade_to_gps(reported_position)
    except LocationDenied as exc:
        logger.info("GPS upgrade refused", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
