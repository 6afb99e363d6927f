"""HTTP API for the ventilation check."""

import hmac
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel, Field

from .config import settings
from .domain import Location, OutlookPoint, VentilationRecommendation
from .errors import GeocodingError, LocationNotFoundError, WeatherFetchError
from .forecast_service import build_forecast_service
from .presentation import (
    MSG_FETCH_FAILED,
    MSG_LOCATION_MISSING,
    MSG_LOCATION_NOT_FOUND,
    describe_outdoor_now,
    describe_recommendation,
)
from .scanner import build_outlook, recommend
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the configured static key, if any."""
    if not settings.api_key:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])
SERVICE = build_forecast_service(settings)


class Coordinates(BaseModel):
    """Latitude/longitude pair accepted in request bodies."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class LocationResponse(BaseModel):
    """A resolved or selected location."""
    latitude: float
    longitude: float
    display_name: str | None = None


class LocationChangeRequest(BaseModel):
    """Switch from one location to another, discarding the old forecast."""
    previous: Coordinates | None = None
    new: Coordinates


class RecommendationResponse(BaseModel):
    """Recommendation plus the text a UI would show."""
    recommendation: VentilationRecommendation
    message: str
    outdoor_now: str | None = None
    fetched_at: datetime | None = None


class OutlookResponse(BaseModel):
    """Hourly chart data from the current hour on."""
    timezone: str
    points: list[OutlookPoint]


def _now() -> datetime:
    """Current instant; patched in tests."""
    return datetime.now(timezone.utc)


def _require_location(latitude: Optional[float], longitude: Optional[float]) -> Location:
    """Build a Location or fail with 400 when coordinates are missing."""
    if latitude is None or longitude is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MSG_LOCATION_MISSING)
    return Location(latitude=latitude, longitude=longitude)


def _load_series(location: Location, refresh: bool = False):
    """Fetch (or reuse) the series, mapping fetch failures to 502."""
    try:
        return SERVICE.get_series(location, refresh=refresh)
    except WeatherFetchError as exc:
        logger.warning("Forecast unavailable", extra={"location": location.cache_key(), "error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=MSG_FETCH_FAILED)


@router.get("/recommendation", response_model=RecommendationResponse)
def get_recommendation(
    latitude: Optional[float] = Query(default=None, ge=-90, le=90),
    longitude: Optional[float] = Query(default=None, ge=-180, le=180),
    indoor_temp: Optional[str] = None,
    indoor_rh: Optional[str] = None,
    refresh: bool = False,
):
    """Check whether now, later, or no forecast hour suits ventilating."""
    location = _require_location(latitude, longitude)
    series = _load_series(location, refresh=refresh)

    now = _now()
    rec = recommend(series, now, indoor_temp, indoor_rh)
    logger.info(
        "Computed recommendation",
        extra={"location": location.cache_key(), "verdict": rec.verdict.value},
    )

    outdoor_now = None
    if rec.current_index is not None:
        outdoor_now = describe_outdoor_now(series[rec.current_index])

    return RecommendationResponse(
        recommendation=rec,
        message=describe_recommendation(rec),
        outdoor_now=outdoor_now,
        fetched_at=SERVICE.fetched_at(location),
    )


@router.get("/outlook", response_model=OutlookResponse)
def get_outlook(
    latitude: Optional[float] = Query(default=None, ge=-90, le=90),
    longitude: Optional[float] = Query(default=None, ge=-180, le=180),
    refresh: bool = False,
):
    """Return temperature, relative and absolute humidity per forecast hour."""
    location = _require_location(latitude, longitude)
    series = _load_series(location, refresh=refresh)
    return OutlookResponse(timezone=series.timezone, points=build_outlook(series, _now()))


@router.get("/geocode", response_model=LocationResponse)
def get_geocode(q: str = ""):
    """Resolve a place name to coordinates."""
    try:
        location = SERVICE.resolve_location(q)
    except LocationNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MSG_LOCATION_NOT_FOUND)
    except GeocodingError as exc:
        logger.warning("Geocoding failed", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Geocoding failed.")
    return LocationResponse(
        latitude=location.latitude,
        longitude=location.longitude,
        display_name=location.display_name,
    )


@router.post("/location/change", response_model=LocationResponse)
def change_location(req: LocationChangeRequest):
    """Drop the cached forecast for the previous location."""
    previous = Location(req.previous.latitude, req.previous.longitude) if req.previous else None
    new = SERVICE.change_location(previous, Location(req.new.latitude, req.new.longitude))
    return LocationResponse(latitude=new.latitude, longitude=new.longitude)
