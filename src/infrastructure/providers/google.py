"""
Google Maps adapters: Geocoding (origin lookup) and Directions (road
distance between two coordinates).
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import BaseModel

from src.config import settings
from src.domain.entities import Coordinates
from src.domain.errors import UpstreamUnavailable

from .base import GeocodeProvider, HttpProvider, RoadDistanceProvider

logger = logging.getLogger(__name__)

OK = "OK"


# ── Response schemas ──────────────────────────────────────────────────


class _LatLng(BaseModel):
    lat: float
    lng: float


class _Geometry(BaseModel):
    location: _LatLng


class _GeocodeResult(BaseModel):
    geometry: _Geometry


class GeocodeResponse(BaseModel):
    status: str
    results: list[_GeocodeResult] = []
    error_message: Optional[str] = None


class _Distance(BaseModel):
    value: float  # meters


class _Leg(BaseModel):
    distance: _Distance


class _Route(BaseModel):
    legs: list[_Leg]


class DirectionsResponse(BaseModel):
    status: str
    routes: list[_Route] = []
    error_message: Optional[str] = None


# ── Adapters ──────────────────────────────────────────────────────────


class GoogleGeocodeProvider(HttpProvider, GeocodeProvider):
    name = "google-geocode"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = settings.google_maps_api_key,
        url: str = settings.geocode_url,
    ):
        super().__init__(client)
        self.api_key = api_key
        self.url = url

    async def resolve(self, city: str, state: str) -> Optional[Coordinates]:
        """Geocode ``"<city>, <state>"``; ``None`` when it cannot."""
        address = f"{city}, {state}"
        logger.info("Geocoding %s", address)
        try:
            payload = await self._get_json(
                self.url, params={"address": address, "key": self.api_key}
            )
            data: GeocodeResponse = self._parse(GeocodeResponse, payload)
            if data.status != OK or not data.results:
                raise UpstreamUnavailable(
                    self.name, data.error_message or data.status
                )
        except UpstreamUnavailable as exc:
            logger.error("Geocoding failed for %s: %s", address, exc.reason)
            return None

        location = data.results[0].geometry.location
        logger.info("Resolved %s to (%s, %s)", address, location.lat, location.lng)
        return Coordinates(location.lat, location.lng)


class GoogleDirectionsProvider(HttpProvider, RoadDistanceProvider):
    name = "google-directions"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = settings.google_maps_api_key,
        url: str = settings.directions_url,
    ):
        super().__init__(client)
        self.api_key = api_key
        self.url = url

    async def distance(self, a: Coordinates, b: Coordinates) -> Optional[float]:
        """Road distance in km (2 decimals) along the first route, or ``None``."""
        params = {
            "origin": f"{a.latitude},{a.longitude}",
            "destination": f"{b.latitude},{b.longitude}",
            "key": self.api_key,
        }
        try:
            payload = await self._get_json(self.url, params=params)
            data: DirectionsResponse = self._parse(DirectionsResponse, payload)
            if data.status != OK or not data.routes or not data.routes[0].legs:
                raise UpstreamUnavailable(
                    self.name, data.error_message or data.status
                )
        except UpstreamUnavailable as exc:
            logger.warning(
                "Road distance unavailable %s -> %s: %s",
                params["origin"],
                params["destination"],
                exc.reason,
            )
            return None

        meters = data.routes[0].legs[0].distance.value
        return round(meters / 1000, 2)
