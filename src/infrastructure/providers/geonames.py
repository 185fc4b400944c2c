"""
GeoNames ``searchJSON`` adapter (nearby populated places).

The query is a bounding box around the origin restricted to feature
class ``P`` (populated places).  ``style=FULL`` is required for the
``fcode`` and ``adminCodes1`` fields.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from src.config import settings
from src.domain.distance import bounding_box
from src.domain.entities import LOCALITY_CLUSTER_CODE, Coordinates, NearbyPlace
from src.domain.errors import UpstreamUnavailable

from .base import HttpProvider, NearbyPlacesProvider

logger = logging.getLogger(__name__)


# ── Response schemas ──────────────────────────────────────────────────


class _AdminCodes(BaseModel):
    iso3166_2: Optional[str] = Field(None, alias="ISO3166_2")


class GeoNamesPlace(BaseModel):
    name: str
    lat: float  # GeoNames sends coordinates as strings
    lng: float
    fcode: str = ""
    admin_codes1: Optional[_AdminCodes] = Field(None, alias="adminCodes1")

    def to_entity(self) -> NearbyPlace:
        hint = self.admin_codes1.iso3166_2 if self.admin_codes1 else None
        return NearbyPlace(
            name=self.name,
            latitude=self.lat,
            longitude=self.lng,
            feature_code=self.fcode,
            state_hint=hint or None,
        )


class _Status(BaseModel):
    message: str = ""
    value: Optional[int] = None


class SearchResponse(BaseModel):
    geonames: Optional[list[dict[str, Any]]] = None
    status: Optional[_Status] = None


# ── Adapter ───────────────────────────────────────────────────────────


class GeoNamesProvider(HttpProvider, NearbyPlacesProvider):
    name = "geonames"

    def __init__(
        self,
        client: httpx.AsyncClient,
        username: str = settings.geonames_username,
        url: str = settings.geonames_url,
        lang: str = settings.geonames_lang,
    ):
        super().__init__(client)
        self.username = username
        self.url = url
        self.lang = lang

    async def search(
        self, center: Coordinates, radius_km: float, max_results: int
    ) -> list[NearbyPlace]:
        """
        Populated places inside the box around *center*.

        Locality clusters (``PPLL``) are always removed: they would
        double-count the population of their member settlements.
        """
        north, south, east, west = bounding_box(center, radius_km)
        params = {
            "north": north,
            "south": south,
            "east": east,
            "west": west,
            "lang": self.lang,
            "username": self.username,
            "maxRows": max_results,
            "style": "FULL",
            "featureClass": "P",
        }
        try:
            payload = await self._get_json(self.url, params=params)
            data: SearchResponse = self._parse(SearchResponse, payload)
            if data.geonames is None:
                reason = data.status.message if data.status else "no results"
                raise UpstreamUnavailable(self.name, reason)
        except UpstreamUnavailable as exc:
            logger.error(
                "Nearby search failed around (%s, %s) r=%skm: %s",
                center.latitude,
                center.longitude,
                radius_km,
                exc.reason,
            )
            return []

        places = []
        for raw in data.geonames:
            try:
                place = self._parse(GeoNamesPlace, raw).to_entity()
            except UpstreamUnavailable:
                logger.debug("Skipping malformed gazetteer entry: %r", raw)
                continue
            if place.feature_code == LOCALITY_CLUSTER_CODE:
                continue
            places.append(place)

        logger.info(
            "Gazetteer returned %d places, %d after filtering",
            len(data.geonames),
            len(places),
        )
        return places
