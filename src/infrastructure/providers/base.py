"""
Upstream provider capabilities  (Strategy Pattern)
==================================================

Each capability is an abstract strategy with one operation.  Concrete
adapters perform exactly one HTTP request, validate the payload against
a pydantic schema and convert *every* failure into the capability's
sentinel:

=====================  ===========================  ==================
Capability             Operation                    Failure sentinel
=====================  ===========================  ==================
GeocodeProvider        resolve(city, state)         ``None``
RoadDistanceProvider   distance(a, b)               ``None``
NearbyPlacesProvider   search(center, radius, n)    ``[]``
RegistryProvider       list()                       ``[]``
PopulationProvider     table(year, indicator)       ``{}``
=====================  ===========================  ==================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from src.domain.entities import (
    Coordinates,
    Municipality,
    NearbyPlace,
    PopulationTable,
)
from src.domain.errors import UpstreamUnavailable


# ── Capabilities ──────────────────────────────────────────────────────


class GeocodeProvider(ABC):
    @abstractmethod
    async def resolve(self, city: str, state: str) -> Optional[Coordinates]: ...


class RoadDistanceProvider(ABC):
    @abstractmethod
    async def distance(self, a: Coordinates, b: Coordinates) -> Optional[float]: ...


class NearbyPlacesProvider(ABC):
    @abstractmethod
    async def search(
        self, center: Coordinates, radius_km: float, max_results: int
    ) -> list[NearbyPlace]: ...


class RegistryProvider(ABC):
    @abstractmethod
    async def list(self) -> list[Municipality]: ...


class PopulationProvider(ABC):
    @abstractmethod
    async def table(self, year: str, indicator: str) -> PopulationTable: ...


# ── HTTP plumbing ─────────────────────────────────────────────────────


@lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


class HttpProvider:
    """Shared request / validation helpers; raise ``UpstreamUnavailable``."""

    name = "upstream"

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailable(
                self.name, f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(
                self.name, f"{type(exc).__name__}: {exc}"
            ) from exc
        except ValueError as exc:
            raise UpstreamUnavailable(self.name, "response is not JSON") from exc

    def _parse(self, schema: Any, payload: Any) -> Any:
        try:
            return _adapter(schema).validate_python(payload)
        except SchemaError as exc:
            raise UpstreamUnavailable(
                self.name, f"unexpected payload ({exc.error_count()} errors)"
            ) from exc
