"""
Domain value objects.

All of these are immutable once built: upstream payloads are converted
into them at the provider boundary and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

# Placeholder for population / state when no registry match exists.
UNKNOWN = "unknown"

# GeoNames feature code for locality clusters (aggregates of settlements).
LOCALITY_CLUSTER_CODE = "PPLL"


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Municipality:
    id: int
    name: str
    state_code: str


@dataclass(frozen=True)
class NearbyPlace:
    name: str
    latitude: float
    longitude: float
    feature_code: str = ""
    state_hint: Optional[str] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)


# ── Output ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CityResult:
    name: str
    population: Union[int, str]
    distance_km: float
    state_code: str

    @property
    def has_population(self) -> bool:
        return isinstance(self.population, int)


PopulationTable = dict[int, int]
