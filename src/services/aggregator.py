"""
City Aggregator
===============

Per-request pipeline::

    ResolvingOrigin -> FetchingReferenceData -> MatchingAndFiltering -> Done
          |
          +-> Failed(OriginUnresolved)

1. **ResolvingOrigin** -- geocode the query city (cached).  Not found
   aborts the request.
2. **FetchingReferenceData** -- municipality index, population table and
   nearby places are fetched concurrently (each cached).  Any of them
   failing degrades to an empty value, never to a request failure.
3. **MatchingAndFiltering** -- per place: road distance with a
   great-circle fallback, radius filter, registry match, population /
   state attribution, optional population floor.  Road distances go
   through a bounded pool (``road_distance_concurrency``).
4. **Done** -- results sorted by name; completion order is irrelevant.

Complexity: O(P) index lookups + O(P) directions calls for P places.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from src.domain.distance import great_circle_distance_km
from src.domain.entities import (
    UNKNOWN,
    CityResult,
    Coordinates,
    NearbyPlace,
    PopulationTable,
)
from src.domain.errors import OriginUnresolved
from src.domain.municipalities import MunicipalityIndex
from src.domain.normalize import normalize
from src.infrastructure.cache import TTLCache
from src.infrastructure.providers.base import (
    GeocodeProvider,
    NearbyPlacesProvider,
    PopulationProvider,
    RegistryProvider,
    RoadDistanceProvider,
)

logger = logging.getLogger(__name__)

INDEX_CACHE_KEY = "municipality_index"
POPULATION_CACHE_KEY = "population:{year}:{indicator}"


def sort_key(result: CityResult) -> tuple[str, str]:
    """Accent-insensitive name order; raw name breaks ties."""
    return normalize(result.name), result.name


class CityAggregator:
    def __init__(
        self,
        *,
        cache: TTLCache,
        geocoder: GeocodeProvider,
        directions: RoadDistanceProvider,
        gazetteer: NearbyPlacesProvider,
        registry: RegistryProvider,
        population: PopulationProvider,
        population_year: str,
        population_indicator: str,
        cache_ttl_seconds: int = 3600,
        max_results: int = 500,
        road_distance_concurrency: int = 1,
        fallback_to_request_state: bool = False,
    ):
        self.cache = cache
        self.geocoder = geocoder
        self.directions = directions
        self.gazetteer = gazetteer
        self.registry = registry
        self.population = population
        self.population_year = population_year
        self.population_indicator = population_indicator
        self.ttl = cache_ttl_seconds
        self.max_results = max_results
        self.road_distance_concurrency = max(1, road_distance_concurrency)
        self.fallback_to_request_state = fallback_to_request_state

    # ── Public API ────────────────────────────────────────────────────

    async def find_nearby(
        self,
        city: str,
        state: str,
        radius_km: float,
        min_population: Optional[int] = None,
    ) -> list[CityResult]:
        """
        Cities within *radius_km* of ``city, state`` sorted by name.

        Raises ``OriginUnresolved`` when the query city cannot be geocoded;
        every other upstream failure degrades to ``"unknown"`` values or
        fewer results.
        """
        origin = await self.resolve_origin(city, state)

        index, population, places = await asyncio.gather(
            self.municipality_index(),
            self.population_table(),
            self.nearby_places(origin, radius_km),
        )
        if not index:
            logger.warning("Municipality index empty; states will be unknown")
        if not population:
            logger.warning("Population table empty; populations will be unknown")

        results = await self._match_and_filter(
            origin, places, index, population,
            radius_km=radius_km,
            min_population=min_population,
            request_state=state,
        )
        results.sort(key=sort_key)
        logger.info(
            "Resolved %d nearby cities for %s, %s (r=%skm)",
            len(results), city, state, radius_km,
        )
        return results

    # ── Reference data (cached) ───────────────────────────────────────

    async def resolve_origin(self, city: str, state: str) -> Coordinates:
        key = f"geocode:{normalize(city.strip())}|{state.strip().upper()}"
        origin = await self.cache.get_or_compute(
            key, self.ttl, lambda: self.geocoder.resolve(city, state)
        )
        if origin is None:
            raise OriginUnresolved(city, state)
        return origin

    async def municipality_index(self) -> MunicipalityIndex:
        async def build() -> MunicipalityIndex:
            return MunicipalityIndex.build(await self.registry.list())

        return await self.cache.get_or_compute(INDEX_CACHE_KEY, self.ttl, build)

    async def population_table(self) -> PopulationTable:
        key = POPULATION_CACHE_KEY.format(
            year=self.population_year, indicator=self.population_indicator
        )
        return await self.cache.get_or_compute(
            key,
            self.ttl,
            lambda: self.population.table(
                self.population_year, self.population_indicator
            ),
        )

    async def nearby_places(
        self, origin: Coordinates, radius_km: float
    ) -> list[NearbyPlace]:
        key = (
            f"nearby:{origin.latitude},{origin.longitude}"
            f":{radius_km}:{self.max_results}"
        )
        return await self.cache.get_or_compute(
            key,
            self.ttl,
            lambda: self.gazetteer.search(origin, radius_km, self.max_results),
        )

    async def road_or_great_circle_km(
        self, origin: Coordinates, destination: Coordinates
    ) -> float:
        """Road distance when the directions provider answers, else haversine."""
        key = (
            f"route:{origin.latitude},{origin.longitude}"
            f"->{destination.latitude},{destination.longitude}"
        )
        distance = await self.cache.get_or_compute(
            key, self.ttl, lambda: self.directions.distance(origin, destination)
        )
        if distance is None:
            return great_circle_distance_km(origin, destination)
        return distance

    # ── Matching ──────────────────────────────────────────────────────

    async def _match_and_filter(
        self,
        origin: Coordinates,
        places: list[NearbyPlace],
        index: MunicipalityIndex,
        population: PopulationTable,
        *,
        radius_km: float,
        min_population: Optional[int],
        request_state: str,
    ) -> list[CityResult]:
        semaphore = asyncio.Semaphore(self.road_distance_concurrency)

        async def measure(place: NearbyPlace) -> float:
            async with semaphore:
                return await self.road_or_great_circle_km(
                    origin, place.coordinates
                )

        distances = await asyncio.gather(*(measure(p) for p in places))

        results: list[CityResult] = []
        for place, distance in zip(places, distances):
            if distance > radius_km:
                continue
            result = self._attribute(place, distance, index, population, request_state)
            if min_population is not None and not (
                result.has_population and result.population >= min_population
            ):
                continue
            results.append(result)
        return results

    def _attribute(
        self,
        place: NearbyPlace,
        distance_km: float,
        index: MunicipalityIndex,
        population: PopulationTable,
        request_state: str,
    ) -> CityResult:
        municipality = index.lookup(place.name, place.state_hint)
        if municipality is None:
            logger.warning(
                "No municipality matches %r (state hint %s)",
                place.name, place.state_hint,
            )
            state_code = (
                request_state.strip().upper()
                if self.fallback_to_request_state
                else UNKNOWN
            )
            return CityResult(place.name, UNKNOWN, distance_km, state_code)

        return CityResult(
            name=place.name,
            population=population.get(municipality.id, UNKNOWN),
            distance_km=distance_km,
            state_code=municipality.state_code,
        )
