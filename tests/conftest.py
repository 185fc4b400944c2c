"""
Shared test fixtures.

Upstream providers are replaced by in-memory fakes that record their
calls, so tests run without network access or API keys.  Each test gets
its own ``TTLCache`` instance.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.domain.entities import Coordinates, Municipality, NearbyPlace
from src.infrastructure.cache import TTLCache
from src.infrastructure.providers.base import (
    GeocodeProvider,
    NearbyPlacesProvider,
    PopulationProvider,
    RegistryProvider,
    RoadDistanceProvider,
)
from src.services.aggregator import CityAggregator


# ── Sample data (Campinas, SP region) ─────────────────────────────────

CAMPINAS = Coordinates(-22.9056, -47.0608)

VALINHOS = NearbyPlace("Valinhos", -22.9706, -46.9958, "PPLA2")
JUNDIAI = NearbyPlace("Jundiaí", -23.1857, -46.8978, "PPLA2")
SUMARE = NearbyPlace("Sumaré", -22.8219, -47.2669, "PPLA2", "SP")
SAO_PAULO = NearbyPlace("São Paulo", -23.5505, -46.6333, "PPLA")

REGISTRY = [
    Municipality(3509502, "Campinas", "SP"),
    Municipality(3525904, "Jundiaí", "SP"),
    Municipality(3550308, "São Paulo", "SP"),
    Municipality(3552403, "Sumaré", "SP"),
    Municipality(3556206, "Valinhos", "SP"),
]

POPULATION = {
    3509502: 1223237,
    3525904: 426935,
    3550308: 12396372,
    3552403: 289875,
    3556206: 131210,
}


# ── Fakes ─────────────────────────────────────────────────────────────


class FakeGeocoder(GeocodeProvider):
    def __init__(self, result: Optional[Coordinates] = CAMPINAS):
        self.result = result
        self.calls: list[tuple[str, str]] = []

    async def resolve(self, city, state):
        self.calls.append((city, state))
        return self.result


class FakeDirections(RoadDistanceProvider):
    """Road distances keyed by destination; unknown pairs are unavailable."""

    def __init__(self, distances: Optional[dict[Coordinates, float]] = None):
        self.distances = distances or {}
        self.calls: list[tuple[Coordinates, Coordinates]] = []

    async def distance(self, a, b):
        self.calls.append((a, b))
        return self.distances.get(b)


class FakeGazetteer(NearbyPlacesProvider):
    def __init__(self, places: Optional[list[NearbyPlace]] = None):
        self.places = list(places or [])
        self.calls: list[tuple[Coordinates, float, int]] = []

    async def search(self, center, radius_km, max_results):
        self.calls.append((center, radius_km, max_results))
        return list(self.places)


class FakeRegistry(RegistryProvider):
    def __init__(self, municipalities: Optional[list[Municipality]] = None):
        self.municipalities = list(municipalities or [])
        self.calls = 0

    async def list(self):
        self.calls += 1
        return list(self.municipalities)


class FakePopulation(PopulationProvider):
    def __init__(self, table: Optional[dict[int, int]] = None):
        self.table_data = dict(table or {})
        self.calls: list[tuple[str, str]] = []

    async def table(self, year, indicator):
        self.calls.append((year, indicator))
        return dict(self.table_data)


class FakeClock:
    """Manually advanced clock for cache expiry."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(default_ttl_seconds=3600, clock=clock)


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def directions() -> FakeDirections:
    return FakeDirections()


@pytest.fixture
def gazetteer() -> FakeGazetteer:
    return FakeGazetteer([VALINHOS, JUNDIAI, SUMARE, SAO_PAULO])


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry(REGISTRY)


@pytest.fixture
def population() -> FakePopulation:
    return FakePopulation(POPULATION)


@pytest.fixture
def aggregator(cache, geocoder, directions, gazetteer, registry, population):
    return CityAggregator(
        cache=cache,
        geocoder=geocoder,
        directions=directions,
        gazetteer=gazetteer,
        registry=registry,
        population=population,
        population_year="2021",
        population_indicator="9324",
        cache_ttl_seconds=3600,
        max_results=500,
        road_distance_concurrency=2,
    )


@pytest_asyncio.fixture
async def client(aggregator) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against the app with the fake-backed aggregator."""
    from src.api.app import create_app
    from src.api.dependencies import get_aggregator
    from src.api.middleware import limiter

    app = create_app()
    app.dependency_overrides[get_aggregator] = lambda: aggregator
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    limiter.enabled = True
