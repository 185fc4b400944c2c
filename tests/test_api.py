"""
Integration tests for the REST API endpoints.

The aggregator dependency is overridden with one backed by in-memory
fake providers (see ``conftest.py``), so call counts on the fakes show
whether a request reached the upstream layer.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from src.domain.entities import NearbyPlace


def assert_no_upstream_calls(geocoder, gazetteer, registry, population):
    assert geocoder.calls == []
    assert gazetteer.calls == []
    assert registry.calls == 0
    assert population.calls == []


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_nearby_cities_response_shape(client: AsyncClient):
    resp = await client.get(
        "/getNearbyCities", params={"city": "Campinas", "uf": "SP", "radius": 50}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [c["Name"] for c in data] == ["Jundiaí", "Sumaré", "Valinhos"]
    valinhos = data[-1]
    assert set(valinhos) == {"Name", "Population", "Distance", "UF"}
    assert valinhos["Population"] == 131210
    assert valinhos["UF"] == "SP"
    assert valinhos["Distance"].endswith(" km")
    assert float(valinhos["Distance"].split()[0]) <= 50


@pytest.mark.asyncio
async def test_default_radius_is_250(client: AsyncClient, gazetteer):
    resp = await client.get("/getNearbyCities", params={"city": "Campinas", "uf": "SP"})
    assert resp.status_code == 200
    assert gazetteer.calls[0][1] == 250
    assert "São Paulo" in [c["Name"] for c in resp.json()]


@pytest.mark.asyncio
async def test_min_population(client: AsyncClient):
    resp = await client.get(
        "/getNearbyCities",
        params={"city": "Campinas", "uf": "SP", "minPopulation": 300000},
    )
    assert resp.status_code == 200
    assert all(c["Population"] >= 300000 for c in resp.json())
    assert [c["Name"] for c in resp.json()] == ["Jundiaí", "São Paulo"]


@pytest.mark.asyncio
async def test_uf_is_normalized_before_geocoding(client: AsyncClient, geocoder):
    resp = await client.get("/getNearbyCities", params={"city": " Campinas ", "uf": "sp"})
    assert resp.status_code == 200
    assert geocoder.calls == [("Campinas", "SP")]


@pytest.mark.asyncio
async def test_unmatched_place_reports_unknown(client: AsyncClient, gazetteer):
    gazetteer.places = [NearbyPlace("Valinos", -22.9706, -46.9958, "PPL")]
    resp = await client.get(
        "/getNearbyCities", params={"city": "Campinas", "uf": "SP", "radius": 50}
    )
    assert resp.status_code == 200
    assert resp.json() == [
        {
            "Name": "Valinos",
            "Population": "unknown",
            "Distance": resp.json()[0]["Distance"],
            "UF": "unknown",
        }
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {},
        {"city": "Campinas"},
        {"uf": "SP"},
        {"city": "", "uf": "SP"},
        {"city": "Campinas", "uf": "  "},
    ],
)
async def test_missing_parameters_return_400(
    client: AsyncClient, params, geocoder, gazetteer, registry, population
):
    resp = await client.get("/getNearbyCities", params=params)
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert_no_upstream_calls(geocoder, gazetteer, registry, population)


@pytest.mark.asyncio
async def test_radius_above_maximum_returns_400(
    client: AsyncClient, geocoder, gazetteer, registry, population
):
    resp = await client.get(
        "/getNearbyCities", params={"city": "Campinas", "uf": "SP", "radius": 300}
    )
    assert resp.status_code == 400
    assert "250" in resp.json()["error"]
    assert_no_upstream_calls(geocoder, gazetteer, registry, population)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"radius": "far"},
        {"radius": "0"},
        {"radius": "-10"},
        {"minPopulation": "lots"},
        {"minPopulation": "-1"},
    ],
)
async def test_malformed_parameters_return_400(
    client: AsyncClient, params, geocoder, gazetteer, registry, population
):
    resp = await client.get(
        "/getNearbyCities", params={"city": "Campinas", "uf": "SP", **params}
    )
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert_no_upstream_calls(geocoder, gazetteer, registry, population)


@pytest.mark.asyncio
async def test_unresolved_origin_returns_500(
    client: AsyncClient, geocoder, gazetteer, registry, population
):
    geocoder.result = None
    resp = await client.get("/getNearbyCities", params={"city": "Atlantis", "uf": "SP"})
    assert resp.status_code == 500
    assert "error" in resp.json()
    assert geocoder.calls == [("Atlantis", "SP")]
    assert gazetteer.calls == []
    assert registry.calls == 0
    assert population.calls == []
