"""FastAPI dependency injection helpers."""

import httpx
from fastapi import Request

from src.config import Settings
from src.infrastructure.cache import TTLCache
from src.infrastructure.providers.geonames import GeoNamesProvider
from src.infrastructure.providers.google import (
    GoogleDirectionsProvider,
    GoogleGeocodeProvider,
)
from src.infrastructure.providers.ibge import (
    IbgePopulationProvider,
    IbgeRegistryProvider,
)
from src.services.aggregator import CityAggregator


def build_aggregator(
    client: httpx.AsyncClient, cache: TTLCache, config: Settings
) -> CityAggregator:
    """Wire the production providers around a shared client and cache."""
    return CityAggregator(
        cache=cache,
        geocoder=GoogleGeocodeProvider(
            client, config.google_maps_api_key, config.geocode_url
        ),
        directions=GoogleDirectionsProvider(
            client, config.google_maps_api_key, config.directions_url
        ),
        gazetteer=GeoNamesProvider(
            client, config.geonames_username, config.geonames_url,
            config.geonames_lang,
        ),
        registry=IbgeRegistryProvider(client, config.ibge_municipalities_url),
        population=IbgePopulationProvider(
            client, config.ibge_aggregates_url, config.ibge_population_aggregate
        ),
        population_year=config.ibge_population_year,
        population_indicator=config.ibge_population_variable,
        cache_ttl_seconds=config.cache_ttl_seconds,
        max_results=config.max_rows,
        road_distance_concurrency=config.road_distance_concurrency,
        fallback_to_request_state=config.fallback_to_request_state,
    )


def get_aggregator(request: Request) -> CityAggregator:
    """Return the process-wide aggregator built at startup."""
    return request.app.state.aggregator
