"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Credentials
    google_maps_api_key: str = ""
    geonames_username: str = ""

    # Upstream endpoints
    geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    directions_url: str = "https://maps.googleapis.com/maps/api/directions/json"
    geonames_url: str = "http://api.geonames.org/searchJSON"
    geonames_lang: str = "PT"
    ibge_municipalities_url: str = (
        "https://servicodados.ibge.gov.br/api/v1/localidades/municipios"
    )
    ibge_aggregates_url: str = "https://servicodados.ibge.gov.br/api/v3/agregados"
    ibge_population_aggregate: str = "6579"  # estimated resident population
    ibge_population_variable: str = "9324"
    ibge_population_year: str = "2021"
    http_timeout_seconds: float = 10.0

    # Search
    default_radius_km: float = 250.0
    max_radius_km: float = 250.0
    max_rows: int = 500  # gazetteer page size
    road_distance_concurrency: int = 4  # 1 == strictly sequential
    fallback_to_request_state: bool = False

    # Cache
    cache_ttl_seconds: int = 3600

    # API
    rate_limit: str = "100/minute"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
