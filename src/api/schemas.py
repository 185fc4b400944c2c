"""Pydantic response schemas for the REST API."""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel

from src.domain.entities import CityResult


# ── Responses ─────────────────────────────────────────────────────────


class NearbyCityResponse(BaseModel):
    Name: str
    Population: Union[int, str]
    Distance: str  # "<km> km"
    UF: str

    @classmethod
    def from_result(cls, result: CityResult) -> "NearbyCityResponse":
        return cls(
            Name=result.name,
            Population=result.population,
            Distance=f"{result.distance_km} km",
            UF=result.state_code,
        )


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
