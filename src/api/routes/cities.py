"""
Nearby cities endpoint
======================

GET /getNearbyCities?city=&uf=&radius=&minPopulation=

* 200 -- list of ``{Name, Population, Distance, UF}`` sorted by Name
* 400 -- missing ``city`` / ``uf`` or radius out of range
* 500 -- the query city could not be geocoded
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from src.api.dependencies import get_aggregator
from src.api.middleware import limiter
from src.api.schemas import ErrorResponse, NearbyCityResponse
from src.config import settings
from src.domain.errors import ValidationError
from src.services.aggregator import CityAggregator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cities"])


@router.get(
    "/getNearbyCities",
    response_model=list[NearbyCityResponse],
    summary="List cities near a Brazilian city",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid parameters"},
        500: {"model": ErrorResponse, "description": "Origin not geocoded"},
    },
)
@limiter.limit(settings.rate_limit)
async def get_nearby_cities(
    request: Request,
    city: Optional[str] = Query(None, description="Origin city name"),
    uf: Optional[str] = Query(None, description="Origin state (UF)"),
    radius: Optional[float] = Query(None, gt=0, description="Radius in km"),
    min_population: Optional[int] = Query(None, alias="minPopulation", ge=0),
    aggregator: CityAggregator = Depends(get_aggregator),
):
    logger.info("GET /getNearbyCities city=%r uf=%r radius=%s", city, uf, radius)

    if not city or not city.strip() or not uf or not uf.strip():
        raise ValidationError("Please provide the city and uf parameters")

    radius_km = settings.default_radius_km if radius is None else radius
    if radius_km > settings.max_radius_km:
        raise ValidationError(
            f"The maximum allowed radius is {settings.max_radius_km:g} km"
        )

    results = await aggregator.find_nearby(
        city.strip(), uf.strip().upper(), radius_km, min_population
    )
    return [NearbyCityResponse.from_result(r) for r in results]
