"""
Nearby Cities API
=================
Lists the Brazilian cities around a given city and state, with IBGE
population and UF for each one (Google Maps, GeoNames and IBGE behind a
single ``GET /getNearbyCities`` route).

Entry point. Run with: uvicorn main:app --reload
Settings come from the environment or ``.env`` (see ``src/config.py``);
``GOOGLE_MAPS_API_KEY`` and ``GEONAMES_USERNAME`` are required upstream.
"""

import uvicorn

from src.api.app import create_app
from src.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
