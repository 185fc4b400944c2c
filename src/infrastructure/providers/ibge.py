"""
IBGE adapters: municipality registry and population estimates.

Registry
    ``GET /api/v1/localidades/municipios?orderBy=nome`` -- the state code
    lives at ``microrregiao.mesorregiao.UF.sigla``.  A handful of recent
    municipalities have ``microrregiao: null``; for those the
    ``regiao-imediata.regiao-intermediaria.UF.sigla`` path is used.

Population
    ``GET /api/v3/agregados/{aggregate}/periodos/{year}/variaveis/{var}
    ?localidades=N6`` -- N6 is the municipality level.  Values arrive as
    strings and are coerced to ``int``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from src.config import settings
from src.domain.entities import Municipality, PopulationTable
from src.domain.errors import UpstreamUnavailable

from .base import HttpProvider, PopulationProvider, RegistryProvider

logger = logging.getLogger(__name__)


# ── Registry schemas ──────────────────────────────────────────────────


class _UF(BaseModel):
    sigla: str


class _Mesorregiao(BaseModel):
    UF: _UF


class _Microrregiao(BaseModel):
    mesorregiao: _Mesorregiao


class _RegiaoIntermediaria(BaseModel):
    UF: _UF


class _RegiaoImediata(BaseModel):
    regiao_intermediaria: _RegiaoIntermediaria = Field(
        alias="regiao-intermediaria"
    )


class MunicipioPayload(BaseModel):
    id: int
    nome: str
    microrregiao: Optional[_Microrregiao] = None
    regiao_imediata: Optional[_RegiaoImediata] = Field(
        None, alias="regiao-imediata"
    )

    @property
    def state_code(self) -> Optional[str]:
        if self.microrregiao is not None:
            return self.microrregiao.mesorregiao.UF.sigla
        if self.regiao_imediata is not None:
            return self.regiao_imediata.regiao_intermediaria.UF.sigla
        return None


# ── Population schemas ────────────────────────────────────────────────


class _Localidade(BaseModel):
    id: int


class _Serie(BaseModel):
    localidade: _Localidade
    serie: dict[str, Any]


class _Resultado(BaseModel):
    series: list[_Serie]


class AgregadoPayload(BaseModel):
    resultados: list[_Resultado]


def to_population(value: Any) -> Optional[int]:
    """Coerce an IBGE figure to ``int``; placeholders like ``"-"`` -> ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
    return None


# ── Adapters ──────────────────────────────────────────────────────────


class IbgeRegistryProvider(HttpProvider, RegistryProvider):
    name = "ibge-municipalities"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = settings.ibge_municipalities_url,
    ):
        super().__init__(client)
        self.url = url

    async def list(self) -> list[Municipality]:
        logger.info("Fetching municipality registry")
        try:
            payload = await self._get_json(self.url, params={"orderBy": "nome"})
            rows: list[MunicipioPayload] = self._parse(
                list[MunicipioPayload], payload
            )
        except UpstreamUnavailable as exc:
            logger.error("Municipality registry unavailable: %s", exc.reason)
            return []

        municipalities = []
        for row in rows:
            state_code = row.state_code
            if state_code is None:
                logger.warning(
                    "Municipality %s (%s) has no state code; skipped",
                    row.nome,
                    row.id,
                )
                continue
            municipalities.append(Municipality(row.id, row.nome, state_code))

        logger.info("Registry holds %d municipalities", len(municipalities))
        return municipalities


class IbgePopulationProvider(HttpProvider, PopulationProvider):
    name = "ibge-population"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = settings.ibge_aggregates_url,
        aggregate: str = settings.ibge_population_aggregate,
    ):
        super().__init__(client)
        self.url = url.rstrip("/")
        self.aggregate = aggregate

    async def table(self, year: str, indicator: str) -> PopulationTable:
        """Population per municipality id for *year* / variable *indicator*."""
        url = (
            f"{self.url}/{self.aggregate}/periodos/{year}"
            f"/variaveis/{indicator}"
        )
        logger.info("Fetching population table (year=%s, variable=%s)", year, indicator)
        try:
            payload = await self._get_json(url, params={"localidades": "N6"})
            variables: list[AgregadoPayload] = self._parse(
                list[AgregadoPayload], payload
            )
            if not variables or not variables[0].resultados:
                raise UpstreamUnavailable(self.name, "empty result set")
        except UpstreamUnavailable as exc:
            logger.error(
                "Population table unavailable (year=%s, variable=%s): %s",
                year,
                indicator,
                exc.reason,
            )
            return {}

        population: PopulationTable = {}
        for item in variables[0].resultados[0].series:
            value = to_population(item.serie.get(year))
            if value is None:
                continue
            population[item.localidade.id] = value

        logger.info("Population known for %d municipalities", len(population))
        return population
