"""
Municipality index
==================

Joins free-text gazetteer names to registry municipalities.

Keys
----
* composite: ``normalize(name) + "|" + STATE`` -- used when the gazetteer
  supplies a state hint.  ``|`` never occurs in a name or a UF code.
* name-only: ``normalize(name)`` -- used without a hint.

Known limitation
----------------
Homonymous municipalities exist in different states (e.g. "Bom Jesus"
in PI, RS, PB, RN and SC).  Without a state hint the first one seen in
registry order wins and the ambiguity is logged, which can attribute
the wrong state and population to a place.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .entities import Municipality
from .normalize import normalize

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"


def composite_key(name: str, state_code: str) -> str:
    return f"{normalize(name)}{KEY_SEPARATOR}{state_code.strip().upper()}"


class MunicipalityIndex:
    def __init__(self) -> None:
        self._by_composite: dict[str, Municipality] = {}
        self._by_name: dict[str, Municipality] = {}
        # normalized name -> every state it appears in, registry order
        self._states_by_name: dict[str, list[str]] = {}

    @classmethod
    def build(cls, registry: Iterable[Municipality]) -> "MunicipalityIndex":
        """Index *registry* once.  O(n)."""
        index = cls()
        for municipality in registry:
            index._add(municipality)
        return index

    def _add(self, municipality: Municipality) -> None:
        name_key = normalize(municipality.name)
        # Composite keys: last write wins (registry is de-duplicated).
        self._by_composite[
            composite_key(municipality.name, municipality.state_code)
        ] = municipality
        # Name-only keys: first seen wins.
        self._by_name.setdefault(name_key, municipality)
        self._states_by_name.setdefault(name_key, []).append(
            municipality.state_code
        )

    def __len__(self) -> int:
        return len(self._by_composite)

    def lookup(
        self, name: str, state_hint: Optional[str] = None
    ) -> Optional[Municipality]:
        """Return the municipality matching *name*, or ``None``."""
        if state_hint:
            return self._by_composite.get(composite_key(name, state_hint))

        name_key = normalize(name)
        match = self._by_name.get(name_key)
        if match is not None and self.is_ambiguous(name):
            logger.warning(
                "Ambiguous municipality name %r (states %s); using %s",
                name,
                ", ".join(self._states_by_name[name_key]),
                match.state_code,
            )
        return match

    def is_ambiguous(self, name: str) -> bool:
        return len(self._states_by_name.get(normalize(name), [])) > 1
