"""Accent- and case-insensitive keys for joining place names across sources."""

import unicodedata


def normalize(text: str) -> str:
    """
    Decompose *text* (NFD), drop combining marks and lowercase it.

    ``normalize("São Paulo") == normalize("sao paulo") == "sao paulo"``
    """
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).lower()
