from __future__ import annotations

import re
from collections.abc import Awaitable, Callable

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")
_WHITESPACE = re.compile(r"\s+")

SKU_BASE_LENGTH = 20


def slugify(text: str, *, fallback: str = "item") -> str:
    slug = _NON_ALNUM.sub("-", (text or "").lower()).strip("-")
    return slug or fallback


def normalize_sku(sku: str | None, *, name: str) -> str:
    """Upper-cased SKU; derived from the first characters of ``name`` when absent.

    ``normalize_sku(None, name="Steel beam 20mm")`` -> ``"STEEL-BEAM-20MM"``
    """
    if sku and sku.strip():
        return sku.strip().upper()
    return _WHITESPACE.sub("-", name.strip().upper())[:SKU_BASE_LENGTH]


async def make_unique(
    base: str,
    exists: Callable[[str], Awaitable[bool]],
) -> str:
    """Append ``-1``, ``-2`` ... to ``base`` until ``exists`` reports it free."""
    candidate = base
    counter = 1
    while await exists(candidate):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate
