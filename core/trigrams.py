from __future__ import annotations

from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional, Tuple

from core.numeric import normalize_number
from core.schema import FrozenModel


Bit = Literal[0, 1]


class Trigram(FrozenModel):
    id: int
    name: str
    element: str
    # bottom line first
    lines: Tuple[Bit, Bit, Bit]


# Canonical order, ids are load-bearing (Qian=1 ... Kun=8)
TRIGRAMS: Tuple[Trigram, ...] = (
    Trigram(id=1, name="Qian", element="Heaven", lines=(1, 1, 1)),
    Trigram(id=2, name="Dui", element="Lake", lines=(1, 1, 0)),
    Trigram(id=3, name="Li", element="Fire", lines=(1, 0, 1)),
    Trigram(id=4, name="Zhen", element="Thunder", lines=(1, 0, 0)),
    Trigram(id=5, name="Xun", element="Wind", lines=(0, 1, 1)),
    Trigram(id=6, name="Kan", element="Water", lines=(0, 1, 0)),
    Trigram(id=7, name="Gen", element="Mountain", lines=(0, 0, 1)),
    Trigram(id=8, name="Kun", element="Earth", lines=(0, 0, 0)),
)

TRIGRAMS_BY_ID: Mapping[int, Trigram] = MappingProxyType({t.id: t for t in TRIGRAMS})
TRIGRAMS_BY_LINES: Mapping[Tuple[int, ...], Trigram] = MappingProxyType({t.lines: t for t in TRIGRAMS})


def pick_trigram(value: Any) -> Optional[Trigram]:
    """Trigram for an arbitrary number, wrapping into 1..8."""
    index = normalize_number(value, 8)
    if index is None:
        return None
    return TRIGRAMS_BY_ID.get(index)


def list_trigrams() -> Tuple[Trigram, ...]:
    return TRIGRAMS
