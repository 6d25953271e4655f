"""Tarot spreads and the draw engine.

Randomness is injected as a zero-argument callable returning floats in
[0, 1), so a fixed sequence gives a reproducible draw.
"""

from __future__ import annotations

import hashlib
import logging
import math
import random
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from core.schema import FrozenModel
from core.tarot_deck import TAROT_DECK, TarotCard

logger = logging.getLogger("divination_bridge.tarot")

RandomSource = Callable[[], float]
T = TypeVar("T")

DEFAULT_SPREAD = "SingleCard"
REVERSAL_THRESHOLD = 0.3


class SpreadPosition(FrozenModel):
    label: str
    meaning: str


class TarotSpread(FrozenModel):
    count: int
    positions: Tuple[SpreadPosition, ...]


class DrawnCard(TarotCard):
    position: int
    position_label: Optional[str] = None
    position_meaning: Optional[str] = None
    is_reversed: bool


class SpreadMetaPosition(FrozenModel):
    position: int
    label: str
    meaning: str


class SpreadMeta(FrozenModel):
    positions: Tuple[SpreadMetaPosition, ...]


class TarotDraw(FrozenModel):
    spread_type: str
    cards: Tuple[DrawnCard, ...]
    spread_meta: SpreadMeta


def _spread(*positions: Tuple[str, str]) -> TarotSpread:
    return TarotSpread(
        count=len(positions),
        positions=tuple(SpreadPosition(label=label, meaning=meaning) for label, meaning in positions),
    )


TAROT_SPREADS: Mapping[str, TarotSpread] = MappingProxyType({
    "SingleCard": _spread(
        ("Insight", "The core message to focus on right now."),
    ),
    "ThreeCard": _spread(
        ("Past", "What led to this moment."),
        ("Present", "The current energy or situation."),
        ("Future", "Likely direction if the path continues."),
    ),
    "CelticCross": _spread(
        ("Present", "Your current situation or heart of the matter."),
        ("Challenge", "The obstacle, tension, or crossing influence."),
        ("Past", "Recent past events or influences fading."),
        ("Future", "Near-future direction or next steps."),
        ("Above", "Conscious goals, aspirations, or ideals."),
        ("Below", "Subconscious roots, foundations, or hidden motives."),
        ("Advice", "Guidance on how to respond or proceed."),
        ("External", "Outside influences, people, or environment."),
        ("Hopes/Fears", "Inner desires, anxieties, or expectations."),
        ("Outcome", "Likely outcome if current course continues."),
    ),
})


def resolve_spread_name(spread_type: Any) -> str:
    if isinstance(spread_type, str) and spread_type in TAROT_SPREADS:
        return spread_type
    return DEFAULT_SPREAD


def get_tarot_spread_config(spread_type: Any = None) -> TarotSpread:
    """Spread definition by name; unknown or empty names get SingleCard."""
    return TAROT_SPREADS[resolve_spread_name(spread_type)]


def list_tarot_spreads() -> List[Tuple[str, TarotSpread]]:
    return list(TAROT_SPREADS.items())


def seeded_rng(seed: Union[int, str]) -> RandomSource:
    """Reproducible random source. Strings are hashed with SHA-256 first."""
    if isinstance(seed, str):
        digest = hashlib.sha256(seed.encode("utf-8")).digest()
        seed = int.from_bytes(digest[:8], byteorder="big", signed=False)
    return random.Random(seed).random


def shuffle_deck(deck: Sequence[T], rng: RandomSource) -> List[T]:
    """Fisher-Yates over a copy; one rng() call per index from the end down to 1."""
    shuffled = list(deck)
    for i in range(len(shuffled) - 1, 0, -1):
        j = min(math.floor(rng() * (i + 1)), i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def draw_tarot(spread_type: Any = DEFAULT_SPREAD, rng: RandomSource = random.random) -> TarotDraw:
    """Shuffle, deal the spread's cards, then roll one reversal per card.

    Reversal rolls consume ``rng`` only after every shuffle call.
    """
    spread_name = resolve_spread_name(spread_type)
    spread = TAROT_SPREADS[spread_name]
    positions = spread.positions

    shuffled = shuffle_deck(TAROT_DECK, rng)

    cards: List[DrawnCard] = []
    for index, card in enumerate(shuffled[: spread.count]):
        slot = positions[index] if index < len(positions) else None
        cards.append(
            DrawnCard(
                **card.model_dump(),
                position=index + 1,
                position_label=slot.label if slot else None,
                position_meaning=slot.meaning if slot else None,
                is_reversed=rng() < REVERSAL_THRESHOLD,
            )
        )

    logger.debug("drew %d card(s) for %s", len(cards), spread_name)
    return TarotDraw(
        spread_type=spread_name,
        cards=tuple(cards),
        spread_meta=SpreadMeta(
            positions=tuple(
                SpreadMetaPosition(position=index + 1, label=slot.label, meaning=slot.meaning)
                for index, slot in enumerate(positions)
            )
        ),
    )
