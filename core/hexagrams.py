"""Hexagram catalog and the changing-line rules used for I Ching readings.

Line positions are 1-based and counted from the bottom: a hexagram's
``lines`` are the lower trigram's three lines followed by the upper
trigram's three lines.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from core.numeric import coerce_number, is_integral, normalize_number
from core.schema import FrozenModel
from core.trigrams import TRIGRAMS, Bit, Trigram, pick_trigram

logger = logging.getLogger("divination_bridge.hexagrams")

LINE_COUNT = 6


class Hexagram(FrozenModel):
    number: int
    name: str
    pinyin: str
    title: str
    upper_trigram: Trigram
    lower_trigram: Trigram
    lines: Tuple[Bit, Bit, Bit, Bit, Bit, Bit]


class LineDetail(FrozenModel):
    position: int
    bit: Bit
    is_changing: bool
    status: str


class Reading(FrozenModel):
    hexagram: Hexagram
    changing_lines: Tuple[int, ...]
    resulting_hexagram: Hexagram
    lines: Tuple[LineDetail, ...]


# King Wen number, pinyin and name, keyed by (upper, lower) trigram name
_KING_WEN: Dict[Tuple[str, str], Tuple[int, str, str]] = {
    ("Qian", "Qian"): (1, "Qian", "The Creative"),
    ("Kun", "Kun"): (2, "Kun", "The Receptive"),
    ("Kan", "Zhen"): (3, "Zhun", "Difficulty at the Beginning"),
    ("Gen", "Kan"): (4, "Meng", "Youthful Folly"),
    ("Kan", "Qian"): (5, "Xu", "Waiting"),
    ("Qian", "Kan"): (6, "Song", "Conflict"),
    ("Kun", "Kan"): (7, "Shi", "The Army"),
    ("Kan", "Kun"): (8, "Bi", "Holding Together"),
    ("Xun", "Qian"): (9, "Xiao Chu", "Taming Power of the Small"),
    ("Qian", "Dui"): (10, "Lu", "Treading"),
    ("Kun", "Qian"): (11, "Tai", "Peace"),
    ("Qian", "Kun"): (12, "Pi", "Standstill"),
    ("Qian", "Li"): (13, "Tong Ren", "Fellowship with Men"),
    ("Li", "Qian"): (14, "Da You", "Possession in Great Measure"),
    ("Kun", "Gen"): (15, "Qian", "Modesty"),
    ("Zhen", "Kun"): (16, "Yu", "Enthusiasm"),
    ("Dui", "Zhen"): (17, "Sui", "Following"),
    ("Gen", "Xun"): (18, "Gu", "Work on What Has Been Spoiled"),
    ("Kun", "Dui"): (19, "Lin", "Approach"),
    ("Xun", "Kun"): (20, "Guan", "Contemplation"),
    ("Li", "Zhen"): (21, "Shi He", "Biting Through"),
    ("Gen", "Li"): (22, "Bi", "Grace"),
    ("Gen", "Kun"): (23, "Bo", "Splitting Apart"),
    ("Kun", "Zhen"): (24, "Fu", "Return"),
    ("Qian", "Zhen"): (25, "Wu Wang", "Innocence"),
    ("Gen", "Qian"): (26, "Da Chu", "Taming Power of the Great"),
    ("Gen", "Zhen"): (27, "Yi", "Nourishment"),
    ("Dui", "Xun"): (28, "Da Guo", "Preponderance of the Great"),
    ("Kan", "Kan"): (29, "Kan", "The Abysmal"),
    ("Li", "Li"): (30, "Li", "The Clinging"),
    ("Dui", "Gen"): (31, "Xian", "Influence"),
    ("Zhen", "Xun"): (32, "Heng", "Duration"),
    ("Qian", "Gen"): (33, "Dun", "Retreat"),
    ("Zhen", "Qian"): (34, "Da Zhuang", "The Power of the Great"),
    ("Li", "Kun"): (35, "Jin", "Progress"),
    ("Kun", "Li"): (36, "Ming Yi", "Darkening of the Light"),
    ("Xun", "Li"): (37, "Jia Ren", "The Family"),
    ("Li", "Dui"): (38, "Kui", "Opposition"),
    ("Kan", "Gen"): (39, "Jian", "Obstruction"),
    ("Zhen", "Kan"): (40, "Xie", "Deliverance"),
    ("Gen", "Dui"): (41, "Sun", "Decrease"),
    ("Xun", "Zhen"): (42, "Yi", "Increase"),
    ("Dui", "Qian"): (43, "Guai", "Breakthrough"),
    ("Qian", "Xun"): (44, "Gou", "Coming to Meet"),
    ("Dui", "Kun"): (45, "Cui", "Gathering Together"),
    ("Kun", "Xun"): (46, "Sheng", "Pushing Upward"),
    ("Dui", "Kan"): (47, "Kun", "Oppression"),
    ("Kan", "Xun"): (48, "Jing", "The Well"),
    ("Dui", "Li"): (49, "Ge", "Revolution"),
    ("Li", "Xun"): (50, "Ding", "The Cauldron"),
    ("Zhen", "Zhen"): (51, "Zhen", "The Arousing"),
    ("Gen", "Gen"): (52, "Gen", "Keeping Still"),
    ("Xun", "Gen"): (53, "Jian", "Development"),
    ("Zhen", "Dui"): (54, "Gui Mei", "The Marrying Maiden"),
    ("Zhen", "Li"): (55, "Feng", "Abundance"),
    ("Li", "Gen"): (56, "Lu", "The Wanderer"),
    ("Xun", "Xun"): (57, "Xun", "The Gentle"),
    ("Dui", "Dui"): (58, "Dui", "The Joyous"),
    ("Xun", "Kan"): (59, "Huan", "Dispersion"),
    ("Kan", "Dui"): (60, "Jie", "Limitation"),
    ("Xun", "Dui"): (61, "Zhong Fu", "Inner Truth"),
    ("Zhen", "Gen"): (62, "Xiao Guo", "Preponderance of the Small"),
    ("Kan", "Li"): (63, "Ji Ji", "After Completion"),
    ("Li", "Kan"): (64, "Wei Ji", "Before Completion"),
}


def _build_catalog() -> Tuple[Hexagram, ...]:
    catalog: List[Hexagram] = []
    for upper in TRIGRAMS:
        for lower in TRIGRAMS:
            number, pinyin, name = _KING_WEN[(upper.name, lower.name)]
            catalog.append(
                Hexagram(
                    number=number,
                    name=name,
                    pinyin=pinyin,
                    title=f"{upper.element} over {lower.element}",
                    upper_trigram=upper,
                    lower_trigram=lower,
                    lines=lower.lines + upper.lines,
                )
            )
    catalog.sort(key=lambda h: h.number)
    if len(catalog) != 64:
        raise RuntimeError(f"hexagram catalog should hold 64 entries, got {len(catalog)}")
    return tuple(catalog)


HEXAGRAMS: Tuple[Hexagram, ...] = _build_catalog()
HEXAGRAMS_BY_TRIGRAMS: Mapping[Tuple[int, int], Hexagram] = MappingProxyType(
    {(h.upper_trigram.id, h.lower_trigram.id): h for h in HEXAGRAMS}
)
HEXAGRAMS_BY_LINES: Mapping[Tuple[int, ...], Hexagram] = MappingProxyType({h.lines: h for h in HEXAGRAMS})


def list_hexagrams() -> Tuple[Hexagram, ...]:
    return HEXAGRAMS


def build_hexagram(upper: Optional[Trigram], lower: Optional[Trigram]) -> Optional[Hexagram]:
    if upper is None or lower is None:
        return None
    return HEXAGRAMS_BY_TRIGRAMS.get((upper.id, lower.id))


def hexagram_from_lines(lines: Sequence[Any]) -> Optional[Hexagram]:
    try:
        key = tuple(int(bit) for bit in lines)
    except (TypeError, ValueError):
        return None
    return HEXAGRAMS_BY_LINES.get(key)


def _valid_positions(positions: Optional[Iterable[Any]]) -> List[int]:
    """Positions within 1..6; anything else is dropped, order and repeats kept."""
    if positions is None or isinstance(positions, (str, bytes)):
        return []
    valid: List[int] = []
    for raw in positions:
        position = coerce_number(raw)
        if is_integral(position) and 1 <= position <= LINE_COUNT:
            valid.append(position)
    return valid


def apply_changing_lines(hexagram: Optional[Hexagram], positions: Optional[Iterable[Any]]) -> Optional[Hexagram]:
    """Flip the given line positions and return the resulting hexagram.

    Flipping twice cancels out. The input hexagram is left untouched.
    """
    if hexagram is None:
        return None
    lines = list(hexagram.lines)
    for position in _valid_positions(positions):
        lines[position - 1] ^= 1
    return HEXAGRAMS_BY_LINES[tuple(lines)]


def derive_changing_lines_from_numbers(numbers: Any) -> List[int]:
    """Plum-blossom rule: sum of the three drawn numbers, wrapped into 1..6."""
    if not isinstance(numbers, (list, tuple)) or len(numbers) != 3:
        return []
    normalized = [normalize_number(value, 8) for value in numbers]
    if not all(is_integral(value) for value in normalized):
        logger.debug("rejecting drawn numbers %r", numbers)
        return []
    line = normalize_number(sum(normalized), 6)
    return [line] if line is not None else []


def derive_changing_lines_from_time_context(time_context: Any) -> List[int]:
    """One line from the date, one from the time of day; sorted and unique."""
    if not isinstance(time_context, Mapping):
        return []

    parts: Dict[str, int] = {}
    for field in ("year", "month", "day", "hour", "minute"):
        raw = time_context.get(field)
        if raw is None and field == "minute":
            raw = 0
        value = coerce_number(raw)
        if not is_integral(value):
            return []
        parts[field] = value

    date_line = normalize_number(parts["year"] + parts["month"] + parts["day"], 6)
    time_line = normalize_number(parts["hour"] * 100 + parts["minute"], 6)
    return sorted({line for line in (date_line, time_line) if line is not None})


def _line_status(bit: int, is_changing: bool) -> str:
    if bit == 1:
        return "Old Yang (Moving)" if is_changing else "Young Yang (Stable)"
    return "Old Yin (Moving)" if is_changing else "Young Yin (Stable)"


def get_detailed_lines(hexagram: Optional[Hexagram], positions: Optional[Iterable[Any]] = None) -> List[LineDetail]:
    if hexagram is None:
        return []
    changing = set(_valid_positions(positions))
    details: List[LineDetail] = []
    for index, bit in enumerate(hexagram.lines):
        position = index + 1
        is_changing = position in changing
        details.append(
            LineDetail(
                position=position,
                bit=bit,
                is_changing=is_changing,
                status=_line_status(bit, is_changing),
            )
        )
    return details


def cast_reading(upper_value: Any, lower_value: Any, changing_lines: Sequence[int]) -> Optional[Reading]:
    hexagram = build_hexagram(pick_trigram(upper_value), pick_trigram(lower_value))
    if hexagram is None:
        return None
    return Reading(
        hexagram=hexagram,
        changing_lines=tuple(changing_lines),
        resulting_hexagram=apply_changing_lines(hexagram, changing_lines),
        lines=tuple(get_detailed_lines(hexagram, changing_lines)),
    )
