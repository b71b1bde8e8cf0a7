"""
Eight-direction plate (Qimen Dun Jia, simplified rotating layout).

Handles:
- Direction, gate (八門) and star (九星) tables
- Gate/star/stem rotation for a solar time
- Void and clash flags per direction
- Named two-stem patterns (heaven stem over earth stem)

Design principle: This module BUILDS the plate and FLAGS it. Scoring lives in
qimen.scoring; the final favorable/unfavorable flag needs the score and is
settled afterwards with settle_patterns().
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
import math

from qimen.astro_calendar import elapsed_day_offset
from qimen.ganzhi import (
    Element, CalendarIndices, HEAVENLY_STEMS, EARTHLY_BRANCHES,
)


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class Direction:
    name: str
    index: int  # 0-7, clockwise from North
    palace: str  # trigram palace
    branches: tuple[int, ...]
    element: Element

    @property
    def opposite_index(self) -> int:
        return (self.index + 4) % 8


@dataclass(frozen=True)
class Gate:
    key: str
    chinese: str
    element: Element
    home: str  # direction name of the gate's own palace
    favorable: bool


@dataclass(frozen=True)
class Star:
    key: str
    chinese: str
    element: Element


@dataclass(frozen=True)
class StemPattern:
    name: str
    chinese: str
    weight: int
    kind: str  # "auspicious", "adverse" or "punishment"


DIRECTIONS = (
    Direction("N", 0, "Kan", (0,), Element.WATER),
    Direction("NE", 1, "Gen", (1, 2), Element.EARTH),
    Direction("E", 2, "Zhen", (3,), Element.WOOD),
    Direction("SE", 3, "Xun", (4, 5), Element.WOOD),
    Direction("S", 4, "Li", (6,), Element.FIRE),
    Direction("SW", 5, "Kun", (7, 8), Element.EARTH),
    Direction("W", 6, "Dui", (9,), Element.METAL),
    Direction("NW", 7, "Qian", (10, 11), Element.METAL),
)

DIRECTION_BY_NAME = {d.name: d for d in DIRECTIONS}

# Branch index → direction owning it
BRANCH_DIRECTIONS = {b: d for d in DIRECTIONS for b in d.branches}

GATES = (
    Gate("open", "開", Element.METAL, "NW", True),
    Gate("rest", "休", Element.WATER, "N", True),
    Gate("life", "生", Element.EARTH, "NE", True),
    Gate("harm", "傷", Element.WOOD, "E", False),
    Gate("block", "杜", Element.WOOD, "SE", False),
    Gate("scene", "景", Element.FIRE, "S", False),
    Gate("death", "死", Element.EARTH, "SW", False),
    Gate("fear", "驚", Element.METAL, "W", False),
)

GATE_BY_KEY = {g.key: g for g in GATES}
FAVORABLE_GATES = frozenset(g.key for g in GATES if g.favorable)

STARS = (
    Star("peng", "天蓬", Element.WATER),
    Star("rui", "天芮", Element.EARTH),
    Star("chong", "天沖", Element.WOOD),
    Star("fu", "天輔", Element.WOOD),
    Star("qin", "天禽", Element.EARTH),
    Star("xin", "天心", Element.METAL),
    Star("zhu", "天柱", Element.METAL),
    Star("ren", "天任", Element.EARTH),
    Star("ying", "天英", Element.FIRE),
)

# "heaven,earth" stem index pair → named pattern
STEM_PATTERNS = {
    "0,2": StemPattern("green_dragon_returns", "青龍返首", 15, "auspicious"),
    "2,0": StemPattern("flying_bird_falls", "飛鳥跌穴", 15, "auspicious"),
    "1,2": StemPattern("kindled_grass", "火燒草露", 8, "auspicious"),
    "3,1": StemPattern("jade_maiden_guards_gate", "玉女守門", 12, "auspicious"),
    "2,3": StemPattern("star_follows_moon", "星隨月轉", 10, "auspicious"),
    "1,3": StemPattern("wonders_assist", "奇儀相佐", 8, "auspicious"),
    "6,2": StemPattern("metal_enters_fire", "太白入熒", -12, "adverse"),
    "2,6": StemPattern("fire_enters_metal", "熒入太白", -12, "adverse"),
    "7,1": StemPattern("white_tiger_rampant", "白虎猖狂", -15, "adverse"),
    "1,7": StemPattern("green_dragon_flees", "青龍逃走", -15, "adverse"),
    "3,9": StemPattern("vermilion_bird_drowns", "朱雀投江", -12, "adverse"),
    "9,3": StemPattern("serpent_writhes", "螣蛇夭矯", -12, "adverse"),
    "6,8": StemPattern("metal_adrift", "移蕩格", -10, "adverse"),
    "6,6": StemPattern("twin_metal_clash", "太白同宮", -15, "punishment"),
    "8,8": StemPattern("heaven_prison", "天牢自刑", -15, "punishment"),
    "9,9": StemPattern("heaven_net", "天網四張", -15, "punishment"),
    "4,4": StemPattern("hidden_groan", "伏吟", -8, "punishment"),
}

FAVORABLE = "favorable"
UNFAVORABLE = "unfavorable"
NO_PATTERN = "none"

UNFAVORABLE_THRESHOLD = 40


@dataclass(frozen=True)
class Palace:
    direction: Direction
    gate: Gate
    star: Star
    heaven_stem: int
    earth_stem: int
    is_void: bool
    is_clash: bool
    named_pattern: Optional[StemPattern]
    pattern: str = NO_PATTERN

    @property
    def counted_pattern(self) -> Optional[StemPattern]:
        """The named pattern, if it applies (void palaces carry none)."""
        return None if self.is_void else self.named_pattern

    def to_dict(self):
        pattern = self.counted_pattern
        return {
            "direction": self.direction.name,
            "gate": self.gate.key,
            "gate_chinese": self.gate.chinese,
            "star": self.star.key,
            "star_chinese": self.star.chinese,
            "heaven_stem": HEAVENLY_STEMS[self.heaven_stem].pinyin,
            "earth_stem": HEAVENLY_STEMS[self.earth_stem].pinyin,
            "is_void": self.is_void,
            "is_clash": self.is_clash,
            "pattern": self.pattern,
            "named_pattern": pattern.name if pattern else None,
        }


@dataclass(frozen=True)
class ChartPlate:
    indices: CalendarIndices
    day_seed: int
    palaces: tuple[Palace, ...]  # in DIRECTIONS order

    def palace(self, direction: str) -> Palace:
        return self.palaces[DIRECTION_BY_NAME[direction].index]

    def gates(self) -> dict[str, str]:
        return {p.direction.name: p.gate.key for p in self.palaces}

    def to_dict(self):
        return {
            "day_seed": self.day_seed,
            "void_branches": [EARTHLY_BRANCHES[b].pinyin for b in self.indices.void_branches],
            "clash_branch": EARTHLY_BRANCHES[self.indices.clash_branch].pinyin,
            "palaces": [p.to_dict() for p in self.palaces],
        }


# ============================================================
# PLATE GENERATION
# ============================================================

def chart_day_seed(moment: datetime) -> int:
    """
    Day-count seed for the plate rotation.

    Elapsed days since the epoch, time of day included. Dates before the epoch
    are folded to a non-negative value with a truncating remainder:
    -5 → 995, -1000 → 1000.
    """
    diff = elapsed_day_offset(moment)
    if diff < 0:
        diff = int(math.fmod(diff, 1000)) + 1000
    return diff


def lookup_stem_pattern(heaven_stem: int, earth_stem: int) -> Optional[StemPattern]:
    return STEM_PATTERNS.get(f"{heaven_stem},{earth_stem}")


def generate_chart(indices: CalendarIndices, moment: datetime) -> ChartPlate:
    """
    Lay out gates, stars and stems over the eight directions.

    Args:
        indices: calendar indices resolved for `moment`
        moment: the (true solar) time the indices were resolved for

    Returns:
        ChartPlate with favorable/none pattern flags; pass it through
        settle_patterns() once scores exist.
    """
    diff = chart_day_seed(moment)
    period = indices.period

    day_shift = diff % 8
    star_shift = (period * 2 + diff) % 9
    heaven_shift = (period + diff) % 10
    earth_shift = (diff * 2) % 10

    void_set = set(indices.void_branches)

    palaces = []
    for direction in DIRECTIONS:
        i = direction.index
        gate = GATES[(i + period + day_shift) % 8]
        star = STARS[(i + star_shift) % 9]
        heaven_stem = (i + heaven_shift) % 10
        earth_stem = (i + earth_shift) % 10

        is_void = bool(void_set.intersection(direction.branches))
        is_clash = indices.clash_branch in direction.branches

        pattern = FAVORABLE if gate.favorable and not is_void and not is_clash else NO_PATTERN

        palaces.append(Palace(
            direction=direction,
            gate=gate,
            star=star,
            heaven_stem=heaven_stem,
            earth_stem=earth_stem,
            is_void=is_void,
            is_clash=is_clash,
            named_pattern=lookup_stem_pattern(heaven_stem, earth_stem),
            pattern=pattern,
        ))

    return ChartPlate(indices=indices, day_seed=diff, palaces=tuple(palaces))


def settle_patterns(plate: ChartPlate, scores: dict[str, float]) -> ChartPlate:
    """
    Return a new plate whose non-favorable palaces are flagged unfavorable
    when their final score is below 40.
    """
    settled = []
    for palace in plate.palaces:
        pattern = palace.pattern
        if pattern != FAVORABLE:
            score = scores.get(palace.direction.name)
            if score is not None and score < UNFAVORABLE_THRESHOLD:
                pattern = UNFAVORABLE
            else:
                pattern = NO_PATTERN
        settled.append(replace(palace, pattern=pattern))
    return replace(plate, palaces=tuple(settled))
