"""
Stem/branch (Gan Zhi) arithmetic for the compass engine.

Handles:
- Heavenly stem, earthly branch and five-element tables
- Calendar index resolution (day/hour stem and branch, two-hour period)
- Void (Gong Mang) and clash lookups
- Element production/destruction relationships
- Twelve life-cycle stage (Shi Er Yun Xing) offsets and scores

Every function here is a pure map over integers and datetimes. Lookup misses
resolve to neutral defaults instead of raising.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from qimen.astro_calendar import civil_day_offset


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"


class Element(Enum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"


# Generation order, used for the relational distance in facing scores
ELEMENT_CYCLE = (Element.WOOD, Element.FIRE, Element.EARTH, Element.METAL, Element.WATER)


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.pinyin} ({self.polarity.value} {self.element.value})"


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    animal: str
    element: Element
    index: int  # 0-11 in the cycle

    def __str__(self):
        return f"{self.pinyin} ({self.animal})"


HEAVENLY_STEMS = (
    HeavenlyStem("甲", "Jia", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "Yi", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "Bing", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "Ding", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "Wu", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "Ji", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "Geng", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "Xin", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "Ren", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "Gui", Element.WATER, Polarity.YIN, 9),
)

EARTHLY_BRANCHES = (
    EarthlyBranch("子", "Zi", "Rat", Element.WATER, 0),
    EarthlyBranch("丑", "Chou", "Ox", Element.EARTH, 1),
    EarthlyBranch("寅", "Yin", "Tiger", Element.WOOD, 2),
    EarthlyBranch("卯", "Mao", "Rabbit", Element.WOOD, 3),
    EarthlyBranch("辰", "Chen", "Dragon", Element.EARTH, 4),
    EarthlyBranch("巳", "Si", "Snake", Element.FIRE, 5),
    EarthlyBranch("午", "Wu", "Horse", Element.FIRE, 6),
    EarthlyBranch("未", "Wei", "Goat", Element.EARTH, 7),
    EarthlyBranch("申", "Shen", "Monkey", Element.METAL, 8),
    EarthlyBranch("酉", "You", "Rooster", Element.METAL, 9),
    EarthlyBranch("戌", "Xu", "Dog", Element.EARTH, 10),
    EarthlyBranch("亥", "Hai", "Pig", Element.WATER, 11),
)


# ============================================================
# ELEMENT RELATIONSHIPS
# ============================================================

# Production cycle: Wood → Fire → Earth → Metal → Water → Wood
PRODUCTION_CYCLE = {
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
}

# Destruction cycle: Wood → Earth → Water → Fire → Metal → Wood
DESTRUCTION_CYCLE = {
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
}


def element_relationship(subject: Element, other: Element) -> str:
    """
    Classify `other` from the perspective of `subject`.

    Returns one of "same", "generates" (subject produces other),
    "generated_by", "destroys" (subject destroys other) or "destroyed_by".
    Every pair of elements falls into exactly one class.
    """
    if subject == other:
        return "same"
    if PRODUCTION_CYCLE[subject] == other:
        return "generates"
    if PRODUCTION_CYCLE[other] == subject:
        return "generated_by"
    if DESTRUCTION_CYCLE[subject] == other:
        return "destroys"
    return "destroyed_by"


# ============================================================
# CALENDAR INDICES
# ============================================================

# (branch - stem) mod 12 → void branch pair of the current decade (旬空)
VOID_BRANCHES = {
    0: (0, 1),     # Zi, Chou
    2: (2, 3),     # Yin, Mao
    4: (4, 5),     # Chen, Si
    6: (6, 7),     # Wu, Wei
    8: (8, 9),     # Shen, You
    10: (10, 11),  # Xu, Hai
}


@dataclass(frozen=True)
class CalendarIndices:
    day_stem: int       # 0-9
    day_branch: int     # 0-11
    period: int         # two-hour period (shi chen) 0-11
    hour_stem: int      # 0-9
    void_branches: tuple[int, ...]  # exactly 2, or empty for an unmapped pairing
    clash_branch: int   # 0-11

    def to_dict(self):
        return {
            "day_stem": HEAVENLY_STEMS[self.day_stem].pinyin,
            "day_branch": EARTHLY_BRANCHES[self.day_branch].pinyin,
            "period": EARTHLY_BRANCHES[self.period].pinyin,
            "hour_stem": HEAVENLY_STEMS[self.hour_stem].pinyin,
            "void_branches": [EARTHLY_BRANCHES[b].pinyin for b in self.void_branches],
            "clash_branch": EARTHLY_BRANCHES[self.clash_branch].pinyin,
            "indices": {
                "day_stem": self.day_stem,
                "day_branch": self.day_branch,
                "period": self.period,
                "hour_stem": self.hour_stem,
                "void_branches": list(self.void_branches),
                "clash_branch": self.clash_branch,
            },
        }


def period_index(moment: datetime) -> int:
    """
    Two-hour period (shi chen) index for a solar time.

    23:00-00:59 = Zi (0), 01:00-02:59 = Chou (1), ... 21:00-22:59 = Hai (11).
    Hour 23 already belongs to the next day's first period.
    """
    return ((moment.hour + 1) // 2) % 12


def sexagenary_day(moment: datetime) -> int:
    """
    Position 0-59 of the day in the sexagenary cycle.

    From 23:00 the day pillar already counts as the following civil day.
    """
    if moment.hour == 23:
        moment = moment + timedelta(hours=1)
    return civil_day_offset(moment) % 60


def day_stem_index(moment: datetime) -> int:
    return sexagenary_day(moment) % 10


def day_branch_index(moment: datetime) -> int:
    return sexagenary_day(moment) % 12


def hour_stem_index(day_stem: int, period: int) -> int:
    """
    Hour stem by the Five Rats rule: each day stem fixes the stem of its
    Zi period, then the stem advances by one per period.

    Jia/Ji day → Jia Zi, Yi/Geng → Bing Zi, Bing/Xin → Wu Zi,
    Ding/Ren → Geng Zi, Wu/Gui → Ren Zi.
    """
    return ((day_stem % 5) * 2 + period) % 10


def void_branches(day_stem: int, day_branch: int) -> tuple[int, ...]:
    diff = (day_branch - day_stem + 12) % 12
    return VOID_BRANCHES.get(diff, ())


def clash_branch(day_branch: int) -> int:
    """Branch diametrically opposite on the 12-slot wheel (Zi-Wu, Chou-Wei, ...)."""
    return (day_branch + 6) % 12


def resolve_indices(moment: datetime) -> CalendarIndices:
    """
    Resolve every calendar index for a (normally true solar) time.

    Args:
        moment: naive datetime, already corrected to true solar time if wanted

    Returns:
        CalendarIndices for the moment
    """
    day_stem = day_stem_index(moment)
    day_branch = day_branch_index(moment)
    period = period_index(moment)
    return CalendarIndices(
        day_stem=day_stem,
        day_branch=day_branch,
        period=period,
        hour_stem=hour_stem_index(day_stem, period),
        void_branches=void_branches(day_stem, day_branch),
        clash_branch=clash_branch(day_branch),
    )


# ============================================================
# TWELVE LIFE-CYCLE STAGES
# ============================================================

# Birth (長生) branch of each stem. Yang stems advance through the
# branches from here, yin stems walk backwards.
LIFE_CYCLE_ANCHORS = (
    11,  # Jia → Hai
    6,   # Yi → Wu
    2,   # Bing → Yin
    9,   # Ding → You
    2,   # Wu → Yin
    9,   # Ji → You
    5,   # Geng → Si
    0,   # Xin → Zi
    8,   # Ren → Shen
    3,   # Gui → Mao
)

# offset → score; the bath stage (offset 1) is resolved separately
LIFE_CYCLE_SCORES = {
    0: 15,    # birth
    2: 10,    # cap and belt
    3: 15,    # officer
    4: 20,    # peak
    6: -10,   # sickness
    7: -15,   # death
    8: -35,   # grave
    9: -15,   # extinction
    11: 10,   # nourish
}

BATH_SCORE = 5
SOCIABLE_BATH_SCORE = 10


def life_cycle_offset(stem: int, branch: int) -> int:
    anchor = LIFE_CYCLE_ANCHORS[stem]
    if HEAVENLY_STEMS[stem].polarity == Polarity.YANG:
        return (branch - anchor + 12) % 12
    return (anchor - branch + 12) % 12


def life_cycle_score(stem: int, branch: int, gate: Optional[str] = None,
                     sociable_gates: frozenset = frozenset()) -> int:
    """
    Score the life-cycle stage of `stem` at `branch`.

    The bath stage is neutral-positive (+5) unless the direction's gate is one
    of `sociable_gates`, in which case it counts as +10.
    """
    offset = life_cycle_offset(stem, branch)
    if offset == 1:
        return SOCIABLE_BATH_SCORE if gate in sociable_gates else BATH_SCORE
    return LIFE_CYCLE_SCORES.get(offset, 0)


def best_life_cycle_score(stem: int, branches, gate: Optional[str] = None,
                          sociable_gates: frozenset = frozenset()) -> int:
    """Best stage score over a direction's branch set."""
    return max(life_cycle_score(stem, b, gate, sociable_gates) for b in branches)
