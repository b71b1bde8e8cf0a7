"""
Directional scoring cascade.

Each direction starts from a base of 65 and runs through an ordered pipeline of
independent rules. A rule looks at the palace and the calendar context and
returns the adjustments it fires; the engine folds them into the running value
and keeps their names in order. Two clamps run after every additive rule:

1. void palaces are forced to 0
2. otherwise, a suppressed gate caps the score at 40

and the result is finally clamped to [0, 100].
"""

from dataclasses import dataclass
from datetime import datetime
import math
from typing import Callable

from qimen.chart import (
    BRANCH_DIRECTIONS, DIRECTION_BY_NAME, ChartPlate, Palace,
)
from qimen.ganzhi import (
    CalendarIndices, Element, best_life_cycle_score, element_relationship,
)


BASE_SCORE = 65.0
TIE_BREAK_STEP = 0.01
SUPPRESSION_CAP = 40.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0

# Display bands, highest first; anything at or below POOR_SCORE is "poor"
SCORE_BANDS = ((90.0, "excellent"), (75.0, "good"), (60.0, "fair"))
POOR_SCORE = 30.0

# Season element by civil month (1-12)
SEASON_ELEMENTS = {
    1: Element.WOOD, 2: Element.WOOD, 3: Element.WOOD,
    4: Element.FIRE, 5: Element.FIRE, 6: Element.FIRE,
    7: Element.METAL, 8: Element.METAL, 9: Element.METAL,
    10: Element.WATER, 11: Element.WATER, 12: Element.WATER,
}

# period % 4 → travel-horse (驛馬) direction
# Shen-Zi-Chen → Yin, Si-You-Chou → Hai, Yin-Wu-Xu → Shen, Hai-Mao-Wei → Si
TRAVEL_HORSE_DIRECTIONS = {0: "NE", 1: "NW", 2: "SW", 3: "SE"}

TREASURE_STEMS = frozenset({1, 2, 3})  # Yi, Bing, Ding: the three wonders

# Gates that turn the life-cycle bath stage sociable in the directional score
SCORING_SOCIABLE_GATES = frozenset({"open", "rest", "scene"})

HARM_GATE = "harm"
HARM_DIRECTION = "S"

# Adjustment names
SEASON_SAME = "season_same"
SEASON_GENERATES = "season_generates"
SEASON_DRAINED = "season_drained"
SEASON_OPPOSED = "season_opposed"
SEASON_DESTROYS = "season_destroys"
RETURN = "return"
OPPOSITE_RETURN = "opposite_return"
DUAL_COMMANDER = "dual_commander"
PRIMARY_COMMANDER = "primary_commander"
SECONDARY_COMMANDER = "secondary_commander"
CALENDAR_ROTATION = "calendar_rotation"
TRAVEL_HORSE = "travel_horse"
SUPPRESSION = "suppression"
EXHAUSTION = "exhaustion"
MUTUAL_PRODUCTION = "mutual_production"
LIFE_CYCLE = "life_cycle"
TREASURE_STEM = "treasure_stem"
HARM_IN_SOUTH = "harm_in_south"
VOID = "void"
SUPPRESSION_CAPPED = "suppression_cap"

PATTERN_PREFIX = "pattern:"

STRONG_SEASON = frozenset({SEASON_SAME, SEASON_GENERATES})

# season-to-direction relationship → (adjustment, delta)
_SEASON_RULES = {
    "same": (SEASON_SAME, 15.0),
    "generates": (SEASON_GENERATES, 10.0),
    "generated_by": (SEASON_DRAINED, -5.0),
    "destroyed_by": (SEASON_OPPOSED, -10.0),
    "destroys": (SEASON_DESTROYS, -15.0),
}

# direction-to-gate relationship → (adjustment, delta)
_GATE_RULES = {
    "destroys": (SUPPRESSION, -25.0),
    "destroyed_by": (EXHAUSTION, -15.0),
    "generates": (MUTUAL_PRODUCTION, 12.0),
    "generated_by": (MUTUAL_PRODUCTION, 12.0),
}


def score_band(value: float) -> str:
    for threshold, label in SCORE_BANDS:
        if value >= threshold:
            return label
    return "poor" if value <= POOR_SCORE else "neutral"


@dataclass(frozen=True)
class Adjustment:
    name: str
    delta: float


@dataclass(frozen=True)
class DirectionalScore:
    direction: str
    value: float
    adjustments: tuple[Adjustment, ...]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.adjustments)

    def has(self, name: str) -> bool:
        return name in self.names

    def pattern_names(self) -> tuple[str, ...]:
        return tuple(n[len(PATTERN_PREFIX):] for n in self.names if n.startswith(PATTERN_PREFIX))

    def display(self, precision: str = "high"):
        """Whole score rounded half-up for "high", band label for "low"."""
        if precision == "low":
            return score_band(self.value)
        return math.floor(self.value + 0.5)

    def to_dict(self, precision: str = "high"):
        return {
            "value": self.value,
            "display": self.display(precision),
            "adjustments": [{"name": a.name, "delta": a.delta} for a in self.adjustments],
        }


@dataclass(frozen=True)
class ScoringContext:
    indices: CalendarIndices
    month: int  # civil month 1-12 of the solar time

    @property
    def season_element(self) -> Element:
        return SEASON_ELEMENTS.get(self.month, Element.EARTH)


# ============================================================
# DERIVED DIRECTIONS
# ============================================================

def commander_directions(indices: CalendarIndices) -> tuple[int, int]:
    """(primary, secondary) commander direction indices."""
    primary = (indices.period + indices.day_stem) % 8
    return primary, (primary + 4) % 8


def calendar_rotation_direction(month: int, period: int) -> str:
    """Direction owning the branch reached by rotating the month branch by the period."""
    branch = (month % 12 + period) % 12
    return BRANCH_DIRECTIONS[branch].name


def travel_horse_direction(period: int) -> str:
    return TRAVEL_HORSE_DIRECTIONS[period % 4]


# ============================================================
# RULES
# ============================================================

Rule = Callable[[Palace, ScoringContext], list]


def seasonal_rule(palace: Palace, ctx: ScoringContext) -> list:
    relation = element_relationship(ctx.season_element, palace.direction.element)
    name, delta = _SEASON_RULES[relation]
    return [Adjustment(name, delta)]


def return_rule(palace: Palace, ctx: ScoringContext) -> list:
    home = DIRECTION_BY_NAME[palace.gate.home]
    if palace.direction.index == home.index:
        return [Adjustment(RETURN, -10.0)]
    if palace.direction.index == home.opposite_index:
        return [Adjustment(OPPOSITE_RETURN, -15.0)]
    return []


def commander_rule(palace: Palace, ctx: ScoringContext) -> list:
    fired = []
    primary, secondary = commander_directions(ctx.indices)
    i = palace.direction.index
    if i == primary and i == secondary:
        fired.append(Adjustment(DUAL_COMMANDER, 30.0))
    elif i == primary:
        fired.append(Adjustment(PRIMARY_COMMANDER, 25.0))
    elif i == secondary:
        fired.append(Adjustment(SECONDARY_COMMANDER, 20.0))

    name = palace.direction.name
    if name == calendar_rotation_direction(ctx.month, ctx.indices.period):
        fired.append(Adjustment(CALENDAR_ROTATION, 10.0))
    if name == travel_horse_direction(ctx.indices.period):
        fired.append(Adjustment(TRAVEL_HORSE, 12.0))
    return fired


def gate_palace_rule(palace: Palace, ctx: ScoringContext) -> list:
    relation = element_relationship(palace.direction.element, palace.gate.element)
    if relation not in _GATE_RULES:
        return []
    name, delta = _GATE_RULES[relation]
    return [Adjustment(name, delta)]


def stem_pattern_rule(palace: Palace, ctx: ScoringContext) -> list:
    pattern = palace.counted_pattern
    if pattern is None:
        return []
    return [Adjustment(PATTERN_PREFIX + pattern.name, float(pattern.weight))]


def life_cycle_rule(palace: Palace, ctx: ScoringContext) -> list:
    score = best_life_cycle_score(
        palace.heaven_stem, palace.direction.branches,
        gate=palace.gate.key, sociable_gates=SCORING_SOCIABLE_GATES,
    )
    if score == 0:
        return []
    return [Adjustment(LIFE_CYCLE, float(score))]


def minor_rule(palace: Palace, ctx: ScoringContext) -> list:
    # The travel horse already scored in commander_rule.
    fired = []
    if palace.heaven_stem in TREASURE_STEMS:
        fired.append(Adjustment(TREASURE_STEM, 15.0))
    if palace.direction.name == HARM_DIRECTION and palace.gate.key == HARM_GATE:
        fired.append(Adjustment(HARM_IN_SOUTH, -30.0))
    return fired


RULES: tuple[Rule, ...] = (
    seasonal_rule,
    return_rule,
    commander_rule,
    gate_palace_rule,
    stem_pattern_rule,
    life_cycle_rule,
    minor_rule,
)


# ============================================================
# ENGINE
# ============================================================

def base_score(direction_name: str, period: int) -> float:
    """Base value plus a small tie-breaker so no two directions start equal."""
    return BASE_SCORE + (period + len(direction_name)) * TIE_BREAK_STEP


def score_direction(palace: Palace, ctx: ScoringContext) -> DirectionalScore:
    value = base_score(palace.direction.name, ctx.indices.period)
    adjustments: list[Adjustment] = []

    for rule in RULES:
        for adjustment in rule(palace, ctx):
            value += adjustment.delta
            adjustments.append(adjustment)

    if palace.is_void:
        adjustments.append(Adjustment(VOID, -value))
        value = 0.0
    elif any(a.name == SUPPRESSION for a in adjustments) and value > SUPPRESSION_CAP:
        adjustments.append(Adjustment(SUPPRESSION_CAPPED, SUPPRESSION_CAP - value))
        value = SUPPRESSION_CAP

    value = min(MAX_SCORE, max(MIN_SCORE, value))
    return DirectionalScore(
        direction=palace.direction.name,
        value=value,
        adjustments=tuple(adjustments),
    )


def score_chart(plate: ChartPlate, moment: datetime) -> dict[str, DirectionalScore]:
    """
    Score every direction of a plate.

    Args:
        plate: generated plate
        moment: the solar time the plate was generated for (month drives the season)

    Returns:
        direction name → DirectionalScore, in N..NW order
    """
    ctx = ScoringContext(indices=plate.indices, month=moment.month)
    return {p.direction.name: score_direction(p, ctx) for p in plate.palaces}


