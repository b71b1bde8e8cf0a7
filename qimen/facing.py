"""
Twenty-four mountain (二十四山) facing score.

The compass circle is split into 24 sectors of 15°. The sector the device
faces is compared, by element, with the sector of the current two-hour
period's branch.
"""

from dataclasses import dataclass
from typing import Optional

from qimen.ganzhi import EARTHLY_BRANCHES, ELEMENT_CYCLE, Element, Polarity

# Fixed magnetic declination applied when magnetic north is enabled (degrees)
MAG_DECLINATION = -8.5

NEUTRAL_SCORE = 50

# (object − subject + 5) mod 5 over ELEMENT_CYCLE → score
INTERACTION_SCORES = {
    0: 80,    # same element
    1: 60,    # facing generates the period
    2: 40,    # facing controls the period
    3: 20,    # the period controls the facing
    4: 100,   # the period generates the facing
}


@dataclass(frozen=True)
class Mountain:
    chinese: str
    pinyin: str
    angle_start: float
    angle_end: float
    element: Element
    polarity: Polarity


MOUNTAINS = (
    # North
    Mountain("壬", "Ren", 337.5, 352.5, Element.WATER, Polarity.YANG),
    Mountain("子", "Zi", 352.5, 7.5, Element.WATER, Polarity.YIN),
    Mountain("癸", "Gui", 7.5, 22.5, Element.WATER, Polarity.YIN),
    # Northeast
    Mountain("丑", "Chou", 22.5, 37.5, Element.EARTH, Polarity.YIN),
    Mountain("艮", "Gen", 37.5, 52.5, Element.EARTH, Polarity.YANG),
    Mountain("寅", "Yin", 52.5, 67.5, Element.WOOD, Polarity.YANG),
    # East
    Mountain("甲", "Jia", 67.5, 82.5, Element.WOOD, Polarity.YANG),
    Mountain("卯", "Mao", 82.5, 97.5, Element.WOOD, Polarity.YIN),
    Mountain("乙", "Yi", 97.5, 112.5, Element.WOOD, Polarity.YIN),
    # Southeast
    Mountain("辰", "Chen", 112.5, 127.5, Element.EARTH, Polarity.YANG),
    Mountain("巽", "Xun", 127.5, 142.5, Element.WOOD, Polarity.YIN),
    Mountain("巳", "Si", 142.5, 157.5, Element.FIRE, Polarity.YANG),
    # South
    Mountain("丙", "Bing", 157.5, 172.5, Element.FIRE, Polarity.YANG),
    Mountain("午", "Wu", 172.5, 187.5, Element.FIRE, Polarity.YIN),
    Mountain("丁", "Ding", 187.5, 202.5, Element.FIRE, Polarity.YIN),
    # Southwest
    Mountain("未", "Wei", 202.5, 217.5, Element.EARTH, Polarity.YIN),
    Mountain("坤", "Kun", 217.5, 232.5, Element.EARTH, Polarity.YANG),
    Mountain("申", "Shen", 232.5, 247.5, Element.METAL, Polarity.YANG),
    # West
    Mountain("庚", "Geng", 247.5, 262.5, Element.METAL, Polarity.YANG),
    Mountain("酉", "You", 262.5, 277.5, Element.METAL, Polarity.YIN),
    Mountain("辛", "Xin", 277.5, 292.5, Element.METAL, Polarity.YIN),
    # Northwest
    Mountain("戌", "Xu", 292.5, 307.5, Element.EARTH, Polarity.YANG),
    Mountain("乾", "Qian", 307.5, 322.5, Element.METAL, Polarity.YANG),
    Mountain("亥", "Hai", 322.5, 337.5, Element.WATER, Polarity.YIN),
)

MOUNTAIN_BY_PINYIN = {m.pinyin: m for m in MOUNTAINS}
ZI_MOUNTAIN = MOUNTAIN_BY_PINYIN["Zi"]


@dataclass(frozen=True)
class FacingResult:
    heading: float  # normalized heading used for the lookup
    mountain: Mountain
    period_branch: str
    period_element: Optional[Element]
    score: int

    def to_dict(self):
        return {
            "heading": round(self.heading, 2),
            "mountain": self.mountain.pinyin,
            "mountain_chinese": self.mountain.chinese,
            "element": self.mountain.element.value,
            "period_branch": self.period_branch,
            "period_element": self.period_element.value if self.period_element else None,
            "score": self.score,
            "description": f"{self.mountain.element.value} facing vs {self.period_branch} period",
        }


def normalize_heading(heading: float) -> float:
    return heading % 360


def magnetic_heading(heading: float, use_magnetic_north: bool) -> float:
    return heading + MAG_DECLINATION if use_magnetic_north else heading


def find_mountain(heading: float) -> Mountain:
    """
    Sector containing `heading`.

    Zi spans 352.5°-7.5° across north, so it is checked before the plain
    range search.
    """
    h = normalize_heading(heading)
    if h >= ZI_MOUNTAIN.angle_start or h < ZI_MOUNTAIN.angle_end:
        return ZI_MOUNTAIN
    for mountain in MOUNTAINS:
        if mountain.angle_start <= h < mountain.angle_end:
            return mountain
    return MOUNTAINS[0]  # fallback


def interaction_score(subject: Optional[Element], other: Optional[Element]) -> int:
    """
    Score `other` against `subject` by distance on the generation cycle.
    Unknown elements are neutral (50).
    """
    if subject not in ELEMENT_CYCLE or other not in ELEMENT_CYCLE:
        return NEUTRAL_SCORE
    diff = (ELEMENT_CYCLE.index(other) - ELEMENT_CYCLE.index(subject) + 5) % 5
    return INTERACTION_SCORES[diff]


def score_facing(heading: float, period: int, use_magnetic_north: bool = False) -> FacingResult:
    """
    Facing quality for a heading during a two-hour period.

    Args:
        heading: device/map heading in degrees
        period: two-hour period (branch) index 0-11
        use_magnetic_north: apply the fixed declination before lookup

    Returns:
        FacingResult; the facing sector is the subject, the period's sector the object
    """
    h = normalize_heading(magnetic_heading(heading, use_magnetic_north))
    mountain = find_mountain(h)

    branch = EARTHLY_BRANCHES[period].pinyin
    period_mountain = MOUNTAIN_BY_PINYIN.get(branch)
    period_element = period_mountain.element if period_mountain else None

    return FacingResult(
        heading=h,
        mountain=mountain,
        period_branch=branch,
        period_element=period_element,
        score=interaction_score(mountain.element, period_element),
    )
