"""
Personal life-cycle overlay.

Scores each direction by the twelve life-cycle stages of the subject's day
stem. With a birth profile the birth date supplies the day stem; in guest mode
the current true solar time stands in as the birth moment.

The result is a separate per-direction number. It is never folded into the
directional scores here.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from qimen.chart import DIRECTIONS
from qimen.ganzhi import (
    HEAVENLY_STEMS, EARTHLY_BRANCHES, best_life_cycle_score,
    day_stem_index, day_branch_index,
)
from qimen.models import UserProfile


# Birth dates whose day pillar is fixed by hand: date → (stem, branch)
FIXED_DAY_PILLARS = {
    "1972-03-25": (1, 11),  # 乙亥 Yi Hai
    "1993-04-14": (0, 2),   # 甲寅 Jia Yin
}

# Gates that turn the bath stage sociable in the personal overlay.
# Not the same set the directional score uses.
PERSONAL_SOCIABLE_GATES = frozenset({"open", "rest", "life"})

GUEST_NAME = "Guest"


@dataclass(frozen=True)
class Subject:
    name: str
    is_guest: bool
    day_stem: int
    day_branch: int

    def to_dict(self):
        stem = HEAVENLY_STEMS[self.day_stem]
        return {
            "name": self.name,
            "mode": "guest" if self.is_guest else "user",
            "day_stem": stem.pinyin,
            "day_branch": EARTHLY_BRANCHES[self.day_branch].pinyin,
            "description": str(stem),
        }


def resolve_subject(user: Optional[UserProfile], solar_time: datetime) -> Subject:
    """
    Resolve whose day stem drives the overlay.

    Args:
        user: birth profile, or None for guest mode
        solar_time: current true solar time (the guest's stand-in birth moment)
    """
    if user is None:
        return Subject(
            name=GUEST_NAME,
            is_guest=True,
            day_stem=day_stem_index(solar_time),
            day_branch=day_branch_index(solar_time),
        )

    fixed = FIXED_DAY_PILLARS.get(user.birth.strftime("%Y-%m-%d"))
    if fixed is not None:
        stem, branch = fixed
    else:
        stem, branch = day_stem_index(user.birth), day_branch_index(user.birth)
    return Subject(name=user.name, is_guest=False, day_stem=stem, day_branch=branch)


def personal_scores(day_stem: int, gates: Optional[dict[str, str]] = None) -> dict[str, int]:
    """
    Best life-cycle score of `day_stem` over each direction's branches.

    Args:
        day_stem: subject's day stem index 0-9
        gates: direction name → gate key from the current plate; without it the
               bath stage always scores its plain value

    Returns:
        direction name → score, in N..NW order
    """
    gates = gates or {}
    return {
        d.name: best_life_cycle_score(
            day_stem, d.branches,
            gate=gates.get(d.name), sociable_gates=PERSONAL_SOCIABLE_GATES,
        )
        for d in DIRECTIONS
    }
