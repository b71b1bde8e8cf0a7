# tests/test_ganzhi.py

import pytest
from datetime import datetime, timedelta

from qimen import ganzhi
from qimen.ganzhi import Element


# --- Epoch anchor: 2024-01-01 is Jia Zi (position 0) ---

def test_epoch_indices():
    idx = ganzhi.resolve_indices(datetime(2024, 1, 1, 0, 0))
    assert idx.day_stem == 0
    assert idx.day_branch == 0
    assert idx.period == 0
    assert idx.hour_stem == 0
    assert idx.clash_branch == 6
    assert idx.void_branches == (0, 1)


def test_day_before_epoch_wraps():
    idx = ganzhi.resolve_indices(datetime(2023, 12, 31, 12, 0))
    # offset -1 → position 59 → Gui Hai
    assert idx.day_stem == 9
    assert idx.day_branch == 11
    assert idx.clash_branch == 5
    assert idx.void_branches == (2, 3)


def test_hour_23_belongs_to_next_day():
    late = datetime(2024, 1, 1, 23, 30)
    early = datetime(2024, 1, 2, 0, 30)
    assert ganzhi.day_stem_index(late) == ganzhi.day_stem_index(early) == 1
    assert ganzhi.day_branch_index(late) == ganzhi.day_branch_index(early) == 1
    assert ganzhi.period_index(late) == ganzhi.period_index(early) == 0


def test_hour_22_stays_on_civil_day():
    assert ganzhi.day_stem_index(datetime(2024, 1, 1, 22, 59)) == 0
    assert ganzhi.period_index(datetime(2024, 1, 1, 22, 59)) == 11


@pytest.mark.parametrize("hour, expected", [
    (0, 0), (1, 1), (2, 1), (3, 2), (11, 6), (12, 6), (13, 7), (21, 11), (22, 11), (23, 0),
])
def test_period_index(hour, expected):
    assert ganzhi.period_index(datetime(2024, 6, 1, hour, 15)) == expected


def test_day_indices_are_60_periodic():
    start = datetime(1990, 3, 15, 10, 30)
    for step in range(0, 400, 7):
        moment = start + timedelta(days=step)
        later = moment + timedelta(days=60)
        assert 0 <= ganzhi.day_stem_index(moment) <= 9
        assert 0 <= ganzhi.day_branch_index(moment) <= 11
        assert ganzhi.day_stem_index(later) == ganzhi.day_stem_index(moment)
        assert ganzhi.day_branch_index(later) == ganzhi.day_branch_index(moment)


def test_stem_and_branch_share_parity():
    # Stem and branch come from one sexagenary position, so (branch - stem) is even
    for step in range(120):
        moment = datetime(2020, 1, 1) + timedelta(days=step)
        diff = ganzhi.day_branch_index(moment) - ganzhi.day_stem_index(moment)
        assert diff % 2 == 0


@pytest.mark.parametrize("day_stem, period, expected", [
    (0, 0, 0),   # Jia day → Jia Zi
    (5, 0, 0),   # Ji day → Jia Zi
    (1, 0, 2),   # Yi day → Bing Zi
    (3, 0, 6),   # Ding day → Geng Zi
    (4, 1, 9),   # Wu day, Chou period → Gui
    (9, 11, 9),
])
def test_hour_stem_double_head_rule(day_stem, period, expected):
    assert ganzhi.hour_stem_index(day_stem, period) == expected


@pytest.mark.parametrize("stem, branch, expected", [
    (0, 0, (0, 1)),
    (0, 2, (2, 3)),
    (2, 6, (4, 5)),
    (0, 6, (6, 7)),
    (1, 9, (8, 9)),
    (9, 11, (2, 3)),
    (0, 10, (10, 11)),
])
def test_void_branches_even_diffs(stem, branch, expected):
    assert ganzhi.void_branches(stem, branch) == expected


def test_void_branches_odd_diff_is_empty():
    for stem in range(10):
        for branch in range(12):
            result = ganzhi.void_branches(stem, branch)
            if (branch - stem) % 2:
                assert result == ()
            else:
                assert len(result) == 2


def test_clash_is_opposite():
    assert [ganzhi.clash_branch(b) for b in range(12)] == [6, 7, 8, 9, 10, 11, 0, 1, 2, 3, 4, 5]


# --- Element relationships ---

def test_tables_carry_element_members():
    from qimen.chart import DIRECTIONS, GATES
    elements = [s.element for s in ganzhi.HEAVENLY_STEMS]
    elements += [b.element for b in ganzhi.EARTHLY_BRANCHES]
    elements += [d.element for d in DIRECTIONS] + [g.element for g in GATES]
    assert all(isinstance(e, Element) for e in elements)
    assert set(elements) == set(ganzhi.ELEMENT_CYCLE)


def test_element_relationship():
    assert ganzhi.element_relationship(Element.WOOD, Element.WOOD) == "same"
    assert ganzhi.element_relationship(Element.WOOD, Element.FIRE) == "generates"
    assert ganzhi.element_relationship(Element.FIRE, Element.WOOD) == "generated_by"
    assert ganzhi.element_relationship(Element.WOOD, Element.EARTH) == "destroys"
    assert ganzhi.element_relationship(Element.EARTH, Element.WOOD) == "destroyed_by"
    assert ganzhi.element_relationship(Element.WATER, Element.FIRE) == "destroys"
    assert ganzhi.element_relationship(Element.METAL, Element.WOOD) == "destroys"


# --- Life cycle ---

@pytest.mark.parametrize("stem, branch, offset", [
    (0, 11, 0),   # Jia born at Hai
    (0, 3, 4),    # Jia peaks at Mao
    (1, 6, 0),    # Yi born at Wu
    (1, 2, 4),    # Yi counts backwards: Wu → Yin is 4 steps
    (7, 11, 1),   # Xin: Zi → Hai backwards
])
def test_life_cycle_offset(stem, branch, offset):
    assert ganzhi.life_cycle_offset(stem, branch) == offset


def test_life_cycle_scores():
    # Jia (anchor Hai = 11), forward
    expected = {11: 15, 0: 5, 1: 10, 2: 15, 3: 20, 4: 0, 5: -10, 6: -15, 7: -35, 8: -15, 9: 0, 10: 10}
    for branch, score in expected.items():
        assert ganzhi.life_cycle_score(0, branch) == score


def test_bath_stage_sociable_gate():
    # Jia at Zi is the bath stage
    assert ganzhi.life_cycle_score(0, 0, gate="open", sociable_gates=frozenset({"open"})) == 10
    assert ganzhi.life_cycle_score(0, 0, gate="death", sociable_gates=frozenset({"open"})) == 5
    assert ganzhi.life_cycle_score(0, 0) == 5


def test_best_life_cycle_takes_max():
    # Jia over Xu/Hai: nourish (10) vs birth (15)
    assert ganzhi.best_life_cycle_score(0, (10, 11)) == 15
    # Jia over Wei/Shen: grave (-35) vs extinction (-15)
    assert ganzhi.best_life_cycle_score(0, (7, 8)) == -15
