# tests/test_personal.py

from datetime import datetime

from qimen import personal
from qimen.models import UserProfile
from qimen.scoring import SCORING_SOCIABLE_GATES


def test_guest_uses_current_solar_time():
    subject = personal.resolve_subject(None, datetime(2024, 1, 1, 10, 0))
    assert subject.is_guest
    assert subject.name == personal.GUEST_NAME
    assert (subject.day_stem, subject.day_branch) == (0, 0)


def test_guest_late_hour_rolls_to_next_day():
    subject = personal.resolve_subject(None, datetime(2024, 1, 1, 23, 10))
    assert (subject.day_stem, subject.day_branch) == (1, 1)


def test_user_birth_date_drives_stem():
    user = UserProfile(name="Alex", birth=datetime(2024, 1, 3, 8, 0))
    subject = personal.resolve_subject(user, datetime(2030, 6, 1))
    assert not subject.is_guest
    assert subject.name == "Alex"
    assert (subject.day_stem, subject.day_branch) == (2, 2)


def test_fixed_day_pillar_overrides():
    first = UserProfile(name="A", birth=datetime(1972, 3, 25, 14, 30))
    second = UserProfile(name="B", birth=datetime(1993, 4, 14))
    assert personal.resolve_subject(first, datetime(2024, 1, 1)).day_stem == 1
    assert personal.resolve_subject(first, datetime(2024, 1, 1)).day_branch == 11
    assert personal.resolve_subject(second, datetime(2024, 1, 1)).day_stem == 0
    assert personal.resolve_subject(second, datetime(2024, 1, 1)).day_branch == 2


def test_personal_scores_for_jia():
    scores = personal.personal_scores(0)
    assert scores == {
        "N": 5, "NE": 15, "E": 20, "SE": 0,
        "S": -15, "SW": -15, "W": 0, "NW": 15,
    }


def test_personal_bath_uses_its_own_gate_set():
    # Life is sociable here but not in the directional score; Scene is the reverse
    assert personal.personal_scores(0, {"N": "life"})["N"] == 10
    assert personal.personal_scores(0, {"N": "scene"})["N"] == 5
    assert personal.PERSONAL_SOCIABLE_GATES != SCORING_SOCIABLE_GATES


def test_subject_to_dict():
    subject = personal.resolve_subject(None, datetime(2024, 1, 1))
    assert subject.to_dict()["mode"] == "guest"
    assert subject.to_dict()["day_stem"] == "Jia"
