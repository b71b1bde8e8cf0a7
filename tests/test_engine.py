# tests/test_engine.py

import importlib
import json
import sys

import pytest
from datetime import datetime
from unittest.mock import patch

from qimen import chart, run
from qimen.engine import compute_chart_context
from qimen.models import ChartInput, Location, Settings, UserProfile


EPOCH = datetime(2024, 1, 1, 0, 0)
SEOUL = Location(lat=37.57, lng=126.98)
LNG_135 = Location(lat=35.0, lng=135.0)


@pytest.fixture
def epoch_output():
    inp = ChartInput(time=EPOCH, location=SEOUL,
                     settings=Settings(use_true_solar_time=False))
    return compute_chart_context(inp)


def test_epoch_scores(epoch_output):
    values = {name: s.value for name, s in epoch_output.scores.items()}
    assert values["N"] == 0.0
    assert values["NE"] == 0.0
    assert values["E"] == 40.0
    assert values["SE"] == 100.0
    assert values["S"] == 100.0
    assert values["W"] == pytest.approx(72.01)
    assert all(0.0 <= v <= 100.0 for v in values.values())


def test_epoch_patterns_settled(epoch_output):
    plate = epoch_output.chart
    assert plate.palace("N").pattern == chart.UNFAVORABLE
    assert plate.palace("NE").pattern == chart.UNFAVORABLE
    assert plate.palace("E").pattern == chart.FAVORABLE
    assert plate.palace("S").pattern == chart.NO_PATTERN


def test_epoch_guest_overlay(epoch_output):
    assert epoch_output.subject.is_guest
    assert epoch_output.personalization == {
        "N": 10, "NE": 15, "E": 20, "SE": 0,
        "S": -15, "SW": -15, "W": 0, "NW": 15,
    }


def test_epoch_facing_default_heading(epoch_output):
    assert epoch_output.facing.mountain.pinyin == "Zi"
    assert epoch_output.facing.score == 80


def test_solar_time_moves_across_midnight():
    # Zero longitude correction at 135°E; EoT of about -3.7 min pulls the
    # clock back into the previous civil day
    inp = ChartInput(time=EPOCH, location=LNG_135)
    output = compute_chart_context(inp)

    assert output.solar.longitude_correction_min == 0.0
    assert output.solar.true_solar_time.date() == datetime(2023, 12, 31).date()
    assert output.solar.true_solar_time.hour == 23
    # Hour 23 already belongs to the next day
    assert output.indices.day_stem == 0
    assert output.indices.period == 0
    assert output.chart.day_seed == 999


def test_auto_offset_is_resolved_from_location():
    inp = ChartInput(time=EPOCH, location=LNG_135,
                     settings=Settings(timezone_offset=None))
    with patch("qimen.engine.standard_utc_offset", return_value=9.0) as resolve:
        output = compute_chart_context(inp)
    resolve.assert_called_once_with(35.0, 135.0, EPOCH)
    assert output.solar.longitude_correction_min == 0.0


def test_user_profile_drives_overlay():
    user = UserProfile(name="Min", birth=datetime(1972, 3, 25, 9, 0))
    inp = ChartInput(time=EPOCH, location=SEOUL, user=user,
                     settings=Settings(use_true_solar_time=False))
    output = compute_chart_context(inp)
    assert not output.subject.is_guest
    assert output.subject.day_stem == 1


def test_output_is_json_serializable(epoch_output):
    payload = json.loads(json.dumps(epoch_output.to_dict(), ensure_ascii=False))
    assert payload["calendar"]["day_stem"] == "Jia"
    assert len(payload["chart"]["palaces"]) == 8
    assert payload["scores"]["W"]["display"] == 72
    assert payload["subject"]["mode"] == "guest"


def test_low_precision_display():
    inp = ChartInput(time=EPOCH, location=SEOUL,
                     settings=Settings(use_true_solar_time=False, score_precision="low"))
    payload = compute_chart_context(inp).to_dict()
    assert payload["scores"]["W"]["display"] == "fair"


def test_cli_prints_chart(capsys):
    run.main([
        "--latitude", "37.5", "--longitude", "135",
        "--date", "2024-01-01", "--time", "00:00",
        "--no-true-solar-time",
    ])
    payload = json.loads(capsys.readouterr().out)
    assert payload["calendar"]["day_stem"] == "Jia"
    assert payload["calendar"]["clash_branch"] == "Wu"
    assert payload["facing"]["mountain"] == "Zi"


def test_cli_rejects_bad_date():
    with pytest.raises(SystemExit) as exc:
        run.main(["--latitude", "37.5", "--longitude", "127",
                  "--date", "2024-13-01", "--time", "00:00"])
    assert exc.value.code == 2


def test_cli_unresolvable_offset_exits():
    with patch("qimen.engine.standard_utc_offset", side_effect=ValueError("no zone")):
        with pytest.raises(SystemExit) as exc:
            run.main(["--latitude", "0", "--longitude", "-160", "--auto-offset",
                      "--date", "2024-01-01", "--time", "12:00"])
    assert exc.value.code == 2


def test_cli_matches_python_entry_point(capsys):
    run.main(["--latitude", "37.57", "--longitude", "126.98",
              "--date", "2024-01-01", "--time", "00:00", "--heading", "90"])
    from_cli = json.loads(capsys.readouterr().out)

    inp = ChartInput(time=EPOCH, location=SEOUL, heading=90.0)
    direct = json.loads(json.dumps(compute_chart_context(inp).to_dict(), ensure_ascii=False))
    assert from_cli == direct


def test_cli_import_leaves_sys_path_alone():
    before = list(sys.path)
    importlib.reload(run)
    assert sys.path == before
