"""
Calendar utilities for the compass engine.
Handles true solar time correction, epoch day counting,
day-of-year lookups, and standard timezone resolution.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo
import math

import swisseph as swe
from timezonefinder import TimezoneFinder

# Korea Standard Time (UTC+9, 135°E meridian)
DEFAULT_TIMEZONE_OFFSET = 9

# Cycle anchor: 2024-01-01 is position 0 of the sexagenary day cycle
EPOCH = datetime(2024, 1, 1)
EPOCH_JD = swe.julday(EPOCH.year, EPOCH.month, EPOCH.day, 0.0)

_tf = TimezoneFinder()


@dataclass(frozen=True)
class SolarTimeResult:
    true_solar_time: datetime
    equation_of_time_min: float
    longitude_correction_min: float

    def to_dict(self):
        return {
            "true_solar_time": self.true_solar_time.isoformat(),
            "equation_of_time_min": round(self.equation_of_time_min, 4),
            "longitude_correction_min": round(self.longitude_correction_min, 4),
        }


# ============================================================
# JULIAN DAY ARITHMETIC
# ============================================================

def _hour_fraction(moment: datetime) -> float:
    return moment.hour + moment.minute / 60.0 + moment.second / 3600.0


def civil_day_offset(moment: datetime) -> int:
    """Whole days between the civil date of `moment` and the epoch (time of day ignored)."""
    jd = swe.julday(moment.year, moment.month, moment.day, 0.0)
    return int(round(jd - EPOCH_JD))


def elapsed_day_offset(moment: datetime) -> int:
    """
    Floor of the elapsed days between the epoch midnight and `moment`.

    Unlike civil_day_offset, the time of day counts: 2023-12-31 23:00 is -1,
    2024-01-01 23:00 is 0.
    """
    jd = swe.julday(moment.year, moment.month, moment.day, _hour_fraction(moment))
    return math.floor(jd - EPOCH_JD)


def day_of_year(moment: datetime) -> int:
    """1-based ordinal day of the year (Jan 1 = 1)."""
    jd = swe.julday(moment.year, moment.month, moment.day, 0.0)
    jd_year_start = swe.julday(moment.year, 1, 1, 0.0)
    return int(round(jd - jd_year_start)) + 1


# ============================================================
# TRUE SOLAR TIME
# ============================================================

def longitude_correction(longitude: float, timezone_offset: float = DEFAULT_TIMEZONE_OFFSET) -> float:
    """
    Calculate the longitude part of the solar time correction in minutes.

    Each timezone is centred on a standard meridian (offset × 15°).
    One degree of longitude is four minutes of clock time.

    Args:
        longitude: location longitude in degrees (east positive)
        timezone_offset: standard UTC offset in hours (9 for KST)

    Returns:
        Correction in minutes (negative = subtract from clock time)

    Example:
        Seoul (126.978°E, KST): (126.978 - 135) * 4 = -32.09 min
    """
    standard_meridian = timezone_offset * 15
    return (longitude - standard_meridian) * 4.0


def equation_of_time(moment: datetime) -> float:
    """
    Approximate equation of time in minutes for the day of `moment`.

    EoT = 9.87 sin(2B) - 7.53 cos(B) - 1.5 sin(B), B = 360 (d - 81) / 365 degrees.
    """
    b = math.radians(360 * (day_of_year(moment) - 81) / 365)
    return 9.87 * math.sin(2 * b) - 7.53 * math.cos(b) - 1.5 * math.sin(b)


def calculate_solar_time(standard_time: datetime, longitude: float,
                         timezone_offset: float = DEFAULT_TIMEZONE_OFFSET) -> SolarTimeResult:
    """
    Convert standard clock time to true solar time.

    Args:
        standard_time: naive datetime in the zone's standard time
        longitude: location longitude in degrees
        timezone_offset: standard UTC offset in hours

    Returns:
        SolarTimeResult with the corrected time and both correction components
    """
    lng_correction = longitude_correction(longitude, timezone_offset)
    eot = equation_of_time(standard_time)
    true_solar = standard_time + timedelta(minutes=lng_correction + eot)
    return SolarTimeResult(
        true_solar_time=true_solar,
        equation_of_time_min=eot,
        longitude_correction_min=lng_correction,
    )


def uncorrected(standard_time: datetime) -> SolarTimeResult:
    """Pass-through result used when true solar time is switched off."""
    return SolarTimeResult(
        true_solar_time=standard_time,
        equation_of_time_min=0.0,
        longitude_correction_min=0.0,
    )


# ============================================================
# TIMEZONE RESOLUTION
# ============================================================

def standard_utc_offset(latitude: float, longitude: float,
                        when: Optional[datetime] = None) -> float:
    """
    Determine the zone's standard (non-DST) UTC offset in hours from coordinates.

    The solar correction is measured against the standard meridian, so any
    daylight saving shift active at `when` is stripped.

    Raises:
        ValueError: if no timezone covers the coordinate
    """
    tz_name = _tf.timezone_at(lat=latitude, lng=longitude)
    if tz_name is None:
        raise ValueError(f"Could not determine timezone for ({latitude}, {longitude})")

    when = when or EPOCH
    local_dt = when.replace(tzinfo=ZoneInfo(tz_name))
    offset_hours = local_dt.utcoffset().total_seconds() / 3600

    dst = local_dt.dst()
    if dst is not None and dst.total_seconds() > 0:
        offset_hours -= dst.total_seconds() / 3600

    return offset_hours


# Quick verification
if __name__ == "__main__":
    seoul = calculate_solar_time(datetime(2026, 2, 15, 12, 0), 126.978)
    print(f"Seoul noon KST → true solar {seoul.true_solar_time.strftime('%H:%M:%S')}")
    print(f"  longitude correction: {seoul.longitude_correction_min:.2f} min")
    print(f"  equation of time:     {seoul.equation_of_time_min:.2f} min")

    print(f"\nDay of year 2026-03-22: {day_of_year(datetime(2026, 3, 22))}")
    print(f"Civil day offset 2026-02-15: {civil_day_offset(datetime(2026, 2, 15))}")
    print(f"Standard offset (Seoul): {standard_utc_offset(37.5665, 126.978):+.1f}h")
