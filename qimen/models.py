"""Input records for the compass engine. Plain values supplied by the caller's state layer."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from qimen.astro_calendar import DEFAULT_TIMEZONE_OFFSET

SCORE_PRECISIONS = ("high", "low")


@dataclass(frozen=True)
class Location:
    lat: float  # Latitude (decimal degrees)
    lng: float  # Longitude (decimal degrees, east positive)


@dataclass(frozen=True)
class UserProfile:
    """A saved birth profile. Without one the engine runs in guest mode."""

    name: str
    birth: datetime  # Birth date and time, local standard time
    birth_lat: Optional[float] = None
    birth_lng: Optional[float] = None


@dataclass(frozen=True)
class Settings:
    use_true_solar_time: bool = True
    use_magnetic_north: bool = False
    score_precision: str = "high"  # "high" or "low"
    timezone_offset: Optional[float] = DEFAULT_TIMEZONE_OFFSET  # None → resolve from location


@dataclass(frozen=True)
class ChartInput:
    time: datetime  # Civil (standard) time being explored
    location: Location
    settings: Settings = field(default_factory=Settings)
    user: Optional[UserProfile] = None
    heading: float = 0.0  # Device/map heading in degrees, for the facing score
