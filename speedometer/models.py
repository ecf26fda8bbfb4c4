"""Value types shared by the speed pipeline and its collaborators."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class SpeedUnit(str, Enum):
    MS = "m/s"
    MH = "m/h"
    KMH = "km/h"
    MPH = "mph"


class TimeFormat(str, Enum):
    H12_SEC = "12h-sec"
    H12 = "12h"
    H24_SEC = "24h-sec"
    H24 = "24h"


class SourceError(str, Enum):
    """Terminal location-source failures. Recovery needs user/environment action."""
    UNAVAILABLE = "Geolocation not supported"
    PERMISSION_DENIED = "Permission denied"
    SIGNAL_LOST = "GPS signal lost"


class FixStatus(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"  # accuracy too poor for speed/trip use
    NONE = "none"  # snapshot not produced by a fix


@dataclass(frozen=True)
class Fix:
    """
    One raw positioning sample as delivered by a location source.
    speed_mps / heading / accuracy_m are None when the source does not supply them.
    """
    latitude: float
    longitude: float
    timestamp_ms: int
    speed_mps: Optional[float] = None
    heading: Optional[float] = None
    accuracy_m: Optional[float] = None


@dataclass(frozen=True)
class MovementResult:
    candidate_mps: float
    distance_m: float = 0.0
    elapsed_s: float = 0.0
    significant: bool = False


@dataclass(frozen=True)
class DisplayState:
    speed_mps: float = 0.0
    max_speed_mps: float = 0.0
    avg_speed_mps: float = 0.0
    accuracy_m: Optional[float] = None
    heading: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class AlertState:
    is_active: bool = False
    has_sounded: bool = False


@dataclass(frozen=True)
class SpeedometerSnapshot:
    display: DisplayState
    alert: AlertState
    unit: SpeedUnit
    active_units: Tuple[SpeedUnit, ...]
    speed_limit: float
    time_format: TimeFormat
    error: Optional[SourceError] = None
    fix_status: FixStatus = FixStatus.NONE
