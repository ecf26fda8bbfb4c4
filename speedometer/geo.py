"""Distance on the sphere and speed-unit conversion."""

import math

from .models import SpeedUnit
from .utils import clamp

EARTH_RADIUS_M = 6_371_000.0  # mean radius

# multiply m/s by this to get the unit
_FROM_MS = {
    SpeedUnit.MS: 1.0,
    SpeedUnit.MH: 3600.0,
    SpeedUnit.KMH: 3.6,
    SpeedUnit.MPH: 2.23694,
}

# gauge ceiling in m/s (~252 km/h, ~157 mph)
UNIT_MAX_MS = 70.0


def _factor(unit) -> float:
    try:
        return _FROM_MS[SpeedUnit(unit)]
    except ValueError:
        raise ValueError(f"Unknown speed unit: {unit!r}") from None


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in meters between two points given in degrees.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    # float overshoot near antipodes would push asin out of its domain
    a = clamp(a, 0.0, 1.0)
    c = 2.0 * math.asin(math.sqrt(a))
    return EARTH_RADIUS_M * c


def convert_from_ms(speed_mps: float, unit) -> float:
    return speed_mps * _factor(unit)


def convert_to_ms(value: float, unit) -> float:
    return value / _factor(unit)


def get_unit_max(unit) -> float:
    """Display ceiling for the gauge; the same physical speed in every unit."""
    return round(convert_from_ms(UNIT_MAX_MS, unit))
