from dataclasses import dataclass, field

from .models import SpeedUnit, TimeFormat


@dataclass
class Config:
    # GPS
    gps_port: str = "/dev/serial0"
    gps_baud: int = 9600
    gps_uere_m: float = 5.0  # accuracy estimate = HDOP * UERE
    gps_timeout_seconds: float = 10.0  # no valid fix for this long -> signal lost
    gps_max_lines: int = 30

    # Movement filter
    max_accuracy_m: float = 60.0  # fixes worse than this are rejected
    min_trusted_speed_mps: float = 0.3  # device speed below this is noise
    movement_floor_m: float = 2.0
    movement_accuracy_factor: float = 0.25
    default_accuracy_m: float = 5.0  # used when a fix carries no accuracy

    # Smoothing
    smoothing_window: int = 10
    standstill_mps: float = 0.1  # smoothed speed below this reads as 0

    # Units / display
    unit: SpeedUnit = SpeedUnit.KMH
    active_units: list = field(default_factory=lambda: [SpeedUnit.KMH, SpeedUnit.MPH, SpeedUnit.MS])
    time_format: TimeFormat = TimeFormat.H12_SEC
    status_interval_seconds: float = 1.0

    # Alert
    speed_limit: float = 100.0  # in `unit`
    enable_beep: bool = False
    enable_buzzer: bool = False
    buzzer_gpio_pin: int = 18
