import math
import time
from datetime import timezone

import pynmea2
import serial

from .geo import EARTH_RADIUS_M
from .models import Fix

KNOTS_TO_MPS = 0.514444


def _to_float(value):
    try:
        return float(value) if value not in (None, "") else None
    except ValueError:
        return None


class GPSReader:
    """
    Reads NMEA 0183 sentences from a line stream and yields Fix records.

    The stream is anything with readline() returning bytes: a serial port,
    or an open NMEA log file for replay.
    """

    def __init__(self, stream, logger, uere_m: float = 5.0):
        self.stream = stream
        self.logger = logger
        self.uere_m = uere_m

        self.last_fix = None
        self._hdop = None  # from the latest GGA
        self.exhausted = False

    @classmethod
    def open_serial(cls, port: str, baud: int, logger, uere_m: float = 5.0):
        ser = serial.Serial(port, baudrate=baud, timeout=1)
        return cls(ser, logger, uere_m)

    @classmethod
    def open_replay(cls, path: str, logger, uere_m: float = 5.0):
        return cls(open(path, "rb"), logger, uere_m)

    def close(self):
        try:
            self.stream.close()
        except Exception as e:
            self.logger.debug(f"GPS stream close failed: {e}")

    def _accuracy(self):
        if self._hdop is None:
            return None
        return self._hdop * self.uere_m

    @staticmethod
    def _timestamp_ms(msg) -> int:
        # RMC carries UTC date + time; fall back to the host clock without a date
        if msg.datestamp is not None and msg.timestamp is not None:
            dt = msg.datetime
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return int(round(dt.timestamp() * 1000))
        return int(time.time() * 1000)

    def _fix_from_rmc(self, msg):
        # speed in knots -> m/s
        speed_knots = _to_float(msg.spd_over_grnd)
        speed_mps = speed_knots * KNOTS_TO_MPS if speed_knots is not None else None

        return Fix(
            latitude=msg.latitude,
            longitude=msg.longitude,
            timestamp_ms=self._timestamp_ms(msg),
            speed_mps=speed_mps,
            heading=_to_float(msg.true_course),
            accuracy_m=self._accuracy(),
        )

    def handle_line(self, line: str):
        """
        Feeds one NMEA sentence. Returns a Fix for a valid RMC, else None.
        """
        if not line.startswith("$"):
            return None
        try:
            msg = pynmea2.parse(line)
        except pynmea2.ParseError as e:
            self.logger.debug(f"Skipping bad NMEA line: {e}")
            return None

        if msg.sentence_type == "GGA":
            self._hdop = _to_float(msg.horizontal_dil)
            return None

        # RMC carries speed over ground and course along with lat/lon
        if msg.sentence_type == "RMC" and msg.status == "A":
            fix = self._fix_from_rmc(msg)
            self.last_fix = fix
            return fix

        return None

    def read_fix(self, max_lines=30):
        """
        Tries to read a fix. Returns Fix or None.
        """
        for _ in range(max_lines):
            raw = self.stream.readline()
            if not raw:
                # serial timeouts return b"" too; only a file really runs dry
                if not isinstance(self.stream, serial.Serial):
                    self.exhausted = True
                    return None
                continue
            fix = self.handle_line(raw.decode(errors="ignore").strip())
            if fix is not None:
                return fix
        return None


class MockGPSReader:
    """
    Synthetic drive along a straight line for running without hardware.
    Positions advance by speed_mps each tick; device speed is omitted so the
    pipeline derives speed from displacement.
    """

    def __init__(self, logger, lat: float = 53.7457, lon: float = -0.3367,
                 speed_mps: float = 6.0, heading: float = 90.0, accuracy_m: float = 5.0,
                 interval_seconds: float = 1.0):
        self.logger = logger
        self.lat = lat
        self.lon = lon
        self.speed_mps = speed_mps
        self.heading = heading
        self.accuracy_m = accuracy_m
        self.interval = interval_seconds
        self.exhausted = False
        self.last_fix = None
        self._ts_ms = int(time.time() * 1000)

    def close(self):
        pass

    def read_fix(self, max_lines=30):
        if self.last_fix is not None:
            time.sleep(self.interval)
            step_m = self.speed_mps * self.interval
            theta = math.radians(self.heading)
            self.lat += math.degrees(step_m * math.cos(theta) / EARTH_RADIUS_M)
            self.lon += math.degrees(step_m * math.sin(theta) /
                                     (EARTH_RADIUS_M * math.cos(math.radians(self.lat))))
            self._ts_ms += int(self.interval * 1000)

        fix = Fix(latitude=self.lat, longitude=self.lon, timestamp_ms=self._ts_ms,
                  heading=self.heading, accuracy_m=self.accuracy_m)
        self.last_fix = fix
        return fix
