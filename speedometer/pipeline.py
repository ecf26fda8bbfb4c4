from .alert import AlertLatch, AlertSink
from .geo import convert_from_ms
from .models import DisplayState, Fix, FixStatus, SourceError, SpeedometerSnapshot, SpeedUnit, TimeFormat
from .movement import MovementFilter
from .orientation import heading_from_orientation
from .smoother import SpeedSmoother
from .trip import TripAccumulator


class SpeedPipeline:
    """
    Turns raw fixes into display state: smoothed speed, max, average and the
    over-limit alert. One instance owns all mutable state; every public call
    returns a fresh SpeedometerSnapshot.
    """

    def __init__(self, config, sink: AlertSink, logger):
        self.config = config
        self.logger = logger

        self.movement = MovementFilter(
            max_accuracy_m=config.max_accuracy_m,
            min_trusted_speed_mps=config.min_trusted_speed_mps,
            movement_floor_m=config.movement_floor_m,
            accuracy_factor=config.movement_accuracy_factor,
            default_accuracy_m=config.default_accuracy_m,
        )
        self.smoother = SpeedSmoother(config.smoothing_window, config.standstill_mps)
        self.trip = TripAccumulator()
        self.latch = AlertLatch(sink)

        self.unit = SpeedUnit(config.unit)
        self.active_units = [SpeedUnit(u) for u in config.active_units]
        if self.unit not in self.active_units:
            self.active_units.append(self.unit)
        self.speed_limit = float(config.speed_limit)
        self.time_format = TimeFormat(config.time_format)

        self.last_fix = None  # last accepted fix, baseline for deltas
        self.error = None

        self.speed_mps = 0.0
        self.max_speed_mps = 0.0
        self.avg_speed_mps = 0.0
        self.accuracy_m = None
        self.heading = None
        self.latitude = None
        self.longitude = None

    # ----------------------------------------------------------
    # Events
    # ----------------------------------------------------------
    def on_fix(self, fix: Fix) -> SpeedometerSnapshot:
        self.latitude = fix.latitude
        self.longitude = fix.longitude

        if not self.movement.is_reliable(fix):
            self.accuracy_m = fix.accuracy_m
            self.logger.warning(f"Rejected fix: accuracy {fix.accuracy_m:.0f} m "
                                f"> {self.movement.max_accuracy_m:.0f} m")
            return self.snapshot(FixStatus.REJECTED)

        result = self.movement.evaluate(self.last_fix, fix)
        if result.significant:
            self.trip.update(result.distance_m, result.elapsed_s)

        self.speed_mps = self.smoother.push(result.candidate_mps)
        self.max_speed_mps = max(self.max_speed_mps, self.speed_mps)

        self.accuracy_m = fix.accuracy_m
        if fix.heading is not None:
            self.heading = fix.heading

        self.last_fix = fix
        self.avg_speed_mps = self.trip.average_speed()

        self.logger.debug(
            f"fix moved={result.distance_m:.1f}m dt={result.elapsed_s:.2f}s "
            f"significant={result.significant} candidate={result.candidate_mps:.2f} "
            f"smoothed={self.speed_mps:.2f}"
        )

        self._update_alert()
        return self.snapshot(FixStatus.ACCEPTED)

    def on_orientation(self, compass_heading=None, alpha=None) -> SpeedometerSnapshot:
        heading = heading_from_orientation(compass_heading, alpha)
        if heading is not None:
            self.heading = heading
        return self.snapshot()

    def on_source_error(self, error: SourceError) -> SpeedometerSnapshot:
        self.error = SourceError(error)
        self.logger.error(f"Location source failed: {self.error.value}")
        return self.snapshot()

    def clear_error(self) -> SpeedometerSnapshot:
        self.error = None
        return self.snapshot()

    def reset(self) -> SpeedometerSnapshot:
        """
        Zero trip totals, smoothing buffer, max and displayed speed.
        Position, heading and the baseline fix are kept.
        """
        self.trip.reset()
        self.smoother.reset()
        self.speed_mps = self.smoother.value
        self.max_speed_mps = 0.0
        self.avg_speed_mps = 0.0
        self.logger.info("Trip stats reset")
        self._update_alert()
        return self.snapshot()

    # ----------------------------------------------------------
    # Settings
    # ----------------------------------------------------------
    def set_unit(self, unit) -> SpeedometerSnapshot:
        unit = SpeedUnit(unit)
        if unit not in self.active_units:
            raise ValueError(f"Unit {unit.value} is not in the active unit list")
        self.unit = unit
        self.logger.info(f"Unit -> {unit.value}")
        self._update_alert()
        return self.snapshot()

    def toggle_unit(self, unit) -> SpeedometerSnapshot:
        unit = SpeedUnit(unit)
        if unit in self.active_units:
            # the unit in use and the last remaining unit stay visible
            if unit != self.unit and len(self.active_units) > 1:
                self.active_units.remove(unit)
        else:
            self.active_units.append(unit)
        return self.snapshot()

    def set_speed_limit(self, limit: float) -> SpeedometerSnapshot:
        if limit < 0:
            raise ValueError(f"Speed limit must be >= 0, got {limit}")
        self.speed_limit = float(limit)
        self.logger.info(f"Speed limit -> {self.speed_limit:g} {self.unit.value}")
        self._update_alert()
        return self.snapshot()

    def set_time_format(self, time_format) -> SpeedometerSnapshot:
        self.time_format = TimeFormat(time_format)
        return self.snapshot()

    # ----------------------------------------------------------
    def snapshot(self, fix_status: FixStatus = FixStatus.NONE) -> SpeedometerSnapshot:
        display = DisplayState(
            speed_mps=self.speed_mps,
            max_speed_mps=self.max_speed_mps,
            avg_speed_mps=self.avg_speed_mps,
            accuracy_m=self.accuracy_m,
            heading=self.heading,
            latitude=self.latitude,
            longitude=self.longitude,
        )
        return SpeedometerSnapshot(
            display=display,
            alert=self.latch.state,
            unit=self.unit,
            active_units=tuple(self.active_units),
            speed_limit=self.speed_limit,
            time_format=self.time_format,
            error=self.error,
            fix_status=fix_status,
        )

    def _update_alert(self):
        display_speed = convert_from_ms(self.speed_mps, self.unit)
        try:
            played = self.latch.evaluate(display_speed, self.speed_limit)
        except Exception as e:
            # latch state is already updated; a broken sink must not stop the pipeline
            self.logger.error(f"Alert sink failed: {e}")
            return
        if played:
            self.logger.warning(f"Over limit: {display_speed:.1f} {self.unit.value} "
                                f"> {self.speed_limit:g} {self.unit.value}")
