import argparse
import errno
import logging
import time
from datetime import datetime

import serial

from .alert import BuzzerAlertSink, LogAlertSink, SystemBeepAlertSink
from .config import Config
from .geo import convert_from_ms
from .gps_reader import GPSReader, MockGPSReader
from .models import SourceError, SpeedUnit
from .pipeline import SpeedPipeline
from .utils import format_clock, setup_logger


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="GPS speedometer with over-limit alert")
    p.add_argument("--log", default="INFO", help="DEBUG/INFO/WARNING/ERROR")
    p.add_argument("--mock_gps", action="store_true", help="Use fake GPS data")
    p.add_argument("--replay", default=None, help="Replay an NMEA log file instead of the serial port")
    p.add_argument("--port", default=None, help="GPS serial port")
    p.add_argument("--baud", type=int, default=None, help="GPS serial baud rate")
    p.add_argument("--unit", default=None, choices=[u.value for u in SpeedUnit], help="Display unit")
    p.add_argument("--limit", type=float, default=None, help="Speed limit in the display unit")
    p.add_argument("--beep", action="store_true", help="Play a system beep on alerts")
    p.add_argument("--buzzer", action="store_true", help="Drive a GPIO buzzer on alerts")
    return p.parse_args(argv)


def build_config(args) -> Config:
    cfg = Config()
    if args.port:
        cfg.gps_port = args.port
    if args.baud:
        cfg.gps_baud = args.baud
    if args.unit:
        cfg.unit = SpeedUnit(args.unit)
    if args.limit is not None:
        cfg.speed_limit = args.limit
    cfg.enable_beep = cfg.enable_beep or args.beep
    cfg.enable_buzzer = cfg.enable_buzzer or args.buzzer
    return cfg


def build_sink(cfg: Config, logger):
    if cfg.enable_buzzer:
        return BuzzerAlertSink(cfg.buzzer_gpio_pin, logger)
    if cfg.enable_beep:
        return SystemBeepAlertSink(logger)
    return LogAlertSink(logger)


def open_source(args, cfg: Config, logger):
    """
    Returns (source, error). Exactly one of them is None.
    """
    if args.mock_gps:
        return MockGPSReader(logger), None
    try:
        if args.replay:
            return GPSReader.open_replay(args.replay, logger, cfg.gps_uere_m), None
        return GPSReader.open_serial(cfg.gps_port, cfg.gps_baud, logger, cfg.gps_uere_m), None
    except (serial.SerialException, OSError) as e:
        logger.error(f"Cannot open GPS source: {e}")
        # pyserial keeps the OS errno on its SerialException
        if isinstance(e, PermissionError) or getattr(e, "errno", None) in (errno.EACCES, errno.EPERM):
            return None, SourceError.PERMISSION_DENIED
        return None, SourceError.UNAVAILABLE


def format_status(snap) -> str:
    d = snap.display
    unit = snap.unit.value
    heading = f"{d.heading:.0f}" if d.heading is not None else "--"
    acc = f"{d.accuracy_m:.0f}m" if d.accuracy_m is not None else "--"
    return (
        f"{format_clock(datetime.now(), snap.time_format)} | "
        f"speed={convert_from_ms(d.speed_mps, unit):.1f} {unit} | "
        f"max={convert_from_ms(d.max_speed_mps, unit):.1f} | "
        f"avg={convert_from_ms(d.avg_speed_mps, unit):.1f} | "
        f"hdg={heading} | acc={acc} | "
        f"limit={snap.speed_limit:g} | alert={snap.alert.is_active}"
    )


def main(argv=None):
    args = parse_args(argv)
    cfg = build_config(args)

    logger = setup_logger(getattr(logging, args.log.upper(), logging.INFO))
    logger.info("Starting speedometer...")

    source = None
    sink = None

    try:
        sink = build_sink(cfg, logger)
        pipeline = SpeedPipeline(cfg, sink, logger)

        source, error = open_source(args, cfg, logger)
        if error is not None:
            snap = pipeline.on_source_error(error)
            logger.error(f"{snap.error.value}: check the receiver and permissions")
            return 1

        last_print = 0.0
        last_fix_t = time.monotonic()

        while True:
            fix = source.read_fix(cfg.gps_max_lines)
            now = time.monotonic()

            if fix is None:
                if source.exhausted:
                    logger.info("Replay finished.")
                    break
                if pipeline.error is None and (now - last_fix_t) >= cfg.gps_timeout_seconds:
                    pipeline.on_source_error(SourceError.SIGNAL_LOST)
                continue

            last_fix_t = now
            if pipeline.error is SourceError.SIGNAL_LOST:
                logger.info("GPS signal back")
                pipeline.clear_error()

            snap = pipeline.on_fix(fix)

            if now - last_print > cfg.status_interval_seconds:
                last_print = now
                logger.info(format_status(snap))

        snap = pipeline.snapshot()
        logger.info(f"Final: {format_status(snap)}")

    except KeyboardInterrupt:
        logger.info("Stopping...")
    finally:
        if source:
            source.close()
        if sink:
            sink.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
