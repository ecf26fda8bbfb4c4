import logging
from datetime import datetime

from .models import TimeFormat


def setup_logger(level=logging.INFO) -> logging.Logger:
    logger = logging.getLogger("speedometer")
    logger.setLevel(level)
    if not logger.handlers:
        ch = logging.StreamHandler()
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s - %(message)s")
        ch.setFormatter(fmt)
        logger.addHandler(ch)
    return logger


def clamp(x, lo, hi):
    return max(lo, min(hi, x))


_CLOCK_FORMATS = {
    TimeFormat.H12_SEC: "%I:%M:%S %p",
    TimeFormat.H12: "%I:%M %p",
    TimeFormat.H24_SEC: "%H:%M:%S",
    TimeFormat.H24: "%H:%M",
}


def format_clock(dt: datetime, time_format: TimeFormat) -> str:
    return dt.strftime(_CLOCK_FORMATS[TimeFormat(time_format)])
