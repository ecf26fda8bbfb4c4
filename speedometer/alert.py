import os
import sys
import threading
from typing import Protocol

from .models import AlertState


class AlertSink(Protocol):
    """Fire-and-forget alert sound. play() must return without waiting for the sound."""

    def play(self) -> None:
        ...

    def close(self) -> None:
        ...


class AlertLatch:
    """
    Over-limit latch. The sink plays once when speed first goes above the limit
    and is re-armed only after speed drops back to or below it.
    """

    def __init__(self, sink: AlertSink):
        self.sink = sink
        self.is_active = False
        self.has_sounded = False

    @property
    def state(self) -> AlertState:
        return AlertState(is_active=self.is_active, has_sounded=self.has_sounded)

    def evaluate(self, display_speed: float, limit: float) -> bool:
        """
        display_speed and limit must be in the same unit.
        Returns True when the sink was played on this call.
        """
        if display_speed > limit:
            self.is_active = True
            if not self.has_sounded:
                self.has_sounded = True
                self.sink.play()
                return True
            return False

        self.is_active = False
        self.has_sounded = False
        return False


class LogAlertSink:
    def __init__(self, logger):
        self.logger = logger

    def play(self):
        self.logger.warning("ALERT: speed limit exceeded")

    def close(self):
        pass


class SystemBeepAlertSink:
    """
    Best-effort audible beep on laptops/desktops.
    Falls back to the terminal bell when no player is available.
    """

    def __init__(self, logger, frequency_hz: int = 880, duration_ms: int = 500):
        self.logger = logger
        self.frequency_hz = frequency_hz
        self.duration_ms = duration_ms

    def play(self):
        self.logger.warning("ALERT: speed limit exceeded")
        try:
            if sys.platform == "darwin":
                os.system("afplay /System/Library/Sounds/Funk.aiff &")
            elif sys.platform.startswith("linux"):
                # Try paplay, then aplay, then terminal bell
                r = os.system("paplay /usr/share/sounds/freedesktop/stereo/bell.oga "
                              ">/dev/null 2>&1")
                if r != 0:
                    os.system("aplay /usr/share/sounds/alsa/Front_Center.wav "
                              ">/dev/null 2>&1 || printf '\\a'")
            elif sys.platform == "win32":
                import winsound
                winsound.Beep(self.frequency_hz, self.duration_ms)
            else:
                print("\a", end="", flush=True)
        except Exception as e:
            self.logger.error(f"Beep failed: {e}")
            print("\a", end="", flush=True)

    def close(self):
        pass


class BuzzerAlertSink:
    """Piezo buzzer on a Raspberry Pi GPIO pin."""

    def __init__(self, gpio_pin: int, logger, beep_seconds: float = 0.5):
        self.gpio_pin = gpio_pin
        self.beep_seconds = beep_seconds
        self.logger = logger
        self.enabled = True
        self._off_timer = None

        self._gpio = None
        try:
            import RPi.GPIO as GPIO
            GPIO.setmode(GPIO.BCM)
            GPIO.setup(self.gpio_pin, GPIO.OUT)
            self._gpio = GPIO
        except Exception as e:
            self.logger.error(f"Failed to init GPIO buzzer, disabling: {e}")
            self.enabled = False

    def play(self):
        self.logger.warning("ALERT: speed limit exceeded")
        if not (self.enabled and self._gpio):
            return
        try:
            self._gpio.output(self.gpio_pin, 1)
        except Exception as e:
            self.logger.error(f"Buzzer output failed: {e}")
            return
        # switched off from a timer thread so the fix path never waits on the beep
        if self._off_timer is not None:
            self._off_timer.cancel()
        self._off_timer = threading.Timer(self.beep_seconds, self._off)
        self._off_timer.daemon = True
        self._off_timer.start()

    def _off(self):
        try:
            self._gpio.output(self.gpio_pin, 0)
        except Exception as e:
            self.logger.error(f"Buzzer output failed: {e}")

    def close(self):
        if self._off_timer is not None:
            self._off_timer.cancel()
            self._off_timer = None
        if self._gpio:
            self._off()
            try:
                self._gpio.cleanup()
            except Exception as e:
                self.logger.debug(f"GPIO cleanup failed: {e}")
