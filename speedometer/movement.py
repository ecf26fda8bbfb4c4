from .geo import haversine_distance
from .models import Fix, MovementResult


class MovementFilter:
    """
    Separates real movement from GPS jitter for a pair of consecutive fixes.

    Two outputs are kept apart: the trip contribution (distance and
    elapsed time, only for significant movement) and the instantaneous speed
    candidate (device speed when trusted, otherwise derived from displacement).
    """

    def __init__(self, max_accuracy_m: float = 60.0, min_trusted_speed_mps: float = 0.3,
                 movement_floor_m: float = 2.0, accuracy_factor: float = 0.25,
                 default_accuracy_m: float = 5.0):
        self.max_accuracy_m = max_accuracy_m
        self.min_trusted_speed_mps = min_trusted_speed_mps
        self.movement_floor_m = movement_floor_m
        self.accuracy_factor = accuracy_factor
        self.default_accuracy_m = default_accuracy_m

    def is_reliable(self, fix: Fix) -> bool:
        return fix.accuracy_m is None or fix.accuracy_m <= self.max_accuracy_m

    def trusted_speed(self, fix: Fix):
        """Device speed, or None when absent or too slow to tell apart from noise."""
        if fix.speed_mps is not None and fix.speed_mps >= self.min_trusted_speed_mps:
            return fix.speed_mps
        return None

    def movement_threshold(self, accuracy_m) -> float:
        # a 0.0 accuracy reading is treated like a missing one
        accuracy = accuracy_m or self.default_accuracy_m
        return max(self.movement_floor_m, self.accuracy_factor * accuracy)

    def evaluate(self, previous, current: Fix) -> MovementResult:
        device_speed = self.trusted_speed(current)
        fallback = device_speed if device_speed is not None else 0.0

        if previous is None:
            return MovementResult(candidate_mps=fallback)

        elapsed_s = (current.timestamp_ms - previous.timestamp_ms) / 1000.0
        if elapsed_s <= 0:
            return MovementResult(candidate_mps=fallback)

        distance_m = haversine_distance(previous.latitude, previous.longitude,
                                        current.latitude, current.longitude)

        if distance_m > self.movement_threshold(current.accuracy_m):
            candidate = device_speed if device_speed is not None else distance_m / elapsed_s
            return MovementResult(candidate_mps=candidate, distance_m=distance_m,
                                  elapsed_s=elapsed_s, significant=True)

        # noise-level displacement: standing still unless the device says otherwise
        return MovementResult(candidate_mps=fallback, distance_m=distance_m, elapsed_s=elapsed_s)
