class TripAccumulator:
    """Cumulative distance and moving time since the last reset."""

    def __init__(self):
        self.distance_m = 0.0
        self.time_s = 0.0

    def update(self, distance_m: float, elapsed_s: float):
        if elapsed_s <= 0:
            return
        self.distance_m += distance_m
        self.time_s += elapsed_s

    def average_speed(self) -> float:
        if self.time_s > 0:
            return self.distance_m / self.time_s
        return 0.0

    def reset(self):
        self.distance_m = 0.0
        self.time_s = 0.0
