from collections import deque


class SpeedSmoother:
    def __init__(self, window: int = 10, standstill_mps: float = 0.1):
        self.window = window
        self.standstill_mps = standstill_mps
        self._buffer = deque(maxlen=window)

    @property
    def samples(self):
        return tuple(self._buffer)

    @property
    def value(self) -> float:
        """
        Mean of the buffered candidates, read as 0 below the standstill threshold.
        Raw candidates are never clamped, only this output.
        """
        if not self._buffer:
            raise ValueError("SpeedSmoother has no samples yet")
        mean = sum(self._buffer) / len(self._buffer)
        return 0.0 if mean < self.standstill_mps else mean

    def push(self, candidate_mps: float) -> float:
        self._buffer.append(candidate_mps)
        return self.value

    def reset(self):
        # seeded with zeros so the display reads 0 straight away
        self._buffer = deque([0.0] * self.window, maxlen=self.window)
