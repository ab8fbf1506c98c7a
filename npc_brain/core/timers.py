import time
from typing import Callable, Optional

Clock = Callable[[], float]

class CountdownTimer:
    """
    A cancellable wall-clock countdown.
    The scheduler checks it between steps instead of sleeping on it, so the loop never blocks.
    """

    def __init__(self, duration: float, clock: Clock = time.monotonic):
        self.duration = duration
        self._clock = clock
        self._deadline: Optional[float] = None

    def start(self, duration: Optional[float] = None):
        """(Re)arms the timer. Starting an armed timer restarts it."""
        self._deadline = self._clock() + (self.duration if duration is None else duration)

    def cancel(self):
        self._deadline = None

    @property
    def armed(self) -> bool:
        return self._deadline is not None

    @property
    def running(self) -> bool:
        """Armed and not yet elapsed."""
        return self._deadline is not None and self._clock() < self._deadline

    @property
    def expired(self) -> bool:
        """Armed and elapsed. A cancelled timer never expires."""
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def remaining(self) -> float:
        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - self._clock())
