"""Retry policies for the two polling loops (device login, transcoding).

Loops never call time.sleep directly: they receive a `sleep` callable so
tests can run them without wall-clock delay.
"""

from dataclasses import dataclass, replace
from typing import Iterator, Optional

from app.config import (
    DEVICE_POLL_DEFAULT_INTERVAL_SECONDS,
    DEVICE_SLOW_DOWN_STEP_SECONDS,
    TRANSCODE_MAX_ATTEMPTS,
    TRANSCODE_POLL_INTERVAL_SECONDS,
)


@dataclass(frozen=True)
class PollPolicy:
    """
    - interval_seconds  : wait before each attempt
    - max_attempts      : None means "until the caller stops"
    - slow_down_step    : added to the interval when the server says slow_down
                          without advertising a new interval
    """

    interval_seconds: float
    max_attempts: Optional[int] = None
    slow_down_step: float = 0

    def attempts(self) -> Iterator[int]:
        attempt = 0
        while self.max_attempts is None or attempt < self.max_attempts:
            attempt += 1
            yield attempt

    def slowed_down(self, advertised_seconds: Optional[float] = None) -> "PollPolicy":
        if advertised_seconds:
            return replace(self, interval_seconds=float(advertised_seconds))
        return replace(self, interval_seconds=self.interval_seconds + self.slow_down_step)


TRANSCODE_POLICY = PollPolicy(
    interval_seconds=TRANSCODE_POLL_INTERVAL_SECONDS,
    max_attempts=TRANSCODE_MAX_ATTEMPTS,
)

DEVICE_LOGIN_POLICY = PollPolicy(
    interval_seconds=DEVICE_POLL_DEFAULT_INTERVAL_SECONDS,
    slow_down_step=DEVICE_SLOW_DOWN_STEP_SECONDS,
)
