"""
Stage / Transition Scheduler

A stage is a fixed-duration timer advanced by explicit frame ticks. It
reports a progress fraction in [0, 1] that the generation loop eases
and uses as the cross-fade between the previous and the current field.

Timestamps are in seconds. The stage never reads a clock: "now" only
moves when a tick delivers a timestamp.
"""

from collections import namedtuple

STAGE_DURATION = 10.0
SWITCH_TIME = 0.5

StageTick = namedtuple("StageTick", ["progress", "exhausted"])


class Stage:
    """Two-state scheduler: Running until elapsed > duration, then Exhausted."""

    def __init__(self, start, duration=STAGE_DURATION):
        if duration <= 0:
            raise ValueError(f"Stage duration must be positive: {duration}")
        self.start = start
        self.now = start
        self.duration = duration
        self.exhausted = False

    def tick(self, timestamp):
        """Deliver one frame boundary.

        Exhaustion is judged on the time reached so far, so the frame that
        first crosses the duration is still delivered (at progress 1) and
        the following tick reports exhaustion. Exhausted is terminal.
        """
        if self.exhausted or self.now - self.start > self.duration:
            self.exhausted = True
            return StageTick(self.time(), True)
        # Ticks never move time backwards
        self.now = max(self.now, timestamp)
        return StageTick(self.time(), False)

    def next(self, timestamp):
        """True if a tick was delivered, False once exhausted."""
        return not self.tick(timestamp).exhausted

    def time(self):
        return min(1.0, (self.now - self.start) / self.duration)

    @property
    def elapsed(self):
        return self.now - self.start


def easing(time, switch=SWITCH_TIME):
    """Quadratic ease-in/out over [0, switch), then held at 1.

    switch=1.0 spreads the ease over the whole range. Continuous at the
    switch point since the ease reaches exactly 1 there.
    """
    time = min(max(time, 0.0), 1.0)
    if time < switch:
        t = time / switch
        return 2.0 * t * t if t < 0.5 else -1.0 + (4.0 - 2.0 * t) * t
    return 1.0
