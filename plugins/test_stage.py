#!/usr/bin/env python3
"""
Tests for the stage scheduler and easing.

Verifies:
1. Easing endpoints, monotonicity and continuity at the switch point
2. Stage progress and exhaustion (terminal, idempotent)
3. Time never moves backwards
"""

import numpy as np
from field_synth.stage import Stage, StageTick, easing


def test_easing_laws():
    """easing(0)=0, easing(1)=1, non-decreasing, no jump at the switch."""
    print("Testing easing...")
    for switch in (0.25, 0.5, 0.8, 1.0):
        assert easing(0.0, switch) == 0.0
        assert easing(1.0, switch) == 1.0
        ts = np.linspace(0.0, 1.0, 4001)
        values = [easing(t, switch) for t in ts]
        assert all(b >= a for a, b in zip(values, values[1:])), \
            f"Easing must be non-decreasing (switch={switch})"
        just_before = easing(switch - 1e-9, switch)
        assert abs(just_before - easing(switch, switch)) < 1e-6, \
            f"Easing must be continuous at switch={switch}"

    # Half of the ease: midpoint of the ramp is at 0.5
    assert abs(easing(0.25, 0.5) - 0.5) < 1e-12
    # Ease-in is slow at the start
    assert easing(0.05, 1.0) < 0.05
    # Out of range input is clamped
    assert easing(-0.5) == 0.0 and easing(1.5) == 1.0
    print("  ✓ Easing working correctly")


def test_stage_progress():
    """time() follows elapsed/duration while ticks arrive."""
    print("Testing stage progress...")
    stage = Stage(100.0, duration=10.0)
    assert stage.time() == 0.0
    tick = stage.tick(102.5)
    assert isinstance(tick, StageTick)
    assert not tick.exhausted
    assert abs(tick.progress - 0.25) < 1e-12
    assert stage.next(105.0) is True
    assert abs(stage.time() - 0.5) < 1e-12
    print("  ✓ Stage progress working correctly")


def test_stage_exhaustion():
    """Past the duration the stage reports no further ticks, forever, at time 1."""
    print("Testing stage exhaustion...")
    stage = Stage(0.0, duration=1.0)
    timestamps = [i / 60 for i in range(1, 200)]
    delivered = 0
    for ts in timestamps:
        if not stage.next(ts):
            break
        delivered += 1

    # The frame that crosses the duration is delivered, the next is not
    assert delivered == 61, f"Expected 61 delivered frames, got {delivered}"
    assert stage.exhausted
    assert stage.time() == 1.0

    for ts in (5.0, 50.0, 0.0):
        tick = stage.tick(ts)
        assert tick.exhausted, "Exhausted is terminal"
        assert tick.progress == 1.0
    assert stage.time() == 1.0
    print("  ✓ Stage exhaustion working correctly")


def test_stage_monotonic():
    """An older timestamp does not move the stage backwards."""
    print("Testing stage monotonicity...")
    stage = Stage(10.0, duration=4.0)
    stage.tick(12.0)
    stage.tick(11.0)
    assert stage.now == 12.0
    assert stage.elapsed == 2.0

    try:
        Stage(0.0, duration=0.0)
    except ValueError:
        pass
    else:
        raise AssertionError("Zero duration must raise ValueError")
    print("  ✓ Stage monotonicity working correctly")


if __name__ == "__main__":
    print("\n=== Testing Stage Scheduler ===\n")

    test_easing_laws()
    test_stage_progress()
    test_stage_exhaustion()
    test_stage_monotonic()

    print("\n✓ All tests passed!\n")
