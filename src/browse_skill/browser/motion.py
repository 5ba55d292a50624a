"""Human-like pointer movement for programmatic clicks and typing."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

Sleep = Callable[[float], None]

START_RANGE = 100.0
MIN_STEPS = 20
STEP_SPREAD = 10
JITTER = 1.0
PAUSE_EVERY = 5
PAUSE_MIN_MS = 10.0
PAUSE_SPREAD_MS = 20.0


@dataclass(frozen=True)
class MotionSample:
    """One pointer position along a synthesized path."""

    t: float
    base_x: float
    base_y: float
    x: float
    y: float
    delay_ms: float = 0.0


def cubic_bezier(
    t: float,
    p0: float,
    p1: float,
    p2: float,
    p3: float,
) -> float:
    one_t = 1.0 - t
    return (
        one_t**3 * p0
        + 3.0 * one_t**2 * t * p1
        + 3.0 * one_t * t**2 * p2
        + t**3 * p3
    )


def plan_motion(
    target_x: float,
    target_y: float,
    rng: Optional[random.Random] = None,
) -> list[MotionSample]:
    """Return the samples of a jittered cubic Bezier path ending at the target.

    The start sits at a random offset near the top-left corner because the
    real cursor position is not observable. Both control points lie on the
    axis-aligned box spanned by start and target, so un-jittered samples never
    leave it.
    """

    rng = rng or random.Random()
    start_x = rng.random() * START_RANGE
    start_y = rng.random() * START_RANGE
    steps = MIN_STEPS + rng.randrange(STEP_SPREAD)

    cp1x = start_x + (target_x - start_x) * rng.random()
    cp1y = start_y + (target_y - start_y) * rng.random()
    cp2x = start_x + (target_x - start_x) * rng.random()
    cp2y = start_y + (target_y - start_y) * rng.random()

    samples: list[MotionSample] = []
    for i in range(steps + 1):
        t = i / steps
        base_x = cubic_bezier(t, start_x, cp1x, cp2x, target_x)
        base_y = cubic_bezier(t, start_y, cp1y, cp2y, target_y)
        delay_ms = 0.0
        if i % PAUSE_EVERY == 0:
            delay_ms = PAUSE_MIN_MS + rng.random() * PAUSE_SPREAD_MS
        samples.append(
            MotionSample(
                t=t,
                base_x=base_x,
                base_y=base_y,
                x=base_x + rng.uniform(-JITTER, JITTER),
                y=base_y + rng.uniform(-JITTER, JITTER),
                delay_ms=delay_ms,
            )
        )
    return samples


def move_to(
    page: Any,
    target_x: float,
    target_y: float,
    *,
    rng: Optional[random.Random] = None,
    sleep: Sleep = time.sleep,
) -> list[MotionSample]:
    """Move the page's mouse along a planned path and return the samples used."""

    samples = plan_motion(target_x, target_y, rng)
    for sample in samples:
        page.mouse.move(sample.x, sample.y)
        if sample.delay_ms:
            sleep(sample.delay_ms / 1000.0)
    return samples


def human_pause(
    rng: Optional[random.Random] = None,
    sleep: Sleep = time.sleep,
    *,
    low_ms: float = 100.0,
    high_ms: float = 300.0,
) -> float:
    """Sleep for a random human-scale interval and return it in milliseconds."""

    rng = rng or random.Random()
    delay_ms = rng.uniform(low_ms, high_ms)
    sleep(delay_ms / 1000.0)
    return delay_ms
