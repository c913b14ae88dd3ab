"""
Phase timing

Duration generators used by the lifecycle engine. They are plain callables
so tests can swap in fixed durations.
"""

import random
from typing import Callable

# Phase completion: 2000ms + up to 1000ms of jitter
PHASE_MIN_MS = 2000
PHASE_JITTER_MS = 1000

# Batch upload window: 2000ms + 500ms per file
BATCH_BASE_MS = 2000
BATCH_PER_FILE_MS = 500


def uniform_phase_duration(
    min_ms: int = PHASE_MIN_MS,
    jitter_ms: int = PHASE_JITTER_MS,
    rng: Callable[[], float] = random.random
) -> Callable[[], float]:
    """
    Build a generator of phase durations in seconds.
    Each call draws uniformly from [min_ms, min_ms + jitter_ms).
    """
    def draw() -> float:
        return (min_ms + rng() * jitter_ms) / 1000.0

    return draw


def batch_window(
    base_ms: int = BATCH_BASE_MS,
    per_file_ms: int = BATCH_PER_FILE_MS
) -> Callable[[int], float]:
    """Build a generator of batch upload windows in seconds, scaled by file count."""
    def window(file_count: int) -> float:
        return (base_ms + file_count * per_file_ms) / 1000.0

    return window


def fixed_duration(seconds: float) -> Callable[[], float]:
    return lambda: seconds
