"""
Configuration & Global Constants
================================
This module serves as the central registry for the tuning constants of the
word cloud.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (word capacity, decay interval,
   tick rate, ...) scattered throughout the code.
2. Deployment: A session can be tuned without code changes through
   ``STREAMCLOUD_*`` environment variables (see ``CloudConfig.from_env``).

Exports:
    MAX_WORDS (int): Number of live words before stale ones are evicted.
    MAX_RECENT (int): Number of source messages remembered per word.
    SATURATION_INTERVAL (int): Messages between two decay passes.
    CloudConfig: Dataclass bundling all settings for one session.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# Frequency model
MAX_WORDS: int = 100
MAX_RECENT: int = 20
SATURATION_INTERVAL: int = 20

# Tick loop
TICK_RATE_HZ: int = 20
MAX_MESSAGES_PER_TICK: int = 20
STEPS_PER_TICK: int = 1
QUEUE_CAPACITY: int = 10_000

# Rendering hints (points)
BASE_FONT_SIZE: float = 8.0
FONT_SIZE_STEP: float = 2.0
MAX_FONT_SIZE: float = 48.0

# Default viewport (pixels) used for the fit scale until the sink reports its size
VIEWPORT_WIDTH: int = 800
VIEWPORT_HEIGHT: int = 600

ENV_PREFIX = "STREAMCLOUD_"


@dataclass(frozen=True)
class CloudConfig:
    """All tunables of one word cloud session."""
    max_words: int = MAX_WORDS
    max_recent: int = MAX_RECENT
    saturation_interval: int = SATURATION_INTERVAL
    tick_rate_hz: int = TICK_RATE_HZ
    max_messages_per_tick: int = MAX_MESSAGES_PER_TICK
    steps_per_tick: int = STEPS_PER_TICK
    queue_capacity: int = QUEUE_CAPACITY
    damping: float = 0.5
    spring_length: float = 100.0
    deterministic: bool = False
    count_threshold: int = 0
    base_font_size: float = BASE_FONT_SIZE
    font_size_step: float = FONT_SIZE_STEP
    max_font_size: float = MAX_FONT_SIZE
    viewport_width: int = VIEWPORT_WIDTH
    viewport_height: int = VIEWPORT_HEIGHT

    def __post_init__(self) -> None:
        for name in ("max_words", "max_recent", "saturation_interval", "tick_rate_hz",
                     "max_messages_per_tick", "queue_capacity"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}.")
        if self.steps_per_tick < 0:
            raise ValueError("steps_per_tick cannot be negative.")
        if not 0.0 <= self.damping <= 1.0:
            raise ValueError(f"damping must be within [0, 1], got {self.damping!r}.")
        if self.spring_length <= 0:
            raise ValueError(f"spring_length must be positive, got {self.spring_length!r}.")
        if self.count_threshold < 0:
            raise ValueError("count_threshold cannot be negative.")

    @property
    def tick_interval_ms(self) -> int:
        return int(1000 / self.tick_rate_hz)

    def size_hint(self, count: int) -> float:
        """Font size for a word seen ``count`` times."""
        return min(self.base_font_size + self.font_size_step * (count - 1), self.max_font_size)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> CloudConfig:
        """
        Build a config from ``STREAMCLOUD_<FIELD>`` environment variables.
        Explicit keyword overrides win over the environment.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _parse_value(raw, type(getattr(cls, f.name)))
            logger.debug(f"Config override from environment: {f.name}={values[f.name]!r}")
        values.update(overrides)
        return cls(**values)

    def with_changes(self, **changes) -> CloudConfig:
        return replace(self, **changes)


def _parse_value(raw: str, kind: type):
    if kind is bool:
        return raw.strip().lower() in ("1", "true", "yes", "on")
    try:
        return kind(raw)
    except ValueError as e:
        raise ValueError(f"Invalid configuration value {raw!r}: {e}") from e
