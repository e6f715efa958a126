"""
bfunct.config: machine capacities and their environment overrides.

Every buffer the machine owns has a fixed capacity. The defaults fit a
two-byte addressable range:

  - BRAINFUNCT_TAPE_SIZE        (int)  default: 65536
  - BRAINFUNCT_INPUT_SIZE       (int)  default: 65536
  - BRAINFUNCT_OUTPUT_SIZE      (int)  default: 65536
  - BRAINFUNCT_CALL_STACK_SIZE  (int)  default: 65536
  - BRAINFUNCT_MAX_FUNCTIONS    (int)  default: 255
  - BRAINFUNCT_MAX_STEPS        (int)  default: 0 (unlimited)

Usage:
    from bfunct.config import load_limits
    limits = load_limits()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any

DEFAULT_CAPACITY = 1 << 16
# A call target is a single cell, so ids 1..255 are the only addressable ones.
DEFAULT_MAX_FUNCTIONS = 255

_ENV_PREFIX = "BRAINFUNCT_"


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


@dataclass(frozen=True)
class Limits:
    tape_size: int = DEFAULT_CAPACITY
    input_size: int = DEFAULT_CAPACITY
    output_size: int = DEFAULT_CAPACITY
    call_stack_size: int = DEFAULT_CAPACITY
    max_functions: int = DEFAULT_MAX_FUNCTIONS
    max_steps: int = 0

    def __post_init__(self) -> None:
        for name in ("tape_size", "input_size", "output_size", "call_stack_size"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be positive")
        if not 1 <= self.max_functions <= DEFAULT_MAX_FUNCTIONS:
            raise ValueError(f"max_functions must be in 1..{DEFAULT_MAX_FUNCTIONS}")
        if self.max_steps < 0:
            raise ValueError("max_steps must be >= 0 (0 disables the budget)")

    def with_overrides(self, **kwargs: Any) -> "Limits":
        return replace(self, **kwargs)


@lru_cache(maxsize=1)
def load_limits() -> Limits:
    """Build Limits from the environment, clamping out-of-range values."""
    return Limits(
        tape_size=_env_int("TAPE_SIZE", DEFAULT_CAPACITY, min_v=1, max_v=1 << 24),
        input_size=_env_int("INPUT_SIZE", DEFAULT_CAPACITY, min_v=1, max_v=1 << 24),
        output_size=_env_int("OUTPUT_SIZE", DEFAULT_CAPACITY, min_v=1, max_v=1 << 24),
        call_stack_size=_env_int("CALL_STACK_SIZE", DEFAULT_CAPACITY, min_v=1, max_v=1 << 24),
        max_functions=_env_int("MAX_FUNCTIONS", DEFAULT_MAX_FUNCTIONS, min_v=1, max_v=DEFAULT_MAX_FUNCTIONS),
        max_steps=_env_int("MAX_STEPS", 0, min_v=0, max_v=1 << 62),
    )


def reset_cache() -> None:
    load_limits.cache_clear()
