from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionConfig:
    """
    Location session config.

    max_wait:
      wait budget counted in polls. One poll per `poll_interval_s` when the
      session is driven by `wait()` / `wait_async()`.
    poll_interval_s:
      suspension between polls for the waiting helpers. Hosts that call
      `poll()` themselves choose their own cadence.
    """
    max_wait: int = 20
    poll_interval_s: float = 1.0

    def __post_init__(self) -> None:
        if self.max_wait < 0:
            raise ValueError(f"max_wait must be >= 0, got {self.max_wait}")
        if self.poll_interval_s <= 0:
            raise ValueError(f"poll_interval_s must be positive, got {self.poll_interval_s}")


@dataclass(frozen=True)
class ProjectionConfig:
    method: str = "equirectangular"  # "equirectangular" | "tm"
