"""Engine parameters.

All rates are internal-scale fractions (``ONE == 100%``) and all durations are
seconds. The defaults are the documented production values; tests and
simulations pass alternates explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass

from .fixed_point import ONE

DEFAULT_BASE_FEE: int = ONE // 1000  # 0.1%
DEFAULT_PROTOCOL_FEE_FRACTION: int = 30 * ONE // 100  # 30%
DEFAULT_STALENESS_THRESHOLD: int = 3600
DEFAULT_TAU: int = 300
DEFAULT_MAX_IMBALANCE_DELTA: int = 25 * ONE // 100  # 25%
DEFAULT_MAX_ASSETS: int = 8
MIN_ASSETS: int = 2


@dataclass(frozen=True)
class RammConfig:
    """Pricing, fee and freshness parameters shared by every pool operation."""

    base_fee: int = DEFAULT_BASE_FEE
    protocol_fee_fraction: int = DEFAULT_PROTOCOL_FEE_FRACTION
    staleness_threshold: int = DEFAULT_STALENESS_THRESHOLD
    tau: int = DEFAULT_TAU
    max_imbalance_delta: int = DEFAULT_MAX_IMBALANCE_DELTA
    max_assets: int = DEFAULT_MAX_ASSETS

    def __post_init__(self) -> None:
        for name, val in (
            ("base_fee", self.base_fee),
            ("protocol_fee_fraction", self.protocol_fee_fraction),
            ("staleness_threshold", self.staleness_threshold),
            ("tau", self.tau),
            ("max_imbalance_delta", self.max_imbalance_delta),
            ("max_assets", self.max_assets),
        ):
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"{name} must be an int")
        if not (0 <= self.base_fee < ONE):
            raise ValueError(f"base_fee must be in [0, ONE): {self.base_fee}")
        if not (0 <= self.protocol_fee_fraction <= ONE):
            raise ValueError(
                f"protocol_fee_fraction must be in [0, ONE]: {self.protocol_fee_fraction}"
            )
        if self.staleness_threshold <= 0:
            raise ValueError(f"staleness_threshold must be positive: {self.staleness_threshold}")
        if self.tau <= 0:
            raise ValueError(f"tau must be positive: {self.tau}")
        if not (0 < self.max_imbalance_delta < ONE):
            raise ValueError(
                f"max_imbalance_delta must be in (0, ONE): {self.max_imbalance_delta}"
            )
        if self.max_assets < MIN_ASSETS:
            raise ValueError(f"max_assets must be at least {MIN_ASSETS}: {self.max_assets}")


DEFAULT_CONFIG = RammConfig()
