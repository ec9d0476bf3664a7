"""
Dynamic fee model (deterministic, integer-only).

    rate           = base_fee + volatility(in) + volatility(out)
    net_fee        = mul(rate, notional)
    protocol_share = mul(protocol_fee_fraction, net_fee)

Fees are denominated in the outbound asset. The protocol share is narrowed to
that asset's native decimals by floor division; the remainder is not lost, it
stays in the pool balance together with the LP share. There is no fee floor or
ceiling: in very turbulent markets the rate can approach 100% and the caller's
slippage bound is the guard.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..state.pool import AssetSlot
from .config import RammConfig
from .fixed_point import check_word, mul


@dataclass(frozen=True)
class FeeQuote:
    """Fee charged on one trade. Internal-scale unless suffixed ``_native``."""

    rate: int
    notional: int
    net_fee: int
    protocol_share: int
    protocol_fee_native: int
    lp_share: int

    def __post_init__(self) -> None:
        for name, v in (
            ("rate", self.rate),
            ("notional", self.notional),
            ("net_fee", self.net_fee),
            ("protocol_share", self.protocol_share),
            ("protocol_fee_native", self.protocol_fee_native),
            ("lp_share", self.lp_share),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")


def fee_rate(slot_in: AssetSlot, slot_out: AssetSlot, config: RammConfig) -> int:
    return check_word(
        config.base_fee + slot_in.volatility_index + slot_out.volatility_index,
        name="fee rate",
    )


def compute_fee(
    slot_in: AssetSlot,
    slot_out: AssetSlot,
    notional: int,
    config: RammConfig,
) -> FeeQuote:
    """Price the fee on *notional* (internal units of the outbound asset)."""
    rate = fee_rate(slot_in, slot_out, config)
    net_fee = mul(rate, notional)
    protocol_share = mul(config.protocol_fee_fraction, net_fee)
    factor = slot_out.decimal_scale_factor
    protocol_fee_native = protocol_share // factor
    lp_share = net_fee - protocol_fee_native * factor
    return FeeQuote(
        rate=rate,
        notional=notional,
        net_fee=net_fee,
        protocol_share=protocol_share,
        protocol_fee_native=protocol_fee_native,
        lp_share=lp_share,
    )
