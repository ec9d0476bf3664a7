"""
Core RAMM algorithms: fixed-point math, oracle gateway, volatility, fees,
trade and liquidity engines, pool lifecycle.

Every function here is pure: frozen state in, new frozen state out.
"""

from .errors import (
    RammError,
    ArithmeticOverflow,
    StalePrice,
    InvalidPrice,
    UnknownAsset,
    PoolNotInitialized,
    TradeTooSmall,
    SlippageExceeded,
    ImbalanceRatioExceeded,
    InsufficientLiquidity,
    DepositsDisabled,
    InsufficientSupply,
    NotAuthorized,
    CapabilityMismatch,
    PoolAlreadyInitialized,
    InsufficientFunds,
    InvariantViolation,
)
from .fixed_point import ONE, SCALE, mul, mul3, div, mul_div
from .config import DEFAULT_CONFIG, RammConfig
from .oracle import OracleReading, PriceObservation, normalize_price, read_all
from .volatility import observe, observe_all
from .fees import FeeQuote, compute_fee
from .trade import (
    TradeMode,
    TradeRequest,
    TradeOutcome,
    TradeResult,
    execute_trade,
    trade_amount_in,
    trade_amount_out,
    trade_or_raise,
)
from .liquidity import (
    LiquidityAction,
    LiquidityOutcome,
    LiquidityResult,
    deposit,
    withdraw,
    deposit_or_raise,
    withdraw_or_raise,
)
from .admin import AdminCap, NewAssetCap, new_pool, add_asset, initialize, collect_fees

__all__ = [
    "RammError",
    "ArithmeticOverflow",
    "StalePrice",
    "InvalidPrice",
    "UnknownAsset",
    "PoolNotInitialized",
    "TradeTooSmall",
    "SlippageExceeded",
    "ImbalanceRatioExceeded",
    "InsufficientLiquidity",
    "DepositsDisabled",
    "InsufficientSupply",
    "NotAuthorized",
    "CapabilityMismatch",
    "PoolAlreadyInitialized",
    "InsufficientFunds",
    "InvariantViolation",
    "ONE",
    "SCALE",
    "mul",
    "mul3",
    "div",
    "mul_div",
    "DEFAULT_CONFIG",
    "RammConfig",
    "OracleReading",
    "PriceObservation",
    "normalize_price",
    "read_all",
    "observe",
    "observe_all",
    "FeeQuote",
    "compute_fee",
    "TradeMode",
    "TradeRequest",
    "TradeOutcome",
    "TradeResult",
    "execute_trade",
    "trade_amount_in",
    "trade_amount_out",
    "trade_or_raise",
    "LiquidityAction",
    "LiquidityOutcome",
    "LiquidityResult",
    "deposit",
    "withdraw",
    "deposit_or_raise",
    "withdraw_or_raise",
    "AdminCap",
    "NewAssetCap",
    "new_pool",
    "add_asset",
    "initialize",
    "collect_fees",
]
