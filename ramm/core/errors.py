"""Exception types for the RAMM engine.

Every failure a pool operation can hit is a ``RammError`` subclass with a
stable ``code`` tag. The functional core reports them inside result objects
(``rejection`` carries the code); ``*_or_raise`` helpers and the imperative
shell raise them to the caller.
"""

from __future__ import annotations


class RammError(Exception):
    """Base class for every pool-level failure."""

    code: str = "ramm_error"


# -- Math --------------------------------------------------------------------

class ArithmeticOverflow(RammError):
    """A value does not fit the unsigned working width (or a division by zero)."""

    code = "arithmetic_overflow"


# -- Oracle ------------------------------------------------------------------

class OracleError(RammError):
    code = "oracle_error"

    def __init__(self, asset: str, reason: str) -> None:
        self.asset = asset
        self.reason = reason
        super().__init__(f"{asset}: {reason}")


class StalePrice(OracleError):
    code = "stale_price"


class InvalidPrice(OracleError):
    code = "invalid_price"


# -- Pool --------------------------------------------------------------------

class UnknownAsset(RammError):
    code = "unknown_asset"

    def __init__(self, asset: str) -> None:
        self.asset = asset
        super().__init__(f"asset not registered in pool: {asset}")


class PoolNotInitialized(RammError):
    code = "pool_not_initialized"


# -- Trade -------------------------------------------------------------------

class TradeError(RammError):
    code = "trade_error"


class TradeTooSmall(TradeError):
    code = "trade_too_small"


class SlippageExceeded(TradeError):
    code = "slippage_exceeded"


class ImbalanceRatioExceeded(TradeError):
    code = "imbalance_ratio_exceeded"


class InsufficientLiquidity(TradeError):
    code = "insufficient_liquidity"


# -- Liquidity ---------------------------------------------------------------

class LiquidityError(RammError):
    code = "liquidity_error"


class DepositsDisabled(LiquidityError):
    code = "deposits_disabled"


class InsufficientSupply(LiquidityError):
    code = "insufficient_supply"


# -- Admin -------------------------------------------------------------------

class AdminError(RammError):
    code = "admin_error"


class NotAuthorized(AdminError):
    code = "not_authorized"


class CapabilityMismatch(AdminError):
    code = "capability_mismatch"


class PoolAlreadyInitialized(AdminError):
    code = "pool_already_initialized"


# -- Shell -------------------------------------------------------------------

class InsufficientFunds(RammError):
    """The counterparty cannot cover a transfer the operation needs."""

    code = "insufficient_funds"


# -- Invariants --------------------------------------------------------------

class InvariantViolation(RammError):
    """A computed post-state violates one or more pool invariants."""

    code = "invariant_violation"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
