"""Fixed-point arithmetic for the RAMM engine.

Every function is stateless and operates on plain Python ints that model
unsigned 256-bit words scaled by ``SCALE`` (12 decimal places).

Rounding is truncation toward zero and nothing else. Operands are unsigned,
so Python's ``//`` (floor) coincides with truncation. Call sites that need a
pool-favoring ceiling do it explicitly on their own side of the conversion.

Python ints never wrap, so the 256-bit working width is enforced by hand:
any operand or result that does not fit raises ``ArithmeticOverflow``.
"""

from __future__ import annotations

from .errors import ArithmeticOverflow

SCALE_DECIMALS: int = 12
SCALE: int = 10**SCALE_DECIMALS
ONE: int = SCALE

WORD_BITS: int = 256
MAX_UINT: int = 2**WORD_BITS - 1


def check_word(value: int, *, name: str = "value") -> int:
    """Return *value* if it is a valid unsigned word, else raise."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ArithmeticOverflow(f"{name} underflows an unsigned word: {value}")
    if value > MAX_UINT:
        raise ArithmeticOverflow(f"{name} exceeds {WORD_BITS}-bit working width")
    return value


def mul(a: int, b: int) -> int:
    """``a * b / SCALE``, truncated."""
    check_word(a, name="a")
    check_word(b, name="b")
    return check_word((a * b) // SCALE, name="mul result")


def mul3(a: int, b: int, c: int) -> int:
    """``a * b * c / SCALE**2``, truncated.

    The triple product is formed at full width before the single narrowing
    division, so no precision is lost to an intermediate rescale.
    """
    check_word(a, name="a")
    check_word(b, name="b")
    check_word(c, name="c")
    return check_word((a * b * c) // (SCALE * SCALE), name="mul3 result")


def div(a: int, b: int) -> int:
    """``a * SCALE / b``, truncated."""
    check_word(a, name="a")
    check_word(b, name="b")
    if b == 0:
        raise ArithmeticOverflow("division by zero")
    return check_word((a * SCALE) // b, name="div result")


def mul_div(a: int, b: int, c: int) -> int:
    """``a * b / c`` with a full-width intermediate, truncated."""
    check_word(a, name="a")
    check_word(b, name="b")
    check_word(c, name="c")
    if c == 0:
        raise ArithmeticOverflow("division by zero")
    return check_word((a * b) // c, name="mul_div result")


def abs_diff(a: int, b: int) -> int:
    return a - b if a >= b else b - a


# -- Scale conversion ----------------------------------------------------------

def scale_factor(decimals: int) -> int:
    """Factor converting a native amount with *decimals* places to internal scale."""
    if not isinstance(decimals, int) or isinstance(decimals, bool):
        raise TypeError("decimals must be an int")
    if not (0 <= decimals <= SCALE_DECIMALS):
        raise ValueError(f"decimals must be in [0, {SCALE_DECIMALS}]: {decimals}")
    return 10 ** (SCALE_DECIMALS - decimals)


def to_internal(native: int, factor: int) -> int:
    check_word(native, name="native amount")
    return check_word(native * factor, name="internal amount")


def to_native(internal: int, factor: int) -> int:
    """Narrow an internal amount to native units, discarding the remainder."""
    check_word(internal, name="internal amount")
    return internal // factor
