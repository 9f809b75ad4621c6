"""Custom exceptions for the market economics engine.

Arithmetic and data-integrity failures live here so the fixed-point layer,
the formula modules and the reconciler can share them without circular
imports. Advisory conditions (version errors, stale prices, sync mismatches)
are NOT exceptions; they surface through PositionStatus.
"""


class EngineError(Exception):
    """Base exception for all engine errors."""


class FixedPointError(EngineError, ArithmeticError):
    """Raised when a scaled-integer operation cannot produce a valid result."""


class FixedPointDivisionByZero(FixedPointError, ZeroDivisionError):
    """Raised when a fixed-point division has a zero denominator."""


class FixedPointOverflow(FixedPointError, OverflowError):
    """Raised when a value or intermediate product leaves the int256 range."""


class FixedPointUnderflow(FixedPointError):
    """Raised when a negative value is narrowed into an unsigned slot."""


class FixedPointNegativeSqrt(FixedPointError, ValueError):
    """Raised when a square root of a negative value is requested."""


class CurveOutOfBoundsError(EngineError, ValueError):
    """Raised when linear interpolation is asked for a point outside its segment."""


class DataIntegrityError(EngineError):
    """Raised when a snapshot violates a protocol invariant.

    Example: more than one of maker/long/short nonzero on a single account.
    """
