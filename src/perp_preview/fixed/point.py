"""Scaled-integer arithmetic matching the protocol's Fixed6 / UFixed18 libraries.

All values are plain Python ints holding ``value * 10**decimals``. Python's
``//`` floors toward negative infinity while the contract (and the EVM)
truncates toward zero, so every division here goes through ``tdiv``.
Intermediate products are checked against the int256 range because the
contract reverts on overflow rather than wrapping.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from perp_preview.exceptions import (
    FixedPointDivisionByZero,
    FixedPointError,
    FixedPointNegativeSqrt,
    FixedPointOverflow,
    FixedPointUnderflow,
)
from perp_preview.logging import get_logger

logger = get_logger(__name__)

INT256_MAX = 2**255 - 1
INT256_MIN = -(2**255)
UINT256_MAX = 2**256 - 1

SQRT_MAX_ITERATIONS = 512

# Enough digits for any int256 value at 18 decimals.
DECIMAL_PRECISION = 100


def tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero (EVM ``sdiv`` semantics)."""
    if b == 0:
        raise FixedPointDivisionByZero(f"integer division of {a} by zero")
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


def check_int256(value: int) -> int:
    """Return value unchanged if it fits in int256, else raise FixedPointOverflow."""
    if value > INT256_MAX or value < INT256_MIN:
        raise FixedPointOverflow(f"{value} outside int256 range")
    return value


def check_uint256(value: int) -> int:
    """Return value unchanged if it fits in uint256."""
    if value < 0:
        raise FixedPointUnderflow(f"{value} is negative, expected uint256")
    if value > UINT256_MAX:
        raise FixedPointOverflow(f"{value} outside uint256 range")
    return value


def isqrt_newton(n: int, max_iterations: int = SQRT_MAX_ITERATIONS) -> int:
    """Integer square root by Newton's method starting from 1.

    Stops once two successive iterates differ by at most one, which also
    catches the s / s+1 oscillation of n = (s+1)**2 - 1, then settles on the
    floor root.
    """
    if n < 0:
        raise FixedPointNegativeSqrt("square root of negative numbers is not supported")
    if n < 2:
        return n

    x0 = 1
    for _ in range(max_iterations):
        x1 = (n // x0 + x0) >> 1
        if abs(x1 - x0) <= 1:
            root = max(x0, x1)
            while root * root > n:
                root -= 1
            return root
        x0 = x1

    raise FixedPointError(f"sqrt did not converge within {max_iterations} iterations")


class FixedPoint:
    """Arithmetic for one scale (6 or 18 implied decimals).

    Use the module-level ``fixed6`` and ``fixed18`` instances rather than
    constructing new ones.

    Args:
        decimals: Number of implied decimal places.
    """

    def __init__(self, decimals: int) -> None:
        if decimals < 0 or decimals % 2:
            raise ValueError("decimals must be a non-negative even number")
        self.decimals = decimals
        self.base = 10**decimals
        self.zero = 0
        self.one = self.base
        self._sqrt_rescale = 10 ** (decimals // 2)

    def __repr__(self) -> str:
        return f"FixedPoint(decimals={self.decimals})"

    # -- Core arithmetic ---------------------------------------------------

    def mul(self, a: int, b: int) -> int:
        """(a * b) / BASE, truncated toward zero."""
        product = check_int256(a * b)
        return tdiv(product, self.base)

    def div(self, a: int, b: int) -> int:
        """(a * BASE) / b, truncated toward zero.

        Raises:
            FixedPointDivisionByZero: If b is zero. Callers with a defined
                zero fallback must guard before calling.
        """
        if b == 0:
            logger.error(
                "fixed_point_division_by_zero",
                decimals=self.decimals,
                numerator=str(a),
            )
            raise FixedPointDivisionByZero(f"fixed{self.decimals} division of {a} by zero")
        scaled = check_int256(a * self.base)
        return tdiv(scaled, b)

    def from_int(self, value: int) -> int:
        """Lift an unscaled integer (e.g. elapsed seconds) into this scale."""
        return check_int256(value * self.base)

    # -- Comparisons -------------------------------------------------------

    def is_zero(self, a: int) -> bool:
        return a == 0

    def eq(self, a: int, b: int) -> bool:
        return a == b

    def abs(self, a: int) -> int:
        return -a if a < 0 else a

    def max(self, *values: int) -> int:
        if not values:
            raise ValueError("max() requires at least one value")
        result = values[0]
        for value in values[1:]:
            if value > result:
                result = value
        return result

    def min(self, *values: int) -> int:
        if not values:
            raise ValueError("min() requires at least one value")
        result = values[0]
        for value in values[1:]:
            if value < result:
                result = value
        return result

    def cmp(self, a: int, b: int) -> int:
        if a == b:
            return 0
        return -1 if a < b else 1

    def clamp(self, value: int, low: int, high: int) -> int:
        """Bound value to [low, high]."""
        return self.max(self.min(value, high), low)

    # -- Decimal string conversion -----------------------------------------

    def from_float_string(self, text: str, floor: bool = False) -> int:
        """Parse a decimal string such as ``"1,234.5"`` into a scaled int.

        Extra decimals beyond this scale are rounded half-up, or truncated
        when ``floor`` is set. Empty strings and ``"."`` parse as zero.
        """
        if not text or text == ".":
            return 0
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            try:
                amount = Decimal(text.replace(",", ""))
                exponent = Decimal(1).scaleb(-self.decimals)
                rounding = ROUND_DOWN if floor else ROUND_HALF_UP
                quantized = amount.quantize(exponent, rounding=rounding)
            except InvalidOperation as e:
                raise ValueError(f"not a decimal number: {text!r}") from e
            if not quantized.is_finite():
                raise ValueError(f"not a finite number: {text!r}")
            return check_int256(int(quantized.scaleb(self.decimals)))

    def to_float_string(self, value: int) -> str:
        """Render a scaled int as a plain decimal string without trailing zeros."""
        sign = "-" if value < 0 else ""
        whole, fraction = divmod(abs(value), self.base)
        if fraction == 0:
            return f"{sign}{whole}"
        digits = str(fraction).rjust(self.decimals, "0").rstrip("0")
        return f"{sign}{whole}.{digits}"

    def to_decimal(self, value: int) -> Decimal:
        """Exact Decimal view of a scaled int (for display layers and tests)."""
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            return Decimal(value).scaleb(-self.decimals)

    # -- Rescaling -----------------------------------------------------------

    def from_decimals(self, amount: int, decimals: int) -> int:
        """Rescale an amount with ``decimals`` places into this scale.

        Widening is exact; narrowing truncates toward zero.
        """
        exponent = self.decimals - decimals
        if exponent >= 0:
            return check_int256(amount * 10**exponent)
        return tdiv(amount, 10**-exponent)

    def to_decimals(self, amount: int, decimals: int) -> int:
        """Rescale an amount in this scale to ``decimals`` places."""
        exponent = self.decimals - decimals
        if exponent >= 0:
            return tdiv(amount, 10**exponent)
        return check_int256(amount * 10**-exponent)

    def to_18_decimals(self, amount: int) -> int:
        """Widen an amount in this scale to 18 decimals."""
        return self.to_decimals(amount, 18)

    # -- Roots -----------------------------------------------------------------

    def sqrt(self, a: int) -> int:
        """Square root of a scaled value, kept in this scale."""
        if a < 0:
            raise FixedPointNegativeSqrt("square root of negative numbers is not supported")
        if a < 2:
            return a
        return isqrt_newton(a) * self._sqrt_rescale


fixed6 = FixedPoint(6)
fixed18 = FixedPoint(18)
