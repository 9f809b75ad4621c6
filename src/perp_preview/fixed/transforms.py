"""Payoff transforms between oracle prices (18 decimals) and market prices (6 decimals).

Markets with a non-linear payoff quote a transformed price: squared and
rescaled, or shifted by a power of ten. Each transform has an untransform
that maps a 6-decimal market price back to the 18-decimal oracle price.
Squared payoffs rely on ``fixed18.sqrt`` for the inverse, so untransforms are
only exact up to the square root's truncation.
"""

from collections.abc import Callable

from perp_preview.fixed.point import fixed6, fixed18

MICRO_SCALE = fixed18.from_float_string("1000000")
CENTIMILLI_SCALE = fixed18.from_float_string("100000")


def linear_transform(value18: int) -> int:
    return fixed18.to_decimals(value18, fixed6.decimals)


def linear_untransform(value6: int) -> int:
    return fixed18.from_decimals(value6, fixed6.decimals)


def micro_power_two_transform(value18: int) -> int:
    squared = fixed18.div(fixed18.mul(value18, value18), MICRO_SCALE)
    return fixed18.to_decimals(squared, fixed6.decimals)


def micro_power_two_untransform(value6: int) -> int:
    return fixed18.sqrt(fixed18.mul(fixed18.from_decimals(value6, fixed6.decimals), MICRO_SCALE))


def centimilli_power_two_transform(value18: int) -> int:
    squared = fixed18.div(fixed18.mul(value18, value18), CENTIMILLI_SCALE)
    return fixed18.to_decimals(squared, fixed6.decimals)


def centimilli_power_two_untransform(value6: int) -> int:
    return fixed18.sqrt(fixed18.mul(fixed18.from_decimals(value6, fixed6.decimals), CENTIMILLI_SCALE))


def decimal_transform(decimals: int) -> Callable[[int], int]:
    """Build a transform that shifts the oracle price by ``10**decimals``.

    Negative ``decimals`` divide, positive multiply.
    """
    base = fixed18.from_decimals(10 ** abs(decimals), 0)

    def transform(value18: int) -> int:
        shifted = fixed18.div(value18, base) if decimals < 0 else fixed18.mul(value18, base)
        return fixed18.to_decimals(shifted, fixed6.decimals)

    return transform


def decimal_untransform(decimals: int) -> Callable[[int], int]:
    """Inverse of ``decimal_transform(decimals)``."""
    base = fixed18.from_decimals(10 ** abs(decimals), 0)

    def untransform(value6: int) -> int:
        value18 = fixed18.from_decimals(value6, fixed6.decimals)
        return fixed18.mul(value18, base) if decimals < 0 else fixed18.div(value18, base)

    return untransform
