"""Fixed-point arithmetic layer.

Provides the Fixed6 / Fixed18 scaled-integer primitives every formula module
builds on, plus the payoff transforms used to map oracle prices to market
prices.
"""

from perp_preview.fixed.point import (
    INT256_MAX,
    INT256_MIN,
    UINT256_MAX,
    FixedPoint,
    check_int256,
    check_uint256,
    fixed6,
    fixed18,
    isqrt_newton,
    tdiv,
)
from perp_preview.fixed.transforms import (
    centimilli_power_two_transform,
    centimilli_power_two_untransform,
    decimal_transform,
    decimal_untransform,
    linear_transform,
    linear_untransform,
    micro_power_two_transform,
    micro_power_two_untransform,
)

__all__ = [
    "INT256_MAX",
    "INT256_MIN",
    "UINT256_MAX",
    "FixedPoint",
    "centimilli_power_two_transform",
    "centimilli_power_two_untransform",
    "check_int256",
    "check_uint256",
    "decimal_transform",
    "decimal_untransform",
    "fixed18",
    "fixed6",
    "isqrt_newton",
    "linear_transform",
    "linear_untransform",
    "micro_power_two_transform",
    "micro_power_two_untransform",
    "tdiv",
]
