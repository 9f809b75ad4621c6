"""Utilization and the jump-rate interest curve.

Utilization measures how much maker capacity taker positions consume:

    net_utilization        = major / (maker + minor)
    efficiency_utilization = major * efficiency_limit / maker
    utilization            = clamp(max(net, efficiency), 0, 100%)

Both ratios fall back to zero when their denominator is zero; a market with
no makers cannot be efficiency-bound.
"""

from perp_preview.exceptions import CurveOutOfBoundsError
from perp_preview.fixed import fixed6
from perp_preview.models import AggregatePosition, JumpRateUtilizationCurve


def linear_interpolation(
    start_x: int,
    start_y: int,
    end_x: int,
    end_y: int,
    target_x: int,
) -> int:
    """Interpolate y at target_x on the segment (start_x, start_y)-(end_x, end_y).

    Raises:
        CurveOutOfBoundsError: If target_x lies outside [start_x, end_x].
    """
    if target_x < start_x or target_x > end_x:
        raise CurveOutOfBoundsError(
            f"target {target_x} outside interpolation range [{start_x}, {end_x}]"
        )

    x_range = end_x - start_x
    y_range = end_y - start_y
    x_ratio = fixed6.div(target_x - start_x, x_range)
    return fixed6.mul(y_range, x_ratio) + start_y


def compute_interest_rate(curve: JumpRateUtilizationCurve, utilization: int) -> int:
    """Annualized interest rate for a utilization on the jump-rate curve."""
    if utilization < fixed6.zero:
        return curve.min_rate

    if utilization < curve.target_utilization:
        return linear_interpolation(
            fixed6.zero,
            curve.min_rate,
            curve.target_utilization,
            curve.target_rate,
            utilization,
        )

    if utilization < fixed6.one:
        return linear_interpolation(
            curve.target_utilization,
            curve.target_rate,
            fixed6.one,
            curve.max_rate,
            utilization,
        )

    return curve.max_rate


def calc_net_utilization(position: AggregatePosition) -> int:
    denominator = position.maker + position.minor
    if denominator <= 0:
        return 0
    return fixed6.div(position.major, denominator)


def calc_efficiency_utilization(position: AggregatePosition, efficiency_limit: int) -> int:
    if position.maker == 0:
        return 0
    return fixed6.mul(position.major, fixed6.div(efficiency_limit, position.maker))


def calc_utilization(position: AggregatePosition, efficiency_limit: int) -> int:
    """Utilization in [0, 100%] feeding the interest curve."""
    utilization = fixed6.max(
        calc_net_utilization(position),
        calc_efficiency_utilization(position, efficiency_limit),
    )
    return fixed6.clamp(utilization, fixed6.zero, fixed6.one)
