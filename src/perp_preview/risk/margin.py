"""Margin, maintenance and leverage figures.

Margin and maintenance requirements are ``max(min_x, notional * x)`` for an
open position and zero for a flat one. Leverage is notional over collateral
and is zero, not an error, when the account holds no collateral.
"""

from perp_preview.fees.trade_fee import calc_notional
from perp_preview.fixed import fixed6
from perp_preview.models import RiskParameter

MAX_LEVERAGE = 100
LEVERAGE_STEP = 5
DEFAULT_MAX_LEVERAGE = 10


def _requirement(magnitude: int, price: int, ratio: int, floor: int) -> int:
    if magnitude == 0:
        return 0
    return fixed6.max(floor, fixed6.mul(ratio, calc_notional(magnitude, price)))


def calc_margin(magnitude: int, price: int, risk: RiskParameter) -> int:
    """Initial margin required to hold ``magnitude`` at ``price``."""
    return _requirement(magnitude, price, risk.margin, risk.min_margin)


def calc_maintenance(magnitude: int, price: int, risk: RiskParameter) -> int:
    """Maintenance requirement below which the position is liquidatable."""
    return _requirement(magnitude, price, risk.maintenance, risk.min_maintenance)


def calc_leverage(price: int, position: int, collateral: int) -> int:
    if collateral == 0:
        return 0
    return fixed6.div(calc_notional(position, price), collateral)


def calc_max_leverage(
    margin: int | None = None,
    min_margin: int | None = None,
    collateral: int | None = None,
    max_leverage: int = MAX_LEVERAGE,
    step: int = LEVERAGE_STEP,
    default: int = DEFAULT_MAX_LEVERAGE,
) -> int:
    """Highest selectable leverage, quantized for display.

    The bound is ``min(1 / margin, collateral-scaled bound, max_leverage)``.
    The collateral bound shrinks leverage for accounts too small to reach
    full leverage without dropping under ``min_margin``.

    Quantization floors to a whole number, then floors to a multiple of
    ``step`` only when the whole number is at least ``step``: 4.7x -> 4x,
    but 13.2x -> 10x. The result is never below 1x.

    Args:
        margin: Market margin ratio. Unknown or zero returns ``default``.
        min_margin: Market minimum margin amount.
        collateral: Account collateral. Zero or None skips the collateral bound.
        max_leverage: Whole-number leverage cap.
        step: Quantization step.
        default: Whole-number leverage returned when margin is unknown.

    Returns:
        Maximum leverage in Fixed6.
    """
    if not margin:
        return fixed6.from_int(default)

    margin_max_leverage = fixed6.div(fixed6.one, margin)
    min_collateral_for_full_range = fixed6.mul(min_margin or 0, margin_max_leverage)
    if collateral and min_collateral_for_full_range:
        collateral_max_leverage = fixed6.div(
            fixed6.mul(collateral, margin_max_leverage), min_collateral_for_full_range
        )
    else:
        collateral_max_leverage = margin_max_leverage

    max_lev = fixed6.min(
        margin_max_leverage,
        collateral_max_leverage,
        fixed6.from_int(max_leverage),
    )
    floored = max(fixed6.max(max_lev, 0) // fixed6.one, 1)
    if floored < step:
        return fixed6.from_int(floored)
    return fixed6.from_int(floored // step * step)
