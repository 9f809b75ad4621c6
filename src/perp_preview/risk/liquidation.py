"""Liquidation price for an isolated position.

A position is liquidatable once collateral plus unrealized PnL falls to the
maintenance requirement, ``max(min_maintenance, notional * maintenance)``.

When the requirement at the current price is the ``min_maintenance`` floor
the solution is linear in price:

    long  = |(min_maintenance - collateral) /  position + price|
    short = |(min_maintenance - collateral) / -position + price|

Otherwise the proportional requirement moves with price:

    long  = |(notional - collateral) / (position * (maintenance - 1))|
    short = |(collateral + notional) / (position * (maintenance + 1))|

The branch is chosen from the requirement at the current price, exactly as
the contract-facing SDK does.
"""

from dataclasses import dataclass

from perp_preview.fees.trade_fee import calc_notional
from perp_preview.fixed import fixed6
from perp_preview.models import RiskParameter


@dataclass(frozen=True)
class LiquidationPrice:
    long: int
    short: int


NO_LIQUIDATION = LiquidationPrice(long=0, short=0)


def calc_liquidation_price(
    collateral: int,
    position: int,
    price: int,
    risk: RiskParameter,
) -> LiquidationPrice:
    """Liquidation prices for a long and a short of the same size.

    Args:
        collateral: Account collateral (Fixed6).
        position: Position magnitude (Fixed6).
        price: Mark price, or a limit price override.
        risk: Market risk parameters.

    Returns:
        LiquidationPrice; zeros when there is no collateral or no position.
    """
    if collateral == 0 or position == 0:
        return NO_LIQUIDATION

    notional = calc_notional(position, price)
    maintenance = fixed6.mul(notional, risk.maintenance)

    if maintenance < risk.min_maintenance:
        shortfall = risk.min_maintenance - collateral
        return LiquidationPrice(
            long=fixed6.abs(fixed6.div(shortfall, position) + price),
            short=fixed6.abs(fixed6.div(shortfall, -position) + price),
        )

    long_denominator = fixed6.mul(position, risk.maintenance - fixed6.one)
    if long_denominator != 0:
        long = fixed6.abs(fixed6.div(notional - collateral, long_denominator))
    else:
        long = 0

    short_denominator = fixed6.mul(position, risk.maintenance + fixed6.one)
    if short_denominator != 0:
        short = fixed6.abs(fixed6.div(collateral + notional, short_denominator))
    else:
        short = 0

    return LiquidationPrice(long=long, short=short)
