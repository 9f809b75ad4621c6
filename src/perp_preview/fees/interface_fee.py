"""Interface fee and the total cost of a position change.

The interface fee is charged by the front end on top of the protocol trade
fee. Referrers can discount it and take a share of what remains; the rest
goes to the ecosystem. A position change's total cost is the trade fee plus
the interface fee plus the market's flat settlement fee.
"""

from dataclasses import dataclass

from perp_preview.fees.trade_fee import TradeFee, calc_notional, calc_trade_fee
from perp_preview.fixed import fixed6
from perp_preview.models import MarketSnapshot, PositionSide, PositionStatus


@dataclass(frozen=True)
class InterfaceFee:
    """Interface fee split. ``interface_fee_bps`` is the discounted rate."""

    interface_fee_bps: int
    interface_fee: int
    referrer_fee: int
    ecosystem_fee: int


@dataclass(frozen=True)
class PositionChangeFee:
    total: int
    trade_fee: TradeFee
    interface_fee: InterfaceFee
    settlement_fee: int


def calc_interface_fee(
    latest_price: int,
    position_delta: int,
    interface_fee_bps: int = 0,
    referrer_interface_fee_discount: int = 0,
    referrer_interface_fee_share: int = 0,
    position_status: PositionStatus = PositionStatus.RESOLVED,
) -> InterfaceFee:
    """Split the interface fee between referrer and ecosystem.

    Nothing is charged without a price, a size, a fee rate, or when the
    position is in the failed state (the order will not execute).
    """
    if (
        latest_price == 0
        or position_delta == 0
        or interface_fee_bps == 0
        or position_status is PositionStatus.FAILED
    ):
        return InterfaceFee(
            interface_fee_bps=interface_fee_bps,
            interface_fee=0,
            referrer_fee=0,
            ecosystem_fee=0,
        )

    notional = calc_notional(position_delta, latest_price)
    discounted_bps = interface_fee_bps - fixed6.mul(interface_fee_bps, referrer_interface_fee_discount)
    discounted_fee = fixed6.mul(notional, discounted_bps)
    referrer_fee = fixed6.mul(discounted_fee, referrer_interface_fee_share)

    return InterfaceFee(
        interface_fee_bps=discounted_bps,
        interface_fee=discounted_fee,
        referrer_fee=referrer_fee,
        ecosystem_fee=discounted_fee - referrer_fee,
    )


def calc_total_position_change_fee(
    market: MarketSnapshot,
    position_delta: int,
    direction: PositionSide,
    interface_fee_bps: int = 0,
    referrer_interface_fee_discount: int = 0,
    position_status: PositionStatus = PositionStatus.RESOLVED,
) -> PositionChangeFee:
    """Trade fee + interface fee + settlement fee for one order."""
    latest_price = market.global_.latest_price
    trade_fee = calc_trade_fee(
        position_delta,
        market.next_position,
        market.risk_parameter,
        direction,
        latest_price,
    )
    interface_fee = calc_interface_fee(
        latest_price,
        position_delta,
        interface_fee_bps=interface_fee_bps,
        referrer_interface_fee_discount=referrer_interface_fee_discount,
        position_status=position_status,
    )
    settlement_fee = market.parameter.settlement_fee if position_delta != 0 else 0

    return PositionChangeFee(
        total=trade_fee.total + interface_fee.interface_fee + settlement_fee,
        trade_fee=trade_fee,
        interface_fee=interface_fee,
        settlement_fee=settlement_fee,
    )
