"""Trade fee and price impact for a hypothetical position change.

Makers pay a flat rate plus an impact term proportional to how much their
order moves market utilization. Takers pay a flat rate plus:
  - a skew fee on the absolute change in skew,
  - an impact fee on the change in |skew| (negative when the order reduces
    imbalance),
  - an adiabatic term on the average skew the order trades through
    (zero unless the market configures it).

    skew = (long - short) / (major + virtual_taker)

The total fee is never negative. The part above the flat rate is the trade
impact, which the protocol applies to the fill price rather than charging as
a fee.
"""

from dataclasses import dataclass

from perp_preview.fixed import fixed6, tdiv
from perp_preview.models import AggregatePosition, PositionSide, RiskParameter


@dataclass(frozen=True)
class TradeFee:
    """Fee breakdown for one order.

    ``total``, ``linear_fee`` and ``trade_impact`` are Fixed6 amounts; the
    remaining fields are Fixed6 rates applied to notional. ``skew_fee`` is
    None for maker orders.
    """

    total: int
    linear_fee: int
    trade_impact: int
    impact_fee: int
    fee_basis_points: int
    skew_fee: int | None = None
    adiabatic_fee: int = 0


@dataclass(frozen=True)
class ExecutionPriceEstimate:
    """Expected average fill price for a taker order."""

    price_impact: int  # per unit of size
    total: int  # oracle price adjusted by the directional impact
    price_impact_percentage: int
    non_price_impact_fee: int


def calc_notional(position: int, price: int) -> int:
    """|position * price| in Fixed6."""
    return fixed6.abs(fixed6.mul(position, price))


def calc_maker_utilization(maker: int, long: int, short: int) -> int:
    """major / (maker + minor), zero when the denominator is not positive."""
    denominator = maker + min(long, short)
    if denominator <= 0:
        return 0
    return fixed6.div(max(long, short), denominator)


def calc_taker_skew(long: int, short: int, virtual_taker: int) -> int:
    """(long - short) / (major + virtual_taker), zero on an empty market."""
    denominator = max(long, short) + virtual_taker
    if denominator <= 0:
        return 0
    return fixed6.div(long - short, denominator)


def _static_fee(risk: RiskParameter, direction: PositionSide) -> int:
    if direction is PositionSide.MAKER:
        return risk.maker_fee
    if direction is PositionSide.LONG or direction is PositionSide.SHORT:
        return risk.taker_fee
    if direction is PositionSide.NONE:
        return 0
    raise ValueError(f"unknown position side: {direction!r}")


def _finalize(
    notional: int,
    fee_rate: int,
    static_fee: int,
    impact_fee: int,
    skew_fee: int | None = None,
    adiabatic_fee: int = 0,
) -> TradeFee:
    total = fixed6.max(fixed6.mul(notional, fee_rate), 0)
    linear_fee = fixed6.mul(notional, static_fee)
    if total != 0:
        fee_basis_points = fixed6.div(total, notional)
    else:
        fee_basis_points = static_fee
    return TradeFee(
        total=total,
        linear_fee=linear_fee,
        trade_impact=total - linear_fee,
        impact_fee=impact_fee,
        fee_basis_points=fee_basis_points,
        skew_fee=skew_fee,
        adiabatic_fee=adiabatic_fee,
    )


def calc_maker_trade_fee(
    position_delta: int,
    position: AggregatePosition,
    risk: RiskParameter,
    latest_price: int,
) -> TradeFee:
    notional = calc_notional(position_delta, latest_price)
    current_utilization = calc_maker_utilization(position.maker, position.long, position.short)
    new_utilization = calc_maker_utilization(
        position.maker + position_delta, position.long, position.short
    )
    utilization_delta = new_utilization - current_utilization

    impact_fee = fixed6.mul(risk.maker_impact_fee, utilization_delta)
    return _finalize(
        notional,
        impact_fee + risk.maker_fee,
        risk.maker_fee,
        impact_fee,
    )


def calc_taker_trade_fee(
    position_delta: int,
    position: AggregatePosition,
    risk: RiskParameter,
    direction: PositionSide,
    latest_price: int,
) -> TradeFee:
    if direction is not PositionSide.LONG and direction is not PositionSide.SHORT:
        raise ValueError(f"taker fee requires a long or short direction, got {direction!r}")

    notional = calc_notional(position_delta, latest_price)
    long, short = position.long, position.short
    adjusted_long = long + position_delta if direction is PositionSide.LONG else long
    adjusted_short = short + position_delta if direction is PositionSide.SHORT else short

    skew_before = calc_taker_skew(long, short, risk.virtual_taker)
    skew_after = calc_taker_skew(adjusted_long, adjusted_short, risk.virtual_taker)

    skew_fee = fixed6.mul(risk.taker_skew_fee, fixed6.abs(skew_after - skew_before))
    impact_fee = fixed6.mul(
        risk.taker_impact_fee, fixed6.abs(skew_after) - fixed6.abs(skew_before)
    )

    # Orders adding long exposure pay on positive skew, the rest on negative.
    long_exposure_delta = position_delta if direction is PositionSide.LONG else -position_delta
    average_skew = tdiv(skew_before + skew_after, 2)
    adiabatic_fee = fixed6.mul(risk.taker_adiabatic_fee, average_skew)
    if long_exposure_delta < 0:
        adiabatic_fee = -adiabatic_fee

    return _finalize(
        notional,
        skew_fee + impact_fee + adiabatic_fee + risk.taker_fee,
        risk.taker_fee,
        impact_fee,
        skew_fee=skew_fee,
        adiabatic_fee=adiabatic_fee,
    )


def calc_trade_fee(
    position_delta: int,
    position: AggregatePosition,
    risk: RiskParameter,
    direction: PositionSide,
    latest_price: int,
) -> TradeFee:
    """Fee for changing a position by ``position_delta`` on ``direction``.

    Args:
        position_delta: Signed size change (positive opens, negative closes).
        position: Aggregate market position the order trades against.
        risk: Market risk parameters holding the fee coefficients.
        direction: Side the order trades on.
        latest_price: Oracle price used for notional.

    Returns:
        TradeFee breakdown. A zero delta or a NONE direction costs nothing.
    """
    if position_delta == 0 or direction is PositionSide.NONE:
        return _finalize(0, 0, _static_fee(risk, direction), 0)

    if direction is PositionSide.MAKER:
        return calc_maker_trade_fee(position_delta, position, risk, latest_price)
    return calc_taker_trade_fee(position_delta, position, risk, direction, latest_price)


def calc_price_impact_from_trade_fee(trade_impact: int, position_delta: int) -> int:
    """Trade impact spread over the order size, i.e. the per-unit price shift."""
    if position_delta == 0:
        return 0
    return fixed6.div(trade_impact, fixed6.abs(position_delta))


def calc_est_execution_price(
    oracle_price: int,
    direction: PositionSide,
    position_delta: int,
    position: AggregatePosition,
    risk: RiskParameter,
) -> ExecutionPriceEstimate:
    """Estimate the average fill price of a taker order including impact."""
    if direction is not PositionSide.LONG and direction is not PositionSide.SHORT:
        raise ValueError(f"execution price requires a long or short direction, got {direction!r}")

    notional = calc_notional(position_delta, oracle_price)
    trade_fee = calc_trade_fee(position_delta, position, risk, direction, oracle_price)
    price_impact = calc_price_impact_from_trade_fee(trade_fee.trade_impact, position_delta)

    if notional != 0:
        price_impact_percentage = fixed6.div(trade_fee.trade_impact, notional)
    else:
        price_impact_percentage = 0

    directional_impact = price_impact if position_delta > 0 else -price_impact
    if direction is PositionSide.LONG:
        total = oracle_price + directional_impact
    else:
        total = oracle_price - directional_impact

    return ExecutionPriceEstimate(
        price_impact=price_impact,
        total=total,
        price_impact_percentage=price_impact_percentage,
        non_price_impact_fee=trade_fee.total - trade_fee.trade_impact,
    )


def calc_execution_price_with_impact(
    notional: int,
    offset: int,
    side: PositionSide,
    size: int,
) -> int:
    """Average execution price given filled notional and the impact offset paid."""
    if size == 0:
        return 0
    signed_offset = -offset if size < 0 else offset
    numerator = notional
    if side is PositionSide.LONG:
        numerator = numerator - signed_offset
    elif side is PositionSide.SHORT:
        numerator = numerator + signed_offset
    return fixed6.abs(fixed6.div(numerator, size))
