"""Per-side funding and interest rate estimates.

The on-chain P-controller advances ``pAccumulator`` only at settlement. Between
settlements the current funding rate is extrapolated linearly from the
accumulator's value and skew:

    market_funding = value + elapsed * skew / k      (clamped to +-max)

Interest comes from the jump-rate curve at the market's utilization. Longs and
shorts each pay half of the protocol's funding fee cut on top of their rate;
makers receive the utilization-weighted opposite of what takers pay, net of
the protocol's funding and interest fees.

All rates are annualized Fixed6 values.
"""

import time
from dataclasses import dataclass

from perp_preview.fixed import fixed6, tdiv
from perp_preview.funding.interest import calc_utilization, compute_interest_rate
from perp_preview.models import (
    AggregatePosition,
    MarketParameter,
    PAccumulator,
    PController,
    RiskParameter,
)

SECOND = 1
MINUTE = SECOND * 60
HOUR = MINUTE * 60
DAY = HOUR * 24
YEAR = DAY * 365


@dataclass(frozen=True)
class FundingRates:
    """Annualized rate each side pays (positive) or receives (negative)."""

    long: int
    short: int
    maker: int


@dataclass(frozen=True)
class PeriodRates:
    """One annualized rate expressed over common display periods."""

    hourly: int
    eight_hour: int
    daily: int
    yearly: int


def now_seconds() -> int:
    return int(time.time())


def extrapolate_funding(
    p_accumulator: PAccumulator,
    p_controller: PController,
    elapsed: int,
) -> int:
    """Funding rate after ``elapsed`` seconds, clamped to the controller max.

    ``elapsed`` is lifted to Fixed6 before multiplying, as the contract does.
    A zero ``k`` means the controller does not react to skew.
    """
    market_funding = p_accumulator.value
    if p_controller.k != 0:
        drift = fixed6.div(fixed6.mul(fixed6.from_int(elapsed), p_accumulator.skew), p_controller.k)
        market_funding += drift
    return fixed6.clamp(market_funding, -p_controller.max, p_controller.max)


def calc_interest(position: AggregatePosition, risk: RiskParameter) -> int:
    """Interest rate paid per unit of taker position."""
    utilization = calc_utilization(position, risk.efficiency_limit)
    interest_rate = compute_interest_rate(risk.utilization_curve, utilization)

    taker_total = position.long + position.short
    if taker_total <= 0:
        return 0
    applicable_notional = fixed6.min(position.maker, taker_total)
    return fixed6.div(fixed6.mul(interest_rate, applicable_notional), taker_total)


def calculate_funding_and_interest_for_sides(
    position: AggregatePosition,
    risk: RiskParameter,
    parameter: MarketParameter,
    p_accumulator: PAccumulator,
    now: int | None = None,
) -> FundingRates:
    """Estimate current annualized rates for longs, shorts and makers.

    Args:
        position: Next (pending-inclusive) aggregate position of the market.
        risk: Market risk parameters.
        parameter: Market fee split parameters.
        p_accumulator: Controller state from the latest global settlement.
        now: Unix seconds to extrapolate to. Defaults to the wall clock.

    Returns:
        FundingRates for each side.
    """
    if now is None:
        now = now_seconds()
    elapsed = now - position.timestamp

    funding = extrapolate_funding(p_accumulator, risk.p_controller, elapsed)
    interest = calc_interest(position, risk)
    total_interest_fee = fixed6.mul(interest, parameter.interest_fee)

    total_funding_fee = tdiv(fixed6.mul(fixed6.abs(funding), parameter.funding_fee), 2)
    long_rate = funding + total_funding_fee + interest
    short_rate = -funding + total_funding_fee + interest

    if position.maker > 0:
        maker_util = fixed6.clamp(
            fixed6.div(position.long - position.short, position.maker),
            -fixed6.one,
            fixed6.one,
        )
    else:
        maker_util = 0
    maker_funding = fixed6.mul(maker_util, funding)
    maker_funding_fee = fixed6.mul(fixed6.abs(maker_util), total_funding_fee)
    maker_rate = -(maker_funding - maker_funding_fee + (interest - total_interest_fee))

    return FundingRates(long=long_rate, short=short_rate, maker=maker_rate)


def calc_funding_rates(funding_rate: int = 0) -> PeriodRates:
    """Split an annualized rate into hourly, 8-hour and daily rates."""
    rate = fixed6.div(funding_rate, YEAR)
    return PeriodRates(
        hourly=fixed6.mul(rate, HOUR),
        eight_hour=fixed6.mul(rate, HOUR * 8),
        daily=fixed6.mul(rate, DAY),
        yearly=funding_rate,
    )
