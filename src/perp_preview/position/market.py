"""Derived, display-ready figures for one market."""

from dataclasses import dataclass

from perp_preview.funding.engine import (
    FundingRates,
    PeriodRates,
    calc_funding_rates,
    calculate_funding_and_interest_for_sides,
)
from perp_preview.models import MarketSnapshot, PositionSide
from perp_preview.risk.exposure import (
    LpExposure,
    SkewStats,
    TakerLiquidity,
    calc_lp_exposure,
    calc_skew,
    calc_socialization_factor,
    calc_taker_liquidity,
)


@dataclass(frozen=True)
class MarketSummary:
    major_side: PositionSide
    minor_side: PositionSide
    rates: FundingRates
    long_rates: PeriodRates
    short_rates: PeriodRates
    maker_rates: PeriodRates
    socialization_factor: int
    skew: SkewStats
    liquidity: TakerLiquidity
    lp_exposure: LpExposure
    pending_maker_total: int
    pending_taker_total: int


def summarize_market(market: MarketSnapshot, now: int | None = None) -> MarketSummary:
    """Rates, skew and liquidity for a market at its pending-inclusive position.

    Ties between longs and shorts report long as the major side.
    """
    next_position = market.next_position
    if next_position.long >= next_position.short:
        major_side, minor_side = PositionSide.LONG, PositionSide.SHORT
    else:
        major_side, minor_side = PositionSide.SHORT, PositionSide.LONG

    rates = calculate_funding_and_interest_for_sides(
        next_position,
        market.risk_parameter,
        market.parameter,
        market.global_.p_accumulator,
        now=now,
    )

    return MarketSummary(
        major_side=major_side,
        minor_side=minor_side,
        rates=rates,
        long_rates=calc_funding_rates(rates.long),
        short_rates=calc_funding_rates(rates.short),
        maker_rates=calc_funding_rates(rates.maker),
        socialization_factor=calc_socialization_factor(market.position, next_position.maker),
        skew=calc_skew(next_position),
        liquidity=calc_taker_liquidity(next_position, market.risk_parameter.efficiency_limit),
        lp_exposure=calc_lp_exposure(next_position),
        pending_maker_total=market.pending_order.maker_total,
        pending_taker_total=market.pending_order.taker_total,
    )
