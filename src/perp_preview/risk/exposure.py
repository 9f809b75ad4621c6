"""Market-level exposure, liquidity and skew statistics."""

from dataclasses import dataclass

from perp_preview.fixed import fixed6
from perp_preview.models import AggregatePosition, PositionSide


@dataclass(frozen=True)
class TakerLiquidity:
    """Open interest still available to each taker side, and its ceiling."""

    available_long: int
    total_long: int
    available_short: int
    total_short: int


@dataclass(frozen=True)
class SkewStats:
    skew: int  # (long - short) / major
    long_skew: int  # long share of taker open interest
    short_skew: int


@dataclass(frozen=True)
class LpExposure:
    lp_exposure: int
    exposure_side: PositionSide


@dataclass(frozen=True)
class MakerStats:
    """Annualized maker returns from one week of accumulated values."""

    funding_apr: int
    interest_apr: int
    position_fee_apr: int


WEEKS_PER_YEAR = 52


def calc_maker_exposure(
    user_maker: int,
    global_maker: int,
    global_long: int,
    global_short: int,
) -> int:
    """Share of the taker imbalance a maker is exposed to.

    Positive when the maker is net long (shorts outweigh longs).
    """
    if global_maker == 0:
        return 0
    return fixed6.div(fixed6.mul(user_maker, global_short - global_long), global_maker)


def calc_taker_liquidity(position: AggregatePosition, efficiency_limit: int) -> TakerLiquidity:
    """Liquidity bounds per taker side.

    Each side may grow until it exhausts the opposite side plus makers, or the
    maker efficiency limit. A zero efficiency limit disables that bound.
    """
    maker, long, short = position.maker, position.long, position.short

    total_long = short + maker
    total_short = long + maker
    if efficiency_limit != 0:
        maker_efficiency_limit = fixed6.div(maker, efficiency_limit)
        total_long = fixed6.min(total_long, maker_efficiency_limit)
        total_short = fixed6.min(total_short, maker_efficiency_limit)

    return TakerLiquidity(
        available_long=fixed6.max(total_long - long, 0),
        total_long=total_long,
        available_short=fixed6.max(total_short - short, 0),
        total_short=total_short,
    )


def calc_skew(position: AggregatePosition) -> SkewStats:
    major = position.major
    skew = fixed6.div(position.long - position.short, major) if major > 0 else 0

    taker_total = position.long + position.short
    if taker_total > 0:
        long_skew = fixed6.div(position.long, taker_total)
        short_skew = fixed6.div(position.short, taker_total)
    else:
        long_skew = short_skew = 0
    return SkewStats(skew=skew, long_skew=long_skew, short_skew=short_skew)


def calc_lp_exposure(position: AggregatePosition) -> LpExposure:
    """Fraction of maker capital absorbing the taker imbalance, and its side."""
    if position.long >= position.short:
        major, minor, minor_side = position.long, position.short, PositionSide.SHORT
    else:
        major, minor, minor_side = position.short, position.long, PositionSide.LONG

    lp_exposure = fixed6.div(major - minor, position.maker) if position.maker > 0 else 0
    return LpExposure(lp_exposure=lp_exposure, exposure_side=minor_side)


def efficiency(maker: int, major: int) -> int:
    """maker / major capped at 100%; a market without takers is fully efficient."""
    if major <= 0:
        return fixed6.one
    return fixed6.min(fixed6.div(maker, major), fixed6.one)


def calc_socialization_factor(position: AggregatePosition, next_maker: int) -> int:
    """How much of the major side can be paid by minor + makers, capped at 100%."""
    if position.major == 0:
        return fixed6.one
    return fixed6.min(fixed6.div(position.minor + next_maker, position.major), fixed6.one)


def calc_maker_stats(
    funding: int,
    interest: int,
    position_fee: int,
    position_size: int,
    collateral: int,
) -> MakerStats:
    """Annualize a maker's weekly per-unit accumulations against collateral."""
    if collateral == 0:
        return MakerStats(funding_apr=0, interest_apr=0, position_fee_apr=0)

    funding_accumulated = fixed6.mul(funding, position_size)
    interest_accumulated = fixed6.mul(interest, position_size)
    position_fee_accumulated = fixed6.mul(position_fee, position_size)

    return MakerStats(
        funding_apr=fixed6.div(funding_accumulated * WEEKS_PER_YEAR, collateral),
        interest_apr=fixed6.div(interest_accumulated * WEEKS_PER_YEAR, collateral),
        position_fee_apr=fixed6.div(position_fee_accumulated * WEEKS_PER_YEAR, collateral),
    )
