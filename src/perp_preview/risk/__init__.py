"""Risk engine: liquidation price, margin, leverage, exposure and liquidity."""

from perp_preview.risk.exposure import (
    LpExposure,
    MakerStats,
    SkewStats,
    TakerLiquidity,
    calc_lp_exposure,
    calc_maker_exposure,
    calc_maker_stats,
    calc_skew,
    calc_socialization_factor,
    calc_taker_liquidity,
    efficiency,
)
from perp_preview.risk.liquidation import LiquidationPrice, calc_liquidation_price
from perp_preview.risk.margin import (
    calc_leverage,
    calc_maintenance,
    calc_margin,
    calc_max_leverage,
)

__all__ = [
    "LiquidationPrice",
    "LpExposure",
    "MakerStats",
    "SkewStats",
    "TakerLiquidity",
    "calc_leverage",
    "calc_liquidation_price",
    "calc_lp_exposure",
    "calc_maintenance",
    "calc_maker_exposure",
    "calc_maker_stats",
    "calc_margin",
    "calc_max_leverage",
    "calc_skew",
    "calc_socialization_factor",
    "calc_taker_liquidity",
    "efficiency",
]
