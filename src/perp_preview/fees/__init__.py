"""Trade fee engine.

Linear, skew, impact and adiabatic fee components for maker and taker
orders, price impact and execution price estimates, and the interface and
settlement fees that make up a position change's total cost.
"""

from perp_preview.fees.interface_fee import (
    InterfaceFee,
    PositionChangeFee,
    calc_interface_fee,
    calc_total_position_change_fee,
)
from perp_preview.fees.trade_fee import (
    ExecutionPriceEstimate,
    TradeFee,
    calc_est_execution_price,
    calc_execution_price_with_impact,
    calc_maker_utilization,
    calc_notional,
    calc_price_impact_from_trade_fee,
    calc_taker_skew,
    calc_trade_fee,
)

__all__ = [
    "ExecutionPriceEstimate",
    "InterfaceFee",
    "PositionChangeFee",
    "TradeFee",
    "calc_est_execution_price",
    "calc_execution_price_with_impact",
    "calc_interface_fee",
    "calc_maker_utilization",
    "calc_notional",
    "calc_price_impact_from_trade_fee",
    "calc_taker_skew",
    "calc_total_position_change_fee",
    "calc_trade_fee",
]
