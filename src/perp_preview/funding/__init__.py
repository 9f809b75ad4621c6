"""Funding and interest rate estimation.

Extrapolates the P-controller funding rate between settlements and prices
interest off the jump-rate utilization curve, producing per-side annualized
rates.
"""

from perp_preview.funding.engine import (
    DAY,
    HOUR,
    MINUTE,
    SECOND,
    YEAR,
    FundingRates,
    PeriodRates,
    calc_funding_rates,
    calc_interest,
    calculate_funding_and_interest_for_sides,
    extrapolate_funding,
    now_seconds,
)
from perp_preview.funding.interest import (
    calc_efficiency_utilization,
    calc_net_utilization,
    calc_utilization,
    compute_interest_rate,
    linear_interpolation,
)

__all__ = [
    "DAY",
    "HOUR",
    "MINUTE",
    "SECOND",
    "YEAR",
    "FundingRates",
    "PeriodRates",
    "calc_efficiency_utilization",
    "calc_funding_rates",
    "calc_interest",
    "calc_net_utilization",
    "calc_utilization",
    "calculate_funding_and_interest_for_sides",
    "compute_interest_rate",
    "extrapolate_funding",
    "linear_interpolation",
    "now_seconds",
]
