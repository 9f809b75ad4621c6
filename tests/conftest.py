"""Shared test fixtures for the perpetual-futures preview engine."""

import pytest

from perp_preview.config import AppSettings, OracleSettings, ReconcilerSettings, RiskSettings
from perp_preview.fixed import fixed6
from perp_preview.models import (
    AccountPosition,
    AccountSnapshot,
    AggregatePosition,
    Global,
    JumpRateUtilizationCurve,
    Local,
    MarketParameter,
    MarketSnapshot,
    PAccumulator,
    PController,
    RiskParameter,
)


def u6(text: str) -> int:
    """Fixed6 value from a decimal string, e.g. u6("0.002") == 2000."""
    return fixed6.from_float_string(text)


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults."""
    return AppSettings(
        log_level="DEBUG",
        reconciler=ReconcilerSettings(),
        risk=RiskSettings(),
        oracle=OracleSettings(max_pending_global=10, max_pending_local=2),
    )


@pytest.fixture
def curve() -> JumpRateUtilizationCurve:
    """10% at zero, 20% at 80% utilization, 100% when fully utilized."""
    return JumpRateUtilizationCurve(
        min_rate=u6("0.1"),
        max_rate=u6("1"),
        target_rate=u6("0.2"),
        target_utilization=u6("0.8"),
    )


@pytest.fixture
def risk(curve: JumpRateUtilizationCurve) -> RiskParameter:
    """ETH-like risk parameters: 1% margin, 0.5% maintenance."""
    return RiskParameter(
        margin=u6("0.01"),
        maintenance=u6("0.005"),
        min_margin=u6("10"),
        min_maintenance=u6("5"),
        utilization_curve=curve,
        p_controller=PController(k=u6("40000"), min=-u6("1.2"), max=u6("1.2")),
        efficiency_limit=u6("0.5"),
        taker_fee=u6("0.0005"),
        taker_skew_fee=u6("0.001"),
        taker_impact_fee=u6("0.002"),
        maker_fee=u6("0.0002"),
        maker_impact_fee=u6("0.001"),
        virtual_taker=u6("100"),
        stale_after=60,
    )


@pytest.fixture
def parameter() -> MarketParameter:
    return MarketParameter(
        funding_fee=u6("0.1"),
        interest_fee=u6("0.1"),
        position_fee=u6("0.1"),
        settlement_fee=u6("0.5"),
    )


@pytest.fixture
def aggregate() -> AggregatePosition:
    return AggregatePosition(maker=u6("1000"), long=u6("600"), short=u6("400"), timestamp=1_700_000_000)


@pytest.fixture
def market(
    risk: RiskParameter,
    parameter: MarketParameter,
    aggregate: AggregatePosition,
) -> MarketSnapshot:
    """Market at $2,000 with a small positive funding accumulator."""
    return MarketSnapshot(
        risk_parameter=risk,
        parameter=parameter,
        global_=Global(
            p_accumulator=PAccumulator(value=u6("0.05"), skew=u6("0.2")),
            latest_price=u6("2000"),
            latest_version=1_700_000_000,
            current_id=5,
            latest_id=5,
        ),
        position=aggregate,
        next_position=aggregate,
        latest_oracle_version=1_700_000_000,
    )


@pytest.fixture
def flat_account() -> AccountSnapshot:
    """Account holding 1,000 collateral and no position."""
    return AccountSnapshot(
        local=Local(current_id=3, latest_id=3, collateral=u6("1000")),
        position=AccountPosition(),
    )


@pytest.fixture
def long_account() -> AccountSnapshot:
    """Account holding 1,000 collateral and a settled 5-unit long."""
    return AccountSnapshot(
        local=Local(current_id=3, latest_id=3, collateral=u6("1000")),
        position=AccountPosition(long=u6("5"), timestamp=1_699_999_000),
    )
