"""Tests for maker/taker trade fees, price impact and execution price.

Market used throughout: maker 1000, long 600, short 400, price $2,000.
Risk fixture fees: taker 0.05%, skew 0.1%, impact 0.2%, virtual taker 100.
"""

from dataclasses import replace

import pytest
from hypothesis import given, strategies as st

from perp_preview.fees.trade_fee import (
    calc_est_execution_price,
    calc_execution_price_with_impact,
    calc_maker_utilization,
    calc_price_impact_from_trade_fee,
    calc_taker_skew,
    calc_trade_fee,
)
from perp_preview.fixed import fixed6
from perp_preview.models import (
    AggregatePosition,
    JumpRateUtilizationCurve,
    PController,
    PositionSide,
    RiskParameter,
)

ONE = fixed6.one
PRICE = 2000 * ONE


@pytest.fixture
def position() -> AggregatePosition:
    return AggregatePosition(maker=1000 * ONE, long=600 * ONE, short=400 * ONE)


class TestUtilizationAndSkew:
    def test_maker_utilization(self) -> None:
        assert calc_maker_utilization(1000 * ONE, 600 * ONE, 400 * ONE) == 428_571

    def test_maker_utilization_empty(self) -> None:
        assert calc_maker_utilization(0, 0, 0) == 0

    def test_taker_skew(self) -> None:
        # (600 - 400) / (600 + 100)
        assert calc_taker_skew(600 * ONE, 400 * ONE, 100 * ONE) == 285_714
        assert calc_taker_skew(400 * ONE, 600 * ONE, 100 * ONE) == -285_714

    def test_taker_skew_empty(self) -> None:
        assert calc_taker_skew(0, 0, 0) == 0


class TestMakerFee:
    def test_maker_order_lowering_utilization(
        self, risk: RiskParameter, position: AggregatePosition
    ) -> None:
        risk = replace(risk, maker_impact_fee=10_000, maker_fee=2_000)
        fee = calc_trade_fee(100 * ONE, position, risk, PositionSide.MAKER, PRICE)
        # utilization 600/1400 = 0.428571 -> 600/1500 = 0.4, delta -0.028571
        # impact 0.01 * -0.028571 = -0.000285
        # total 200,000 * (0.002 - 0.000285) = 343
        assert fee.impact_fee == -285
        assert fee.total == 343_000_000
        assert fee.linear_fee == 400_000_000
        assert fee.trade_impact == -57_000_000
        assert fee.fee_basis_points == 1_715
        assert fee.skew_fee is None

    def test_maker_order_raising_utilization(
        self, risk: RiskParameter, position: AggregatePosition
    ) -> None:
        fee = calc_trade_fee(-500 * ONE, position, risk, PositionSide.MAKER, PRICE)
        # 600/1400 -> 600/900: makers leaving pay more than the flat fee
        assert fee.impact_fee > 0
        assert fee.total > fee.linear_fee


class TestTakerFee:
    def test_long_increasing_skew(self, risk: RiskParameter, position: AggregatePosition) -> None:
        fee = calc_trade_fee(100 * ONE, position, risk, PositionSide.LONG, PRICE)
        # skew 0.285714 -> 0.375, change 0.089286
        # skew fee 0.001 * 0.089286 = 0.000089, impact 0.002 * 0.089286 = 0.000178
        # total 200,000 * (0.000089 + 0.000178 + 0.0005) = 153.4
        assert fee.skew_fee == 89
        assert fee.impact_fee == 178
        assert fee.adiabatic_fee == 0
        assert fee.total == 153_400_000
        assert fee.linear_fee == 100_000_000
        assert fee.trade_impact == 53_400_000
        assert fee.fee_basis_points == 767

    def test_short_reducing_skew(self, risk: RiskParameter, position: AggregatePosition) -> None:
        fee = calc_trade_fee(100 * ONE, position, risk, PositionSide.SHORT, PRICE)
        # skew 0.285714 -> 0.142857: impact is negative, a price improvement
        assert fee.skew_fee == 142
        assert fee.impact_fee == -285
        assert fee.total == 71_400_000
        assert fee.trade_impact == -28_600_000

    def test_adiabatic_component(self, risk: RiskParameter, position: AggregatePosition) -> None:
        risk = replace(risk, taker_adiabatic_fee=10_000)
        fee = calc_trade_fee(100 * ONE, position, risk, PositionSide.LONG, PRICE)
        # average skew (0.285714 + 0.375) / 2 = 0.330357, times 0.01
        assert fee.adiabatic_fee == 3_303

    def test_adiabatic_sign_flips_for_short(self, risk: RiskParameter, position: AggregatePosition) -> None:
        risk = replace(risk, taker_adiabatic_fee=10_000)
        fee = calc_trade_fee(100 * ONE, position, risk, PositionSide.SHORT, PRICE)
        # adding short exposure on a long-skewed market is rewarded
        assert fee.adiabatic_fee < 0


class TestZeroAndNone:
    def test_zero_delta_uses_static_fee_rate(self, risk: RiskParameter, position: AggregatePosition) -> None:
        fee = calc_trade_fee(0, position, risk, PositionSide.LONG, PRICE)
        assert fee.total == 0
        assert fee.fee_basis_points == risk.taker_fee

        maker_fee = calc_trade_fee(0, position, risk, PositionSide.MAKER, PRICE)
        assert maker_fee.fee_basis_points == risk.maker_fee

    def test_none_direction_is_free(self, risk: RiskParameter, position: AggregatePosition) -> None:
        fee = calc_trade_fee(100 * ONE, position, risk, PositionSide.NONE, PRICE)
        assert fee.total == 0
        assert fee.fee_basis_points == 0


class TestFeeNonNegativity:
    @given(
        delta=st.integers(min_value=-(500 * ONE), max_value=500 * ONE),
        direction=st.sampled_from([PositionSide.MAKER, PositionSide.LONG, PositionSide.SHORT]),
        maker_fee=st.integers(min_value=0, max_value=ONE // 10),
        maker_impact_fee=st.integers(min_value=0, max_value=ONE),
        taker_fee=st.integers(min_value=0, max_value=ONE // 10),
        taker_skew_fee=st.integers(min_value=0, max_value=ONE),
        taker_impact_fee=st.integers(min_value=0, max_value=ONE),
        taker_adiabatic_fee=st.integers(min_value=0, max_value=ONE),
        price=st.integers(min_value=1, max_value=100_000 * ONE),
    )
    def test_total_never_negative(
        self,
        delta: int,
        direction: PositionSide,
        maker_fee: int,
        maker_impact_fee: int,
        taker_fee: int,
        taker_skew_fee: int,
        taker_impact_fee: int,
        taker_adiabatic_fee: int,
        price: int,
    ) -> None:
        risk = RiskParameter(
            margin=10_000,
            maintenance=5_000,
            min_margin=0,
            min_maintenance=0,
            utilization_curve=JumpRateUtilizationCurve(
                min_rate=0, max_rate=ONE, target_rate=ONE // 10, target_utilization=ONE // 2
            ),
            p_controller=PController(k=ONE),
            maker_fee=maker_fee,
            maker_impact_fee=maker_impact_fee,
            taker_fee=taker_fee,
            taker_skew_fee=taker_skew_fee,
            taker_impact_fee=taker_impact_fee,
            taker_adiabatic_fee=taker_adiabatic_fee,
            virtual_taker=100 * ONE,
        )
        position = AggregatePosition(maker=1000 * ONE, long=600 * ONE, short=400 * ONE)
        fee = calc_trade_fee(delta, position, risk, direction, price)
        assert fee.total >= 0


class TestPriceImpact:
    def test_impact_per_unit(self) -> None:
        # 53.4 of impact spread over 100 units
        assert calc_price_impact_from_trade_fee(53_400_000, 100 * ONE) == 534_000

    def test_zero_size(self) -> None:
        assert calc_price_impact_from_trade_fee(53_400_000, 0) == 0

    def test_long_execution_price(self, risk: RiskParameter, position: AggregatePosition) -> None:
        estimate = calc_est_execution_price(PRICE, PositionSide.LONG, 100 * ONE, position, risk)
        assert estimate.price_impact == 534_000
        assert estimate.total == 2_000_534_000
        assert estimate.price_impact_percentage == 267
        assert estimate.non_price_impact_fee == 100_000_000

    def test_short_reducing_skew_gets_better_price(
        self, risk: RiskParameter, position: AggregatePosition
    ) -> None:
        estimate = calc_est_execution_price(PRICE, PositionSide.SHORT, 100 * ONE, position, risk)
        assert estimate.price_impact == -286_000
        assert estimate.total == 2_000_286_000

    def test_maker_direction_rejected(self, risk: RiskParameter, position: AggregatePosition) -> None:
        with pytest.raises(ValueError):
            calc_est_execution_price(PRICE, PositionSide.MAKER, ONE, position, risk)


class TestExecutionPriceWithImpact:
    def test_long_entry_includes_offset(self) -> None:
        price = calc_execution_price_with_impact(200_000 * ONE, -53_400_000, PositionSide.LONG, 100 * ONE)
        assert price == 2_000_534_000

    def test_short_entry_includes_offset(self) -> None:
        price = calc_execution_price_with_impact(200_000 * ONE, -53_400_000, PositionSide.SHORT, 100 * ONE)
        assert price == 1_999_466_000

    def test_zero_size(self) -> None:
        assert calc_execution_price_with_impact(ONE, 0, PositionSide.LONG, 0) == 0
