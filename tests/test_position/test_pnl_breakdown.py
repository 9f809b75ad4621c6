"""Tests for realized/unrealized PnL accumulation and combination."""

import pytest

from perp_preview.fixed import fixed6
from perp_preview.models import PositionSide
from perp_preview.position.pnl import (
    PendingPositionData,
    PnlAccumulations,
    PositionHistory,
    accumulate_realized,
    accumulate_realized_fees,
    mark_to_market_accumulations,
    process_position,
    with_realtime,
)

ONE = fixed6.one

ACCUMULATION = {
    "collateral_subAccumulation_offset": -3 * ONE,
    "collateral_subAccumulation_pnl": 10 * ONE,
    "fee_subAccumulation_trade": ONE,
}


def _history(side: PositionSide = PositionSide.LONG, **kwargs) -> PositionHistory:
    defaults = dict(
        side=side,
        start_collateral=1000 * ONE,
        net_deposits=0,
        current_order_id=3,
        accumulation=ACCUMULATION,
        collateral_accumulation=7 * ONE,
        fee_accumulation=ONE,
        open_size=2 * ONE,
        open_notional=4000 * ONE,
        trades=1,
    )
    defaults.update(kwargs)
    return PositionHistory(**defaults)


class TestAccumulateRealized:
    def test_sums_records(self) -> None:
        result = accumulate_realized(
            [
                {"collateral_subAccumulation_pnl": "100", "collateral_subAccumulation_funding": 5},
                {"collateral_subAccumulation_pnl": 50},
            ]
        )
        assert result.pnl == 150
        assert result.funding == 5
        assert result.offset == result.interest == result.maker_exposure == 0
        assert result.total == 155

    def test_fees(self) -> None:
        result = accumulate_realized_fees(
            [
                {"fee_subAccumulation_trade": 10, "fee_subAccumulation_triggerOrder": "2"},
                {"fee_subAccumulation_settlement": 3, "fee_subAccumulation_liquidation": 4},
            ]
        )
        assert result.trade == 10
        assert result.trigger_order == 2
        assert result.settlement == 3
        assert result.liquidation == 4
        assert result.total == 19


class TestMarkToMarket:
    def test_taker_accrues_per_unit_deltas(self) -> None:
        current = {
            "pnlLong": 3 * ONE,
            "fundingLong": -ONE,
            "interestLong": -500_000,
            "positionFeeMaker": 999,
        }
        start = {"pnlLong": ONE, "fundingLong": 0, "interestLong": 0}
        result = mark_to_market_accumulations(PositionSide.LONG, 2 * ONE, current, start)
        assert result.pnl == 4 * ONE
        assert result.funding == -2 * ONE
        assert result.interest == -ONE
        # maker-only components never apply to takers
        assert result.maker_position_fee == 0

    def test_maker_position_fee(self) -> None:
        result = mark_to_market_accumulations(
            PositionSide.MAKER, 10 * ONE, {"positionFeeMaker": 500_000}, {"positionFeeMaker": 0}
        )
        assert result.maker_position_fee == 5 * ONE

    def test_flat_or_missing_accumulators(self) -> None:
        assert mark_to_market_accumulations(PositionSide.NONE, ONE, {}, {}).total == 0
        assert mark_to_market_accumulations(PositionSide.LONG, ONE, None, {"pnlLong": 1}).total == 0


class TestProcessPosition:
    def test_taker_keeps_offset_in_pnl(self) -> None:
        pnl = process_position(_history())
        assert pnl.pnl_accumulations.offset == -3 * ONE
        assert pnl.total_pnl == 7 * ONE
        assert pnl.total_fees == ONE
        assert pnl.net_pnl == 6 * ONE

    def test_maker_offset_becomes_trade_fee(self) -> None:
        pnl = process_position(_history(PositionSide.MAKER))
        assert pnl.pnl_accumulations.offset == 0
        assert pnl.fee_accumulations.trade == 4 * ONE
        assert pnl.total_fees == 4 * ONE
        assert pnl.total_pnl == 10 * ONE
        # moving the offset between buckets leaves net PnL unchanged
        assert pnl.net_pnl == 6 * ONE

    def test_applies_unrealized(self) -> None:
        pnl = process_position(_history(), latest_to_global=PnlAccumulations(pnl=2 * ONE))
        assert pnl.pnl_accumulations.pnl == 12 * ONE
        assert pnl.total_pnl == 9 * ONE
        assert pnl.net_pnl == 8 * ONE

    def test_applies_newer_pending_order(self) -> None:
        pending = PendingPositionData(
            current_id=4,
            latest_price=2000 * ONE,
            collateral=100 * ONE,
            size=ONE,
            offset=-200_000,
            settlement_fee=500_000,
            trade_fee=ONE,
        )
        pnl = process_position(_history(), pending=pending)
        assert pnl.net_deposits == 100 * ONE
        assert pnl.fee_accumulations.settlement == 500_000
        assert pnl.fee_accumulations.trade == 2 * ONE
        assert pnl.total_fees == 2_500_000
        assert pnl.pnl_accumulations.offset == -3_200_000
        assert pnl.total_pnl == 6_800_000
        # 6 - 0.2 offset - 1.5 fees
        assert pnl.net_pnl == 4_300_000
        # (4000 + 2000 + 0.2) / 3
        assert pnl.average_entry_price == 2_000_066_666
        assert pnl.total_notional == 6000 * ONE
        assert pnl.trades == 2
        # 4.3 / 1100
        assert pnl.net_pnl_percent == 3_909

    def test_ignores_already_indexed_pending_order(self) -> None:
        pending = PendingPositionData(current_id=3, latest_price=2000 * ONE, size=ONE, trade_fee=ONE)
        pnl = process_position(_history(), pending=pending)
        assert pnl.total_fees == ONE
        assert pnl.trades == 1

    def test_average_entry_price(self) -> None:
        pnl = process_position(_history())
        assert pnl.average_entry_price == 2000 * ONE
        assert pnl.average_exit_price == 0


class TestRealtime:
    def test_realtime_against_deposits(self) -> None:
        pnl = process_position(_history(net_deposits=100 * ONE))
        pnl = with_realtime(pnl, 1150 * ONE)
        assert pnl.realtime == 50 * ONE
        # 50 / 1100
        assert pnl.realtime_percent == 45_454

    @pytest.mark.parametrize("current", [900 * ONE, 1100 * ONE])
    def test_realtime_percent_is_absolute(self, current: int) -> None:
        pnl = with_realtime(process_position(_history()), current)
        assert pnl.realtime_percent == 100_000
