"""Realized and unrealized PnL reconstruction.

Realized PnL comes from the indexer's per-position accumulation record, a flat
mapping of sub-accumulation keys to Fixed6 amounts. Unrealized PnL bridges the
gap between the account's last settlement and the market's last settlement:
for every per-unit global accumulator the delta between the two versions is
multiplied by the size the account held.

Makers do not pay a price impact; their offset is a fee, so for maker
positions the offset component is moved from PnL into the trade fee.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from perp_preview.fees.trade_fee import calc_execution_price_with_impact, calc_notional
from perp_preview.fixed import fixed6
from perp_preview.logging import get_logger
from perp_preview.models import PositionSide

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccumulatorType:
    """One PnL component and where to find it in indexer records.

    ``unrealized_keys`` maps a side to the global per-unit accumulator for
    that side. A component with no key for a side has no global counterpart.
    """

    name: str
    realized_key: str
    unrealized_keys: Mapping[PositionSide, str] = field(default_factory=dict)
    maker_only: bool = False


def _per_side(maker: str, long: str, short: str) -> dict[PositionSide, str]:
    return {PositionSide.MAKER: maker, PositionSide.LONG: long, PositionSide.SHORT: short}


ACCUMULATOR_TYPES: tuple[AccumulatorType, ...] = (
    AccumulatorType("offset", "collateral_subAccumulation_offset"),
    AccumulatorType(
        "pnl",
        "collateral_subAccumulation_pnl",
        _per_side("pnlMaker", "pnlLong", "pnlShort"),
    ),
    AccumulatorType(
        "funding",
        "collateral_subAccumulation_funding",
        _per_side("fundingMaker", "fundingLong", "fundingShort"),
    ),
    AccumulatorType(
        "interest",
        "collateral_subAccumulation_interest",
        _per_side("interestMaker", "interestLong", "interestShort"),
    ),
    AccumulatorType(
        "maker_position_fee",
        "collateral_subAccumulation_makerPositionFee",
        {PositionSide.MAKER: "positionFeeMaker"},
        maker_only=True,
    ),
    AccumulatorType(
        "maker_exposure",
        "collateral_subAccumulation_makerExposure",
        maker_only=True,
    ),
)

FEE_ACCUMULATOR_TYPES: tuple[tuple[str, str], ...] = (
    ("trade", "fee_subAccumulation_trade"),
    ("settlement", "fee_subAccumulation_settlement"),
    ("additive", "fee_subAccumulation_additive"),
    ("trigger_order", "fee_subAccumulation_triggerOrder"),
    ("liquidation", "fee_subAccumulation_liquidation"),
)


@dataclass
class PnlAccumulations:
    """Six-way PnL breakdown in Fixed6."""

    offset: int = 0
    pnl: int = 0
    funding: int = 0
    interest: int = 0
    maker_position_fee: int = 0
    maker_exposure: int = 0

    @property
    def total(self) -> int:
        return (
            self.offset
            + self.pnl
            + self.funding
            + self.interest
            + self.maker_position_fee
            + self.maker_exposure
        )


@dataclass
class FeeAccumulations:
    trade: int = 0
    settlement: int = 0
    additive: int = 0
    trigger_order: int = 0
    liquidation: int = 0

    @property
    def total(self) -> int:
        return self.trade + self.settlement + self.additive + self.trigger_order + self.liquidation


@dataclass(frozen=True)
class PositionHistory:
    """One position as reconstructed by the indexer.

    ``accumulation`` holds the realized sub-accumulation keys; the two
    ``*_accumulation`` totals are the indexer's own sums.
    """

    side: PositionSide
    start_collateral: int
    net_deposits: int
    current_order_id: int
    accumulation: Mapping[str, int | str]
    collateral_accumulation: int = 0
    fee_accumulation: int = 0
    open_size: int = 0
    open_notional: int = 0
    open_offset: int = 0
    close_size: int = 0
    close_notional: int = 0
    close_offset: int = 0
    trades: int = 0
    liquidation: bool = False


@dataclass(frozen=True)
class PendingPositionData:
    """Effects of an account's unsettled order, estimated locally."""

    current_id: int
    latest_price: int
    collateral: int = 0
    size: int = 0
    offset: int = 0
    settlement_fee: int = 0
    trade_fee: int = 0
    additive_fee: int = 0


@dataclass
class PositionPnl:
    """PnL view of one position, settled history plus pending effects."""

    side: PositionSide
    start_collateral: int
    net_deposits: int
    total_pnl: int
    total_fees: int
    net_pnl: int
    net_pnl_percent: int
    pnl_accumulations: PnlAccumulations
    fee_accumulations: FeeAccumulations
    average_entry_price: int
    average_exit_price: int
    total_notional: int
    trades: int
    liquidation: bool = False
    realtime: int = 0
    realtime_percent: int = 0


def _to_int(value: int | str | None) -> int:
    if value is None or value == "":
        return 0
    return int(value)


def accumulate_realized(records: Iterable[Mapping[str, int | str]]) -> PnlAccumulations:
    """Sum the six PnL sub-accumulations over indexer records."""
    records = list(records)
    totals = {
        acc.name: sum(_to_int(record.get(acc.realized_key)) for record in records)
        for acc in ACCUMULATOR_TYPES
    }
    return PnlAccumulations(**totals)


def accumulate_realized_fees(records: Iterable[Mapping[str, int | str]]) -> FeeAccumulations:
    records = list(records)
    totals = {
        name: sum(_to_int(record.get(key)) for record in records)
        for name, key in FEE_ACCUMULATOR_TYPES
    }
    return FeeAccumulations(**totals)


def mark_to_market_accumulations(
    side: PositionSide,
    magnitude: int,
    current: Mapping[str, int | str] | None,
    start: Mapping[str, int | str] | None,
) -> PnlAccumulations:
    """PnL accrued between the account's and the market's latest settlement.

    Args:
        side: Side the account holds.
        magnitude: Size the account holds.
        current: Global per-unit accumulators at the latest market settlement.
        start: Global per-unit accumulators at the account's latest settlement.

    Returns:
        PnlAccumulations; all zero for a flat account or missing accumulators.
    """
    result = PnlAccumulations()
    if side is PositionSide.NONE or current is None or start is None:
        return result

    for acc in ACCUMULATOR_TYPES:
        if acc.maker_only and side is not PositionSide.MAKER:
            continue
        key = acc.unrealized_keys.get(side)
        if not key:
            continue
        delta = _to_int(current.get(key)) - _to_int(start.get(key))
        setattr(result, acc.name, fixed6.mul(delta, magnitude))
    return result


def _percent(value: int, denominator: int) -> int:
    if denominator == 0:
        return 0
    return fixed6.div(value, denominator)


def process_position(
    history: PositionHistory,
    latest_to_global: PnlAccumulations | None = None,
    pending: PendingPositionData | None = None,
) -> PositionPnl:
    """Combine realized history, unrealized accruals and a pending order.

    Pending data is applied only when it belongs to an order newer than the
    last one the indexer has processed.
    """
    side = history.side
    total_pnl = _to_int(history.collateral_accumulation)
    total_fees = _to_int(history.fee_accumulation)
    net_pnl = total_pnl - total_fees

    pnl_accumulations = accumulate_realized([history.accumulation])
    fee_accumulations = accumulate_realized_fees([history.accumulation])

    if latest_to_global is not None:
        for acc in ACCUMULATOR_TYPES:
            accrued = getattr(latest_to_global, acc.name)
            setattr(pnl_accumulations, acc.name, getattr(pnl_accumulations, acc.name) + accrued)
            total_pnl += accrued
            net_pnl += accrued

    if side is PositionSide.MAKER:
        offset_as_fee = -pnl_accumulations.offset
        fee_accumulations.trade += offset_as_fee
        total_fees += offset_as_fee
        total_pnl -= pnl_accumulations.offset
        pnl_accumulations.offset = 0

    average_entry_price = calc_execution_price_with_impact(
        history.open_notional, history.open_offset, side, history.open_size
    )
    average_exit_price = calc_execution_price_with_impact(
        history.close_notional, history.close_offset, side, -history.close_size
    )
    net_deposits = history.net_deposits
    total_notional = history.open_notional + history.close_notional
    trades = history.trades

    if pending is not None and pending.current_id > history.current_order_id:
        net_deposits += pending.collateral
        fee_accumulations.settlement += pending.settlement_fee
        fee_accumulations.trade += pending.trade_fee
        fee_accumulations.additive += pending.additive_fee
        pending_fees = pending.settlement_fee + pending.trade_fee + pending.additive_fee
        total_fees += pending_fees

        if side is PositionSide.MAKER:
            fee_accumulations.trade -= pending.offset
            total_fees -= pending.offset
            pending_fees -= pending.offset
        else:
            pnl_accumulations.offset += pending.offset
            total_pnl += pending.offset
            net_pnl += pending.offset
        net_pnl -= pending_fees

        pending_notional = calc_notional(pending.size, pending.latest_price)
        if pending.size > 0:
            average_entry_price = calc_execution_price_with_impact(
                history.open_notional + pending_notional,
                history.open_offset + pending.offset,
                side,
                history.open_size + pending.size,
            )
        elif pending.size < 0:
            average_exit_price = calc_execution_price_with_impact(
                history.close_notional + pending_notional,
                history.close_offset + pending.offset,
                side,
                -history.close_size + pending.size,
            )
        total_notional += pending_notional
        if pending.size != 0:
            trades += 1

        logger.debug(
            "pending_order_applied_to_pnl",
            side=side.value,
            size=str(pending.size),
            offset=str(pending.offset),
            fees=str(pending_fees),
        )

    percent_denominator = history.start_collateral + max(net_deposits, 0)
    return PositionPnl(
        side=side,
        start_collateral=history.start_collateral,
        net_deposits=net_deposits,
        total_pnl=total_pnl,
        total_fees=total_fees,
        net_pnl=net_pnl,
        net_pnl_percent=_percent(net_pnl, percent_denominator),
        pnl_accumulations=pnl_accumulations,
        fee_accumulations=fee_accumulations,
        average_entry_price=average_entry_price,
        average_exit_price=average_exit_price,
        total_notional=total_notional,
        trades=trades,
        liquidation=history.liquidation,
    )


def with_realtime(pnl: PositionPnl, current_collateral: int) -> PositionPnl:
    """Attach realtime PnL: collateral now versus collateral put in."""
    realtime = current_collateral - (pnl.start_collateral + pnl.net_deposits)
    percent_denominator = pnl.start_collateral + max(pnl.net_deposits, 0)
    pnl.realtime = realtime
    pnl.realtime_percent = fixed6.abs(_percent(realtime, percent_denominator))
    return pnl
