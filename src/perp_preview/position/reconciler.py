"""Position reconciliation: settled account state plus in-flight orders.

The chain reports an account's last settled position and collateral. Orders
submitted since then are pending until the oracle version they were placed
at settles. The reconciler folds pending order deltas onto the settled
position to produce the "next" view, classifies the account's display
status, and combines settled and pending effects into a PnL breakdown.

Two states per account and market:
  - Settled: no pending orders, next equals current.
  - Pending: one or more pending orders; next differs from current until
    the caller supplies a snapshot in which they have settled.

Nothing here mutates its inputs or raises for advisory conditions. A stale
pending order is reported through PositionStatus, not an exception.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace

from perp_preview.config import AppSettings
from perp_preview.exceptions import DataIntegrityError
from perp_preview.fees.interface_fee import PositionChangeFee, calc_total_position_change_fee
from perp_preview.fees.trade_fee import (
    ExecutionPriceEstimate,
    TradeFee,
    calc_est_execution_price,
    calc_notional,
    calc_trade_fee,
)
from perp_preview.funding.engine import now_seconds
from perp_preview.logging import get_logger
from perp_preview.models import (
    AccountPosition,
    AccountSnapshot,
    MarketSnapshot,
    PendingOrder,
    PositionSide,
    PositionStatus,
)
from perp_preview.position.pnl import (
    FeeAccumulations,
    PendingPositionData,
    PnlAccumulations,
    PositionHistory,
    PositionPnl,
    mark_to_market_accumulations,
    process_position,
    with_realtime,
)
from perp_preview.position.status import PRICE_UPDATE_OK, get_status_for_snapshot
from perp_preview.risk.exposure import calc_maker_exposure
from perp_preview.risk.liquidation import LiquidationPrice, calc_liquidation_price
from perp_preview.risk.margin import (
    calc_leverage,
    calc_maintenance,
    calc_margin,
    calc_max_leverage,
)

logger = get_logger(__name__)

SIDES = (PositionSide.MAKER, PositionSide.LONG, PositionSide.SHORT)


@dataclass(frozen=True)
class PositionSnapshot:
    """Current and next view of one account's position in one market."""

    side: PositionSide
    magnitude: int
    next_side: PositionSide
    next_magnitude: int
    status: PositionStatus
    collateral: int
    maintenance: int
    next_maintenance: int
    margin: int
    next_margin: int
    leverage: int
    next_leverage: int
    notional: int
    next_notional: int
    maker_exposure: int
    next_maker_exposure: int
    liquidation_price: LiquidationPrice
    next_liquidation_price: LiquidationPrice
    max_leverage: int
    has_version_error: bool = False


@dataclass(frozen=True)
class OrderPreview:
    """Predicted outcome of submitting one more order."""

    snapshot: PositionSnapshot
    fee: PositionChangeFee
    collateral_after: int
    liquidation_price: LiquidationPrice
    execution_price: ExecutionPriceEstimate | None = None


@dataclass(frozen=True)
class PendingEffects:
    """Collateral, impact and fees of an account's unsettled orders.

    The trade fee's impact part is booked as ``offset`` and only its linear
    part as a fee, so ``offset - fees`` charges the full trade fee once.
    """

    delta: int
    collateral: int
    trade_fee: TradeFee
    settlement_fee: int

    @property
    def offset(self) -> int:
        return -self.trade_fee.trade_impact

    @property
    def linear_fee(self) -> int:
        return self.trade_fee.linear_fee

    @property
    def fees(self) -> int:
        return self.settlement_fee + self.trade_fee.linear_fee


def pending_effects(
    market: MarketSnapshot,
    orders: Iterable[PendingOrder],
    side: PositionSide,
) -> PendingEffects:
    """Estimate what unsettled orders on ``side`` will cost at settlement.

    Pending orders trade against the pre-pending market position.
    """
    orders = list(orders)
    delta = sum(order.delta_for(side) for order in orders)
    trade_fee = calc_trade_fee(
        delta,
        market.position,
        market.risk_parameter,
        side,
        market.global_.latest_price,
    )
    return PendingEffects(
        delta=delta,
        collateral=sum(order.collateral for order in orders),
        trade_fee=trade_fee,
        settlement_fee=market.parameter.settlement_fee if delta != 0 else 0,
    )


def position_magnitude(position: AccountPosition) -> int:
    return max(position.maker, position.long, position.short)


def side_from_position(position: AccountPosition) -> PositionSide:
    """The single nonzero side of an account position.

    Raises:
        DataIntegrityError: If more than one side is nonzero.
    """
    nonzero = [side for side in SIDES if getattr(position, side.value) != 0]
    if len(nonzero) > 1:
        logger.error(
            "pending_order_side_conflict",
            sides=",".join(side.value for side in nonzero),
            maker=str(position.maker),
            long=str(position.long),
            short=str(position.short),
        )
        raise DataIntegrityError(
            f"position has more than one nonzero side: {[side.value for side in nonzero]}"
        )
    if not nonzero:
        return PositionSide.NONE
    return nonzero[0]


def apply_pending_orders(
    position: AccountPosition,
    orders: Iterable[PendingOrder],
) -> AccountPosition:
    """Fold pending order deltas (``pos - neg``) onto a settled position.

    Raises:
        DataIntegrityError: If any side would end up negative.
    """
    maker, long, short = position.maker, position.long, position.short
    timestamp = position.timestamp
    for order in orders:
        if order.is_empty:
            continue
        maker += order.maker_delta
        long += order.long_delta
        short += order.short_delta
        timestamp = max(timestamp, order.timestamp)

    if maker < 0 or long < 0 or short < 0:
        raise DataIntegrityError(
            f"pending orders close more than is open: maker={maker} long={long} short={short}"
        )
    return AccountPosition(maker=maker, long=long, short=short, timestamp=timestamp)


def has_version_error(
    pending_timestamp: int,
    latest_oracle_version: int,
    now: int,
    magnitude: int,
    next_magnitude: int,
    grace_seconds: int = 60,
) -> bool:
    """A pending order that should have settled by now but has not.

    True only when an order is pending, its version predates the market's
    latest oracle version, it is older than the grace window, and the
    position it changes is still inconsistent.
    """
    if pending_timestamp == 0:
        return False
    return (
        pending_timestamp < latest_oracle_version
        and pending_timestamp + grace_seconds < now
        and magnitude != next_magnitude
    )


class PositionReconciler:
    """Builds position snapshots, PnL views and order previews.

    Args:
        settings: Application settings; the reconciler and risk sections
            tune version-error detection and leverage quantization.
    """

    def __init__(self, settings: AppSettings | None = None) -> None:
        self._settings = settings or AppSettings()

    def _max_leverage(self, market: MarketSnapshot, collateral: int) -> int:
        risk_settings = self._settings.risk
        return calc_max_leverage(
            margin=market.risk_parameter.margin,
            min_margin=market.risk_parameter.min_margin,
            collateral=collateral,
            max_leverage=risk_settings.max_leverage,
            step=risk_settings.leverage_step,
            default=risk_settings.default_max_leverage,
        )

    def snapshot(
        self,
        market: MarketSnapshot,
        account: AccountSnapshot,
        now: int | None = None,
    ) -> PositionSnapshot:
        """Reconcile an account's settled state with its pending orders.

        Args:
            market: Market state from the chain-state reader.
            account: Account state and in-flight orders.
            now: Unix seconds. Defaults to the wall clock.

        Returns:
            PositionSnapshot with current and next figures at the market's
            latest price.

        Raises:
            DataIntegrityError: If the settled or next position is not
                single-sided, or pending orders close more than is open.
        """
        if now is None:
            now = now_seconds()
        reconciler_settings = self._settings.reconciler
        risk = market.risk_parameter
        price = market.global_.latest_price
        collateral = account.local.collateral

        latest_position = account.position
        if not account.version_valid and account.pre_position is not None:
            # The latest version never got a valid price; its settlement is not final.
            latest_position = account.pre_position

        side = side_from_position(latest_position)
        magnitude = position_magnitude(latest_position)
        next_position = apply_pending_orders(latest_position, account.pending_orders)
        next_side = side_from_position(next_position)
        next_magnitude = position_magnitude(next_position)

        pending_timestamp = max(
            (order.timestamp for order in account.pending_orders if not order.is_empty),
            default=0,
        )
        version_error = has_version_error(
            pending_timestamp,
            market.latest_oracle_version,
            now,
            magnitude,
            next_magnitude,
            grace_seconds=reconciler_settings.version_grace_seconds,
        )

        if account.price_update != PRICE_UPDATE_OK:
            logger.warning(
                "position_sync_error",
                price_update=account.price_update,
                magnitude=str(magnitude),
                next_magnitude=str(next_magnitude),
            )
        if version_error:
            logger.warning(
                "position_version_error",
                pending_timestamp=pending_timestamp,
                latest_oracle_version=market.latest_oracle_version,
                magnitude=str(magnitude),
                next_magnitude=str(next_magnitude),
            )

        status = get_status_for_snapshot(
            magnitude,
            next_magnitude,
            collateral,
            version_error,
            account.price_update,
            insufficient_margin_error=reconciler_settings.insufficient_margin_error,
        )

        return PositionSnapshot(
            side=side,
            magnitude=magnitude,
            next_side=next_side,
            next_magnitude=next_magnitude,
            status=status,
            collateral=collateral,
            maintenance=calc_maintenance(magnitude, price, risk),
            next_maintenance=calc_maintenance(next_magnitude, price, risk),
            margin=calc_margin(magnitude, price, risk),
            next_margin=calc_margin(next_magnitude, price, risk),
            leverage=calc_leverage(price, magnitude, collateral),
            next_leverage=calc_leverage(price, next_magnitude, collateral),
            notional=calc_notional(magnitude, price),
            next_notional=calc_notional(next_magnitude, price),
            maker_exposure=calc_maker_exposure(
                latest_position.maker,
                market.position.maker,
                market.position.long,
                market.position.short,
            ),
            next_maker_exposure=calc_maker_exposure(
                next_position.maker,
                market.next_position.maker,
                market.next_position.long,
                market.next_position.short,
            ),
            liquidation_price=calc_liquidation_price(collateral, magnitude, price, risk),
            next_liquidation_price=calc_liquidation_price(collateral, next_magnitude, price, risk),
            max_leverage=self._max_leverage(market, collateral),
            has_version_error=version_error,
        )

    def pnl(
        self,
        market: MarketSnapshot,
        account: AccountSnapshot,
        history: PositionHistory | None = None,
        current_accumulator: Mapping[str, int | str] | None = None,
        start_accumulator: Mapping[str, int | str] | None = None,
        now: int | None = None,
    ) -> PositionPnl:
        """PnL of the account's current position, settled plus pending.

        Args:
            market: Market state from the chain-state reader.
            account: Account state and in-flight orders.
            history: Indexer record of the position, if the indexer has one.
            current_accumulator: Global per-unit accumulators at the market's
                latest settlement.
            start_accumulator: Global per-unit accumulators at the account's
                latest settlement.
            now: Unix seconds. Defaults to the wall clock.

        Returns:
            PositionPnl including realtime PnL.
        """
        position = self.snapshot(market, account, now=now)
        side = position.next_side if position.next_side is not PositionSide.NONE else position.side
        magnitude = position.next_magnitude
        price = market.global_.latest_price

        pending = pending_effects(market, account.pending_orders, side)
        pending_delta = pending.delta
        pending_collateral = pending.collateral
        current_collateral = (
            account.local.collateral + pending_collateral + pending.offset - pending.fees
        )

        if history is None:
            if side is PositionSide.MAKER:
                # Makers pay their impact as a trade fee, not as an offset.
                offset = 0
                trade = pending.linear_fee - pending.offset
            else:
                offset = pending.offset
                trade = pending.linear_fee
            total_fees = trade + pending.settlement_fee
            pnl = PositionPnl(
                side=side,
                start_collateral=account.local.collateral,
                net_deposits=pending_collateral,
                total_pnl=offset,
                total_fees=total_fees,
                net_pnl=offset - total_fees,
                net_pnl_percent=0,
                pnl_accumulations=PnlAccumulations(offset=offset),
                fee_accumulations=FeeAccumulations(trade=trade, settlement=pending.settlement_fee),
                average_entry_price=price if pending_delta > 0 else 0,
                average_exit_price=price if pending_delta < 0 else 0,
                total_notional=calc_notional(pending_delta, price),
                trades=1 if pending_delta != 0 else 0,
            )
            pnl = with_realtime(pnl, current_collateral)
            pnl.net_pnl_percent = pnl.realtime_percent
            return pnl

        latest_to_global = mark_to_market_accumulations(
            side, magnitude, current_accumulator, start_accumulator
        )
        pending_data = PendingPositionData(
            current_id=account.local.current_id,
            latest_price=price,
            collateral=pending_collateral,
            size=pending_delta,
            offset=pending.offset,
            settlement_fee=pending.settlement_fee,
            trade_fee=pending.linear_fee,
        )
        pnl = process_position(history, latest_to_global, pending_data)
        return with_realtime(pnl, current_collateral)

    def preview_order(
        self,
        market: MarketSnapshot,
        account: AccountSnapshot,
        side: PositionSide,
        position_delta: int,
        collateral_delta: int = 0,
        interface_fee_bps: int = 0,
        referrer_interface_fee_discount: int = 0,
        now: int | None = None,
    ) -> OrderPreview:
        """Preview one more order on top of the account's pending state.

        Args:
            market: Market state from the chain-state reader.
            account: Account state and in-flight orders.
            side: Side the new order trades on.
            position_delta: Signed size change of the new order.
            collateral_delta: Collateral deposited (positive) or withdrawn.
            interface_fee_bps: Front-end fee rate.
            referrer_interface_fee_discount: Referrer discount on that rate.
            now: Unix seconds. Defaults to the wall clock.

        Returns:
            OrderPreview with the resulting snapshot and costs. ``collateral_after``
            charges the fees and impact of orders already pending as well as
            the new order.

        Raises:
            DataIntegrityError: If the order would leave the account on two
                sides at once or close more than is open.
        """
        if now is None:
            now = now_seconds()
        current = self.snapshot(market, account, now=now)

        order = PendingOrder(timestamp=now, collateral=collateral_delta)
        if side is not PositionSide.NONE and position_delta != 0:
            magnitude = abs(position_delta)
            if position_delta > 0:
                order = replace(order, **{f"{side.value}_pos": magnitude})
            else:
                order = replace(order, **{f"{side.value}_neg": magnitude})

        previewed = replace(account, pending_orders=(*account.pending_orders, order))
        next_snapshot = self.snapshot(market, previewed, now=now)

        fee = calc_total_position_change_fee(
            market,
            position_delta,
            side,
            interface_fee_bps=interface_fee_bps,
            referrer_interface_fee_discount=referrer_interface_fee_discount,
            position_status=current.status,
        )

        existing_side = current.next_side if current.next_side is not PositionSide.NONE else current.side
        existing = pending_effects(market, account.pending_orders, existing_side)
        collateral_after = (
            account.local.collateral
            + existing.collateral
            + existing.offset
            - existing.fees
            + collateral_delta
            - fee.total
        )
        liquidation_price = calc_liquidation_price(
            collateral_after,
            next_snapshot.next_magnitude,
            market.global_.latest_price,
            market.risk_parameter,
        )

        execution_price = None
        if position_delta != 0 and side in (PositionSide.LONG, PositionSide.SHORT):
            execution_price = calc_est_execution_price(
                market.global_.latest_price,
                side,
                position_delta,
                market.next_position,
                market.risk_parameter,
            )

        logger.debug(
            "order_preview",
            side=side.value,
            position_delta=str(position_delta),
            next_magnitude=str(next_snapshot.next_magnitude),
            total_fee=str(fee.total),
        )

        return OrderPreview(
            snapshot=next_snapshot,
            fee=fee,
            collateral_after=collateral_after,
            liquidation_price=liquidation_price,
            execution_price=execution_price,
        )
