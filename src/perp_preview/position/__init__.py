"""Position reconciler: status, snapshots, PnL and order previews."""

from perp_preview.position.market import MarketSummary, summarize_market
from perp_preview.position.pnl import (
    ACCUMULATOR_TYPES,
    FEE_ACCUMULATOR_TYPES,
    FeeAccumulations,
    PendingPositionData,
    PnlAccumulations,
    PositionHistory,
    PositionPnl,
    accumulate_realized,
    accumulate_realized_fees,
    mark_to_market_accumulations,
    process_position,
)
from perp_preview.position.reconciler import (
    OrderPreview,
    PositionReconciler,
    PositionSnapshot,
    apply_pending_orders,
    has_version_error,
    side_from_position,
)
from perp_preview.position.status import (
    closed_or_resolved,
    get_status_for_snapshot,
    is_active_position,
    is_failed_close,
)

__all__ = [
    "ACCUMULATOR_TYPES",
    "FEE_ACCUMULATOR_TYPES",
    "FeeAccumulations",
    "MarketSummary",
    "OrderPreview",
    "PendingPositionData",
    "PnlAccumulations",
    "PositionHistory",
    "PositionPnl",
    "PositionReconciler",
    "PositionSnapshot",
    "accumulate_realized",
    "accumulate_realized_fees",
    "apply_pending_orders",
    "closed_or_resolved",
    "get_status_for_snapshot",
    "has_version_error",
    "is_active_position",
    "is_failed_close",
    "mark_to_market_accumulations",
    "process_position",
    "side_from_position",
    "summarize_market",
]
