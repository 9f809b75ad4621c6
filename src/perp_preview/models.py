"""Shared data models for the market economics engine.

CRITICAL: All monetary and ratio values are scaled ints (Fixed6 unless noted).
Never use float for prices, sizes, rates or fees.

Every input structure is frozen: the engine reads snapshots supplied by the
chain-state reader and never mutates them.
"""

from dataclasses import dataclass, field
from enum import Enum


class PositionSide(str, Enum):
    """Which side of the market a position sits on."""

    MAKER = "maker"
    LONG = "long"
    SHORT = "short"
    NONE = "none"


class PositionStatus(str, Enum):
    """Display-facing lifecycle state of an account's position."""

    OPEN = "open"
    CLOSED = "closed"
    OPENING = "opening"
    CLOSING = "closing"
    PRICING = "pricing"
    RESOLVED = "noValue"
    FAILED = "failed"
    SYNC_ERROR = "syncError"
    NOT_MARGINED = "notMargined"


@dataclass(frozen=True)
class AggregatePosition:
    """Market open interest by side at one settlement version."""

    maker: int = 0
    long: int = 0
    short: int = 0
    timestamp: int = 0  # Unix seconds

    @property
    def major(self) -> int:
        return max(self.long, self.short)

    @property
    def minor(self) -> int:
        return min(self.long, self.short)


@dataclass(frozen=True)
class PAccumulator:
    """Running state of the funding P-controller."""

    value: int = 0
    skew: int = 0


@dataclass(frozen=True)
class PController:
    """P-controller coefficients: k is the skew sensitivity, max the rate cap."""

    k: int
    min: int = 0
    max: int = 0


@dataclass(frozen=True)
class JumpRateUtilizationCurve:
    """Piecewise-linear interest curve through (0, min), (target, target), (1, max)."""

    min_rate: int
    max_rate: int
    target_rate: int
    target_utilization: int


@dataclass(frozen=True)
class RiskParameter:
    """Per-market risk configuration, read-only to the engine."""

    margin: int
    maintenance: int
    min_margin: int
    min_maintenance: int
    utilization_curve: JumpRateUtilizationCurve
    p_controller: PController
    efficiency_limit: int = 0
    taker_fee: int = 0
    taker_skew_fee: int = 0
    taker_impact_fee: int = 0
    taker_adiabatic_fee: int = 0
    maker_fee: int = 0
    maker_impact_fee: int = 0
    virtual_taker: int = 0
    stale_after: int = 0  # seconds


@dataclass(frozen=True)
class MarketParameter:
    """Fee split and operational flags, read-only to the engine."""

    funding_fee: int = 0
    interest_fee: int = 0
    position_fee: int = 0
    maker_fee: int = 0
    taker_fee: int = 0
    risk_fee: int = 0
    settlement_fee: int = 0
    closed: bool = False
    settle_only: bool = False


@dataclass(frozen=True)
class Global:
    """Market-wide running state. Mutated only by on-chain settlement."""

    p_accumulator: PAccumulator = field(default_factory=PAccumulator)
    latest_price: int = 0
    latest_version: int = 0
    current_id: int = 0
    latest_id: int = 0


@dataclass(frozen=True)
class Local:
    """Per-account collateral state."""

    current_id: int = 0
    latest_id: int = 0
    collateral: int = 0
    claimable: int = 0


@dataclass(frozen=True)
class AccountPosition:
    """Per-account position magnitudes. At most one side is nonzero."""

    maker: int = 0
    long: int = 0
    short: int = 0
    timestamp: int = 0


@dataclass(frozen=True)
class PendingOrder:
    """An order submitted on-chain but not yet reflected in settled state."""

    timestamp: int = 0
    maker_pos: int = 0
    maker_neg: int = 0
    long_pos: int = 0
    long_neg: int = 0
    short_pos: int = 0
    short_neg: int = 0
    collateral: int = 0

    @property
    def maker_delta(self) -> int:
        return self.maker_pos - self.maker_neg

    @property
    def long_delta(self) -> int:
        return self.long_pos - self.long_neg

    @property
    def short_delta(self) -> int:
        return self.short_pos - self.short_neg

    @property
    def maker_total(self) -> int:
        return self.maker_pos + self.maker_neg

    @property
    def taker_total(self) -> int:
        return self.long_pos + self.long_neg + self.short_pos + self.short_neg

    def delta_for(self, side: PositionSide) -> int:
        """Signed size change for one side (zero for PositionSide.NONE)."""
        if side is PositionSide.MAKER:
            return self.maker_delta
        if side is PositionSide.LONG:
            return self.long_delta
        if side is PositionSide.SHORT:
            return self.short_delta
        if side is PositionSide.NONE:
            return 0
        raise ValueError(f"unknown position side: {side!r}")

    @property
    def is_empty(self) -> bool:
        return (
            self.maker_pos == self.maker_neg == 0
            and self.long_pos == self.long_neg == 0
            and self.short_pos == self.short_neg == 0
            and self.collateral == 0
        )


@dataclass(frozen=True)
class MarketSnapshot:
    """Everything the chain-state reader knows about one market.

    ``position`` is the latest settled aggregate, ``next_position`` includes
    pending global orders. ``latest_oracle_version`` is the timestamp of the
    newest oracle version before the snapshot's own settlement.
    """

    risk_parameter: RiskParameter
    parameter: MarketParameter
    global_: Global
    position: AggregatePosition
    next_position: AggregatePosition
    latest_oracle_version: int = 0
    pending_order: PendingOrder = field(default_factory=PendingOrder)


@dataclass(frozen=True)
class AccountSnapshot:
    """One account's settled state in one market plus its in-flight orders.

    ``price_update`` is "0x" when the oracle commitment applied cleanly,
    otherwise the decoded revert reason reported by the oracle collaborator.

    ``version_valid`` is False when the latest oracle version settled without
    a valid price. ``position`` is then provisional and the reconciler falls
    back to ``pre_position``, read before that settlement.
    """

    local: Local
    position: AccountPosition
    pending_orders: tuple[PendingOrder, ...] = ()
    price_update: str = "0x"
    version_valid: bool = True
    pre_position: AccountPosition | None = None
