"""Display status of an account position.

Status is a pure function of the settled and next magnitudes, collateral, the
version-error flag and the oracle price-update result. Checks run in a fixed
order and the last branch catches everything, so every input maps to exactly
one status:

  1. version error while magnitudes disagree -> FAILED
  2. price update reverted with insufficient margin -> NOT_MARGINED
  3. any other price update revert -> SYNC_ERROR
  4. magnitude 0, next nonzero -> OPENING
  5. magnitude nonzero, next equal -> OPEN
  6. magnitude nonzero, next 0 -> CLOSING
  7. magnitude nonzero, next different -> PRICING
  8. both 0 with collateral left -> CLOSED
  9. otherwise -> RESOLVED
"""

from perp_preview.models import PositionStatus

PRICE_UPDATE_OK = "0x"
INSUFFICIENT_MARGIN_ERROR = "MarketInsufficientMarginError"


def get_status_for_snapshot(
    magnitude: int,
    next_magnitude: int,
    collateral: int,
    has_version_error: bool,
    price_update: str = PRICE_UPDATE_OK,
    insufficient_margin_error: str = INSUFFICIENT_MARGIN_ERROR,
) -> PositionStatus:
    if has_version_error and magnitude != next_magnitude:
        return PositionStatus.FAILED
    if price_update == insufficient_margin_error:
        return PositionStatus.NOT_MARGINED
    if price_update != PRICE_UPDATE_OK:
        return PositionStatus.SYNC_ERROR
    if magnitude == 0 and next_magnitude != 0:
        return PositionStatus.OPENING
    if magnitude != 0 and magnitude == next_magnitude:
        return PositionStatus.OPEN
    if magnitude != 0 and next_magnitude == 0:
        return PositionStatus.CLOSING
    if magnitude != 0:
        return PositionStatus.PRICING
    if next_magnitude == 0 and collateral != 0:
        return PositionStatus.CLOSED
    return PositionStatus.RESOLVED


def closed_or_resolved(status: PositionStatus | None) -> bool:
    return status in (PositionStatus.CLOSED, PositionStatus.RESOLVED)


def is_failed_close(status: PositionStatus, magnitude: int, next_magnitude: int) -> bool:
    """A close order whose oracle version never settled."""
    return status is PositionStatus.FAILED and magnitude != 0 and next_magnitude == 0


def is_active_position(status: PositionStatus | None) -> bool:
    return status is not PositionStatus.RESOLVED
