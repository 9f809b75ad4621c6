"""Oracle price staleness advisory.

A price is considered stale once half of the market's ``stale_after`` window
has elapsed, leaving time for a fresh commitment to land before the contract
itself rejects the price. Too many unsettled orders also force a refresh.
Whether the market is open comes from the oracle collaborator.
"""

from perp_preview.config import OracleSettings
from perp_preview.logging import get_logger

logger = get_logger(__name__)


def is_price_stale(
    last_updated: int,
    stale_after: int,
    now: int,
    pending_global: int = 0,
    max_pending_global: int | None = None,
    pending_local: int = 0,
    max_pending_local: int | None = None,
) -> bool:
    """Whether the latest oracle price needs a fresh commitment.

    Args:
        last_updated: Unix seconds of the latest oracle version.
        stale_after: Market's stale-after window in seconds.
        now: Current Unix seconds.
        pending_global: Unsettled orders in the market.
        max_pending_global: Market-wide pending limit; None disables the check.
        pending_local: The account's unsettled orders in the market.
        max_pending_local: Per-account pending limit; None disables the check.
    """
    stale = now - last_updated > stale_after // 2
    if max_pending_global is not None and pending_global >= max_pending_global:
        stale = True
    if max_pending_local is not None and pending_local >= max_pending_local:
        stale = True
    return stale


def is_price_stale_for_settings(
    last_updated: int,
    stale_after: int,
    now: int,
    settings: OracleSettings,
    pending_global: int = 0,
    pending_local: int = 0,
) -> bool:
    """``is_price_stale`` with pending limits taken from settings."""
    return is_price_stale(
        last_updated,
        stale_after,
        now,
        pending_global=pending_global,
        max_pending_global=settings.max_pending_global,
        pending_local=pending_local,
        max_pending_local=settings.max_pending_local,
    )


def stale_price_is_error(is_stale: bool, market_open: bool) -> bool:
    """A stale price only matters while the underlying market trades."""
    if is_stale and not market_open:
        logger.debug("stale_price_market_closed")
    return is_stale and market_open
