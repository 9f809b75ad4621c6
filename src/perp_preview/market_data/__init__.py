"""Market data advisories consumed alongside the engine."""

from perp_preview.market_data.staleness import (
    is_price_stale,
    is_price_stale_for_settings,
    stale_price_is_error,
)

__all__ = ["is_price_stale", "is_price_stale_for_settings", "stale_price_is_error"]
