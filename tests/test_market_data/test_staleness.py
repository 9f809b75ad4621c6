"""Tests for the oracle staleness advisory."""

import pytest

from perp_preview.config import AppSettings, OracleSettings
from perp_preview.market_data import (
    is_price_stale,
    is_price_stale_for_settings,
    stale_price_is_error,
)


class TestIsPriceStale:
    def test_stale_after_half_window(self) -> None:
        # 60s window: stale once more than 30s have passed
        assert is_price_stale(1000, 60, 1031)
        assert not is_price_stale(1000, 60, 1030)

    def test_global_pending_limit(self) -> None:
        assert is_price_stale(1000, 60, 1000, pending_global=3, max_pending_global=3)
        assert not is_price_stale(1000, 60, 1000, pending_global=2, max_pending_global=3)

    def test_local_pending_limit(self) -> None:
        assert is_price_stale(1000, 60, 1000, pending_local=2, max_pending_local=2)
        assert not is_price_stale(1000, 60, 1000, pending_local=1, max_pending_local=2)

    def test_no_limits_configured(self) -> None:
        assert not is_price_stale(1000, 60, 1000, pending_global=500, pending_local=500)


class TestSettingsVariant:
    def test_uses_configured_limits(self, mock_settings: AppSettings) -> None:
        oracle = mock_settings.oracle
        assert is_price_stale_for_settings(1000, 60, 1000, oracle, pending_local=2)
        assert not is_price_stale_for_settings(1000, 60, 1000, oracle, pending_global=9)
        assert is_price_stale_for_settings(1000, 60, 1000, oracle, pending_global=10)

    def test_defaults_disable_pending_checks(self) -> None:
        assert not is_price_stale_for_settings(1000, 60, 1000, OracleSettings(), pending_global=99)


class TestStalePriceIsError:
    @pytest.mark.parametrize(
        ("is_stale", "market_open", "expected"),
        [
            (True, True, True),
            (True, False, False),
            (False, True, False),
            (False, False, False),
        ],
    )
    def test_truth_table(self, is_stale: bool, market_open: bool, expected: bool) -> None:
        assert stale_price_is_error(is_stale, market_open) is expected
