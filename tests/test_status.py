"""Tests for stock and expiry status badges."""
from datetime import date
from freezegun import freeze_time

from pharmastock.status import (
    ExpiryStatus, StockStatus, expiry_horizon, expiry_status, min_level_for, stock_status
)


class TestStockStatus:
    """Tests for low / medium / good stock classification."""

    def test_at_minimum_is_low(self):
        assert stock_status(10, 10) == StockStatus.LOW

    def test_below_minimum_is_low(self):
        assert stock_status(0, 10) == StockStatus.LOW

    def test_up_to_one_and_a_half_times_is_medium(self):
        assert stock_status(15, 10) == StockStatus.MEDIUM

    def test_above_medium_band_is_good(self):
        assert stock_status(16, 10) == StockStatus.GOOD

    def test_zero_minimum(self):
        assert stock_status(0, 0) == StockStatus.LOW
        assert stock_status(1, 0) == StockStatus.GOOD

    def test_min_level_by_location(self):
        assert min_level_for("GODOWN", 100, 20) == 100
        assert min_level_for("MR", 100, 20) == 20
        assert min_level_for("MR", 100, None) == 0


class TestExpiryStatus:
    """Tests for expired / expiring-soon / good classification."""

    today = date(2024, 6, 1)

    def test_yesterday_is_expired(self):
        assert expiry_status(date(2024, 5, 31), self.today) == ExpiryStatus.EXPIRED

    def test_today_is_expiring_soon(self):
        assert expiry_status(date(2024, 6, 1), self.today) == ExpiryStatus.EXPIRING_SOON

    def test_within_thirty_days_is_expiring_soon(self):
        assert expiry_status(date(2024, 6, 30), self.today) == ExpiryStatus.EXPIRING_SOON

    def test_thirty_days_out_is_expiring_soon(self):
        assert expiry_status(date(2024, 7, 1), self.today) == ExpiryStatus.EXPIRING_SOON

    def test_later_is_good(self):
        assert expiry_status(date(2024, 8, 1), self.today) == ExpiryStatus.GOOD

    def test_horizon(self):
        assert expiry_horizon(self.today) == date(2024, 7, 1)

    @freeze_time("2024-06-01")
    def test_defaults_to_today(self):
        assert expiry_status(date(2024, 5, 31)) == ExpiryStatus.EXPIRED
        assert expiry_status(date(2024, 6, 30)) == ExpiryStatus.EXPIRING_SOON
        assert expiry_status(date(2024, 8, 1)) == ExpiryStatus.GOOD
