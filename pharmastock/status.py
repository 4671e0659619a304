"""Stock level and batch expiry classification for display badges."""
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from pharmastock.core.config import settings
from pharmastock.ledger import LocationType


class StockStatus(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    GOOD = "good"


class ExpiryStatus(str, Enum):
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring-soon"
    GOOD = "good"


def min_level_for(location_type: str, min_stock_level_godown: Optional[int], min_stock_level_mr: Optional[int]) -> int:
    """Pick the product's threshold for the kind of location holding the stock."""
    if location_type == LocationType.GODOWN.value:
        return min_stock_level_godown or 0
    return min_stock_level_mr or 0


def stock_status(quantity: int, min_level: int, medium_factor: float = settings.medium_stock_factor) -> StockStatus:
    if quantity <= min_level:
        return StockStatus.LOW
    if quantity <= min_level * medium_factor:
        return StockStatus.MEDIUM
    return StockStatus.GOOD


def expiry_horizon(today: Optional[date] = None, warning_days: int = settings.expiry_warning_days) -> date:
    today = today or date.today()
    return today + timedelta(days=warning_days)


def expiry_status(expiry: date, today: Optional[date] = None, warning_days: int = settings.expiry_warning_days) -> ExpiryStatus:
    """
    expired: before today.
    expiring-soon: today up to and including today + warning_days.
    good: later than that.
    """
    today = today or date.today()
    if expiry < today:
        return ExpiryStatus.EXPIRED
    if expiry <= expiry_horizon(today, warning_days):
        return ExpiryStatus.EXPIRING_SOON
    return ExpiryStatus.GOOD
