"""
app/accommodation/domain/__init__.py

住宿领域层 - 季节定价解析、住宿报价、房间可用性（纯函数，无 I/O）
"""
from app.accommodation.domain.types import (
    BlockedRange, BookingSnapshot, BookingStatus, Month, NightlyRate,
    PriceBreakdownEntry, RoomSnapshot, SeasonTier, SeasonalRuleSet,
    StayQuote, Tier, Weekday, is_occupying, to_money,
)
from app.accommodation.domain.errors import (
    BlockNotFound, BookingConflict, BookingNotFound, BusinessNotFound,
    InvalidDateRange, InvalidStatusTransition, NotFoundError, PricingNotFound,
    QuoteMismatch, RoomNotFound,
)
from app.accommodation.domain.rate_resolver import resolve_nightly_price
from app.accommodation.domain.stay_aggregator import compute_stay_price, iter_nights
from app.accommodation.domain.availability import (
    find_available_rooms, overlaps, conflicting_room_ids,
)

__all__ = [
    "BlockedRange", "BookingSnapshot", "BookingStatus", "Month", "NightlyRate",
    "PriceBreakdownEntry", "RoomSnapshot", "SeasonTier", "SeasonalRuleSet",
    "StayQuote", "Tier", "Weekday", "is_occupying", "to_money",
    "BlockNotFound", "BookingConflict", "BookingNotFound", "BusinessNotFound",
    "InvalidDateRange", "InvalidStatusTransition", "NotFoundError",
    "PricingNotFound", "QuoteMismatch", "RoomNotFound",
    "resolve_nightly_price", "compute_stay_price", "iter_nights",
    "find_available_rooms", "overlaps", "conflicting_room_ids",
]
