# Business Services
from app.services.room_service import RoomService
from app.services.seasonal_pricing_service import SeasonalPricingService
from app.services.booking_service import BookingService
from app.services.blocked_date_service import BlockedDateService

__all__ = [
    'RoomService', 'SeasonalPricingService', 'BookingService', 'BlockedDateService',
]
