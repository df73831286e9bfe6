# Ontology Models
from app.models.ontology import (
    Business, Room, SeasonalPricing, Booking, RoomBlockedDate,
    RoomStatus, BookingSource, BlockReason,
)

__all__ = [
    'Business', 'Room', 'SeasonalPricing', 'Booking', 'RoomBlockedDate',
    'RoomStatus', 'BookingSource', 'BlockReason',
]
