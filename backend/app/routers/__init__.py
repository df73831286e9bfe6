# API Routers
from app.routers import rooms, seasonal_pricing, bookings, blocked_dates

__all__ = ['rooms', 'seasonal_pricing', 'bookings', 'blocked_dates']
