# Import every model so Base.metadata knows all tables
from app.models.user import User, UserRole
from app.models.booking import Booking, BookingStatus

__all__ = [
    "User",
    "UserRole",
    "Booking",
    "BookingStatus",
]
