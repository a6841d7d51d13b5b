import enum
import uuid
from sqlalchemy import Column, String, DateTime, Float, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.utils.time import utc_now


class BookingStatus(str, enum.Enum):
    pending = "pending"
    # Declared for compatibility with existing data; no transition leads here
    confirmed = "confirmed"
    in_progress = "in-progress"
    completed = "completed"


class Booking(Base):
    """
    A customer's repair request and its lifecycle.

    status, technician_id and the warranty fields are server-authoritative.
    """
    __tablename__ = "bookings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    booking_code = Column(String(32), unique=True, nullable=False, index=True)

    customer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    technician_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)

    device_type = Column(String(100), nullable=False)
    device_model = Column(String(100), nullable=False, default="")
    issue = Column(String(100), nullable=False)
    custom_issue_description = Column(Text, nullable=True)
    preferred_time = Column(String(100), nullable=False)
    address = Column(Text, nullable=False)

    photo_filename = Column(String(255), nullable=True)
    photo_original_name = Column(String(255), nullable=True)
    photo_path = Column(String(500), nullable=True)
    photo_size = Column(Integer, nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.pending.value, index=True)
    cost = Column(Float, nullable=False, default=0.0)

    warranty_token = Column(String(64), unique=True, nullable=False, index=True)
    warranty_expiry = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=utc_now, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    customer = relationship("User", back_populates="bookings", foreign_keys=[customer_id], lazy="selectin")
    technician = relationship("User", foreign_keys=[technician_id], lazy="selectin")

    def is_warranty_valid(self, now=None) -> bool:
        return (now or utc_now()) < self.warranty_expiry

    def __repr__(self):
        return f"<Booking(code='{self.booking_code}', status='{self.status}')>"
