import enum
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Float, JSON, Uuid
from sqlalchemy.orm import relationship

from app.database.database import Base
from app.utils.time import utc_now


class UserRole(str, enum.Enum):
    customer = "customer"
    technician = "technician"
    admin = "admin"


class User(Base):
    """
    Accounts of customers, technicians and admins.
    """
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.customer.value)
    is_active = Column(Boolean, nullable=False, default=True)

    # Technician profile, unused for other roles
    skills = Column(JSON, nullable=True, default=list)
    is_verified = Column(Boolean, nullable=False, default=False)
    rating = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    bookings = relationship(
        "Booking",
        back_populates="customer",
        foreign_keys="Booking.customer_id",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<User(email='{self.email}', role='{self.role}')>"
