import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.dto.user_dto import UserSummary


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookingCreate(CamelModel):
    """
    Client-settable booking fields. Anything else a client sends (status,
    technician, owner, warranty) is not part of this schema and never reaches
    the service.
    """
    device_type: str = ""
    issue: str = ""
    custom_issue_description: Optional[str] = None
    preferred_time: str = ""
    address: str = ""
    device_model: str = ""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class StoredPhoto(CamelModel):
    filename: str
    original_name: str
    path: str
    size: int
    url: Optional[str] = None


class StatusUpdate(CamelModel):
    status: str


class BookingRead(CamelModel):
    id: uuid.UUID
    booking_id: str = Field(..., alias="bookingId")
    customer_id: uuid.UUID
    customer: Optional[UserSummary] = None
    technician_id: Optional[uuid.UUID] = None
    technician: Optional[UserSummary] = None
    device_type: str
    device_model: str = ""
    issue: str
    custom_issue_description: Optional[str] = None
    preferred_time: str
    address: str
    photo: Optional[StoredPhoto] = None
    status: str
    cost: float = 0.0
    warranty_token: str
    warranty_expiry: datetime
    warranty_valid: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking, photo_url: Optional[str] = None) -> "BookingRead":
        photo = None
        if booking.photo_path:
            photo = StoredPhoto(
                filename=booking.photo_filename,
                original_name=booking.photo_original_name or booking.photo_filename,
                path=booking.photo_path,
                size=booking.photo_size or 0,
                url=photo_url,
            )
        return cls(
            id=booking.id,
            booking_id=booking.booking_code,
            customer_id=booking.customer_id,
            customer=UserSummary.model_validate(booking.customer) if booking.customer else None,
            technician_id=booking.technician_id,
            technician=UserSummary.model_validate(booking.technician) if booking.technician else None,
            device_type=booking.device_type,
            device_model=booking.device_model or "",
            issue=booking.issue,
            custom_issue_description=booking.custom_issue_description,
            preferred_time=booking.preferred_time,
            address=booking.address,
            photo=photo,
            status=booking.status,
            cost=booking.cost or 0.0,
            warranty_token=booking.warranty_token,
            warranty_expiry=booking.warranty_expiry,
            warranty_valid=booking.is_warranty_valid(),
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class TimelineStep(CamelModel):
    step: int
    title: str
    completed: bool


class TrackingRead(CamelModel):
    """Public tracking view. Address and photo are filled only for the owner."""
    booking_id: str = Field(..., alias="bookingId")
    status: str
    device_type: str
    device_model: str = ""
    issue: str
    preferred_time: str
    technician_name: Optional[str] = None
    timeline: List[TimelineStep]
    warranty_expiry: datetime
    warranty_valid: bool
    created_at: Optional[datetime] = None
    address: Optional[str] = None
    photo: Optional[StoredPhoto] = None


class WarrantyRead(CamelModel):
    booking_id: str = Field(..., alias="bookingId")
    device_type: str
    issue: str
    warranty_token: str
    warranty_expiry: datetime
    valid: bool


class DiagnosisRead(CamelModel):
    issue_title: str
    severity: str
    advice: str
