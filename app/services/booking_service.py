import logging
import random
import time
import uuid
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dto.booking_dto import BookingCreate, BookingRead, StoredPhoto, TimelineStep, TrackingRead
from app.exceptions.base_exception import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    StorageException,
    ValidationException,
)
from app.middlewares.auth_middleware import AuthIdentity
from app.models.booking import Booking, BookingStatus
from app.models.user import UserRole
from app.repositories.booking_repository import BookingRepository
from app.services.file_storage_service import FileStorageService
from app.services.warranty_service import WarrantyService
from app.utils.time import utc_now

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("device_type", "issue", "preferred_time", "address")
OTHER_ISSUE = "other"
CODE_ATTEMPTS = 5

TIMELINE = (
    (1, "Booking Confirmed", {BookingStatus.pending, BookingStatus.confirmed, BookingStatus.in_progress, BookingStatus.completed}),
    (2, "Technician Assigned", {BookingStatus.in_progress, BookingStatus.completed}),
    (3, "Repair in Progress", {BookingStatus.in_progress, BookingStatus.completed}),
    (4, "Repair Completed", {BookingStatus.completed}),
)


def generate_booking_code() -> str:
    """``BK-`` + last six digits of the millisecond clock + three random digits."""
    return f"BK-{str(int(time.time() * 1000))[-6:]}{random.randint(0, 999):03d}"


def to_read(booking: Booking) -> BookingRead:
    return BookingRead.from_booking(booking, photo_url=FileStorageService.public_url(booking.photo_filename))


def build_timeline(status: str) -> List[TimelineStep]:
    try:
        current = BookingStatus(status)
    except ValueError:
        current = BookingStatus.pending
    return [TimelineStep(step=step, title=title, completed=current in done) for step, title, done in TIMELINE]


class BookingService:
    """
    Booking lifecycle: creation, retrieval, technician claim, completion and
    deletion. The owning customer, status, technician and warranty fields are
    always set here, never taken from the request.
    """

    @staticmethod
    def validate_payload(data: BookingCreate) -> BookingCreate:
        cleaned = {
            field: (getattr(data, field) or "").strip()
            for field in REQUIRED_FIELDS + ("device_model",)
        }
        if any(not cleaned[field] for field in REQUIRED_FIELDS):
            raise ValidationException("Missing required fields", error_code="MISSING_FIELDS")

        description = (data.custom_issue_description or "").strip() or None
        if cleaned["issue"] == OTHER_ISSUE and not description:
            raise ValidationException(
                "Custom issue description is required when issue is 'other'",
                error_code="CUSTOM_DESCRIPTION_REQUIRED",
            )
        return BookingCreate(custom_issue_description=description, **cleaned)

    @staticmethod
    async def create(
        db: AsyncSession,
        identity: AuthIdentity,
        data: BookingCreate,
        photo: Optional[UploadFile] = None,
    ) -> BookingRead:
        if identity.role != UserRole.customer.value:
            raise ForbiddenException("Only customers can create bookings")

        # 1. Validate before touching storage
        payload = BookingService.validate_payload(data)

        # 2. Store the photo, if any
        stored: Optional[StoredPhoto] = None
        if photo is not None and photo.filename:
            stored = await FileStorageService.save_image(photo)

        # 3. Persist; a fresh code is drawn when the unique index rejects one.
        # The stored photo is removed unless the insert completes, cancellation included.
        booking = None
        try:
            booking = await BookingService._insert(db, identity.id, payload, stored)
        finally:
            if booking is None and stored is not None:
                await FileStorageService.delete(stored.path)

        logger.info("Booking %s created by %s", booking.booking_code, identity.id)
        return to_read(booking)

    @staticmethod
    async def _insert(
        db: AsyncSession,
        customer_id: uuid.UUID,
        payload: BookingCreate,
        stored: Optional[StoredPhoto],
    ) -> Booking:
        for attempt in range(1, CODE_ATTEMPTS + 1):
            now = utc_now()
            warranty_token, warranty_expiry = WarrantyService.issue_warranty(now)
            booking = Booking(
                booking_code=generate_booking_code(),
                customer_id=customer_id,
                technician_id=None,
                device_type=payload.device_type,
                device_model=payload.device_model,
                issue=payload.issue,
                custom_issue_description=payload.custom_issue_description,
                preferred_time=payload.preferred_time,
                address=payload.address,
                status=BookingStatus.pending.value,
                cost=0.0,
                warranty_token=warranty_token,
                warranty_expiry=warranty_expiry,
                created_at=now,
                updated_at=now,
            )
            if stored is not None:
                booking.photo_filename = stored.filename
                booking.photo_original_name = stored.original_name
                booking.photo_path = stored.path
                booking.photo_size = stored.size
            try:
                return await BookingRepository.create(db, booking)
            except IntegrityError:
                logger.warning("Booking code collision on attempt %d", attempt)
        raise StorageException("Failed to create booking")

    @staticmethod
    async def list_mine(db: AsyncSession, identity: AuthIdentity) -> List[BookingRead]:
        bookings = await BookingRepository.list_by_customer(db, identity.id)
        return [to_read(b) for b in bookings]

    @staticmethod
    async def resolve(db: AsyncSession, reference: str) -> Booking:
        """
        Find a booking by booking code, or by id when the reference is a UUID.
        """
        reference = (reference or "").strip()
        booking = await BookingRepository.get_by_code(db, reference)
        if booking is None:
            try:
                booking_id = uuid.UUID(reference)
            except ValueError:
                booking_id = None
            if booking_id is not None:
                booking = await BookingRepository.get_by_id(db, booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    @staticmethod
    def can_view(identity: AuthIdentity, booking: Booking) -> bool:
        return (
            identity.role == UserRole.admin.value
            or booking.customer_id == identity.id
            or (booking.technician_id is not None and booking.technician_id == identity.id)
        )

    @staticmethod
    async def get_for(db: AsyncSession, identity: AuthIdentity, reference: str) -> BookingRead:
        booking = await BookingService.resolve(db, reference)
        if not BookingService.can_view(identity, booking):
            # Same answer as a missing booking
            raise NotFoundException("Booking not found")
        return to_read(booking)

    @staticmethod
    async def track(db: AsyncSession, booking_code: str, identity: Optional[AuthIdentity] = None) -> TrackingRead:
        booking = await BookingRepository.get_by_code(db, (booking_code or "").strip())
        if booking is None:
            raise NotFoundException("Booking not found")

        tracking = TrackingRead(
            booking_id=booking.booking_code,
            status=booking.status,
            device_type=booking.device_type,
            device_model=booking.device_model or "",
            issue=booking.issue,
            preferred_time=booking.preferred_time,
            technician_name=booking.technician.full_name if booking.technician else None,
            timeline=build_timeline(booking.status),
            warranty_expiry=booking.warranty_expiry,
            warranty_valid=booking.is_warranty_valid(),
            created_at=booking.created_at,
        )
        if identity is not None and identity.id == booking.customer_id:
            owner_view = to_read(booking)
            tracking.address = owner_view.address
            tracking.photo = owner_view.photo
        return tracking

    @staticmethod
    def _require_technician(identity: AuthIdentity) -> None:
        if identity.role != UserRole.technician.value:
            raise ForbiddenException("Technician access required")

    @staticmethod
    async def available_jobs(db: AsyncSession, identity: AuthIdentity, skip: int = 0, limit: int = 100) -> List[BookingRead]:
        BookingService._require_technician(identity)
        return [to_read(b) for b in await BookingRepository.list_pending(db, skip=skip, limit=limit)]

    @staticmethod
    async def my_jobs(db: AsyncSession, identity: AuthIdentity) -> List[BookingRead]:
        BookingService._require_technician(identity)
        return [to_read(b) for b in await BookingRepository.list_by_technician(db, identity.id)]

    @staticmethod
    async def claim(db: AsyncSession, identity: AuthIdentity, reference: str) -> BookingRead:
        """
        Assign a pending booking to the calling technician.

        Only one of several concurrent claims can win; the others get a
        ConflictException.
        """
        BookingService._require_technician(identity)
        booking = await BookingService.resolve(db, reference)

        if not await BookingRepository.claim(db, booking.id, identity.id):
            logger.info("Claim conflict on %s by %s", booking.booking_code, identity.id)
            raise ConflictException("Booking already taken", error_code="ALREADY_TAKEN")

        logger.info("Booking %s claimed by %s", booking.booking_code, identity.id)
        return to_read(await BookingRepository.get_by_id(db, booking.id))

    @staticmethod
    async def update_status(db: AsyncSession, identity: AuthIdentity, reference: str, new_status: str) -> BookingRead:
        BookingService._require_technician(identity)
        booking = await BookingService.resolve(db, reference)
        if booking.technician_id != identity.id:
            raise NotFoundException("Booking not found")

        if new_status != BookingStatus.completed.value or booking.status != BookingStatus.in_progress.value:
            raise ConflictException(
                f"Cannot change status from '{booking.status}' to '{new_status}'",
                error_code="INVALID_TRANSITION",
            )

        changed = await BookingRepository.advance_status(
            db, booking.id, identity.id, BookingStatus.in_progress, BookingStatus.completed
        )
        if not changed:
            raise ConflictException("Booking status changed concurrently", error_code="INVALID_TRANSITION")

        logger.info("Booking %s marked %s by %s", booking.booking_code, new_status, identity.id)
        return to_read(await BookingRepository.get_by_id(db, booking.id))

    @staticmethod
    async def delete(db: AsyncSession, identity: AuthIdentity, reference: str) -> None:
        booking = await BookingService.resolve(db, reference)
        if booking.customer_id != identity.id:
            raise NotFoundException("Booking not found")

        photo_path = booking.photo_path
        code = booking.booking_code
        await BookingRepository.delete(db, booking)
        await FileStorageService.delete(photo_path)
        logger.info("Booking %s deleted by %s", code, identity.id)

    @staticmethod
    async def render_certificate(db: AsyncSession, reference: str) -> str:
        booking = await BookingService.resolve(db, reference)
        return WarrantyService.render_certificate(booking)
