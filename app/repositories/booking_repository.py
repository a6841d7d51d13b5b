import logging
import uuid
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.base_exception import StorageException
from app.models.booking import Booking, BookingStatus

logger = logging.getLogger(__name__)


class BookingRepository:
    """Persistence for bookings. Status changes only go through conditional updates."""

    @staticmethod
    async def create(db: AsyncSession, booking: Booking) -> Booking:
        """
        Insert a booking in its own transaction.

        IntegrityError is re-raised (after rollback) so the caller can retry with
        fresh generated codes; other database errors become StorageException.
        """
        db.add(booking)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Failed to insert booking")
            raise StorageException("Failed to create booking")
        return await BookingRepository.get_by_id(db, booking.id)

    @staticmethod
    async def get_by_id(db: AsyncSession, booking_id: uuid.UUID) -> Optional[Booking]:
        result = await db.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_by_code(db: AsyncSession, booking_code: str) -> Optional[Booking]:
        result = await db.execute(
            select(Booking)
            .where(Booking.booking_code == booking_code)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_by_warranty_token(db: AsyncSession, warranty_token: str) -> Optional[Booking]:
        result = await db.execute(select(Booking).where(Booking.warranty_token == warranty_token))
        return result.scalars().first()

    @staticmethod
    async def list_by_customer(db: AsyncSession, customer_id: uuid.UUID) -> List[Booking]:
        """Bookings owned by one customer, newest first."""
        result = await db.execute(
            select(Booking)
            .where(Booking.customer_id == customer_id)
            .order_by(Booking.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_by_technician(db: AsyncSession, technician_id: uuid.UUID) -> List[Booking]:
        result = await db.execute(
            select(Booking)
            .where(Booking.technician_id == technician_id)
            .order_by(Booking.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_pending(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[Booking]:
        result = await db.execute(
            select(Booking)
            .where(Booking.status == BookingStatus.pending.value)
            .order_by(Booking.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    @staticmethod
    async def claim(db: AsyncSession, booking_id: uuid.UUID, technician_id: uuid.UUID) -> bool:
        """
        Compare-and-set: pending -> in-progress with the technician assigned.

        Returns False when the booking was no longer pending at write time.
        """
        return await BookingRepository._conditional_update(
            db,
            booking_id,
            Booking.status == BookingStatus.pending.value,
            status=BookingStatus.in_progress.value,
            technician_id=technician_id,
        )

    @staticmethod
    async def advance_status(
        db: AsyncSession,
        booking_id: uuid.UUID,
        technician_id: uuid.UUID,
        from_status: BookingStatus,
        to_status: BookingStatus,
    ) -> bool:
        return await BookingRepository._conditional_update(
            db,
            booking_id,
            (Booking.status == from_status.value) & (Booking.technician_id == technician_id),
            status=to_status.value,
        )

    @staticmethod
    async def _conditional_update(db: AsyncSession, booking_id: uuid.UUID, condition, **values) -> bool:
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id)
            .where(condition)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await db.execute(stmt)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Conditional update failed for booking %s", booking_id)
            raise StorageException("Failed to update booking")
        return result.rowcount == 1

    @staticmethod
    async def delete(db: AsyncSession, booking: Booking) -> None:
        try:
            await db.delete(booking)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Failed to delete booking %s", booking.id)
            raise StorageException("Failed to delete booking")
