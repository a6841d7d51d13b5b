from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.database import get_db
from app.dto.booking_dto import TrackingRead
from app.dto.response import ResponseModel
from app.middlewares.auth_middleware import AuthIdentity, get_current_user_optional
from app.services.booking_service import BookingService

router = APIRouter(prefix="/track", tags=["Tracking"])


@router.get("/{booking_code}", response_model=ResponseModel[TrackingRead])
async def track_booking(
    booking_code: str,
    identity: Optional[AuthIdentity] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    """
    Public tracking by booking code. Address and photo are only shown to the
    signed-in owner.
    """
    tracking = await BookingService.track(db, booking_code, identity)
    return ResponseModel.ok(tracking, "Booking status retrieved")
