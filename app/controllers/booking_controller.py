import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.database import get_db
from app.dto.booking_dto import BookingCreate, BookingRead, DiagnosisRead, StatusUpdate
from app.dto.response import ResponseModel
from app.exceptions.base_exception import NotFoundException
from app.middlewares.auth_middleware import AuthIdentity, get_current_user
from app.services.booking_service import BookingService
from app.services.diagnosis_service import DiagnosisService
from app.services.file_storage_service import FileStorageService
from app.services.warranty_service import WarrantyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=ResponseModel[BookingRead], status_code=status.HTTP_201_CREATED)
async def create_booking(
    device_type: str = Form("", alias="deviceType"),
    device_model: str = Form("", alias="deviceModel"),
    issue: str = Form(""),
    custom_issue_description: Optional[str] = Form(None, alias="customIssueDescription"),
    preferred_time: str = Form("", alias="preferredTime"),
    address: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    identity: AuthIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Tạo booking mới (multipart: các trường + ảnh tùy chọn).

    Trạng thái, kỹ thuật viên và bảo hành luôn do server gán.
    """
    data = BookingCreate(
        device_type=device_type,
        device_model=device_model,
        issue=issue,
        custom_issue_description=custom_issue_description,
        preferred_time=preferred_time,
        address=address,
    )
    booking = await BookingService.create(db, identity, data, photo)
    return ResponseModel.ok(booking, "Booking created successfully")


@router.get("", response_model=ResponseModel[List[BookingRead]])
async def list_my_bookings(identity: AuthIdentity = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    bookings = await BookingService.list_mine(db, identity)
    return ResponseModel.ok(bookings, "Bookings retrieved")


@router.post("/diagnose", response_model=ResponseModel[DiagnosisRead])
async def diagnose(
    photo: UploadFile = File(...),
    device_type: str = Form("", alias="deviceType"),
    identity: AuthIdentity = Depends(get_current_user),
):
    image = await FileStorageService.read_image(photo)
    result = await DiagnosisService.diagnose(image, photo.content_type, device_type)
    return ResponseModel.ok(result, "Diagnosis complete")


@router.get("/{booking_id}", response_model=ResponseModel[BookingRead])
async def get_booking(
    booking_id: str,
    identity: AuthIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Lấy booking theo mã (BK-...) hoặc id."""
    booking = await BookingService.get_for(db, identity, booking_id)
    return ResponseModel.ok(booking, "Booking retrieved")


@router.delete("/{booking_id}", response_model=ResponseModel[None])
async def delete_booking(
    booking_id: str,
    identity: AuthIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await BookingService.delete(db, identity, booking_id)
    return ResponseModel.ok(None, "Booking deleted successfully")


@router.get("/{booking_id}/certificate", response_class=HTMLResponse)
async def get_certificate(booking_id: str, db: AsyncSession = Depends(get_db)):
    """Public warranty certificate page."""
    try:
        html = await BookingService.render_certificate(db, booking_id)
    except NotFoundException:
        return HTMLResponse(
            WarrantyService.render_error("Certificate not found", "No booking matches this reference."),
            status_code=status.HTTP_404_NOT_FOUND,
        )
    except Exception:
        logger.exception("Failed to render certificate for %s", booking_id)
        return HTMLResponse(
            WarrantyService.render_error("Certificate unavailable", "The certificate could not be generated."),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return HTMLResponse(html)


@router.post("/{booking_id}/accept", response_model=ResponseModel[BookingRead])
async def accept_booking(
    booking_id: str,
    identity: AuthIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    booking = await BookingService.claim(db, identity, booking_id)
    return ResponseModel.ok(booking, "Booking accepted successfully")


@router.patch("/{booking_id}/status", response_model=ResponseModel[BookingRead])
async def update_booking_status(
    booking_id: str,
    data: StatusUpdate,
    identity: AuthIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    booking = await BookingService.update_status(db, identity, booking_id, data.status)
    return ResponseModel.ok(booking, "Booking status updated")
