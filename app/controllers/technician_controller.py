from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.database import get_db
from app.dto.booking_dto import BookingRead
from app.dto.response import ResponseModel
from app.middlewares.auth_middleware import AuthIdentity, require_role
from app.models.user import UserRole
from app.services.booking_service import BookingService

router = APIRouter(prefix="/technician", tags=["Technician"])

technician_only = require_role(UserRole.technician.value)


@router.get("/available-jobs", response_model=ResponseModel[List[BookingRead]])
async def available_jobs(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    identity: AuthIdentity = Depends(technician_only),
    db: AsyncSession = Depends(get_db),
):
    """
    Các booking đang chờ kỹ thuật viên nhận, mới nhất trước.
    """
    jobs = await BookingService.available_jobs(db, identity, skip=skip, limit=limit)
    return ResponseModel.ok(jobs, "Available jobs retrieved")


@router.get("/my-jobs", response_model=ResponseModel[List[BookingRead]])
async def my_jobs(identity: AuthIdentity = Depends(technician_only), db: AsyncSession = Depends(get_db)):
    jobs = await BookingService.my_jobs(db, identity)
    return ResponseModel.ok(jobs, "Assigned jobs retrieved")
