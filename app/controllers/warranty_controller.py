from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.database import get_db
from app.dto.booking_dto import WarrantyRead
from app.dto.response import ResponseModel
from app.services.warranty_service import WarrantyService

router = APIRouter(prefix="/warranty", tags=["Warranty"])


@router.get("/{warranty_token}", response_model=ResponseModel[WarrantyRead])
async def verify_warranty(warranty_token: str, db: AsyncSession = Depends(get_db)):
    warranty = await WarrantyService.verify(db, warranty_token)
    message = "Warranty is valid" if warranty.valid else "Warranty has expired"
    return ResponseModel.ok(warranty, message)
