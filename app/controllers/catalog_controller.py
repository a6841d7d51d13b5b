from typing import Any, Dict, List

from fastapi import APIRouter, Query

from app.dto.response import ResponseModel
from app.services.catalog_service import CatalogService, parse_factors

router = APIRouter(prefix="/services", tags=["Services"])


@router.get("", response_model=ResponseModel[List[Dict[str, Any]]])
async def list_categories():
    return ResponseModel.ok(CatalogService.list_categories(), "Service categories retrieved")


@router.get("/{category_id}", response_model=ResponseModel[List[Dict[str, Any]]])
async def list_subcategories(category_id: str):
    return ResponseModel.ok(CatalogService.get_subcategories(category_id), "Subcategories retrieved")


@router.get("/{category_id}/{service_id}/pricing", response_model=ResponseModel[Dict[str, Any]])
async def get_pricing(
    category_id: str,
    service_id: str,
    factor: List[str] = Query(default=[], description="Repeated name:value pairs, e.g. brand:premium"),
):
    """
    Bảng giá của dịch vụ; truyền ``factor`` để tính giá ước lượng.
    """
    pricing = CatalogService.get_pricing(category_id, service_id, parse_factors(factor))
    return ResponseModel.ok(pricing, "Pricing retrieved")
