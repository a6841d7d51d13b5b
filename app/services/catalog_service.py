import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.exceptions.base_exception import NotFoundException, ValidationException

logger = logging.getLogger(__name__)

CATALOG_FILE = Path(__file__).resolve().parent.parent / "data" / "service_catalog.json"


@lru_cache(maxsize=1)
def load_catalog() -> Dict[str, Any]:
    with open(CATALOG_FILE, encoding="utf-8") as fh:
        catalog = json.load(fh)
    logger.info("Loaded service catalog with %d categories", len(catalog.get("categories", [])))
    return catalog


def parse_factors(raw: List[str]) -> Dict[str, str]:
    """Turn repeated ``name:value`` query values into a mapping."""
    factors = {}
    for item in raw:
        name, sep, value = item.partition(":")
        if not sep or not name.strip() or not value.strip():
            raise ValidationException(f"Invalid factor '{item}'. Expected name:value")
        factors[name.strip()] = value.strip()
    return factors


class CatalogService:
    """Read-only view over the packaged service catalog."""

    @staticmethod
    def list_categories() -> List[Dict[str, Any]]:
        return load_catalog()["categories"]

    @staticmethod
    def get_subcategories(category_id: str) -> List[Dict[str, Any]]:
        for category in load_catalog()["categories"]:
            if category["id"] == category_id:
                return category.get("subcategories", [])
        raise NotFoundException("Category not found")

    @staticmethod
    def find_service(category_id: str, service_id: str) -> Optional[Dict[str, Any]]:
        for subcategory in CatalogService.get_subcategories(category_id):
            for service in subcategory.get("services", []):
                if service["id"] == service_id:
                    return service
        return None

    @staticmethod
    def calculate_price(pricing: Dict[str, Any], factors: Dict[str, str]) -> Dict[str, Any]:
        """
        Apply the multipliers of the known factors to the base price.
        Unknown factor names or values are ignored.
        """
        price = float(pricing["basePrice"])
        applied = {}
        for name, value in factors.items():
            multiplier = pricing.get("factors", {}).get(name, {}).get(value)
            if multiplier is None:
                continue
            price *= multiplier
            applied[name] = value
        return {
            "basePrice": pricing["basePrice"],
            "finalPrice": int(round(price)),
            "priceRange": pricing["priceRange"],
            "factors": applied,
        }

    @staticmethod
    def get_pricing(category_id: str, service_id: str, factors: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        if CatalogService.find_service(category_id, service_id) is None:
            raise NotFoundException("Service not found")

        pricing_data = load_catalog()["pricing"]
        pricing = pricing_data["services"].get(service_id)
        if pricing is None:
            raise NotFoundException("Pricing not available for this service")

        result = {
            "serviceId": service_id,
            **pricing,
            "baseCharges": pricing_data["baseCharges"],
            "additionalCharges": pricing_data["additionalCharges"],
        }
        if factors:
            result["quote"] = CatalogService.calculate_price(pricing, factors)
        return result
