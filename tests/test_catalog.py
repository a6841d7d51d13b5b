import pytest

from app.exceptions.base_exception import NotFoundException, ValidationException
from app.services.catalog_service import CatalogService, parse_factors

API = "/api/v1/services"


def test_categories_are_loaded():
    ids = [c["id"] for c in CatalogService.list_categories()]
    assert ids == ["electronics", "home-appliances", "home-services"]


def test_subcategories():
    subcategories = CatalogService.get_subcategories("electronics")
    assert [s["id"] for s in subcategories] == ["smartphones", "laptops"]
    with pytest.raises(NotFoundException):
        CatalogService.get_subcategories("gardening")


def test_quote_applies_known_factors_only():
    pricing = CatalogService.get_pricing(
        "electronics",
        "screen-repair",
        {"deviceType": "tablet", "brand": "premium", "colour": "red", "warranty": "lifetime"},
    )
    quote = pricing["quote"]

    # 999 * 1.3 * 1.5 = 1948.05
    assert quote["finalPrice"] == 1948
    assert quote["basePrice"] == 999
    assert quote["factors"] == {"deviceType": "tablet", "brand": "premium"}
    assert quote["priceRange"] == "₹799-₹2,499"


def test_pricing_includes_charges():
    pricing = CatalogService.get_pricing("home-appliances", "ac-installation")
    assert pricing["basePrice"] == 1999
    assert pricing["baseCharges"]["visitFee"] == 99
    assert pricing["additionalCharges"]["sameDayService"] == 499
    assert "quote" not in pricing


def test_pricing_for_unpriced_or_unknown_service():
    with pytest.raises(NotFoundException):
        CatalogService.get_pricing("electronics", "virus-removal")
    with pytest.raises(NotFoundException):
        CatalogService.get_pricing("electronics", "teleportation")


def test_parse_factors():
    assert parse_factors(["brand:premium", "screenSize:17+"]) == {"brand": "premium", "screenSize": "17+"}
    with pytest.raises(ValidationException):
        parse_factors(["brand"])


@pytest.mark.asyncio
async def test_catalog_endpoints(client):
    r = await client.get(API)
    assert r.status_code == 200
    assert len(r.json()["data"]) == 3

    r = await client.get(f"{API}/home-services")
    assert [s["id"] for s in r.json()["data"]] == ["plumbing", "electrical"]

    r = await client.get(f"{API}/unknown")
    assert r.status_code == 404

    r = await client.get(
        f"{API}/electronics/laptop-screen-repair/pricing",
        params=[("factor", "screenSize:17+"), ("factor", "brand:premium")],
    )
    assert r.status_code == 200
    # 2499 * 1.4 * 1.8 = 6297.48
    assert r.json()["data"]["quote"]["finalPrice"] == 6297
