"""Warranty issuance, verification and certificate rendering (Jinja2)."""
import logging
import secrets
import string
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Tuple

from jinja2 import Environment, FileSystemLoader
from sqlalchemy.ext.asyncio import AsyncSession

from app.configs.settings import settings
from app.dto.booking_dto import WarrantyRead
from app.exceptions.base_exception import NotFoundException
from app.models.booking import Booking
from app.repositories.booking_repository import BookingRepository
from app.utils.time import utc_now

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)

UNASSIGNED_TECHNICIAN = "Pending Assignment"
_BASE36 = string.digits + string.ascii_uppercase


def _base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


class WarrantyService:

    @staticmethod
    def generate_token() -> str:
        """Opaque token: ``WT`` + base36 millisecond clock + random hex."""
        return f"WT{_base36(int(time.time() * 1000))}{secrets.token_hex(3)}".upper()

    @staticmethod
    def issue_warranty(now: Optional[datetime] = None) -> Tuple[str, datetime]:
        """Token and expiry for a booking created at ``now``."""
        issued_at = now or utc_now()
        return WarrantyService.generate_token(), issued_at + timedelta(days=settings.WARRANTY_DAYS)

    @staticmethod
    def verification_url(warranty_token: str) -> str:
        return f"{settings.PUBLIC_BASE_URL.rstrip('/')}{settings.API_V1_PREFIX}/warranty/{warranty_token}"

    @staticmethod
    async def verify(db: AsyncSession, warranty_token: str) -> WarrantyRead:
        booking = await BookingRepository.get_by_warranty_token(db, warranty_token.strip().upper())
        if booking is None:
            raise NotFoundException("Warranty not found")
        return WarrantyRead(
            booking_id=booking.booking_code,
            device_type=booking.device_type,
            issue=booking.issue,
            warranty_token=booking.warranty_token,
            warranty_expiry=booking.warranty_expiry,
            valid=booking.is_warranty_valid(),
        )

    @staticmethod
    def render_certificate(booking: Booking, now: Optional[datetime] = None) -> str:
        """
        Render the warranty certificate for a booking.

        Read-only: validity is derived from the expiry at render time.
        """
        now = now or utc_now()
        technician_name = booking.technician.full_name if booking.technician else UNASSIGNED_TECHNICIAN
        customer_name = booking.customer.full_name if booking.customer else ""

        template = _env.get_template("certificate.html")
        return template.render(
            booking=booking,
            issue=booking.custom_issue_description if booking.issue == "other" and booking.custom_issue_description else booking.issue,
            customer_name=customer_name,
            technician_name=technician_name,
            warranty_days=settings.WARRANTY_DAYS,
            issued_on=booking.created_at or now,
            valid=booking.is_warranty_valid(now),
            verify_url=WarrantyService.verification_url(booking.warranty_token),
            app_name=settings.APP_NAME,
        )

    @staticmethod
    def render_error(title: str, message: str) -> str:
        return _env.get_template("error.html").render(title=title, message=message, app_name=settings.APP_NAME)
