from app.controllers.auth_controller import router as auth_router
from app.controllers.booking_controller import router as booking_router
from app.controllers.technician_controller import router as technician_router
from app.controllers.tracking_controller import router as tracking_router
from app.controllers.warranty_controller import router as warranty_router
from app.controllers.catalog_controller import router as catalog_router

__all__ = [
    "auth_router",
    "booking_router",
    "technician_router",
    "tracking_router",
    "warranty_router",
    "catalog_router",
]
