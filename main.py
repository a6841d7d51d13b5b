import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.configs.settings import settings
from app.database.database import create_tables
from app.middlewares.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from app.middlewares.rate_limit_middleware import InMemoryRateLimiter
from app.controllers import (
    auth_router,
    booking_router,
    technician_router,
    tracking_router,
    warranty_router,
    catalog_router,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_rate_limiters() -> dict:
    return {
        "login": InMemoryRateLimiter(settings.LOGIN_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS),
        "register": InMemoryRateLimiter(settings.REGISTER_RATE_LIMIT, settings.RATE_LIMIT_WINDOW_SECONDS),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    Path(settings.LOCAL_STORAGE_PATH).mkdir(parents=True, exist_ok=True)
    await create_tables()
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="API đặt lịch sửa chữa thiết bị, nhận việc cho kỹ thuật viên và bảo hành điện tử",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.state.rate_limiters = build_rate_limiters()

# Cấu hình CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware xử lý lỗi
app.add_middleware(ErrorHandlerMiddleware)
register_exception_handlers(app)

# --- Đăng ký router ---
app.include_router(auth_router, prefix=settings.API_V1_PREFIX)
app.include_router(booking_router, prefix=settings.API_V1_PREFIX)
app.include_router(technician_router, prefix=settings.API_V1_PREFIX)
app.include_router(tracking_router, prefix=settings.API_V1_PREFIX)
app.include_router(warranty_router, prefix=settings.API_V1_PREFIX)
app.include_router(catalog_router, prefix=settings.API_V1_PREFIX)

# Uploaded booking photos
app.mount("/uploads", StaticFiles(directory=settings.LOCAL_STORAGE_PATH, check_dir=False), name="uploads")


@app.get("/health")
def health():
    return {"status": "ok", "version": settings.APP_VERSION}


@app.get("/")
def root():
    return {
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "documentation": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
