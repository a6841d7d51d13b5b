import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from app.exceptions.base_exception import ConflictException
from app.middlewares.error_handler import ErrorHandlerMiddleware, register_exception_handlers


class Item(BaseModel):
    name: str


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorHandlerMiddleware)
    register_exception_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise ConflictException("Booking already taken", error_code="ALREADY_TAKEN")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    @app.post("/items")
    async def items(item: Item):
        return item

    return app


@pytest.mark.asyncio
async def test_app_exception_shape():
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        r = await ac.get("/conflict")
    assert r.status_code == 409
    assert r.json() == {"success": False, "message": "Booking already taken", "error_code": "ALREADY_TAKEN"}


@pytest.mark.asyncio
async def test_unexpected_errors_are_opaque():
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        r = await ac.get("/boom")
    assert r.status_code == 500
    assert r.json()["success"] is False
    assert "hunter2" not in r.text


@pytest.mark.asyncio
async def test_validation_errors_are_400():
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        r = await ac.post("/items", json={})
    assert r.status_code == 400
    assert r.json()["message"] == "Validation failed"
    assert r.json()["errors"]


@pytest.mark.asyncio
async def test_unknown_route_uses_same_shape():
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        r = await ac.get("/nowhere")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Not Found"}
