from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.database import get_db
from app.dto.response import ResponseModel
from app.dto.user_dto import (
    AuthPayload,
    PasswordChange,
    ProfileUpdate,
    TechnicianRegister,
    UserLogin,
    UserRead,
    UserRegister,
)
from app.middlewares.auth_middleware import AuthIdentity, get_current_user
from app.middlewares.rate_limit_middleware import rate_limit
from app.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=ResponseModel[AuthPayload],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("register"))],
)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    """
    Đăng ký tài khoản khách hàng và trả về token.
    """
    payload = await UserService.register(db, data)
    return ResponseModel.ok(payload, "User registered successfully")


@router.post(
    "/register-technician",
    response_model=ResponseModel[AuthPayload],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("register"))],
)
async def register_technician(data: TechnicianRegister, db: AsyncSession = Depends(get_db)):
    payload = await UserService.register_technician(db, data)
    return ResponseModel.ok(payload, "Technician registered successfully")


@router.post("/login", response_model=ResponseModel[AuthPayload], dependencies=[Depends(rate_limit("login"))])
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    """
    Đăng nhập bằng email và mật khẩu.

    - **email**: Email người dùng
    - **password**: Mật khẩu
    """
    payload = await UserService.authenticate(db, data)
    return ResponseModel.ok(payload, "Login successful")


@router.post("/logout", response_model=ResponseModel[None])
async def logout(identity: AuthIdentity = Depends(get_current_user)):
    # Tokens are stateless; the client simply discards its copy
    return ResponseModel.ok(None, "Logout successful")


@router.get("/me", response_model=ResponseModel[UserRead])
async def me(identity: AuthIdentity = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    user = await UserService.get_user(db, identity.id)
    return ResponseModel.ok(UserRead.model_validate(user), "Profile retrieved")


@router.put("/profile", response_model=ResponseModel[UserRead])
async def update_profile(
    data: ProfileUpdate,
    identity: AuthIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.update_profile(db, identity.id, data)
    return ResponseModel.ok(UserRead.model_validate(user), "Profile updated successfully")


@router.post("/change-password", response_model=ResponseModel[None])
async def change_password(
    data: PasswordChange,
    identity: AuthIdentity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await UserService.change_password(db, identity.id, data)
    return ResponseModel.ok(None, "Password changed successfully")
