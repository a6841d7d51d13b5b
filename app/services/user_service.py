import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.dto.user_dto import (
    AuthPayload,
    PasswordChange,
    ProfileUpdate,
    TechnicianRegister,
    UserLogin,
    UserRead,
    UserRegister,
)
from app.exceptions.base_exception import (
    ConflictException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from app.models.user import User, UserRole
from app.repositories.user_repository import UserRepository
from app.utils.security import hash_password, verify_password
from app.utils.token import issue_access_token

logger = logging.getLogger(__name__)


class UserService:
    """
    Account operations: registration, login and profile maintenance.
    """

    @staticmethod
    def build_auth_payload(user: User) -> AuthPayload:
        return AuthPayload(token=issue_access_token(user), user=UserRead.model_validate(user))

    @staticmethod
    async def register(db: AsyncSession, data: UserRegister) -> AuthPayload:
        """
        Create a customer account and sign them in.
        """
        # 1. Email must be free (case-insensitive)
        if await UserRepository.get_by_email(db, data.email):
            raise ConflictException("User already exists with this email", error_code="EMAIL_TAKEN")

        # 2. Create the account; the unique index still guards concurrent sign-ups
        user = await UserRepository.create(
            db,
            email=data.email,
            hashed_password=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=UserRole.customer.value,
        )
        logger.info("Registered customer %s", user.id)
        return UserService.build_auth_payload(user)

    @staticmethod
    async def register_technician(db: AsyncSession, data: TechnicianRegister) -> AuthPayload:
        if await UserRepository.get_by_email(db, data.email):
            raise ConflictException("User already exists with this email", error_code="EMAIL_TAKEN")

        user = await UserRepository.create(
            db,
            email=data.email,
            hashed_password=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=UserRole.technician.value,
            skills=data.skills,
        )
        logger.info("Registered technician %s with %d skills", user.id, len(data.skills))
        return UserService.build_auth_payload(user)

    @staticmethod
    async def authenticate(db: AsyncSession, data: UserLogin) -> AuthPayload:
        """
        Check credentials and issue a token.

        Unknown email and wrong password produce the same error so that
        accounts cannot be enumerated.
        """
        user = await UserRepository.get_by_email(db, data.email)
        if user is None or not verify_password(data.password, user.hashed_password):
            logger.info("Failed login for %s", data.email)
            raise UnauthorizedException("Invalid credentials", error_code="INVALID_CREDENTIALS")

        if not user.is_active:
            raise UnauthorizedException("Account is deactivated", error_code="ACCOUNT_DEACTIVATED")

        return UserService.build_auth_payload(user)

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if user is None:
            raise NotFoundException("User not found")
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: uuid.UUID, data: ProfileUpdate) -> User:
        user = await UserService.get_user(db, user_id)

        changes = data.model_dump(exclude_unset=True)
        for field in ("first_name", "last_name"):
            if field in changes and changes[field] is None:
                raise ValidationException(f"{field.replace('_', ' ').capitalize()} cannot be empty")

        for field, value in changes.items():
            setattr(user, field, value)
        return await UserRepository.save(db, user)

    @staticmethod
    async def change_password(db: AsyncSession, user_id: uuid.UUID, data: PasswordChange) -> None:
        user = await UserService.get_user(db, user_id)

        if not verify_password(data.current_password, user.hashed_password):
            raise UnauthorizedException("Current password is incorrect", error_code="WRONG_PASSWORD")

        user.hashed_password = hash_password(data.new_password)
        await UserRepository.save(db, user)
        logger.info("Password changed for user %s", user.id)
