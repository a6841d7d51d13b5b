# app/repositories/user_repository.py
import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions.base_exception import ConflictException, StorageException
from app.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for CRUD operations on User."""

    @staticmethod
    async def create(
        db: AsyncSession,
        email: str,
        hashed_password: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
        role: str = "customer",
        skills: Optional[List[str]] = None,
    ) -> User:
        """Create a new user."""
        db_user = User(
            email=email.strip().lower(),
            hashed_password=hashed_password,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
            skills=skills or [],
        )
        db.add(db_user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictException("User already exists with this email", error_code="EMAIL_TAKEN")
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Failed to create user %s", email)
            raise StorageException("Failed to create user")
        await db.refresh(db_user)
        return db_user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        """
        Case-insensitive lookup by email.
        """
        result = await db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalars().first()

    @staticmethod
    async def save(db: AsyncSession, db_user: User) -> User:
        """Persist changes made to a loaded user."""
        try:
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Failed to update user %s", db_user.id)
            raise StorageException("Failed to update user")
        await db.refresh(db_user)
        return db_user
