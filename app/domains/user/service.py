# app/domains/user/service.py
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models import User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_auth_id(self, auth_user_id: str) -> Optional[User]:
        """Get a user by the auth provider's subject id."""
        result = await self.db.execute(select(User).where(User.auth_user_id == auth_user_id))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(self, auth_user_id: str, email: str | None = None, username: str | None = None) -> User:
        """Create a new user."""
        user = User(auth_user_id=auth_user_id, email=email, username=username)

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def get_or_create_user(self, auth_user_id: str, token_payload: dict) -> User:
        """Get existing user or create new one from a token payload."""
        user = await self.get_user_by_auth_id(auth_user_id)
        if not user:
            metadata = token_payload.get("user_metadata") or {}
            user = await self.create_user(
                auth_user_id=auth_user_id,
                email=token_payload.get("email"),
                username=metadata.get("username") or token_payload.get("username"),
            )
        return user

    async def update_user(
        self, user_id: UUID, username: str | None = None, email: str | None = None
    ) -> Optional[User]:
        """Update user information."""
        user = await self.get_user_by_id(user_id)
        if not user:
            return None

        try:
            if username is not None:
                user.username = username
            if email is not None:
                user.email = email

            await self.db.commit()
            await self.db.refresh(user)
            return user
        except SQLAlchemyError:
            await self.db.rollback()
            raise
