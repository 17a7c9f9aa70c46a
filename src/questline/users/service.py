"""User account business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from questline.db.models import User
from questline.errors import ConflictError, NotFoundError, StoreError
from questline.users.password import hash_password

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_user(db: AsyncSession, user_id: str) -> User:
    """
    Load a user by id.

    Raises:
        NotFoundError: no such user.
    """
    try:
        user = await db.get(User, user_id)
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to fetch user") from exc
    if user is None:
        raise NotFoundError("User not found")
    return user


async def create_user(db: AsyncSession, username: str, password: str) -> User:
    """
    Create an account with an argon2id-hashed password.

    Raises:
        ConflictError: the username is taken.
    """
    try:
        existing = await db.execute(select(User.id).where(User.username == username))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Username already taken")

        user = User(username=username, password=hash_password(password))
        db.add(user)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError("Username already taken") from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        raise StoreError("Failed to create user") from exc

    logger.info("user_created", user_id=user.id)
    return user
