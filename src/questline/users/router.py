"""User account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from questline.database import get_session
from questline.users.schemas import UserCreate, UserResponse
from questline.users.service import create_user, get_user

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=201)
async def register_user(body: UserCreate, db: AsyncSession = Depends(get_session)):
    user = await create_user(db, body.username, body.password)
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def read_user(user_id: str, db: AsyncSession = Depends(get_session)):
    return UserResponse.model_validate(await get_user(db, user_id))
