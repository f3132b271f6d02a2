from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db
from newsdesk.models import UserRole
from newsdesk.schemas import FlagUpdate, UserCreate, UserDetail, UserResponse, UserUpdate
from newsdesk.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

_DUPLICATE_DETAIL = "A user with this username or email already exists"


@router.get("", response_model=list[UserResponse])
async def list_users(
    role: UserRole | None = Query(None),
    only_active: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_users(db, role=role, only_active=only_active)


@router.get("/{user_id}", response_model=UserDetail)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("", status_code=201, response_model=UserResponse)
async def create_user(data: UserCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await user_service.create_user(db, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=_DUPLICATE_DETAIL)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, data: UserUpdate, db: AsyncSession = Depends(get_db)):
    try:
        user = await user_service.update_user(db, user_id, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=_DUPLICATE_DETAIL)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}/active", response_model=UserResponse)
async def set_user_active(user_id: int, data: FlagUpdate, db: AsyncSession = Depends(get_db)):
    user = await user_service.set_user_active(db, user_id, data.value)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
