from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db
from newsdesk.schemas import CategoryCreate, CategoryResponse, CategoryUpdate, FlagUpdate
from newsdesk.services import category_service

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])

_DUPLICATE_DETAIL = "A category with this name already exists"


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    only_active: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.get_categories(db, only_active=only_active)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await category_service.get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("", status_code=201, response_model=CategoryResponse)
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await category_service.create_category(db, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=_DUPLICATE_DETAIL)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int, data: CategoryUpdate, db: AsyncSession = Depends(get_db)
):
    try:
        category = await category_service.update_category(db, category_id, data)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=_DUPLICATE_DETAIL)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.patch("/{category_id}/active", response_model=CategoryResponse)
async def set_category_active(
    category_id: int, data: FlagUpdate, db: AsyncSession = Depends(get_db)
):
    category = await category_service.set_category_active(db, category_id, data.value)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.delete("/{category_id}", status_code=204)
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    deleted = await category_service.delete_category(db, category_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Category not found")
