from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db
from newsdesk.schemas import DashboardStats
from newsdesk.services import dashboard_service

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardStats)
async def get_dashboard(
    start: datetime | None = Query(None, description="Lower bound of the publication window."),
    end: datetime | None = Query(None, description="Upper bound of the publication window."),
    db: AsyncSession = Depends(get_db),
):
    start, end = dashboard_service.as_utc(start), dashboard_service.as_utc(end)
    if start and end and start > end:
        raise HTTPException(status_code=422, detail="start must not be after end")
    return await dashboard_service.get_dashboard_stats(db, start=start, end=end)
