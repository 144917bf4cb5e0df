from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from supabase import Client

from app.core.config import Settings, get_settings
from app.crud.overview import get_hotel_overview, get_monthly_occupancy, get_week_rates
from app.db.base import get_supabase
from app.schemas.overview import HotelOverviewResponse

router = APIRouter(prefix="/v1.0/admin", tags=["admin"])


@router.get("/overview", response_model=HotelOverviewResponse)
async def hotel_overview(
    week_start: date | None = Query(None, description="First day of the rate week (defaults to today, or the last week of data)"),
    client: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
):
    """Company profile, services, room count, monthly occupancy and one week of rates."""
    week_start = week_start or min(date.today(), settings.data_window_end - timedelta(days=6))
    week_end = week_start + timedelta(days=6)
    if week_start > settings.data_window_end:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"week_start must be on or before {settings.data_window_end.isoformat()}",
        )

    overview = await get_hotel_overview(client)
    monthly = await get_monthly_occupancy(
        client, settings.data_window_start, week_start
    )
    week = await get_week_rates(client, week_start, week_end)
    return HotelOverviewResponse(
        company=overview["company"],
        services=overview["services"],
        total_rooms=overview["total_rooms"],
        monthly_occupancy=monthly,
        week_rates=week,
    )
