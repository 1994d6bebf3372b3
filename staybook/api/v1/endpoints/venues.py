"""
Venue listing, detail and creation endpoints
"""

from typing import Any, List, Optional
from datetime import date
from decimal import Decimal
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.core.database import get_session
from staybook.core.security import get_current_user_id, get_optional_user_id
from staybook.schemas.response import PaginatedResponse, PaginationMeta
from staybook.schemas.venue import VenueCard, VenueCreate, VenueDetail
from staybook.services.venue_query import VenueListParams, parse_feature_list
from staybook.services.venue_service import venue_service

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[VenueCard])
async def list_venues(
    city: Optional[str] = None,
    price_min: Optional[Decimal] = None,
    price_max: Optional[Decimal] = None,
    features: Optional[List[str]] = Query(None, description="Repeat or comma separate"),
    venue_type: Optional[str] = Query(None, alias="type"),
    guests: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_dir: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: Optional[int] = None,
    per_page: Optional[int] = None,
    db: AsyncSession = Depends(get_session),
    current_user_id: Optional[int] = Depends(get_optional_user_id)
) -> Any:
    """
    Search venues with filters, sorting and pagination.
    With both dates given every card carries an availability status.
    """
    params = VenueListParams(
        city=city,
        price_min=price_min,
        price_max=price_max,
        features=parse_feature_list(features),
        type=venue_type,
        guests=guests,
        sort_by=sort_by,
        sort_dir=sort_dir,
        start_date=start_date,
        end_date=end_date,
        current_user_id=current_user_id,
        page=page,
        per_page=per_page,
    )
    items, total, pagination = await venue_service.list_venues(db, params)
    total_pages = pagination.total_pages(total)

    return PaginatedResponse[VenueCard](
        items=items,
        total_count=total,
        pagination=PaginationMeta(
            page=pagination.page,
            per_page=pagination.per_page,
            total=total,
            total_pages=total_pages,
            has_next=pagination.page < total_pages,
            has_prev=pagination.page > 1,
        ),
    )


@router.get("/{venue_id}", response_model=VenueDetail)
async def get_venue(
    venue_id: int,
    db: AsyncSession = Depends(get_session),
    current_user_id: Optional[int] = Depends(get_optional_user_id)
) -> Any:
    """
    Get detailed information about a specific venue
    """
    return await venue_service.get_venue(db, venue_id, current_user_id)


@router.post("/", response_model=VenueCard, status_code=status.HTTP_201_CREATED)
async def create_venue(
    venue_in: VenueCreate,
    db: AsyncSession = Depends(get_session),
    host_id: int = Depends(get_current_user_id)
) -> Any:
    """
    List a new venue hosted by the caller
    """
    return await venue_service.create_venue(db, host_id, venue_in)
