"""
Venue search query composition

Turns an optional bag of listing parameters into a filter predicate, a sort
order, an availability overlap clause and pagination, independent of the
HTTP layer. Each filter rule is a separate builder returning an optional
fragment; the fragments are AND-ed together.
"""

import enum
import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, func
from sqlalchemy.sql.elements import ColumnElement

from staybook.models.venue import Address, Feature, Venue, VenueFeature
from staybook.services.availability import confirmed_overlap_clause

DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 60


class VenueType(str, enum.Enum):
    STUDIO = "studio"
    APARTMENT = "apartment"
    HOUSE = "house"
    VILLA = "villa"


# (min capacity, max capacity); None leaves that side open
TYPE_CAPACITY_RULES: Dict[VenueType, Tuple[Optional[int], Optional[int]]] = {
    VenueType.STUDIO: (None, 2),
    VenueType.APARTMENT: (None, 3),
    VenueType.HOUSE: (4, 8),
    VenueType.VILLA: (9, None),
}


class SortKey(str, enum.Enum):
    PRICE = "price"
    RATING = "rating"
    CAPACITY = "capacity"
    TITLE = "title"
    CREATED_AT = "createdAt"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


# sort key -> (column, default direction)
SORT_CONFIG = {
    SortKey.PRICE: (Venue.price_per_night, SortDirection.ASC),
    SortKey.RATING: (Venue.rating, SortDirection.DESC),
    SortKey.CAPACITY: (Venue.capacity, SortDirection.DESC),
    SortKey.TITLE: (Venue.title, SortDirection.ASC),
    SortKey.CREATED_AT: (Venue.created_at, SortDirection.DESC),
}
DEFAULT_SORT = SortKey.CREATED_AT


@dataclass
class VenueListParams:
    city: Optional[str] = None
    price_min: Optional[Decimal] = None
    price_max: Optional[Decimal] = None
    features: List[str] = field(default_factory=list)
    type: Optional[str] = None
    guests: Optional[int] = None
    sort_by: Optional[str] = None
    sort_dir: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    current_user_id: Optional[int] = None
    page: Optional[int] = None
    per_page: Optional[int] = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None


@dataclass(frozen=True)
class Pagination:
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.per_page) if total else 0


@dataclass
class VenueQuery:
    where: Optional[ColumnElement]
    order_by: List[ColumnElement]
    overlap: Optional[ColumnElement]
    current_user_id: Optional[int]
    pagination: Pagination


def parse_feature_list(values: Optional[Iterable[str]]) -> List[str]:
    """
    Accepts repeated values and/or comma separated lists.
    Blank names are dropped, duplicates (case-insensitive) collapsed.
    """
    names: List[str] = []
    seen = set()
    for value in values or []:
        for part in value.split(","):
            name = part.strip()
            if name and name.lower() not in seen:
                seen.add(name.lower())
                names.append(name)
    return names


def city_filter(params: VenueListParams) -> Optional[ColumnElement]:
    city = (params.city or "").strip()
    if not city:
        return None
    return Venue.address.has(Address.city.icontains(city, autoescape=True))


def price_filter(params: VenueListParams) -> Optional[ColumnElement]:
    bounds = []
    if params.price_min is not None:
        bounds.append(Venue.price_per_night >= params.price_min)
    if params.price_max is not None:
        bounds.append(Venue.price_per_night <= params.price_max)
    if not bounds:
        return None
    return and_(*bounds)


def features_filter(params: VenueListParams) -> Optional[ColumnElement]:
    # A venue must carry every requested feature
    required = [
        Venue.venue_features.any(
            VenueFeature.feature.has(func.lower(Feature.name) == name.lower())
        )
        for name in parse_feature_list(params.features)
    ]
    if not required:
        return None
    return and_(*required)


def capacity_bounds(guests: Optional[int], venue_type: Optional[str]) -> Optional[Tuple[Optional[int], Optional[int]]]:
    """Guests take priority over the type preset; unknown types are ignored"""
    if guests is not None and guests > 0:
        return guests, None
    if venue_type:
        try:
            return TYPE_CAPACITY_RULES[VenueType(venue_type.strip().lower())]
        except ValueError:
            return None
    return None


def capacity_filter(params: VenueListParams) -> Optional[ColumnElement]:
    bounds = capacity_bounds(params.guests, params.type)
    if bounds is None:
        return None
    low, high = bounds
    clauses = []
    if low is not None:
        clauses.append(Venue.capacity >= low)
    if high is not None:
        clauses.append(Venue.capacity <= high)
    return and_(*clauses)


FILTER_BUILDERS: Tuple[Callable[[VenueListParams], Optional[ColumnElement]], ...] = (
    city_filter,
    price_filter,
    features_filter,
    capacity_filter,
)


def build_where(params: VenueListParams) -> Optional[ColumnElement]:
    fragments = [fragment for fragment in (build(params) for build in FILTER_BUILDERS) if fragment is not None]
    if not fragments:
        return None
    return and_(*fragments)


def resolve_sort(sort_by: Optional[str], sort_dir: Optional[str]) -> Tuple[SortKey, SortDirection]:
    """
    Missing or unknown keys fall back to newest first, whatever the
    requested direction.
    """
    try:
        key = SortKey(sort_by) if sort_by else None
    except ValueError:
        key = None
    if key is None:
        return DEFAULT_SORT, SORT_CONFIG[DEFAULT_SORT][1]
    _, default_direction = SORT_CONFIG[key]

    try:
        direction = SortDirection(sort_dir.lower()) if sort_dir else default_direction
    except ValueError:
        direction = default_direction
    return key, direction


def build_order_by(sort_by: Optional[str] = None, sort_dir: Optional[str] = None) -> List[ColumnElement]:
    """
    Primary sort column followed by the venue id in the same direction, so
    ties always come back in a stable order. NULL ratings sort last.
    """
    key, direction = resolve_sort(sort_by, sort_dir)
    column, _ = SORT_CONFIG[key]
    if direction == SortDirection.ASC:
        return [column.asc().nulls_last(), Venue.id.asc()]
    return [column.desc().nulls_last(), Venue.id.desc()]


def build_overlap_filter(start_date: Optional[date], end_date: Optional[date]) -> Optional[ColumnElement]:
    """Only built when both ends of the range are supplied"""
    if start_date is None or end_date is None:
        return None
    return confirmed_overlap_clause(start_date, end_date)


def resolve_pagination(page: Optional[int], per_page: Optional[int]) -> Pagination:
    page = max(page or 1, 1)
    if per_page is None:
        per_page = DEFAULT_PAGE_SIZE
    per_page = min(max(per_page, 1), MAX_PAGE_SIZE)
    return Pagination(page=page, per_page=per_page)


def compose_venue_query(params: VenueListParams) -> VenueQuery:
    return VenueQuery(
        where=build_where(params),
        order_by=build_order_by(params.sort_by, params.sort_dir),
        overlap=build_overlap_filter(params.start_date, params.end_date),
        current_user_id=params.current_user_id,
        pagination=resolve_pagination(params.page, params.per_page),
    )
