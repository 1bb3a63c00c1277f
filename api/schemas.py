from pydantic import BaseModel, Field
from typing import List, Optional


DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


# --- Station catalogue ---

class RailwayItem(BaseModel):
    label: str
    value: str
    color: Optional[str] = None
    code: Optional[str] = None


class StationItem(BaseModel):
    label: str
    value: str


# --- Venue search ---

class CoordinatesItem(BaseModel):
    lat: float
    lon: float


class VenueItem(BaseModel):
    id: str
    name: str
    address: str = ""
    category: str = ""


class VenueSearchResponse(BaseModel):
    search_station: str
    coordinates: CoordinatesItem
    count: int
    venues: List[VenueItem]


# --- Congestion ---

class EventsRequest(BaseModel):
    # 欠落は 422 ではなく 400 で返すため Optional にしてルーター側で検証する
    station_name: Optional[str] = Field(None, max_length=50)
    target_date: Optional[str] = Field(None, max_length=10)
    facility_list: Optional[List[str]] = None
    station_id: Optional[str] = Field(None, max_length=100)


class CongestionRequest(BaseModel):
    station_id: str = Field(min_length=1, max_length=100)
    station_name: str = Field(min_length=1, max_length=50)
    date: str = Field(pattern=DATE_PATTERN)


class CongestionWindowItem(BaseModel):
    start_hour: int = Field(ge=0, le=24)
    end_hour: int = Field(ge=0, le=24)
    label: str


class ScoredEventItem(BaseModel):
    event_name: Optional[str] = None
    venue_id: Optional[str] = None
    estimated_attendance: int
    scale: int = Field(ge=1, le=10)
    reason: str
    congestion_predictions: List[CongestionWindowItem]


class FacilityEvents(BaseModel):
    facility_name: str
    events: List[ScoredEventItem]


class TimelineMemberItem(BaseModel):
    venue_name: str
    event_name: Optional[str] = None
    scale: int


class TimelineGroupItem(BaseModel):
    start_hour: int
    end_hour: int
    label: str
    total_scale: int = Field(ge=1, le=10)
    member_count: int
    member_events: List[TimelineMemberItem]


class RidershipItem(BaseModel):
    station_id: str
    daily_passengers: int
    is_default: bool


class EventsResponse(BaseModel):
    station_name: str
    target_date: str
    ridership: RidershipItem
    facilities: List[FacilityEvents]
    timeline: List[TimelineGroupItem]


class CongestionResponse(EventsResponse):
    station_id: str
    coordinates: CoordinatesItem
    image_url: Optional[str] = None
    venues: List[VenueItem]


# --- Favorites ---

class FavoriteRequest(BaseModel):
    railway: str = Field(min_length=1, max_length=100)
    station: str = Field(min_length=1, max_length=100)


class FavoriteItem(BaseModel):
    railway: str
    station: str
    count: int


class FavoritesResponse(BaseModel):
    favorites: List[FavoriteItem]
