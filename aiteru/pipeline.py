# -*- coding: utf-8 -*-
"""
Congestion pipeline
===================
station + date + venues → event facts → EventNormalizer → CongestionScorer
→ IntervalAggregator → timeline.

``CongestionPipeline`` is synchronous and pure apart from the event-fact fetch
it is handed. ``StationCongestionService`` wraps the full request: geocoding,
venue search, then event facts and the representative image fetched
concurrently and joined before scoring.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

from aiteru import aggregator, normalizer, scorer
from aiteru.errors import CoordinatesNotFound, EventPayloadError, InputError
from aiteru.models import (
    Coordinates, RidershipProfile, ScoredEvent, TimelineGroup, TimeWeightTable, Venue,
)
from aiteru.ridership import DEFAULT_TIME_WEIGHTS, RidershipTable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# External capabilities
# ---------------------------------------------------------------------------

class ResolveCoordinates(Protocol):
    def resolve(self, station_name: str) -> Optional[Coordinates]:
        ...


class SearchVenues(Protocol):
    def search(self, lat: float, lon: float, radius: float = ..., categories: str = ...) -> List[Venue]:
        ...


class FetchEventFacts(Protocol):
    def fetch(self, station_name: str, target_date: str, facility_list: List[str]) -> str:
        ...


class FetchRepresentativeImage(Protocol):
    def fetch(self, lat: float, lon: float, station_name: str) -> Optional[str]:
        ...


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoringParams:
    min_scale: int = aggregator.DEFAULT_MIN_SCALE
    time_weights: TimeWeightTable = DEFAULT_TIME_WEIGHTS


@dataclass(frozen=True)
class CongestionResult:
    profile: RidershipProfile
    venues: List[Tuple[str, List[ScoredEvent]]]
    timeline: List[TimelineGroup]

    @property
    def scored_events(self) -> List[Tuple[str, ScoredEvent]]:
        return [(name, s) for name, events in self.venues for s in events]


class CongestionPipeline:
    def __init__(self, ridership: RidershipTable, params: Optional[ScoringParams] = None):
        self.ridership = ridership
        self.params = params or ScoringParams()

    def evaluate(self, station_id: Optional[str], raw_payload,
                 venues: Sequence[Venue] = ()) -> CongestionResult:
        """
        Score an already-fetched event payload.

        Raises EventPayloadError only when the payload is empty or not
        structured data at all; anything partially readable is repaired.
        """
        if normalizer.load_payload(raw_payload) is None:
            if raw_payload is None or isinstance(raw_payload, str):
                text = raw_payload or ""
            else:
                text = repr(raw_payload)
            if not text.strip():
                logger.error("Event payload was empty")
                raise EventPayloadError("Gemini APIからの応答が空でした。", response_text=text)
            logger.error("Event payload could not be parsed: %.200s", text)
            raise EventPayloadError("Gemini APIからの応答が不正なJSON形式でした。", response_text=text)

        profile = self.ridership.lookup(station_id)
        table = self.params.time_weights
        scored_venues = [
            (venue_name, [scorer.score(event, profile, table) for event in events])
            for venue_name, events in normalizer.normalize_facilities(raw_payload, venues)
        ]
        timeline = aggregator.aggregate(
            [(name, s) for name, events in scored_venues for s in events],
            min_scale=self.params.min_scale,
        )
        return CongestionResult(profile=profile, venues=scored_venues, timeline=timeline)

    def compute_timeline(self, station_id: Optional[str], station_name: str, target_date: str,
                         venues: Sequence[Venue], event_facts: FetchEventFacts) -> CongestionResult:
        _require(station_name=station_name, target_date=target_date)
        if not venues:
            return CongestionResult(self.ridership.lookup(station_id), [], [])
        raw = event_facts.fetch(station_name, target_date, [v.name for v in venues])
        return self.evaluate(station_id, raw, venues)


# ---------------------------------------------------------------------------
# Full request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StationReport:
    station_id: str
    station_name: str
    target_date: str
    coordinates: Coordinates
    venues: List[Venue]
    result: CongestionResult
    image_url: Optional[str] = None


@dataclass
class StationCongestionService:
    pipeline: CongestionPipeline
    geocoder: ResolveCoordinates
    venue_search: SearchVenues
    event_facts: FetchEventFacts
    images: Optional[FetchRepresentativeImage] = None
    search_kwargs: dict = field(default_factory=dict)

    def find_venues(self, station_name: str) -> Tuple[Coordinates, List[Venue]]:
        _require(station_name=station_name)
        coords = self.geocoder.resolve(station_name)
        if coords is None:
            raise CoordinatesNotFound(f"「{station_name}」の座標が見つかりません。")
        venues = self.venue_search.search(coords.lat, coords.lon, **self.search_kwargs)
        return coords, venues

    async def analyze(self, station_id: str, station_name: str, target_date: str) -> StationReport:
        _require(station_id=station_id, station_name=station_name, target_date=target_date)
        coords, venues = await asyncio.to_thread(self.find_venues, station_name)

        # イベント情報と画像は互いに依存しないので並行に取得する
        timeline_task = asyncio.to_thread(
            self.pipeline.compute_timeline,
            station_id, station_name, target_date, venues, self.event_facts,
        )
        if self.images is not None:
            image_task = asyncio.to_thread(self.images.fetch, coords.lat, coords.lon, station_name)
            result, image_url = await asyncio.gather(timeline_task, image_task)
        else:
            result, image_url = await timeline_task, None

        logger.info(
            "Analyzed %s on %s: %d venues, %d timeline groups",
            station_name, target_date, len(venues), len(result.timeline),
        )
        return StationReport(
            station_id=station_id,
            station_name=station_name,
            target_date=target_date,
            coordinates=coords,
            venues=venues,
            result=result,
            image_url=image_url,
        )


def _require(**fields):
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise InputError(f"{', '.join(missing)} is required.")
