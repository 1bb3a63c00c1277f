"""
PipelineRegistry 管理.
アプリ起動時に乗降客数データとクライアントを一度だけ組み立て、全リクエストで再利用する.
"""
import logging
import os
import sys
import threading
from pathlib import Path

# プロジェクトルートを sys.path に追加
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from aiteru.clients.geocoding import NominatimGeocoder
from aiteru.clients.gemini import GeminiEventFactsClient
from aiteru.clients.images import WikipediaImageClient
from aiteru.clients.odpt import OdptClient
from aiteru.clients.venues import YahooLocalSearchClient
from aiteru.favorites import FavoritesRanker, SqliteFavoritesStore
from aiteru.pipeline import CongestionPipeline, StationCongestionService
from aiteru.ridership import RidershipTable, load_survey_csv

logger = logging.getLogger(__name__)

DEFAULT_SURVEY_CSV = PROJECT_ROOT / "data" / "passenger_survey.csv"
DEFAULT_FAVORITES_DB = PROJECT_ROOT / "data" / "favorites.db"


class PipelineRegistry:
    def __init__(self):
        self.service: StationCongestionService | None = None
        self.odpt: OdptClient | None = None
        self.favorites: FavoritesRanker | None = None
        self.survey_source = "none"
        self.lock = threading.RLock()  # Protects reload against concurrent readers

    def load(self):
        odpt = OdptClient()
        ridership = RidershipTable(self._load_passenger_map(odpt))
        self.odpt = odpt
        self.service = StationCongestionService(
            pipeline=CongestionPipeline(ridership),
            geocoder=NominatimGeocoder(),
            venue_search=YahooLocalSearchClient(),
            event_facts=GeminiEventFactsClient(),
            images=WikipediaImageClient(),
        )
        if self.favorites is None:
            db_path = os.getenv("FAVORITES_DB", str(DEFAULT_FAVORITES_DB))
            self.favorites = FavoritesRanker(SqliteFavoritesStore(db_path))
        logger.info("Ridership survey: %d stations (%s)", len(ridership), self.survey_source)

    def _load_passenger_map(self, odpt: OdptClient):
        """ODPT → CSV スナップショット → 空 (全駅既定値) の順に試す."""
        if odpt.configured:
            try:
                passenger_map = odpt.fetch_passenger_survey()
                self.survey_source = "odpt"
                return passenger_map
            except Exception:
                logger.exception("Passenger survey fetch failed, falling back to CSV snapshot")

        csv_path = Path(os.getenv("SURVEY_CSV", str(DEFAULT_SURVEY_CSV)))
        if csv_path.exists():
            self.survey_source = "csv"
            return load_survey_csv(csv_path)

        self.survey_source = "none"
        logger.warning("No passenger survey data; every station uses the default ridership")
        return {}

    def get_service(self) -> StationCongestionService:
        if self.service is None:
            raise RuntimeError("Pipeline not loaded")
        return self.service

    def get_pipeline(self) -> CongestionPipeline:
        return self.get_service().pipeline

    def get_odpt(self) -> OdptClient:
        if self.odpt is None:
            raise RuntimeError("Pipeline not loaded")
        return self.odpt

    def get_favorites(self) -> FavoritesRanker:
        if self.favorites is None:
            raise RuntimeError("Pipeline not loaded")
        return self.favorites


registry = PipelineRegistry()
