"""
pytest 設定ファイル
"""
import os
import sys
from pathlib import Path

import pytest

# プロジェクトルートを sys.path に追加
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

MOCK_DIR = PROJECT_ROOT / "tests" / "mock_data"

# テスト中は外部APIに出ない: キーを外し、乗降客数は CSV フィクスチャから読む
for _key in ("GEMINI_API_KEY", "YAHOO_CLIENT_ID", "ODPT_CONSUMER_KEY", "REDIS_URL"):
    os.environ.pop(_key, None)
os.environ["SURVEY_CSV"] = str(MOCK_DIR / "passenger_survey.csv")
os.environ["RATE_LIMIT_PER_MINUTE"] = "1000"

from aiteru.models import Coordinates, Venue  # noqa: E402
from aiteru.ridership import DEFAULT_TIME_WEIGHTS, load_survey_csv, RidershipTable  # noqa: E402

SUIDOBASHI = "odpt.Station:JR-East.ChuoSobuLocal.Suidobashi"


class FakeGeocoder:
    def __init__(self, coords=None):
        self.coords = coords
        self.calls = []

    def resolve(self, station_name):
        self.calls.append(station_name)
        return self.coords


class FakeVenueSearch:
    def __init__(self, venues):
        self.venues = list(venues)
        self.calls = []

    def search(self, lat, lon, **kwargs):
        self.calls.append((lat, lon))
        return list(self.venues)


class FakeEventFacts:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def fetch(self, station_name, target_date, facility_list):
        self.calls.append((station_name, target_date, list(facility_list)))
        return self.payload


class FakeImages:
    def __init__(self, url="https://upload.wikimedia.org/example.jpg"):
        self.url = url
        self.calls = []

    def fetch(self, lat, lon, station_name):
        self.calls.append((lat, lon, station_name))
        return self.url


@pytest.fixture(scope="session")
def event_payload_text():
    return (MOCK_DIR / "event_payload.txt").read_text(encoding="utf-8")


@pytest.fixture
def ridership_table():
    return RidershipTable(load_survey_csv(MOCK_DIR / "passenger_survey.csv"))


@pytest.fixture
def time_weights():
    return DEFAULT_TIME_WEIGHTS


@pytest.fixture
def suidobashi_venues():
    return [
        Venue(id="v1", name="東京ドーム", address="東京都文京区後楽1-3-61", category="ドーム"),
        Venue(id="v2", name="後楽園ホール", address="東京都文京区後楽1-3-61", category="ホール"),
        Venue(id="v3", name="文京シビックホール", address="東京都文京区春日1-16-21", category="ホール"),
    ]


@pytest.fixture
def suidobashi_coords():
    return Coordinates(lat=35.7021, lon=139.7533, display_name="水道橋駅, 文京区, 東京都")


@pytest.fixture(scope="session")
def test_client(tmp_path_factory):
    """FastAPI テストクライアント"""
    from fastapi.testclient import TestClient

    os.environ["FAVORITES_DB"] = str(tmp_path_factory.mktemp("favorites") / "favorites.db")
    from api.app import app
    with TestClient(app) as client:
        yield client
