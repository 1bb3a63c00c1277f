# -*- coding: utf-8 -*-
"""
駅別乗降客数 (RidershipProfile) と時間帯重みテーブル.

Survey figures come from the ODPT PassengerSurvey API (JR East). The survey
reports one direction only, so the looked-up figure is doubled to approximate
boarding + alighting. Stations missing from the survey get a fixed policy
default that is always flagged with ``is_default=True``.
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

from aiteru.models import RidershipProfile, TimeWeightTable

logger = logging.getLogger(__name__)

# 調査データが無い駅に使う既定値 (実測値ではない)
DEFAULT_DAILY_PASSENGERS = 25000

# 片方向の調査値 → 乗車+降車
SURVEY_DIRECTION_FACTOR = 2

DEFAULT_TIME_WEIGHTS = TimeWeightTable.from_ranges([
    (0, 7, 0.01),    # 早朝
    (7, 10, 0.12),   # 朝ラッシュ
    (10, 17, 0.05),  # 日中
    (17, 20, 0.12),  # 夕ラッシュ
    (20, 24, 0.05),  # 夜間
])

SURVEY_CSV_COLUMNS = ("station_id", "survey_year", "passenger_journeys")


def build_passenger_map(survey_records: Iterable[Mapping]) -> Dict[str, int]:
    """
    ODPT PassengerSurvey レスポンスから {station_id: 最新年度の乗降人員} を作る.

    - 年度が厳密に大きいものだけが置き換わる (同年度は先に出現した値を保持)
    - 最新値が 0 以下のレコードは調査なしとして扱う
    - 1レコードに複数の駅IDが含まれる場合はそれぞれに登録する
    """
    passenger_map: Dict[str, int] = {}
    for record in survey_records:
        if not isinstance(record, Mapping):
            continue
        surveys = record.get("odpt:passengerSurveyObject") or []
        latest = None
        for survey in surveys:
            if not isinstance(survey, Mapping):
                continue
            year = _as_int(survey.get("odpt:surveyYear"))
            if year is None:
                continue
            if latest is None or year > latest[0]:
                latest = (year, _as_int(survey.get("odpt:passengerJourneys")) or 0)
        if latest is None or latest[1] <= 0:
            continue
        for station_id in record.get("odpt:station") or []:
            passenger_map[str(station_id)] = latest[1]
    return passenger_map


def load_survey_csv(path) -> Dict[str, int]:
    """
    乗降人員のCSVスナップショット (station_id, survey_year, passenger_journeys) を読む.

    idxmax() returns the first occurrence of the maximum, which keeps the
    first-seen row among equal survey years.
    """
    csv_path = Path(path)
    df = pd.read_csv(csv_path, encoding="utf-8-sig", dtype={"station_id": str})
    missing = [c for c in SURVEY_CSV_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"survey CSV is missing columns: {', '.join(missing)}")

    df = df.dropna(subset=["station_id", "survey_year"])
    df["survey_year"] = pd.to_numeric(df["survey_year"], errors="coerce")
    df["passenger_journeys"] = pd.to_numeric(df["passenger_journeys"], errors="coerce").fillna(0)
    df = df.dropna(subset=["survey_year"]).reset_index(drop=True)
    if df.empty:
        return {}

    latest = df.loc[df.groupby("station_id", sort=False)["survey_year"].idxmax()]
    latest = latest[latest["passenger_journeys"] > 0]
    logger.info("Passenger survey CSV: %d rows -> %d stations", len(df), len(latest))
    return {
        str(row.station_id): int(row.passenger_journeys)
        for row in latest.itertuples(index=False)
    }


class RidershipTable:
    """駅ID → RidershipProfile の参照テーブル (リクエスト中は読み取り専用)."""

    def __init__(self, passenger_map: Optional[Mapping[str, int]] = None,
                 default_passengers: int = DEFAULT_DAILY_PASSENGERS):
        self._passengers = dict(passenger_map or {})
        self.default_passengers = default_passengers

    def __len__(self):
        return len(self._passengers)

    def __contains__(self, station_id):
        return station_id in self._passengers

    def lookup(self, station_id: Optional[str]) -> RidershipProfile:
        journeys = self._passengers.get(station_id) if station_id else None
        if journeys is None:
            return RidershipProfile(
                station_id=station_id or "",
                daily_passengers=self.default_passengers,
                is_default=True,
            )
        return RidershipProfile(
            station_id=station_id,
            daily_passengers=max(0, int(journeys)) * SURVEY_DIRECTION_FACTOR,
            is_default=False,
        )


def _as_int(value):
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
