"""Common utilities for aiteru."""
import re
import unicodedata

import pandas as pd


def normalize_venue_name(name):
    """Normalize Japanese facility names for matching and prefix dedup."""
    if name is None or (not isinstance(name, str) and pd.isna(name)):
        return ""
    name = unicodedata.normalize("NFKC", str(name))
    name = re.sub(r"\([^)]*\)", "", name)
    name = re.sub(r"\[[^\]]*\]", "", name)
    name = re.sub(r"【[^】]*】", "", name)
    name = re.sub(r"\s+", "", name)
    return name.lower().strip()


def normalize_station_name(name):
    """「新宿駅」→「新宿」"""
    name = normalize_venue_name(name)
    return re.sub(r"駅$", "", name)
