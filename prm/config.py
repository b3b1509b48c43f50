# prm/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# San Francisco, used when no location is known for the user
DEFAULT_LAT = 37.7749
DEFAULT_LNG = -122.4194


@dataclass(frozen=True)
class AppConfig:
    database_url: str

    # Map view
    default_lat: float
    default_lng: float
    map_zoom: int
    map_style: str

    # API
    cors_origins: tuple
    log_level: str

    # Local UI settings file (last view, sidebar state)
    settings_file: str

    @property
    def default_center(self) -> tuple:
        return (self.default_lat, self.default_lng)


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def _getfloat(name: str, default: float) -> float:
    raw = _getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_config() -> AppConfig:
    """
    Centralized config: the only place env vars are read.
    Loads `.env` if present.
    """
    load_dotenv(override=False)

    origins = _getenv("PRM_CORS_ORIGINS", "http://localhost:8501,http://127.0.0.1:8501") or ""

    return AppConfig(
        database_url=_getenv("PRM_DATABASE_URL", "sqlite:///prm.db") or "sqlite:///prm.db",
        default_lat=_getfloat("PRM_DEFAULT_LAT", DEFAULT_LAT),
        default_lng=_getfloat("PRM_DEFAULT_LNG", DEFAULT_LNG),
        map_zoom=int(_getfloat("PRM_MAP_ZOOM", 11)),
        map_style=_getenv("PRM_MAP_STYLE", "carto-darkmatter") or "carto-darkmatter",
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=(_getenv("PRM_LOG_LEVEL", "INFO") or "INFO").upper(),
        settings_file=_getenv("PRM_SETTINGS_FILE", "settings.json") or "settings.json",
    )
