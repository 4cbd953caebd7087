from __future__ import annotations

import os
from typing import Dict, Tuple, Type


def _float_pair(value: str | None, default: Tuple[float, float]) -> Tuple[float, float]:
    if not value:
        return default
    lon, lat = (float(part) for part in value.split(","))
    return lon, lat


class Config:
    """Base application configuration."""

    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI: str = os.getenv(
        "DATABASE_URL",
        os.getenv(
            "SQLALCHEMY_DATABASE_URI",
            "sqlite:///carte.db",
        ),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # Address search (api-adresse.data.gouv.fr compatible endpoint)
    GEOCODER_URL: str = os.getenv("GEOCODER_URL", "https://api-adresse.data.gouv.fr/search/")
    GEOCODER_LIMIT: int = int(os.getenv("GEOCODER_LIMIT", "5"))
    GEOCODER_TIMEOUT: float = float(os.getenv("GEOCODER_TIMEOUT", "10"))
    SEARCH_CACHE_SIZE: int = int(os.getenv("SEARCH_CACHE_SIZE", "128"))

    # Map viewport
    DEFAULT_CENTER: Tuple[float, float] = _float_pair(os.getenv("DEFAULT_CENTER"), (1.7, 46.9))
    DEFAULT_ZOOM: float = float(os.getenv("DEFAULT_ZOOM", "5"))
    SEARCH_ZOOM: float = float(os.getenv("SEARCH_ZOOM", "17"))
    MAP_STYLE_URLS: Dict[str, str] = {
        "ortho": os.getenv(
            "MAP_STYLE_ORTHO_URL",
            "https://raw.githubusercontent.com/etalab/cadastre.data.gouv.fr/master/"
            "components/react-map-gl/styles/ortho.json",
        ),
        "vector": os.getenv(
            "MAP_STYLE_VECTOR_URL",
            "https://raw.githubusercontent.com/etalab/cadastre.data.gouv.fr/master/"
            "components/react-map-gl/styles/vector.json",
        ),
    }


class DevelopmentConfig(Config):
    DEBUG: bool = True


class ProductionConfig(Config):
    DEBUG: bool = False


class TestingConfig(Config):
    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///:memory:"
    SEARCH_CACHE_SIZE: int = 8


CONFIG_MAP: Dict[str, Type[Config]] = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": Config,
}


def resolve_config(config_name: str | None) -> Type[Config]:
    """Return the configuration class for the given name."""
    if not config_name:
        return CONFIG_MAP["default"]
    return CONFIG_MAP.get(config_name, CONFIG_MAP["default"])
