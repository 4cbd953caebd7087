from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

import requests
from flask import current_app

logger = logging.getLogger(__name__)


class GeocoderError(Exception):
    """Raised when the address lookup endpoint cannot be queried."""


@dataclass(frozen=True)
class AddressSuggestion:
    """One address proposed by the geocoder."""

    label: str
    coordinates: Tuple[float, float]

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "coordinates": list(self.coordinates)}


@dataclass(frozen=True)
class SearchResult:
    term: str
    suggestions: Tuple[AddressSuggestion, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "term": self.term,
            "results": [s.to_dict() for s in self.suggestions],
            "error": self.error,
        }


class Geocoder(Protocol):
    def fetch(self, term: str) -> Tuple[AddressSuggestion, ...]:
        ...


def parse_suggestions(payload: Any) -> Tuple[AddressSuggestion, ...]:
    """Map a GeoJSON FeatureCollection answer to suggestions, skipping bad entries."""
    if not isinstance(payload, Mapping):
        raise GeocoderError("Geocoder answer is not a JSON object.")
    suggestions = []
    for feature in payload.get("features") or []:
        try:
            properties = feature.get("properties") or {}
            lon, lat = feature["geometry"]["coordinates"][:2]
            label = ", ".join(
                str(part) for part in (properties.get("name"), properties.get("city")) if part
            )
            suggestions.append(AddressSuggestion(label=label, coordinates=(float(lon), float(lat))))
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.debug("Ignoring malformed geocoder feature: %r", feature)
    return tuple(suggestions)


class AddressGeocoder(Geocoder):
    """Client of an api-adresse.data.gouv.fr compatible search endpoint."""

    def __init__(
        self,
        url: str,
        limit: int = 5,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._limit = limit
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_app_config(cls) -> "AddressGeocoder":
        config = current_app.config
        return cls(
            url=config["GEOCODER_URL"],
            limit=config["GEOCODER_LIMIT"],
            timeout=config["GEOCODER_TIMEOUT"],
        )

    def fetch(self, term: str) -> Tuple[AddressSuggestion, ...]:
        try:
            response = self._session.get(
                self._url,
                params={"q": term, "limit": self._limit},
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise GeocoderError(f"Address lookup failed for {term!r}: {exc}") from exc
        return parse_suggestions(payload)


class AddressSearchService:
    """
    Address lookups with a bounded in-process cache.

    The cache belongs to the service instance and only keeps successful
    answers; a failed lookup is retried the next time the term is searched.
    """

    def __init__(self, geocoder: Geocoder, cache_size: int = 128) -> None:
        self._geocoder = geocoder
        self._cached_fetch = lru_cache(maxsize=cache_size)(geocoder.fetch)

    @classmethod
    def from_app_config(cls, geocoder: Optional[Geocoder] = None) -> "AddressSearchService":
        return cls(
            geocoder=geocoder or AddressGeocoder.from_app_config(),
            cache_size=current_app.config["SEARCH_CACHE_SIZE"],
        )

    def lookup(self, term: str) -> SearchResult:
        term = (term or "").strip()
        if not term:
            return SearchResult(term=term)
        try:
            suggestions = self._cached_fetch(term)
        except GeocoderError as exc:
            logger.warning("Address search unavailable: %s", exc)
            return SearchResult(term=term, error=str(exc))
        return SearchResult(term=term, suggestions=suggestions)

    def cache_info(self):
        return self._cached_fetch.cache_info()

    def clear_cache(self) -> None:
        self._cached_fetch.cache_clear()


class SearchSession:
    """
    Search box state of one editor.

    Each search takes a generation number when it starts. When a newer search
    has started by the time an answer comes back, the answer is stale: it is
    dropped and ``search`` returns None.
    """

    def __init__(self, service: AddressSearchService) -> None:
        self._service = service
        self._lock = threading.Lock()
        self._generation = 0
        self.latest: Optional[SearchResult] = None

    def search(self, term: str) -> Optional[SearchResult]:
        with self._lock:
            self._generation += 1
            generation = self._generation

        result = self._service.lookup(term)

        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding stale address search for %r", term)
                return None
            self.latest = result
        return result

    def suggestions(self) -> List[AddressSuggestion]:
        return list(self.latest.suggestions) if self.latest else []
