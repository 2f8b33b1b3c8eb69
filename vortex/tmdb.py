"""TMDB metadata provider.

Talks to the TMDB v3 REST API with `requests`. Every failure surfaces as a
`ProviderError` subclass; callers decide whether it is fatal.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import requests
from pydantic import ValidationError

from .logging_config import get_logger
from .metadata import (
    EpisodeMetadata,
    NormalizedMetadata,
    ProviderAuthError,
    ProviderError,
    ProviderNotFound,
)

logger = get_logger(__name__)

API_BASE = "https://api.themoviedb.org/3"
POSTER_BASE = "https://image.tmdb.org/t/p/w500"
BACKDROP_BASE = "https://image.tmdb.org/t/p/original"

PROVIDER_NAME = "tmdb"


def _image_url(base: str, path: Optional[str]) -> Optional[str]:
    return f"{base}{path}" if path else None


def _year(date: Optional[str]) -> Optional[str]:
    return date[:4] if date else None


@contextmanager
def _payload(endpoint: str) -> Iterator[None]:
    """Turn a 2xx response of the wrong shape into a ProviderError."""
    try:
        yield
    except (KeyError, TypeError, AttributeError, ValidationError) as exc:
        raise ProviderError(f"TMDB {endpoint} returned an unexpected payload: {exc!r}") from exc


class TmdbProvider:
    name = PROVIDER_NAME

    def __init__(
        self,
        api_key: str,
        language: str = "en-US",
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or ""
        self.language = language
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, metadata_config) -> "TmdbProvider":
        return cls(
            api_key=metadata_config.tmdb_api_key,
            language=metadata_config.language,
            timeout=metadata_config.timeout,
        )

    def _get(self, endpoint: str, **params: Any) -> Dict[str, Any]:
        if not self.api_key.strip():
            raise ProviderAuthError("TMDB API key not set")

        url = f"{API_BASE}/{endpoint}"
        query = {"api_key": self.api_key, "language": self.language, **params}
        try:
            r = self.session.get(url, params=query, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"TMDB request to {endpoint} failed: {exc}") from exc

        if r.status_code == 404:
            raise ProviderNotFound(f"TMDB has no record at {endpoint}")
        if r.status_code in (401, 403):
            raise ProviderAuthError(f"TMDB rejected the API key ({r.status_code})")
        if not 200 <= r.status_code < 300:
            raise ProviderError(f"TMDB {endpoint} returned HTTP {r.status_code}")

        try:
            return r.json()
        except ValueError as exc:
            raise ProviderError(f"TMDB {endpoint} returned invalid JSON") from exc

    def parse_id(self, query: str) -> Optional[str]:
        candidate = query.strip()
        return candidate if candidate.isdigit() else None

    def search(
        self, query: str, media_type: Optional[str] = None
    ) -> List[NormalizedMetadata]:
        if media_type == "movie":
            endpoint, default_type = "search/movie", "movie"
        elif media_type in ("series", "tv"):
            endpoint, default_type = "search/tv", "series"
        else:
            endpoint, default_type = "search/multi", None

        data = self._get(endpoint, query=query)
        with _payload(endpoint):
            results = self._parse_search(data, query, default_type)

        logger.debug(f"TMDB search '{query}' ({endpoint}): {len(results)} results")
        return results

    def get_details(
        self, provider_id: str, media_type: Optional[str] = None
    ) -> NormalizedMetadata:
        if media_type == "movie":
            return self._parse_details(self._get(f"movie/{provider_id}"), "movie", provider_id)
        if media_type in ("series", "tv"):
            return self._parse_details(self._get(f"tv/{provider_id}"), "series", provider_id)

        # No hint: a movie id is tried first, then a tv id
        try:
            return self._parse_details(self._get(f"movie/{provider_id}"), "movie", provider_id)
        except ProviderNotFound:
            return self._parse_details(self._get(f"tv/{provider_id}"), "series", provider_id)

    def get_season_episodes(
        self, series_id: str, season_number: int
    ) -> List[EpisodeMetadata]:
        endpoint = f"tv/{series_id}/season/{season_number}"
        data = self._get(endpoint)
        with _payload(endpoint):
            return self._parse_episodes(data, season_number)

    def _parse_search(
        self, data: Dict[str, Any], query: str, default_type: Optional[str]
    ) -> List[NormalizedMetadata]:
        results = []
        for item in data.get("results") or []:
            item_type = item.get("media_type")
            if item_type == "tv":
                kind = "series"
            elif item_type == "movie":
                kind = "movie"
            elif item_type is None and default_type:
                kind = default_type
            else:
                # people and collections from search/multi
                continue

            results.append(
                NormalizedMetadata(
                    title=item.get("title") or item.get("name") or query,
                    year=_year(item.get("release_date") or item.get("first_air_date")),
                    plot=item.get("overview") or None,
                    poster_url=_image_url(POSTER_BASE, item.get("poster_path")),
                    backdrop_url=_image_url(BACKDROP_BASE, item.get("backdrop_path")),
                    media_type=kind,
                    provider_ids={PROVIDER_NAME: str(item["id"])},
                    rating=item.get("vote_average"),
                )
            )
        return results

    def _parse_episodes(
        self, data: Dict[str, Any], season_number: int
    ) -> List[EpisodeMetadata]:
        return [
            EpisodeMetadata(
                id=str(ep.get("id") or ep["episode_number"]),
                episode_number=ep["episode_number"],
                season_number=season_number,
                name=ep.get("name") or None,
                overview=ep.get("overview") or None,
                still_url=_image_url(POSTER_BASE, ep.get("still_path")),
                air_date=ep.get("air_date"),
            )
            for ep in data.get("episodes") or []
            if ep.get("episode_number") is not None
        ]

    def _parse_details(
        self, data: Dict[str, Any], media_type: str, provider_id: str
    ) -> NormalizedMetadata:
        with _payload(f"{media_type} details for {provider_id}"):
            return self._build_details(data, media_type, provider_id)

    def _build_details(
        self, data: Dict[str, Any], media_type: str, provider_id: str
    ) -> NormalizedMetadata:
        runtime = data.get("runtime")
        if runtime is None:
            run_times = data.get("episode_run_time") or []
            runtime = run_times[0] if run_times else None

        genres = [g["name"] for g in data.get("genres") or [] if g.get("name")]

        return NormalizedMetadata(
            title=data.get("title") or data.get("name") or "Unknown",
            year=_year(data.get("release_date") or data.get("first_air_date")),
            plot=data.get("overview") or None,
            poster_url=_image_url(POSTER_BASE, data.get("poster_path")),
            backdrop_url=_image_url(BACKDROP_BASE, data.get("backdrop_path")),
            media_type=media_type,
            provider_ids={PROVIDER_NAME: str(data.get("id") or provider_id)},
            genres=genres or None,
            runtime=runtime,
            rating=data.get("vote_average"),
        )
