"""Metadata provider capability for Vortex.

Providers return `NormalizedMetadata` / `EpisodeMetadata` regardless of the
upstream API shape; the enrichment layer only ever sees these models.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel


class ProviderError(Exception):
    """A metadata lookup failed (network, HTTP status, bad payload)."""


class ProviderAuthError(ProviderError):
    """The provider has no usable API key."""


class ProviderNotFound(ProviderError):
    """The provider has no record for the requested id or query."""


class NormalizedMetadata(BaseModel):
    """Provider-agnostic title metadata (never stored verbatim)."""

    model_config = {"extra": "ignore"}

    title: str
    year: Optional[str] = None
    plot: Optional[str] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    media_type: Optional[str] = None  # "movie" or "series"
    provider_ids: Dict[str, str] = {}
    genres: Optional[List[str]] = None
    runtime: Optional[int] = None
    rating: Optional[float] = None

    def year_as_int(self) -> Optional[int]:
        if not self.year:
            return None
        try:
            return int(self.year[:4])
        except ValueError:
            return None


class EpisodeMetadata(BaseModel):
    model_config = {"extra": "ignore"}

    id: str
    episode_number: int
    season_number: int
    name: Optional[str] = None
    overview: Optional[str] = None
    still_url: Optional[str] = None
    air_date: Optional[str] = None


class MetadataProvider(Protocol):
    name: str

    def search(
        self, query: str, media_type: Optional[str] = None
    ) -> List[NormalizedMetadata]:
        ...

    def get_details(
        self, provider_id: str, media_type: Optional[str] = None
    ) -> NormalizedMetadata:
        ...

    def get_season_episodes(
        self, series_id: str, season_number: int
    ) -> List[EpisodeMetadata]:
        ...

    def parse_id(self, query: str) -> Optional[str]:
        """Return `query` as a provider id if it looks like one, else None."""
        ...
