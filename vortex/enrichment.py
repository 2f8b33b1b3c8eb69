"""Metadata enrichment for newly catalogued files.

Decides what to look up, asks the metadata provider, and writes the
result back onto the catalog entry:

- Movies take every descriptive field from the provider.
- Episodes take series-level fields (poster, plot, genres, ...) from the
  series lookup, and title/still only from the matching episode, and only
  when the episode actually has them.
- Once one episode of a series carries a provider id, later episodes of
  the same series copy its series-level fields and skip the search.

Provider failures are logged and leave the entry as it was.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .logging_config import get_logger
from .metadata import (
    EpisodeMetadata,
    MetadataProvider,
    NormalizedMetadata,
    ProviderError,
    ProviderNotFound,
)
from .models import CatalogEntry, EnrichmentStatus, Library, LibraryType
from .repository import Repository

logger = get_logger(__name__)


def search_term_for(entry: CatalogEntry) -> str:
    return entry.series_name or Path(entry.file_path).stem


def media_type_hint(library: Library) -> str:
    return "series" if library.library_type == LibraryType.TV_SHOWS else "movie"


def fetch_metadata(
    provider: MetadataProvider, query: str, media_type: str
) -> NormalizedMetadata:
    """Resolve `query` to full metadata.

    A query that already is a provider id goes straight to the details
    call. Otherwise the first search hit is expanded with a details call;
    if that id has vanished upstream the search hit itself is used.
    """
    provider_id = provider.parse_id(query)
    if provider_id is not None:
        return provider.get_details(provider_id, media_type)

    results = provider.search(query, media_type)
    if not results:
        raise ProviderNotFound(f"No {provider.name} results for '{query}'")

    first = results[0]
    first_id = first.provider_ids.get(provider.name)
    if first_id is None:
        return first
    try:
        return provider.get_details(first_id, first.media_type or media_type)
    except ProviderNotFound:
        return first


def find_episode(
    provider: MetadataProvider,
    series_id: str,
    season_number: Optional[int],
    episode_number: Optional[int],
) -> Optional[EpisodeMetadata]:
    if season_number is None or episode_number is None:
        return None
    for episode in provider.get_season_episodes(series_id, season_number):
        if episode.episode_number == episode_number:
            return episode
    return None


def apply_movie_metadata(entry: CatalogEntry, meta: NormalizedMetadata) -> None:
    entry.title = meta.title
    entry.year = meta.year_as_int()
    entry.poster_url = meta.poster_url
    entry.backdrop_url = meta.backdrop_url
    entry.plot = meta.plot
    entry.media_type = meta.media_type or "movie"
    entry.genres = meta.genres
    entry.runtime = meta.runtime
    entry.provider_ids = dict(meta.provider_ids) or None
    entry.enrichment_status = EnrichmentStatus.FULLY_ENRICHED


def apply_series_metadata(entry: CatalogEntry, meta: NormalizedMetadata) -> None:
    """Copy series-level fields. Title and still stay episode-specific."""
    entry.year = meta.year_as_int()
    entry.poster_url = meta.poster_url
    entry.backdrop_url = meta.backdrop_url
    entry.plot = meta.plot
    entry.media_type = meta.media_type or "series"
    entry.series_name = meta.title
    entry.provider_ids = dict(meta.provider_ids) or None
    entry.runtime = meta.runtime
    entry.genres = meta.genres
    entry.enrichment_status = EnrichmentStatus.SERIES_RESOLVED


def apply_cached_series(entry: CatalogEntry, cached: CatalogEntry) -> None:
    entry.year = cached.year
    entry.poster_url = cached.poster_url
    entry.backdrop_url = cached.backdrop_url
    entry.plot = cached.plot
    entry.media_type = cached.media_type or "series"
    entry.series_name = cached.series_name
    entry.provider_ids = dict(cached.provider_ids or {}) or None
    entry.runtime = cached.runtime
    entry.genres = list(cached.genres) if cached.genres is not None else None
    entry.enrichment_status = EnrichmentStatus.SERIES_RESOLVED


def apply_episode_metadata(entry: CatalogEntry, episode: EpisodeMetadata) -> None:
    """Set title and still from an episode without blanking existing values."""
    entry.title = episode.name or entry.title
    entry.still_url = episode.still_url or entry.still_url
    entry.enrichment_status = EnrichmentStatus.FULLY_ENRICHED


def _enrich_episode(
    entry: CatalogEntry, provider: MetadataProvider, series_id: Optional[str]
) -> None:
    if series_id is None:
        return
    try:
        episode = find_episode(
            provider, series_id, entry.season_number, entry.episode_number
        )
    except ProviderError as exc:
        logger.warning(
            f"Episode lookup failed for {entry.series_name} "
            f"S{entry.season_number}E{entry.episode_number}: {exc}"
        )
        return
    if episode is not None:
        apply_episode_metadata(entry, episode)


def enrich_entry(
    entry: CatalogEntry,
    library: Library,
    provider: MetadataProvider,
    repo: Repository,
) -> EnrichmentStatus:
    """Enrich a freshly inserted entry in place and return its new status.

    The entry is flushed through `repo`; committing is left to the caller.
    """
    hint = media_type_hint(library)
    is_series = hint == "series"

    if is_series and entry.series_name:
        cached = repo.find_series_metadata(entry.series_name)
        series_id = (cached.provider_ids or {}).get(provider.name) if cached else None
        if series_id is not None:
            apply_cached_series(entry, cached)
            _enrich_episode(entry, provider, series_id)
            repo.save_entry(entry)
            return entry.enrichment_status

    query = search_term_for(entry)
    try:
        meta = fetch_metadata(provider, query, hint)
    except ProviderError as exc:
        logger.warning(f"Could not fetch metadata for '{query}': {exc}")
        return entry.enrichment_status

    if is_series:
        apply_series_metadata(entry, meta)
        _enrich_episode(entry, provider, meta.provider_ids.get(provider.name))
    else:
        apply_movie_metadata(entry, meta)

    repo.save_entry(entry)
    return entry.enrichment_status
