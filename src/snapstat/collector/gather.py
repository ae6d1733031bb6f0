"""
Two-phase data gathering: find the repositories, then fetch each one.

Discovery failing is fatal for the scrape. A single repository failing is
not -- it gets logged and left out so the others still report.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, TypeVar

import httpx

from snapstat.collector.http_json import JSONFetcher, endpoint
from snapstat.errors import SnapstatError
from snapstat.responses import RepositoriesResponse

log = logging.getLogger(__name__)

T = TypeVar("T")


def discover_repositories(fetcher: JSONFetcher, base_url: httpx.URL) -> List[str]:
    """Names of all registered snapshot repositories. Errors propagate."""
    repos = fetcher.get(endpoint(base_url, "_snapshot"), RepositoriesResponse.from_json)
    return repos.names()


def fetch_each(
    fetcher: JSONFetcher,
    ids: Iterable[str],
    url_for: Callable[[str], httpx.URL],
    decode: Callable[[Any], T],
) -> Dict[str, T]:
    """Fetch one payload per id. Ids whose fetch fails are simply missing."""
    results: Dict[str, T] = {}
    for entity_id in ids:
        try:
            results[entity_id] = fetcher.get(url_for(entity_id), decode)
        except SnapstatError as e:
            log.warning("Skipping %s: %s", entity_id, e)
            continue
    return results
