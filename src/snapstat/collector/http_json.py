"""
One GET, one JSON decode. Shared by every collector.

The httpx client is built by the caller (timeouts, TLS, auth all live
there), so nothing here retries or times out on its own. A client timeout
just shows up as a FetchError.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, TypeVar

import httpx
from prometheus_client import Counter

from snapstat.errors import FetchError, ParseError

log = logging.getLogger(__name__)

T = TypeVar("T")


def endpoint(base_url: httpx.URL, *parts: str) -> httpx.URL:
    """Append path segments to the base URL, keeping any path prefix it has.

    endpoint(URL("http://es:9200/proxy"), "_snapshot", "backups", "_all")
    -> http://es:9200/proxy/_snapshot/backups/_all
    """
    segments = [base_url.path.strip("/")] + [p.strip("/") for p in parts]
    return base_url.copy_with(path="/" + "/".join(s for s in segments if s))


class JSONFetcher:
    """GETs a URL and decodes the body, counting decode failures.

    `parse_failures` is owned by the collector using this fetcher; it is
    incremented whenever a body can't be decoded, no matter who asked.
    """

    def __init__(self, client: httpx.Client, parse_failures: Counter):
        self._client = client
        self._parse_failures = parse_failures

    def get(self, url: httpx.URL, decode: Callable[[Any], T]) -> T:
        try:
            with self._client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise FetchError(
                        str(url),
                        f"HTTP request failed with code {response.status_code}",
                        status_code=response.status_code,
                    )
                body = response.read()
        except httpx.HTTPError as e:
            raise FetchError(str(url), f"failed to get from {url}: {e}") from e

        try:
            return decode(json.loads(body))
        except (ValueError, OverflowError, RecursionError) as e:
            # JSONDecodeError is a ValueError; absurdly deep nesting is a RecursionError
            self._parse_failures.inc()
            log.debug("Decode failed for %s: %s", url, e)
            raise ParseError(str(url), str(e)) from e
