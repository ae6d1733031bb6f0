"""
Base collector for Elasticsearch endpoints.

A collector plugs into a prometheus_client registry as a custom collector:
the registry calls describe() once to learn metric names, then collect()
on every /metrics request. Each collector owns its own up / total_scrapes /
json_parse_failures handles so two collectors never share bookkeeping.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List

import httpx
from prometheus_client import Counter, Gauge
from prometheus_client.metrics_core import Metric

from snapstat.collector.http_json import JSONFetcher
from snapstat.errors import SnapstatError

log = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "elasticsearch"


class ScrapeCollector(ABC):
    """Runs one scrape cycle per collect() and tracks its own health."""

    subsystem: str = ""
    endpoint_name: str = ""
    # as it appears in the up / total_scrapes help text
    help_name: str = ""
    # label bookkeeping metrics with url=<cluster url>
    url_label: bool = False

    def __init__(
        self,
        client: httpx.Client,
        base_url: str,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        self._client = client
        self._base_url = httpx.URL(base_url)
        self._namespace = namespace

        labelnames = ("url",) if self.url_label else ()
        self._up = Gauge(
            "up",
            f"Was the last scrape of the ElasticSearch {self.help_name} endpoint successful.",
            labelnames,
            namespace=namespace,
            subsystem=self.subsystem,
            registry=None,
        )
        self._total_scrapes = Counter(
            "total_scrapes",
            f"Current total ElasticSearch {self.help_name} scrapes.",
            labelnames,
            namespace=namespace,
            subsystem=self.subsystem,
            registry=None,
        )
        self._json_parse_failures = Counter(
            "json_parse_failures",
            "Number of errors while parsing JSON.",
            labelnames,
            namespace=namespace,
            subsystem=self.subsystem,
            registry=None,
        )
        # children for labelled metrics, the metrics themselves otherwise
        self._up_value, self._scrapes_value, self._parse_failures_value = (
            m.labels(self.cluster_url) if self.url_label else m
            for m in (self._up, self._total_scrapes, self._json_parse_failures)
        )
        self._fetcher = JSONFetcher(client, self._parse_failures_value)

    @property
    def cluster_url(self) -> str:
        return str(self._base_url)

    @abstractmethod
    def describe_data(self) -> List[Metric]:
        """Empty families for every data metric this collector can emit."""
        ...

    @abstractmethod
    def scrape(self) -> List[Metric]:
        """Fetch and build data metrics. Raises SnapstatError if the scrape is unusable."""
        ...

    def name(self) -> str:
        return f"{self.endpoint_name} ({self._base_url})"

    def describe(self) -> List[Metric]:
        return self.describe_data() + self._bookkeeping(describe=True)

    def collect(self) -> List[Metric]:
        """One scrape cycle: data families first, bookkeeping last.

        A SnapstatError means the scrape is down: up=0 and only bookkeeping
        is returned. Any other exception also sets up=0 before it propagates,
        so the next read of the registry never sees a stale up=1.
        """
        self._scrapes_value.inc()

        data: List[Metric] = []
        try:
            data = self.scrape()
        except SnapstatError as e:
            self._up_value.set(0)
            log.warning("Failed to fetch and decode %s stats: %s", self.endpoint_name, e)
        except Exception:
            self._up_value.set(0)
            log.exception("Unexpected error while scraping %s", self.endpoint_name)
            raise
        else:
            self._up_value.set(1)
            log.debug("Scraped %s: %d families", self.endpoint_name, len(data))

        return data + self._bookkeeping()

    def _bookkeeping(self, describe: bool = False) -> List[Metric]:
        metrics: List[Metric] = []
        for handle in (self._up, self._total_scrapes, self._json_parse_failures):
            metrics.extend(handle.describe() if describe else handle.collect())
        return metrics
