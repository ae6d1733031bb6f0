"""Counts read-only indices from GET /_all/_settings."""

from __future__ import annotations

from typing import List

import httpx
from prometheus_client.metrics_core import Metric

from snapstat.collector.base import DEFAULT_NAMESPACE, ScrapeCollector
from snapstat.collector.descriptors import (
    DescriptorTable,
    MetricDescriptor,
    build_fq_name,
    describe_table,
    sample_table,
)
from snapstat.collector.http_json import endpoint
from snapstat.responses import IndicesSettingsResponse

SUBSYSTEM = "indices_settings_stats"


def settings_metrics(namespace: str) -> DescriptorTable:
    return (
        MetricDescriptor(
            build_fq_name(namespace, SUBSYSTEM, "read_only_indices"),
            "Current number of read only indices within cluster",
            ("url",),
            value=lambda resp: resp.read_only_count(),
            labels=lambda cluster_url, _resp: [cluster_url],
        ),
    )


class IndicesSettingsCollector(ScrapeCollector):

    subsystem = SUBSYSTEM
    endpoint_name = "indices settings"
    help_name = "Indices Settings"
    url_label = True

    def __init__(
        self,
        client: httpx.Client,
        base_url: str,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        super().__init__(client, base_url, namespace=namespace)
        self._metrics = settings_metrics(namespace)

    def describe_data(self) -> List[Metric]:
        return describe_table(self._metrics)

    def scrape(self) -> List[Metric]:
        resp = self._fetcher.get(
            endpoint(self._base_url, "_all", "_settings"),
            IndicesSettingsResponse.from_json,
        )
        return sample_table(self._metrics, [(self.cluster_url, resp)])
