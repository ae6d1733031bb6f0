"""
Snapshot repository collector.

Lists the snapshot repositories, fetches every repository's snapshots, and
reports two groups of metrics:

  - per repository: how many snapshots, and when the oldest one started.
    Reported for every repository we could fetch, even an empty one.
  - per latest snapshot: indices, timings, failures and shard counts of the
    last snapshot in the list. Skipped for repositories with no snapshots.

Elasticsearch returns snapshots oldest first, so "latest" is simply the
last element.
"""

from __future__ import annotations

from typing import Dict, List

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
from snapstat.collector.gather import discover_repositories, fetch_each
from snapstat.collector.http_json import endpoint
from snapstat.responses import SnapshotInfo, SnapshotsResponse

SUBSYSTEM = "snapshot_stats"

SNAPSHOT_LABELS = ("repository", "state", "version")
REPOSITORY_LABELS = ("repository",)


def _snapshot_labels(repository: str, snap: SnapshotInfo) -> List[str]:
    return [repository, snap.state, snap.version]


def _repository_labels(repository: str, _resp: SnapshotsResponse) -> List[str]:
    return [repository]


def _oldest_start(resp: SnapshotsResponse) -> float:
    if not resp.snapshots:
        return 0
    return resp.snapshots[0].start_time_in_millis // 1000


def repository_metrics(namespace: str) -> DescriptorTable:
    def fq(name: str) -> str:
        return build_fq_name(namespace, SUBSYSTEM, name)

    return (
        MetricDescriptor(
            fq("number_of_snapshots"),
            "Number of snapshots in a repository",
            REPOSITORY_LABELS,
            value=lambda resp: len(resp.snapshots),
            labels=_repository_labels,
        ),
        MetricDescriptor(
            fq("oldest_snapshot_timestamp"),
            "Timestamp of the oldest snapshot",
            REPOSITORY_LABELS,
            value=_oldest_start,
            labels=_repository_labels,
        ),
    )


def snapshot_metrics(namespace: str) -> DescriptorTable:
    def fq(name: str) -> str:
        return build_fq_name(namespace, SUBSYSTEM, name)

    return (
        MetricDescriptor(
            fq("snapshot_number_of_indices"),
            "Number of indices in the last snapshot",
            SNAPSHOT_LABELS,
            value=lambda s: len(s.indices),
            labels=_snapshot_labels,
        ),
        MetricDescriptor(
            fq("snapshot_start_time_timestamp"),
            "Last snapshot start timestamp",
            SNAPSHOT_LABELS,
            value=lambda s: s.start_time_in_millis // 1000,
            labels=_snapshot_labels,
        ),
        MetricDescriptor(
            fq("snapshot_end_time_timestamp"),
            "Last snapshot end timestamp",
            SNAPSHOT_LABELS,
            value=lambda s: s.end_time_in_millis // 1000,
            labels=_snapshot_labels,
        ),
        MetricDescriptor(
            fq("snapshot_number_of_failures"),
            "Last snapshot number of failures",
            SNAPSHOT_LABELS,
            value=lambda s: len(s.failures),
            labels=_snapshot_labels,
        ),
        MetricDescriptor(
            fq("snapshot_total_shards"),
            "Last snapshot total shards",
            SNAPSHOT_LABELS,
            value=lambda s: s.shards.total,
            labels=_snapshot_labels,
        ),
        MetricDescriptor(
            fq("snapshot_failed_shards"),
            "Last snapshot failed shards",
            SNAPSHOT_LABELS,
            value=lambda s: s.shards.failed,
            labels=_snapshot_labels,
        ),
        MetricDescriptor(
            fq("snapshot_successful_shards"),
            "Last snapshot successful shards",
            SNAPSHOT_LABELS,
            value=lambda s: s.shards.successful,
            labels=_snapshot_labels,
        ),
    )


class SnapshotsCollector(ScrapeCollector):

    subsystem = SUBSYSTEM
    endpoint_name = "snapshots"
    help_name = "snapshots"

    def __init__(
        self,
        client: httpx.Client,
        base_url: str,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        super().__init__(client, base_url, namespace=namespace)
        self._repository_metrics = repository_metrics(namespace)
        self._snapshot_metrics = snapshot_metrics(namespace)

    def fetch_snapshot_stats(self) -> Dict[str, SnapshotsResponse]:
        """Repository name -> its snapshots. Repositories that fail to load are left out."""
        repositories = discover_repositories(self._fetcher, self._base_url)
        return fetch_each(
            self._fetcher,
            repositories,
            lambda repo: endpoint(self._base_url, "_snapshot", repo, "_all"),
            SnapshotsResponse.from_json,
        )

    def describe_data(self) -> List[Metric]:
        return describe_table(self._repository_metrics) + describe_table(self._snapshot_metrics)

    def scrape(self) -> List[Metric]:
        stats = self.fetch_snapshot_stats()

        per_repo = sample_table(self._repository_metrics, stats.items())
        per_latest = sample_table(
            self._snapshot_metrics,
            [(repo, resp.latest) for repo, resp in stats.items() if resp.snapshots],
        )
        return per_repo + per_latest
