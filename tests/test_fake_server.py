"""
End-to-end tests against the fake Elasticsearch server.

Starts the fake server in a thread, points real collectors at it over
HTTP, and checks what comes back.
"""

import httpx

from snapstat.collector.indices_settings import IndicesSettingsCollector
from snapstat.collector.snapshots import SnapshotsCollector
from snapstat.mock.fake_es_server import MALFORMED, start_fake_server
from snapstat.mock.generator import MockCluster


def _samples(metrics, suffix):
    return [
        s for m in metrics for s in m.samples
        if s.name == f"elasticsearch_snapshot_stats_{suffix}"
    ]


def _scrape(server, collector_cls=SnapshotsCollector):
    with httpx.Client(timeout=5.0) as client:
        return collector_cls(client, server.url).collect()


def test_collector_reads_every_repository():
    cluster = MockCluster(seed=7, repositories=3)
    server = start_fake_server(cluster)
    try:
        metrics = _scrape(server)

        assert _samples(metrics, "up")[0].value == 1
        counts = {s.labels["repository"]: s.value for s in _samples(metrics, "number_of_snapshots")}
        assert counts == {"backups-0": 5, "backups-1": 5, "backups-2": 0}

        # the empty repository has no latest snapshot
        latest = {s.labels["repository"] for s in _samples(metrics, "snapshot_total_shards")}
        assert latest == {"backups-0", "backups-1"}
    finally:
        server.stop()


def test_latest_snapshot_matches_generator():
    cluster = MockCluster(seed=11, repositories=2)
    server = start_fake_server(cluster)
    try:
        metrics = _scrape(server)
        last = cluster.snapshots("backups-0")["snapshots"][-1]

        start = [s for s in _samples(metrics, "snapshot_start_time_timestamp")
                 if s.labels["repository"] == "backups-0"]
        assert len(start) == 1
        assert start[0].value == last["start_time_in_millis"] // 1000
        assert start[0].labels["state"] == last["state"]
        assert start[0].labels["version"] == last["version"]
    finally:
        server.stop()


def test_one_broken_repository_does_not_hide_the_rest():
    server = start_fake_server(MockCluster(seed=3, repositories=3))
    server.faults["/_snapshot/backups-0/_all"] = 500
    server.faults["/_snapshot/backups-1/_all"] = MALFORMED
    try:
        metrics = _scrape(server)

        assert _samples(metrics, "up")[0].value == 1
        repos = {s.labels["repository"] for s in _samples(metrics, "number_of_snapshots")}
        assert repos == {"backups-2"}
        failures = [s for s in _samples(metrics, "json_parse_failures_total")]
        assert failures[0].value == 1
    finally:
        server.stop()


def test_discovery_failure_reports_down():
    server = start_fake_server()
    server.faults["/_snapshot"] = 500
    try:
        metrics = _scrape(server)

        assert _samples(metrics, "up")[0].value == 0
        assert _samples(metrics, "number_of_snapshots") == []
    finally:
        server.stop()


def test_indices_settings_against_fake_server():
    cluster = MockCluster(seed=5, indices=6)
    server = start_fake_server(cluster)
    try:
        metrics = _scrape(server, IndicesSettingsCollector)
        values = {s.name: s.value for m in metrics for s in m.samples}
        assert values["elasticsearch_indices_settings_stats_read_only_indices"] == len(cluster.read_only)
        assert values["elasticsearch_indices_settings_stats_up"] == 1
    finally:
        server.stop()


def test_unreachable_server_reports_down():
    server = start_fake_server()
    url = server.url
    server.stop()

    with httpx.Client(timeout=1.0) as client:
        metrics = SnapshotsCollector(client, url).collect()
    assert _samples(metrics, "up")[0].value == 0
