"""Tests for IndicesSettingsCollector."""

import httpx

from snapstat.collector.indices_settings import IndicesSettingsCollector


def _collector(status, body):
    def handler(request):
        assert request.url.path == "/_all/_settings"
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return IndicesSettingsCollector(client, "http://es:9200")


def _samples(metrics):
    return {
        s.name: s.value
        for m in metrics
        for s in m.samples
        if not s.name.endswith("_created")
    }


def test_counts_read_only_indices():
    body = {
        "logs-1": {"settings": {"index": {"blocks": {"read_only": "true"}}}},
        "logs-2": {"settings": {"index": {"number_of_shards": "1"}}},
        "logs-3": {"settings": {"index": {"blocks": {"read_only": "true"}}}},
    }
    samples = _samples(_collector(200, body).collect())

    assert samples["elasticsearch_indices_settings_stats_read_only_indices"] == 2
    assert samples["elasticsearch_indices_settings_stats_up"] == 1
    assert samples["elasticsearch_indices_settings_stats_total_scrapes_total"] == 1


def test_failure_reports_down_without_data():
    samples = _samples(_collector(500, {"error": "boom"}).collect())

    assert samples["elasticsearch_indices_settings_stats_up"] == 0
    assert "elasticsearch_indices_settings_stats_read_only_indices" not in samples


def test_bad_json_counts_parse_failure():
    collector = _collector(200, b"[[[")
    collector.collect()
    samples = _samples(collector.collect())

    assert samples["elasticsearch_indices_settings_stats_json_parse_failures_total"] == 2
    assert samples["elasticsearch_indices_settings_stats_up"] == 0


def test_describe_lists_all_names():
    names = {m.name for m in _collector(200, {}).describe()}
    assert names == {
        "elasticsearch_indices_settings_stats_read_only_indices",
        "elasticsearch_indices_settings_stats_up",
        "elasticsearch_indices_settings_stats_total_scrapes",
        "elasticsearch_indices_settings_stats_json_parse_failures",
    }


def test_every_metric_is_labelled_with_cluster_url():
    body = {"logs-1": {"settings": {"index": {"blocks": {"read_only": "true"}}}}}
    collector = _collector(200, body)
    metrics = collector.collect()

    urls = {s.labels.get("url") for m in metrics for s in m.samples}
    assert urls == {collector.cluster_url}
    assert "es:9200" in collector.cluster_url
    assert {m.name for m in metrics} == {
        "elasticsearch_indices_settings_stats_read_only_indices",
        "elasticsearch_indices_settings_stats_up",
        "elasticsearch_indices_settings_stats_total_scrapes",
        "elasticsearch_indices_settings_stats_json_parse_failures",
    }


def test_bookkeeping_keeps_url_label_when_down():
    collector = _collector(200, b"{")
    metrics = collector.collect()

    failures = [
        s for m in metrics for s in m.samples
        if s.name == "elasticsearch_indices_settings_stats_json_parse_failures_total"
    ]
    assert len(failures) == 1
    assert failures[0].labels == {"url": collector.cluster_url}
    assert failures[0].value == 1


def test_bookkeeping_help_text():
    docs = {m.name: m.documentation for m in _collector(200, {}).describe()}
    assert docs["elasticsearch_indices_settings_stats_up"] == (
        "Was the last scrape of the ElasticSearch Indices Settings endpoint successful."
    )
    assert docs["elasticsearch_indices_settings_stats_total_scrapes"] == (
        "Current total ElasticSearch Indices Settings scrapes."
    )
