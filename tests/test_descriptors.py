"""Tests for the descriptor table helpers."""

import pytest

from snapstat.collector.descriptors import (
    COUNTER,
    MetricDescriptor,
    build_fq_name,
    describe_table,
    sample_table,
)


def _length_metric(**overrides) -> MetricDescriptor:
    defaults = dict(
        name="test_items",
        documentation="Number of items",
        label_names=("owner",),
        value=lambda payload: len(payload),
        labels=lambda owner, payload: [owner],
    )
    defaults.update(overrides)
    return MetricDescriptor(**defaults)


def test_build_fq_name():
    assert build_fq_name("elasticsearch", "snapshot_stats", "up") == "elasticsearch_snapshot_stats_up"
    assert build_fq_name("", "snapshot_stats", "up") == "snapshot_stats_up"
    assert build_fq_name("es", "", "up") == "es_up"


def test_sample_table_one_sample_per_row():
    table = (_length_metric(), _length_metric(name="test_doubled", value=lambda p: 2 * len(p)))
    families = sample_table(table, [("alice", [1, 2]), ("bob", [])])

    assert [f.name for f in families] == ["test_items", "test_doubled"]
    items, doubled = families
    assert [(s.labels["owner"], s.value) for s in items.samples] == [("alice", 2.0), ("bob", 0.0)]
    assert [s.value for s in doubled.samples] == [4.0, 0.0]


def test_sample_table_with_no_rows_gives_empty_families():
    families = sample_table((_length_metric(),), [])
    assert len(families) == 1
    assert families[0].samples == []


def test_describe_table_has_no_samples():
    families = describe_table((_length_metric(),))
    assert families[0].name == "test_items"
    assert families[0].documentation == "Number of items"
    assert families[0].type == "gauge"
    assert families[0].samples == []


def test_counter_kind():
    family = _length_metric(kind=COUNTER).family()
    assert family.type == "counter"


def test_label_arity_mismatch_raises():
    bad = _length_metric(labels=lambda owner, payload: [owner, "extra"])
    with pytest.raises(ValueError, match="label values"):
        sample_table((bad,), [("alice", [1])])


def test_descriptors_are_immutable():
    descriptor = _length_metric()
    with pytest.raises(AttributeError):
        descriptor.name = "renamed"
