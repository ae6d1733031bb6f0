"""
Table-driven metric definitions.

A MetricDescriptor pairs a metric's identity (name, help, label names) with
two small functions: one pulls the value out of a payload, the other builds
the label values. Adding a metric means adding a row to a table, nothing
else changes.

Value functions must not raise. Empty lists and missing fields resolve to
0 inside the function itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Sequence, Tuple

from prometheus_client.metrics_core import CounterMetricFamily, GaugeMetricFamily, Metric

GAUGE = "gauge"
COUNTER = "counter"


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """namespace_subsystem_name, skipping empty parts."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class MetricDescriptor:
    name: str
    documentation: str
    label_names: Tuple[str, ...]
    value: Callable[[Any], float]
    labels: Callable[[str, Any], Sequence[str]]
    kind: str = GAUGE  # informational; every value is a point-in-time reading

    def family(self) -> Metric:
        """An empty metric family carrying this descriptor's identity."""
        if self.kind == COUNTER:
            return CounterMetricFamily(self.name, self.documentation, labels=self.label_names)
        return GaugeMetricFamily(self.name, self.documentation, labels=self.label_names)

    def add_sample(self, family: Metric, entity_id: str, payload: Any) -> None:
        label_values = list(self.labels(entity_id, payload))
        if len(label_values) != len(self.label_names):
            raise ValueError(
                f"{self.name}: got {len(label_values)} label values "
                f"for {len(self.label_names)} label names"
            )
        family.add_metric(label_values, float(self.value(payload)))


DescriptorTable = Tuple[MetricDescriptor, ...]


def describe_table(table: DescriptorTable) -> List[Metric]:
    return [d.family() for d in table]


def sample_table(table: DescriptorTable, rows: Iterable[Tuple[str, Any]]) -> List[Metric]:
    """Run every descriptor over every (entity id, payload) row.

    Returns one family per descriptor, in table order, each holding one
    sample per row.
    """
    families = describe_table(table)
    for entity_id, payload in rows:
        for descriptor, family in zip(table, families):
            descriptor.add_sample(family, entity_id, payload)
    return families
