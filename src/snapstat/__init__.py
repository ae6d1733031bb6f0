"""snapstat - Prometheus exporter for Elasticsearch snapshot repositories."""

__version__ = "0.3.0"
