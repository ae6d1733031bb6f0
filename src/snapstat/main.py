"""
snapstat entry point.

Usage:
    snapstat --es.uri http://localhost:9200     Serve /metrics on :9114
    snapstat --mock                              Serve metrics from a fake cluster
    snapstat --mock scrape                       One-shot scrape, printed as a table
    snapstat scrape --output prom                One-shot scrape, Prometheus text format
"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

import click
import httpx
from prometheus_client import CollectorRegistry, generate_latest, start_http_server
from prometheus_client.metrics_core import Metric

from snapstat import __version__
from snapstat.collector.base import DEFAULT_NAMESPACE, ScrapeCollector
from snapstat.collector.indices_settings import IndicesSettingsCollector
from snapstat.collector.snapshots import SnapshotsCollector
from snapstat.mock.fake_es_server import FakeESServer, start_fake_server


log = logging.getLogger("snapstat")


def parse_listen_address(address: str) -> Tuple[str, int]:
    """':9114' -> ('0.0.0.0', 9114), 'localhost:9114' -> ('localhost', 9114)."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise click.BadParameter(f"expected [host]:port, got {address!r}", param_hint="--web.listen-address")
    return host or "0.0.0.0", int(port)


def build_client(timeout: float, ca: Optional[str], insecure: bool) -> httpx.Client:
    verify = False if insecure else (ca or True)
    return httpx.Client(timeout=timeout, verify=verify)


def build_collectors(client: httpx.Client, es_uri: str, namespace: str) -> List[ScrapeCollector]:
    return [
        SnapshotsCollector(client, es_uri, namespace=namespace),
        IndicesSettingsCollector(client, es_uri, namespace=namespace),
    ]


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="snapstat")
@click.option("--es.uri", "es_uri", default="http://localhost:9200", help="Elasticsearch base URL")
@click.option("--es.timeout", "es_timeout", default=5.0, help="Request timeout in seconds")
@click.option("--es.ca", "es_ca", default=None, help="CA bundle used to verify the Elasticsearch certificate")
@click.option("--es.insecure", "es_insecure", is_flag=True, default=False, help="Skip TLS certificate verification")
@click.option("--namespace", default=DEFAULT_NAMESPACE, help="Metric name prefix")
@click.option("--web.listen-address", "listen_address", default=":9114", help="Address to serve /metrics on")
@click.option("--mock", is_flag=True, default=False, help="Scrape a built-in fake Elasticsearch server")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, es_uri: str, es_timeout: float, es_ca: Optional[str], es_insecure: bool,
        namespace: str, listen_address: str, mock: bool, verbose: bool):
    """snapstat - Elasticsearch snapshot exporter for Prometheus."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)

    fake: Optional[FakeESServer] = None
    if mock:
        fake = start_fake_server()
        ctx.call_on_close(fake.stop)
        es_uri = fake.url
        log.info("Using fake Elasticsearch at %s", es_uri)

    client = build_client(es_timeout, es_ca, es_insecure)
    ctx.call_on_close(client.close)

    ctx.obj["es_uri"] = es_uri
    ctx.obj["collectors"] = build_collectors(client, es_uri, namespace)

    if ctx.invoked_subcommand is None:
        host, port = parse_listen_address(listen_address)
        serve(ctx.obj["collectors"], host, port)


def serve(collectors: List[ScrapeCollector], host: str, port: int):
    registry = CollectorRegistry()
    for collector in collectors:
        registry.register(collector)

    start_http_server(port, addr=host, registry=registry)
    click.echo(f"snapstat v{__version__} serving metrics on http://{host}:{port}/metrics")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass


def _is_up(metrics: List[Metric]) -> bool:
    for metric in metrics:
        if metric.name.endswith("_up"):
            return all(sample.value == 1 for sample in metric.samples)
    return False


@cli.command()
@click.option("--output", type=click.Choice(["table", "prom"]), default="table",
              help="Output mode: table (Rich) or prom (Prometheus text format)")
@click.pass_context
def scrape(ctx, output: str):
    """Run one scrape of every collector and print the result."""
    collectors: List[ScrapeCollector] = ctx.obj["collectors"]
    results = [(c, c.collect()) for c in collectors]

    if output == "prom":
        click.echo(generate_latest(_Replay(results)).decode(), nl=False)
    else:
        _print_table(results)

    if not all(_is_up(metrics) for _, metrics in results):
        raise SystemExit(1)


class _Replay:
    """Hands already-collected families to generate_latest()."""

    def __init__(self, results):
        self._results = results

    def collect(self):
        for _, metrics in self._results:
            yield from metrics


def _print_table(results):
    from rich.console import Console
    from rich.table import Table

    console = Console()
    for collector, metrics in results:
        up = _is_up(metrics)
        color = "green" if up else "red"
        table = Table(
            title=f"{collector.name()}  [{color}]{'UP' if up else 'DOWN'}[/{color}]",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Metric", style="dim")
        table.add_column("Labels")
        table.add_column("Value", justify="right")

        for metric in metrics:
            for sample in metric.samples:
                if sample.name.endswith("_created"):
                    continue
                labels = ", ".join(f"{k}={v}" for k, v in sample.labels.items())
                table.add_row(sample.name, labels, f"{sample.value:g}")
        console.print(table)
    console.print()


if __name__ == "__main__":
    cli()
