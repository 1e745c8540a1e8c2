import logging
from prometheus_client import REGISTRY, CollectorRegistry, start_http_server
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from .metrics import Metrics


logger = logging.getLogger(__name__)


class FeedMetricsCollector:
    """Reads a fresh ``Metrics`` snapshot on every scrape."""

    def __init__(self, metrics: Metrics) -> None:
        self.metrics = metrics

    def collect(self):
        stats = self.metrics.snapshot()

        loads = CounterMetricFamily('feed_loads', 'Delivered feed loads by outcome', labels=['outcome'])
        for outcome, count in stats.loads.items():
            loads.add_metric([outcome], count)
        yield loads
        yield CounterMetricFamily('feed_items', 'Feed items delivered by successful loads', value=stats.items)
        yield CounterMetricFamily(
            'feed_transport_errors', 'GET requests that failed below the HTTP layer', value=stats.transport_errors
        )
        yield CounterMetricFamily('feed_bytes', 'Response bytes received', value=stats.bytes)
        yield GaugeMetricFamily(
            'feed_avg_load_duration_seconds', 'Average time from load call to delivery', value=stats.avg_load_ms / 1000.0
        )


class PrometheusExporter:
    def __init__(self, metrics: Metrics, port: int = 8000, registry: CollectorRegistry = REGISTRY) -> None:
        self.port = port
        self.registry = registry
        self.collector = FeedMetricsCollector(metrics)
        self._server = None
        self._thread = None

    def start(self) -> None:
        self.registry.register(self.collector)
        self._server, self._thread = start_http_server(self.port, registry=self.registry)
        logger.info("Prometheus metrics server started on port %d", self.port)

    def stop(self) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        self.registry.unregister(self.collector)
