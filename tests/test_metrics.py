import uuid

from prometheus_client import CollectorRegistry

from feedlib.metrics import Metrics, StatsLogger, format_stats, outcome_of
from feedlib.prometheus_exporter import FeedMetricsCollector, PrometheusExporter
from feedlib.types import FeedItem, LoadFeedFailure, LoadFeedSuccess, RemoteFeedLoaderError


ITEM = FeedItem(id=uuid.uuid4(), description=None, location=None, image_url="http://a-url.com")
CONNECTIVITY = LoadFeedFailure(RemoteFeedLoaderError.CONNECTIVITY)
INVALID = LoadFeedFailure(RemoteFeedLoaderError.INVALID_DATA)


def test_outcome_names():
    assert outcome_of(LoadFeedSuccess([])) == "success"
    assert outcome_of(CONNECTIVITY) == "connectivity"
    assert outcome_of(INVALID) == "invalid_data"


def test_metrics_records_loads_by_outcome():
    m = Metrics()

    m.record_fetch(ok=True, bytes_read=1024)
    m.record_load(LoadFeedSuccess([ITEM, ITEM]), load_ms=50.0)
    m.record_fetch(ok=True, bytes_read=10)
    m.record_load(INVALID, load_ms=30.0)
    m.record_fetch(ok=False, bytes_read=0)
    m.record_load(CONNECTIVITY, load_ms=100.0)
    stats = m.snapshot()

    assert stats.loads == {"success": 1, "connectivity": 1, "invalid_data": 1}
    assert stats.total_loads == 3
    assert stats.items == 2
    assert stats.bytes == 1034
    assert stats.transport_errors == 1
    assert stats.avg_load_ms == 60.0


def test_snapshot_is_a_copy():
    m = Metrics()
    stats = m.snapshot()
    m.record_load(INVALID, load_ms=1.0)
    assert stats.loads["invalid_data"] == 0


def test_stats_line():
    m = Metrics()
    m.record_load(LoadFeedSuccess([ITEM]), load_ms=40.0)

    assert format_stats(m.snapshot()) == (
        "Feed: loads=1 (success=1, connectivity=0, invalid_data=0), items=1, "
        "transport_errors=0, avg_load_ms=40.0"
    )


def test_stats_logger_stops_cleanly():
    lines = []
    logger = StatsLogger(Metrics(), 0.5, lambda fmt, *args: lines.append(fmt % args))
    logger.start()
    logger.stop()
    logger.join(timeout=2.0)
    assert not logger.is_alive()


def test_collector_exports_outcomes():
    registry = CollectorRegistry()
    m = Metrics()
    registry.register(FeedMetricsCollector(m))

    m.record_fetch(ok=True, bytes_read=100)
    m.record_load(LoadFeedSuccess([ITEM]), load_ms=200.0)
    m.record_fetch(ok=False, bytes_read=0)
    m.record_load(CONNECTIVITY, load_ms=400.0)

    assert registry.get_sample_value("feed_loads_total", {"outcome": "success"}) == 1
    assert registry.get_sample_value("feed_loads_total", {"outcome": "connectivity"}) == 1
    assert registry.get_sample_value("feed_loads_total", {"outcome": "invalid_data"}) == 0
    assert registry.get_sample_value("feed_items_total") == 1
    assert registry.get_sample_value("feed_transport_errors_total") == 1
    assert registry.get_sample_value("feed_bytes_total") == 100
    assert registry.get_sample_value("feed_avg_load_duration_seconds") == 0.3


def test_exporter_stop_unregisters_collector():
    registry = CollectorRegistry()
    exporter = PrometheusExporter(Metrics(), registry=registry)
    registry.register(exporter.collector)

    exporter.stop()

    assert registry.get_sample_value("feed_items_total") is None
