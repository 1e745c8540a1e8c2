#!/usr/bin/env python3
import argparse
import json
import logging
import sys
import threading
from typing import List, Optional

from feedlib.config import DEFAULT_USER_AGENT, FeedConfig
from feedlib.loader import RemoteFeedLoader
from feedlib.metrics import Metrics, StatsLogger, format_stats
from feedlib.net import Urllib3HTTPClient
from feedlib.types import FeedItem, LoadFeedFailure, LoadFeedResult


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load a remote JSON feed and print its items as JSON lines.")
    parser.add_argument("url", help="Feed URL.")
    parser.add_argument("--timeout", type=float, default=15.0, help="HTTP read timeout in seconds.")
    parser.add_argument("--connect-timeout", type=float, default=5.0, help="HTTP connect timeout in seconds.")
    parser.add_argument("--workers", type=int, default=4, help="Number of transport worker threads.")
    parser.add_argument("--max-connections", type=int, default=8, help="Max connections per pool for HTTP client.")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header to send.")
    parser.add_argument("--metrics-interval", type=float, default=0.0, help="Seconds between perf logs (0 to disable).")
    parser.add_argument("--prometheus-port", type=int, default=0, help="Port for Prometheus metrics endpoint (0 to disable).")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> FeedConfig:
    return FeedConfig(
        url=args.url,
        request_timeout=max(1.0, args.timeout),
        connect_timeout=max(0.5, args.connect_timeout),
        max_workers=max(1, args.workers),
        max_connections=max(1, args.max_connections),
        user_agent=args.user_agent,
        metrics_interval=max(0.0, args.metrics_interval),
    )


def item_to_record(item: FeedItem) -> dict:
    return {
        "id": str(item.id),
        "description": item.description,
        "location": item.location,
        "image": item.image_url,
    }


def load_once(loader: RemoteFeedLoader, timeout: Optional[float] = None) -> Optional[LoadFeedResult]:
    done = threading.Event()
    results: List[LoadFeedResult] = []

    def completion(result: LoadFeedResult) -> None:
        results.append(result)
        done.set()

    loader.load(completion)
    done.wait(timeout)
    return results[0] if results else None


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    log_level = logging.WARNING
    if args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose >= 2:
        log_level = logging.DEBUG
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(threadName)s %(message)s",
    )

    config = build_config(args)
    metrics = Metrics()
    client = Urllib3HTTPClient.from_config(config, metrics=metrics)
    loader = RemoteFeedLoader(config.url, client, metrics=metrics)

    stats_thread: Optional[StatsLogger] = None
    if config.metrics_interval > 0:
        stats_thread = StatsLogger(metrics, config.metrics_interval, logging.info)
        stats_thread.start()
    exporter = None
    if args.prometheus_port:
        from feedlib.prometheus_exporter import PrometheusExporter

        exporter = PrometheusExporter(metrics, port=args.prometheus_port)
        exporter.start()
        logging.info("Prometheus metrics available at http://0.0.0.0:%d/metrics", args.prometheus_port)

    result: Optional[LoadFeedResult] = None
    try:
        result = load_once(loader, timeout=config.connect_timeout + config.request_timeout + 5.0)
    finally:
        # A timed-out GET is abandoned rather than waited on.
        client.close(wait=result is not None)
        logging.info("%s", format_stats(metrics.snapshot()))
        if stats_thread:
            stats_thread.stop()
        if exporter:
            exporter.stop()

    if result is None:
        logging.error("Timed out waiting for %s", config.url)
        return 1
    if isinstance(result, LoadFeedFailure):
        logging.error("Loading %s failed: %s", config.url, result.error.value)
        return 1
    for item in result.items:
        sys.stdout.write(json.dumps(item_to_record(item), ensure_ascii=False) + "\n")
    logging.info("Loaded %d items from %s", len(result.items), config.url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
