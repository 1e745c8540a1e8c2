import threading
from dataclasses import dataclass, field
from typing import Dict

from .types import LoadFeedResult, LoadFeedSuccess, RemoteFeedLoaderError


SUCCESS = "success"
OUTCOMES = (SUCCESS,) + tuple(e.value for e in RemoteFeedLoaderError)


def outcome_of(result: LoadFeedResult) -> str:
    if isinstance(result, LoadFeedSuccess):
        return SUCCESS
    return result.error.value


@dataclass
class FeedStats:
    loads: Dict[str, int] = field(default_factory=lambda: dict.fromkeys(OUTCOMES, 0))
    items: int = 0
    load_ms_sum: float = 0.0
    transport_errors: int = 0
    bytes: int = 0

    @property
    def total_loads(self) -> int:
        return sum(self.loads.values())

    @property
    def avg_load_ms(self) -> float:
        return self.load_ms_sum / max(1, self.total_loads)


class Metrics:
    """Counts delivered load outcomes and the raw transport traffic behind them.

    The concrete HTTP client reports every GET through ``record_fetch``; the
    loader reports each delivered result through ``record_load``. A 200 reply
    carrying a bad payload is therefore a good fetch but an ``invalid_data``
    load.
    """

    def __init__(self):
        self._stats = FeedStats()
        self._lock = threading.Lock()

    def record_fetch(self, ok: bool, bytes_read: int) -> None:
        with self._lock:
            self._stats.bytes += max(0, bytes_read)
            if not ok:
                self._stats.transport_errors += 1

    def record_load(self, result: LoadFeedResult, load_ms: float) -> None:
        with self._lock:
            self._stats.loads[outcome_of(result)] += 1
            self._stats.load_ms_sum += load_ms
            if isinstance(result, LoadFeedSuccess):
                self._stats.items += len(result.items)

    def snapshot(self) -> FeedStats:
        with self._lock:
            return FeedStats(
                loads=dict(self._stats.loads),
                items=self._stats.items,
                load_ms_sum=self._stats.load_ms_sum,
                transport_errors=self._stats.transport_errors,
                bytes=self._stats.bytes,
            )


def format_stats(stats: FeedStats) -> str:
    outcomes = ", ".join(f"{name}={stats.loads[name]}" for name in OUTCOMES)
    return (
        f"Feed: loads={stats.total_loads} ({outcomes}), items={stats.items}, "
        f"transport_errors={stats.transport_errors}, avg_load_ms={stats.avg_load_ms:.1f}"
    )


class StatsLogger(threading.Thread):
    daemon = True

    def __init__(self, metrics: Metrics, interval_s: float, log_fn):
        super().__init__(name="stats-logger")
        self._metrics = metrics
        self._interval = max(0.5, interval_s)
        self._log = log_fn
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self._log("%s", format_stats(self._metrics.snapshot()))

    def stop(self) -> None:
        self._stop_event.set()

