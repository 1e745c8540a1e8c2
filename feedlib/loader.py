import logging
import time
import weakref
from typing import Callable

from .config import FeedConfig
from .mapper import FeedItemsMapper
from .metrics import Metrics
from .types import (
    HTTPClient,
    HTTPClientResult,
    HTTPClientSuccess,
    LoadFeedFailure,
    LoadFeedResult,
    RemoteFeedLoaderError,
)


logger = logging.getLogger(__name__)


class RemoteFeedLoader:
    def __init__(self, url: str, client: HTTPClient, metrics: Metrics | None = None):
        self._url = url
        self._client = client
        self._metrics = metrics

    @classmethod
    def from_config(cls, config: FeedConfig, metrics: Metrics | None = None) -> "RemoteFeedLoader":
        from .net import Urllib3HTTPClient

        metrics = metrics or Metrics()
        return cls(config.url, Urllib3HTTPClient.from_config(config, metrics=metrics), metrics=metrics)

    @property
    def url(self) -> str:
        return self._url

    @property
    def client(self) -> HTTPClient:
        return self._client

    @property
    def metrics(self) -> Metrics | None:
        return self._metrics

    def load(self, completion: Callable[[LoadFeedResult], None]) -> None:
        # The callback must not keep the loader alive.
        loader_ref = weakref.ref(self)
        url = self._url
        metrics = self._metrics
        t0 = time.perf_counter()

        def on_result(result: HTTPClientResult) -> None:
            if loader_ref() is None:
                logger.debug("Loader for %s released before completion; dropping result", url)
                return
            if isinstance(result, HTTPClientSuccess):
                outcome = FeedItemsMapper.map(result.data, result.response.status_code)
            else:
                logger.debug("Transport failure for %s: %r", url, result.error)
                outcome = LoadFeedFailure(RemoteFeedLoaderError.CONNECTIVITY)
            if metrics is not None:
                metrics.record_load(outcome, (time.perf_counter() - t0) * 1000.0)
            completion(outcome)

        self._client.get(url, on_result)
