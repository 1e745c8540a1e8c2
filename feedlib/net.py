import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Tuple

import urllib3
from urllib3 import exceptions as urllib3_exc

from .config import DEFAULT_USER_AGENT, FeedConfig
from .metrics import Metrics
from .types import (
    HTTPClientFailure,
    HTTPClientResult,
    HTTPClientSuccess,
    HTTPResponse,
    UnexpectedValuesError,
)


logger = logging.getLogger(__name__)


def classify_response(
    data: Optional[bytes], response: Optional[HTTPResponse], error: Optional[BaseException]
) -> HTTPClientResult:
    """Fold the raw (data, response, error) triple into a single outcome."""
    if error is not None:
        return HTTPClientFailure(error)
    if data is not None and response is not None:
        return HTTPClientSuccess(data, response)
    return HTTPClientFailure(UnexpectedValuesError())


class Urllib3HTTPClient:
    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        request_timeout: float = 15.0,
        connect_timeout: float = 5.0,
        max_workers: int = 4,
        max_connections: int = 8,
        metrics: Metrics | None = None,
        pool: urllib3.PoolManager | None = None,
    ):
        self.user_agent = user_agent
        self.timeout = urllib3.Timeout(connect=connect_timeout, read=request_timeout)
        self.http = pool or urllib3.PoolManager(
            num_pools=max(4, max_workers),
            maxsize=max_connections,
            headers={
                "User-Agent": user_agent,
                "Accept": "application/json",
                "Accept-Encoding": "gzip, deflate",
            },
            retries=False,
        )
        self.metrics = metrics or Metrics()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="feed-http")

    @classmethod
    def from_config(cls, config: FeedConfig, metrics: Metrics | None = None) -> "Urllib3HTTPClient":
        return cls(
            user_agent=config.user_agent,
            request_timeout=config.request_timeout,
            connect_timeout=config.connect_timeout,
            max_workers=config.max_workers,
            max_connections=config.max_connections,
            metrics=metrics,
        )

    def _request(self, url: str) -> Tuple[Optional[bytes], Optional[HTTPResponse], Optional[BaseException]]:
        try:
            raw = self.http.request(
                "GET",
                url,
                timeout=self.timeout,
                retries=False,
                redirect=False,
                preload_content=True,
            )
        except urllib3_exc.HTTPError as exc:
            return None, None, exc
        status = getattr(raw, "status", None)
        if not isinstance(status, int):
            return raw.data, None, None
        response = HTTPResponse(url=url, status_code=status, headers=dict(raw.headers or {}))
        return raw.data, response, None

    def _perform(self, url: str, completion: Callable[[HTTPClientResult], None]) -> None:
        t0 = time.perf_counter()
        try:
            data, response, error = self._request(url)
        except Exception as exc:
            # Anything outside urllib3's own hierarchy still ends this GET.
            data, response, error = None, None, exc
        dt_ms = (time.perf_counter() - t0) * 1000.0
        result = classify_response(data, response, error)
        if isinstance(result, HTTPClientSuccess):
            self.metrics.record_fetch(True, len(result.data))
            logger.debug("GET %s -> %d in %.1f ms", url, result.response.status_code, dt_ms)
        else:
            self.metrics.record_fetch(False, 0)
            logger.warning("GET %s failed after %.1f ms: %r", url, dt_ms, result.error)
        try:
            completion(result)
        except Exception:
            logger.exception("Completion for %s raised", url)

    def get(self, url: str, completion: Callable[[HTTPClientResult], None]) -> None:
        logger.debug("GET %s", url)
        self._executor.submit(self._perform, url, completion)

    def close(self, wait: bool = True) -> None:
        """Stop accepting requests.

        With ``wait=False`` queued GETs are cancelled and the call returns
        without waiting for one already on the wire; its completion may still
        fire later.
        """
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        if wait:
            self.http.clear()

    def __enter__(self) -> "Urllib3HTTPClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
