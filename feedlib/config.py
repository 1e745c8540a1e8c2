from dataclasses import dataclass


DEFAULT_USER_AGENT = "feedlib/1.0 (+https://example.com; contact: feeds@example.com)"


@dataclass(frozen=True)
class FeedConfig:
    url: str
    request_timeout: float = 15.0
    connect_timeout: float = 5.0
    max_workers: int = 4
    max_connections: int = 8
    user_agent: str = DEFAULT_USER_AGENT
    metrics_interval: float = 0.0
