import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Mapping, Optional, Protocol, Union


@dataclass(frozen=True)
class FeedItem:
    id: uuid.UUID
    description: Optional[str]
    location: Optional[str]
    image_url: str


@dataclass(frozen=True)
class HTTPResponse:
    url: str
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HTTPClientSuccess:
    data: bytes
    response: HTTPResponse


@dataclass(frozen=True)
class HTTPClientFailure:
    error: BaseException


HTTPClientResult = Union[HTTPClientSuccess, HTTPClientFailure]


class UnexpectedValuesError(Exception):
    """The transport reported neither an error nor a usable response."""


class RemoteFeedLoaderError(Enum):
    CONNECTIVITY = "connectivity"
    INVALID_DATA = "invalid_data"


@dataclass(frozen=True)
class LoadFeedSuccess:
    items: List[FeedItem]


@dataclass(frozen=True)
class LoadFeedFailure:
    error: RemoteFeedLoaderError


LoadFeedResult = Union[LoadFeedSuccess, LoadFeedFailure]


class HTTPClient(Protocol):
    def get(self, url: str, completion: Callable[[HTTPClientResult], None]) -> None: ...


class FeedLoader(Protocol):
    def load(self, completion: Callable[[LoadFeedResult], None]) -> None: ...
