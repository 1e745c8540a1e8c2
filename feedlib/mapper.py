import json
import re
import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .types import FeedItem, LoadFeedFailure, LoadFeedResult, LoadFeedSuccess, RemoteFeedLoaderError


OK_200 = 200
UUID_TEXT = re.compile(r"[0-9a-fA-F]{8}-(?:[0-9a-fA-F]{4}-){3}[0-9a-fA-F]{12}")


class InvalidItemError(ValueError):
    pass


def _optional_str(obj: Dict[str, Any], key: str) -> Optional[str]:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidItemError(f"{key} must be a string")
    return value


def _parse_id(value: Any) -> uuid.UUID:
    if not isinstance(value, str):
        raise InvalidItemError("id must be a string")
    if not UUID_TEXT.fullmatch(value):
        raise InvalidItemError(f"id is not a UUID: {value!r}")
    return uuid.UUID(value)


def _parse_image_url(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidItemError("image must be a string")
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise InvalidItemError(f"image is not an absolute URL: {value!r}")
    return value


def decode_item(obj: Any) -> FeedItem:
    if not isinstance(obj, dict):
        raise InvalidItemError("item must be an object")
    return FeedItem(
        id=_parse_id(obj.get("id")),
        description=_optional_str(obj, "description"),
        location=_optional_str(obj, "location"),
        image_url=_parse_image_url(obj.get("image")),
    )


def decode_items(data: bytes) -> List[FeedItem]:
    """Decode a ``{"items": [...]}`` payload, failing on the first bad item."""
    try:
        root = json.loads(data)
    except (ValueError, RecursionError) as exc:
        raise InvalidItemError("payload is not valid JSON") from exc
    if not isinstance(root, dict) or not isinstance(root.get("items"), list):
        raise InvalidItemError("payload has no items array")
    return [decode_item(obj) for obj in root["items"]]


class FeedItemsMapper:
    @staticmethod
    def map(data: bytes, status_code: int) -> LoadFeedResult:
        if status_code != OK_200:
            return LoadFeedFailure(RemoteFeedLoaderError.INVALID_DATA)
        try:
            items = decode_items(data)
        except InvalidItemError:
            return LoadFeedFailure(RemoteFeedLoaderError.INVALID_DATA)
        return LoadFeedSuccess(items)
