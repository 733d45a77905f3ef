import base64
import binascii
import re
from typing import Tuple

from pulse.utils.errors import ValidationFailed


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

POST_TYPES = ("instagram", "twitter")


def is_uuid(value: str | None) -> bool:
    return bool(value) and UUID_PATTERN.match(value) is not None


def require_uuid(value: str | None, label: str = "ID") -> str:
    if not is_uuid(value):
        raise ValidationFailed(f"{label} must be a valid UUID", error=f"Invalid {label}")
    return value


def clamp_pagination(limit: int | None, offset: int | None, default: int = 20, maximum: int = 50) -> Tuple[int, int]:
    """Mirror the ``min(parseInt(limit) || default, max)`` convention of the public API."""
    if not limit or limit < 1:
        limit = default
    limit = min(limit, maximum)
    offset = max(offset or 0, 0)
    return limit, offset


def pagination_meta(limit: int, offset: int, returned: int, total_count: int | None = None) -> dict:
    meta = {"limit": limit, "offset": offset}
    if total_count is not None:
        meta["total_count"] = total_count
        meta["has_more"] = offset + returned < total_count
    else:
        meta["has_more"] = returned == limit
    return meta


def decode_base64_payload(data: str) -> bytes:
    """Decode raw base64 or a ``data:<mime>;base64,<payload>`` URL."""
    if not isinstance(data, str) or not data.strip():
        raise ValidationFailed("Media payload is required")
    parts = data.strip().split(",", 1)
    payload = parts[1] if len(parts) > 1 else parts[0]
    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationFailed("Invalid base64 media data") from exc
    if not decoded:
        raise ValidationFailed("Invalid base64 media data")
    return decoded
