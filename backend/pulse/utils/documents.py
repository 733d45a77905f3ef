import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return a copy of a stored document with ``_id`` exposed as ``id``."""
    if doc is None:
        return None
    out = dict(doc)
    if "_id" in out:
        out["id"] = str(out.pop("_id"))
    return out


def to_public_list(docs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [to_public(d) for d in docs]
