"""Message read-state conventions.

A deployment tracks "read" either as a nullable ``read_at`` timestamp or as an
``is_read`` flag. The convention is chosen once at startup from settings and
the same instance drives inserts, unread filters and mark-as-read updates.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict


class ReadState(ABC):

    name: str = ""

    @abstractmethod
    def initial_fields(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def unread_filter(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def mark_read_update(self, now: datetime) -> Dict[str, Any]:
        ...

    @abstractmethod
    def is_read(self, doc: Dict[str, Any]) -> bool:
        ...


class TimestampReadState(ReadState):

    name = "timestamp"

    def initial_fields(self) -> Dict[str, Any]:
        return {"read_at": None}

    def unread_filter(self) -> Dict[str, Any]:
        # matches both an explicit null and a missing field
        return {"read_at": None}

    def mark_read_update(self, now: datetime) -> Dict[str, Any]:
        return {"$set": {"read_at": now}}

    def is_read(self, doc: Dict[str, Any]) -> bool:
        return doc.get("read_at") is not None


class BooleanReadState(ReadState):

    name = "boolean"

    def initial_fields(self) -> Dict[str, Any]:
        return {"is_read": False}

    def unread_filter(self) -> Dict[str, Any]:
        return {"is_read": {"$ne": True}}

    def mark_read_update(self, now: datetime) -> Dict[str, Any]:
        return {"$set": {"is_read": True}}

    def is_read(self, doc: Dict[str, Any]) -> bool:
        return bool(doc.get("is_read"))


_CONVENTIONS = {cls.name: cls for cls in (TimestampReadState, BooleanReadState)}


def read_state_for(name: str) -> ReadState:
    try:
        return _CONVENTIONS[name]()
    except KeyError:
        raise ValueError(f"Unknown message read-state convention: {name!r}") from None
