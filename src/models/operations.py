"""Pending write operations buffered in front of DynamoDB."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Tuple


class OperationKind(str, Enum):
    """Mutation kinds accepted by BatchWriteItem."""

    PUT = "put"
    DELETE = "delete"


@dataclass(frozen=True)
class PendingOperation:
    """
    A queued Put (full record) or Delete (key fields only).

    The payload is copied on construction so later mutation of the caller's
    dict cannot change what gets flushed.
    """

    kind: OperationKind
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def put(cls, record: Dict[str, Any]) -> "PendingOperation":
        return cls(OperationKind.PUT, dict(record))

    @classmethod
    def delete(cls, key: Dict[str, Any]) -> "PendingOperation":
        return cls(OperationKind.DELETE, dict(key))

    def key_values(self, key_names: Iterable[str]) -> Tuple[Any, ...]:
        """Values of the key attributes, in key order (missing attributes are None)."""
        return tuple(self.payload.get(name) for name in key_names)

    def has_key(self, key_names: Iterable[str]) -> bool:
        return all(self.payload.get(name) is not None for name in key_names)

    def matches(self, key: Dict[str, Any]) -> bool:
        """True when every field of `key` equals the payload's value."""
        return all(self.payload.get(name) == value for name, value in key.items())

    def to_request(self) -> Dict[str, Any]:
        """boto3 BatchWriteItem request entry."""
        if self.kind is OperationKind.PUT:
            return {"PutRequest": {"Item": dict(self.payload)}}
        return {"DeleteRequest": {"Key": dict(self.payload)}}
