"""Process-lifetime cache of table key schemas."""

from __future__ import annotations

import threading
from typing import Dict, Tuple

from utils.error_handling import SchemaUnavailable, StoreUnavailable
from utils.logging_config import get_logger

logger = get_logger(__name__)


class SchemaCache:
    """
    Resolve and memoize the key attribute names of each table.

    Key schemas cannot change without recreating the table, so entries never
    expire. Failed lookups are not cached.
    """

    def __init__(self, repository):
        self.repository = repository
        self._keys: Dict[str, Tuple[str, ...]] = {}
        self._lock = threading.Lock()

    def resolve_key(self, table_name: str) -> Tuple[str, ...]:
        """Key attribute names, partition key first."""
        cached = self._keys.get(table_name)
        if cached is not None:
            return cached

        # Held across the describe call so concurrent first lookups share one request.
        with self._lock:
            cached = self._keys.get(table_name)
            if cached is not None:
                return cached
            try:
                key_names = tuple(self.repository.describe_key_schema(table_name))
            except StoreUnavailable as exc:
                raise SchemaUnavailable(table_name, str(exc.cause)) from exc
            if not key_names:
                raise SchemaUnavailable(table_name, "no key attributes defined")
            self._keys[table_name] = key_names

        logger.info(
            "Table key schema cached",
            extra={"table": table_name, "key": list(key_names)},
        )
        return key_names

    def __contains__(self, table_name: str) -> bool:
        return table_name in self._keys
