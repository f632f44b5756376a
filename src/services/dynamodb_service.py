"""
Write-coalescing DynamoDB client.

Queued puts and deletes are buffered per table on a single write channel and
flushed after a 300 ms quiet window: the buffer is de-duplicated by key (last
enqueued operation wins), cut into 25-item BatchWriteItem calls and the
chunks are sent concurrently. `get` consults the buffer first so a process
always reads its own queued writes.

Business-path calls never raise store errors; failures become `False`,
`None` or a partial list and are reported through telemetry. A failed flush
chunk is dropped, not retried: once a queued write returned True the caller
gets no further signal. Queued writes missing a key attribute are reported
and dropped at flush time.
"""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

from config.settings import Settings
from models.operations import OperationKind, PendingOperation
from services.coalescer import BatchCoalescer, TimerFactory
from services.schema_cache import SchemaCache
from utils.chunking import chunk
from utils.error_handling import SchemaUnavailable, StoreUnavailable
from utils.logging_config import get_logger
from utils.statistic import statistic

logger = get_logger(__name__)

WRITE_CHANNEL = "write"


def dedupe_operations(
    operations: Sequence[PendingOperation], key_names: Sequence[str]
) -> List[PendingOperation]:
    """
    Keep only the most recently enqueued operation per key.

    Survivors are returned in enqueue order.
    """
    seen = set()
    unique: List[PendingOperation] = []
    for operation in reversed(operations):
        key = operation.key_values(key_names)
        if key in seen:
            continue
        seen.add(key)
        unique.append(operation)
    unique.reverse()
    return unique


def split_unkeyed(
    operations: Sequence[PendingOperation], key_names: Sequence[str]
) -> Tuple[List[PendingOperation], List[PendingOperation]]:
    """Separate operations carrying every key attribute from those that do not."""
    keyed: List[PendingOperation] = []
    unkeyed: List[PendingOperation] = []
    for operation in operations:
        if operation.has_key(key_names):
            keyed.append(operation)
        else:
            unkeyed.append(operation)
    return keyed, unkeyed


class DynamoDBService:
    """Get/put/delete/scan with queued writes in front of DynamoDbRepository."""

    def __init__(
        self,
        repository,
        telemetry,
        settings: Optional[Settings] = None,
        schema_cache: Optional[SchemaCache] = None,
        timer_factory: Optional[TimerFactory] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.settings = settings or Settings()
        self.repository = repository
        self.telemetry = telemetry
        self.schema_cache = schema_cache or SchemaCache(repository)
        self.batch_size = self.settings.batch_size
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.settings.flush_workers,
            thread_name_prefix="dynamodb-flush",
        )
        self.coalescer: BatchCoalescer[PendingOperation] = BatchCoalescer(
            "dynamodb",
            self._flush_writes,
            delay_ms=self.settings.write_debounce_ms,
            max_wait_ms=self.settings.max_wait_ms,
            timer_factory=timer_factory,
        )

    # ----- write path -----

    @statistic()
    def put(self, table_name: str, record: Dict[str, Any], queued: bool = True) -> bool:
        """
        Write a full record.

        Queued (default): buffer it and return True once enqueued.
        Not queued: one PutItem; returns the store's success flag.
        """
        if not queued:
            error: Optional[Exception] = None
            try:
                return self.repository.put_item(table_name, record)
            except Exception as exc:
                error = exc
                return False
            finally:
                self._report(table_name, "put", record, error)

        self.coalescer.enqueue((table_name, WRITE_CHANNEL), PendingOperation.put(record))
        return True

    @statistic()
    def delete(self, table_name: str, record_or_key: Dict[str, Any], queued: bool = True) -> bool:
        """
        Delete by key; extra attributes on the input are projected away.

        Raises SchemaUnavailable when the table's key cannot be resolved.
        """
        key = self.project_key(table_name, record_or_key)

        if not queued:
            error: Optional[Exception] = None
            try:
                return self.repository.delete_item(table_name, key)
            except Exception as exc:
                error = exc
                return False
            finally:
                self._report(table_name, "delete", key, error)

        self.coalescer.enqueue((table_name, WRITE_CHANNEL), PendingOperation.delete(key))
        return True

    def project_key(self, table_name: str, record: Dict[str, Any]) -> Dict[str, Any]:
        key_names = self.schema_cache.resolve_key(table_name)
        return {name: record.get(name) for name in key_names}

    def pending(self, table_name: str) -> List[PendingOperation]:
        """Operations queued for `table_name` and not yet flushed, oldest first."""
        return self.coalescer.pending((table_name, WRITE_CHANNEL))

    def flush(self) -> int:
        """Flush every table's queued writes now, on the calling thread."""
        return self.coalescer.flush()

    def close(self) -> None:
        try:
            self.flush()
        finally:
            self._executor.shutdown(wait=True)

    def _flush_writes(self, channel: Hashable, operations: List[PendingOperation]) -> None:
        table_name, _ = channel
        try:
            key_names = self.schema_cache.resolve_key(table_name)
        except SchemaUnavailable as exc:
            self._report(table_name, "batchWrite", [op.to_request() for op in operations], exc)
            raise

        keyed, unkeyed = split_unkeyed(operations, key_names)
        if unkeyed:
            self._report(
                table_name,
                "batchWrite",
                [op.to_request() for op in unkeyed],
                ValueError(f"{len(unkeyed)} queued writes missing key attributes {list(key_names)}"),
            )

        unique = dedupe_operations(keyed, key_names)
        chunks = chunk(unique, self.batch_size)
        logger.info(
            "Flushing queued writes",
            extra={
                "table": table_name,
                "queued": len(operations),
                "unique": len(unique),
                "chunks": len(chunks),
            },
        )
        futures = [
            self._executor.submit(self._dispatch_chunk, table_name, current)
            for current in chunks
        ]
        wait(futures)
        failed = len([future for future in futures if not future.result()])
        if failed:
            logger.warning(
                "Queued writes dropped",
                extra={"table": table_name, "failed_chunks": failed, "chunks": len(chunks)},
            )

    def _dispatch_chunk(self, table_name: str, operations: List[PendingOperation]) -> bool:
        requests = [operation.to_request() for operation in operations]
        error: Optional[Exception] = None
        try:
            unprocessed = self.repository.batch_write(table_name, requests)
            if unprocessed:
                error = StoreUnavailable(
                    table_name,
                    "batchWrite",
                    RuntimeError(f"{len(unprocessed)} unprocessed items"),
                )
                return False
            logger.info(
                "Batch write succeeded",
                extra={"table": table_name, "count": len(requests)},
            )
            return True
        except Exception as exc:
            error = exc
            return False
        finally:
            self._report(table_name, "batchWrite", requests, error)

    # ----- read path -----

    @statistic()
    def get(self, table_name: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Point lookup that honours queued writes.

        The newest queued operation matching `key` wins: a queued put returns
        its record, a queued delete returns None, both without a store call.
        """
        found, record = self._pending_lookup(table_name, key)
        if found:
            return record

        error: Optional[Exception] = None
        try:
            return self.repository.get_item(table_name, key)
        except Exception as exc:
            error = exc
            return None
        finally:
            self._report(table_name, "get", key, error)

    @statistic()
    def scan(
        self,
        table_name: str,
        filter: Optional[Dict[str, Any]] = None,
        operator: str = "AND",
    ) -> List[Dict[str, Any]]:
        """
        Full-table scan following LastEvaluatedKey.

        Queued writes are not merged in. A failing page stops the scan and
        whatever was read so far is returned.
        """
        items: List[Dict[str, Any]] = []
        start_key: Optional[Dict[str, Any]] = None
        while True:
            error: Optional[Exception] = None
            try:
                page, start_key = self.repository.scan_page(table_name, filter, operator, start_key)
            except Exception as exc:
                error = exc
                break
            finally:
                self._report(table_name, "scan", {"filter": filter, "operator": operator}, error)
            items.extend(page)
            if not start_key:
                break
        return items

    def _pending_lookup(
        self, table_name: str, key: Dict[str, Any]
    ) -> Tuple[bool, Optional[Dict[str, Any]]]:
        for operation in reversed(self.pending(table_name)):
            if not operation.matches(key):
                continue
            if operation.kind is OperationKind.PUT:
                return True, dict(operation.payload)
            return True, None
        return False, None

    # ----- reporting -----

    def _report(self, table_name: str, method: str, data: Any, error: Optional[Exception]) -> None:
        tags = [
            f"table:{table_name}",
            "class:DynamoDBService",
            f"method:{method}",
        ]
        self.telemetry.queue_metric(
            f"dynamodb.{method}",
            1,
            "count",
            [*tags, f"status:{'failure' if error else 'success'}"],
        )
        if error is None:
            return

        title = f"DynamoDB {method}.{table_name} execution error"
        logger.error(
            title,
            extra={"table": table_name, "method": method, "error": str(error), "data": data},
        )
        self.telemetry.queue_event(
            title,
            "\n".join(
                [
                    f"Table Name: {table_name}",
                    f"Table Data: {json.dumps(data, default=str)}",
                    f"Error: {error}",
                    f"Error Details: {error!r}",
                ]
            ),
            "error",
            tags,
        )
