"""
Pytest configuration to ensure paths are set up correctly for tests.

This allows imports like `from services.coalescer import BatchCoalescer` to
work when running tests, simulating the Lambda environment where code is
deployed from the src/ directory.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
import pytest


def _ensure_src_on_sys_path() -> None:
    """Add src/ to sys.path to simulate Lambda's import root."""
    src_root = Path(__file__).resolve().parents[1] / "src"
    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_src_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "ap-southeast-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "ap-southeast-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")

# Table mappings used by the models
os.environ.setdefault("DYNAMODB_TABLE_BOOKING", "test-bookings")
os.environ.setdefault("DYNAMODB_TABLE_FLIGHT", "test-flights")

boto3.setup_default_session(region_name="ap-southeast-1")

from config.settings import Settings  # noqa: E402
from services.dynamodb_service import DynamoDBService  # noqa: E402
from services.telemetry_service import TelemetryService  # noqa: E402
from utils.error_handling import StoreUnavailable  # noqa: E402


class FakeTimer:
    """Timer stand-in that only fires when the test says so."""

    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


class FakeTimerFactory:
    """Records every timer created so tests can fire the live one."""

    def __init__(self):
        self.timers: List[FakeTimer] = []

    def __call__(self, delay: float, callback) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def live(self) -> List[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def fire_all(self) -> None:
        for timer in self.live():
            timer.fire()


class FakeStore:
    """In-memory DynamoDbRepository with call recording and failure switches."""

    def __init__(self, key_schema: Optional[Dict[str, List[str]]] = None):
        self.key_schema = key_schema or {}
        self.tables: Dict[str, Dict[tuple, Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.fail_methods: set = set()
        self.raise_errors: Dict[str, Exception] = {}
        self.unprocessed = 0
        self.page_size = 2
        self.fail_scan_on_page: Optional[int] = None

    def _check(self, table_name: str, method: str):
        if method in self.fail_methods:
            raise StoreUnavailable(table_name, method, RuntimeError(f"{method} boom"))
        if method in self.raise_errors:
            raise self.raise_errors[method]

    def _key(self, table_name: str, record: Dict[str, Any]) -> tuple:
        return tuple(record.get(name) for name in self.key_schema[table_name])

    def seed(self, table_name: str, *records: Dict[str, Any]) -> None:
        for record in records:
            self.tables.setdefault(table_name, {})[self._key(table_name, record)] = dict(record)

    def describe_key_schema(self, table_name):
        self.calls.append(("describe", table_name))
        self._check(table_name, "describe")
        return list(self.key_schema.get(table_name, []))

    def get_item(self, table_name, key):
        self.calls.append(("get", table_name, dict(key)))
        self._check(table_name, "get")
        return self.tables.get(table_name, {}).get(self._key(table_name, key))

    def put_item(self, table_name, item):
        self.calls.append(("put", table_name, dict(item)))
        self._check(table_name, "put")
        self.seed(table_name, item)
        return True

    def delete_item(self, table_name, key):
        self.calls.append(("delete", table_name, dict(key)))
        self._check(table_name, "delete")
        self.tables.get(table_name, {}).pop(self._key(table_name, key), None)
        return True

    def batch_write(self, table_name, requests):
        self.calls.append(("batch_write", table_name, list(requests)))
        self._check(table_name, "batchWrite")
        assert len(requests) <= 25
        for request in requests:
            if "PutRequest" in request:
                self.seed(table_name, request["PutRequest"]["Item"])
            else:
                key = self._key(table_name, request["DeleteRequest"]["Key"])
                self.tables.get(table_name, {}).pop(key, None)
        return list(requests[: self.unprocessed])

    def scan_page(self, table_name, filter=None, operator="AND", start_key=None):
        page_number = len([call for call in self.calls if call[0] == "scan"])
        self.calls.append(("scan", table_name, filter, start_key))
        if self.fail_scan_on_page is not None and page_number == self.fail_scan_on_page:
            raise StoreUnavailable(table_name, "scan", RuntimeError("page boom"))
        items = list(self.tables.get(table_name, {}).values())
        if filter:
            matches = [
                all(str(value) in str(item.get(name, "")) for name, value in filter.items())
                for item in items
            ]
            if operator.upper() == "OR":
                matches = [
                    any(str(value) in str(item.get(name, "")) for name, value in filter.items())
                    for item in items
                ]
            items = [item for item, matched in zip(items, matches) if matched]
        offset = start_key["offset"] if start_key else 0
        page = items[offset: offset + self.page_size]
        next_offset = offset + self.page_size
        next_key = {"offset": next_offset} if next_offset < len(items) else None
        return page, next_key

    def count(self, method: str) -> int:
        return len([call for call in self.calls if call[0] == method])


class FakeSink:
    """Telemetry sink that records submissions."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.metric_batches: List[list] = []
        self.events: List[tuple] = []

    def submit_metrics(self, series):
        if self.fail:
            raise RuntimeError("sink down")
        self.metric_batches.append(list(series))
        return True

    def submit_event(self, title, text, alert_type="error", tags=()):
        if self.fail:
            raise RuntimeError("sink down")
        self.events.append((title, text, alert_type, list(tags)))
        return True


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def store():
    return FakeStore(
        {
            "test-bookings": ["booking_id"],
            "test-flights": ["flight_id", "departure_date"],
            "scores": ["id"],
        }
    )


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def settings():
    return Settings(service_name="booking", datadog_enabled=True)


@pytest.fixture
def telemetry(sink, settings, timers):
    return TelemetryService(sink, settings, timer_factory=timers)


@pytest.fixture
def dynamodb(store, telemetry, settings, timers):
    service = DynamoDBService(store, telemetry, settings=settings, timer_factory=timers)
    yield service
    service.close()
