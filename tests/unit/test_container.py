"""ServiceContainer wiring and end-to-end flush."""

from config.settings import Settings
from services.container import ServiceContainer


def test_flush_drains_writes_then_telemetry(store, sink, timers):
    settings = Settings(service_name="booking", datadog_enabled=True)
    services = ServiceContainer.from_settings(
        settings, repository=store, sink=sink, timer_factory=timers
    )

    services.dynamodb.put("scores", {"id": "1"})
    services.flush()

    assert store.count("batch_write") == 1
    published = [series["metric"] for batch in sink.metric_batches for series in batch]
    assert "booking.dynamodb.batchWrite" in published
    services.dynamodb.close()


def test_write_flush_failure_does_not_block_telemetry(store, sink, timers):
    services = ServiceContainer.from_settings(
        Settings(datadog_enabled=True), repository=store, sink=sink, timer_factory=timers
    )
    services.dynamodb.put("missing", {"id": "1"})
    services.flush()

    assert sink.events[0][0] == "DynamoDB batchWrite.missing execution error"
    services.dynamodb.close()


def test_telemetry_disabled_without_keys(store, timers):
    services = ServiceContainer.from_settings(
        Settings(datadog_enabled=False), repository=store, timer_factory=timers
    )
    assert services.telemetry.enabled is False
    services.dynamodb.close()
