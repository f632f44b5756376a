"""TelemetryService batching, gating and failure isolation."""

from config.settings import Settings
from services.telemetry_service import TelemetryService


def test_metrics_are_batched_into_one_submission(telemetry, sink, timers):
    telemetry.queue_metric("orders.created", 1)
    telemetry.queue_metric("orders.created", 2)
    telemetry.queue_metric("orders.value", 30, "gauge")
    assert sink.metric_batches == []

    timers.fire_all()

    assert len(sink.metric_batches) == 1
    batch = sink.metric_batches[0]
    assert [series["metric"] for series in batch] == [
        "booking.orders.created",
        "booking.orders.created",
        "booking.orders.value",
    ]
    assert batch[2]["type"] == "gauge"
    assert batch[2]["points"][0][1] == 30


def test_metric_tags_merge_defaults_sorted_and_lowercased(telemetry):
    telemetry.queue_metric("x", tags=["Table:Scores", "service:booking"])
    tags = telemetry.pending_metrics()[0]["tags"]
    assert tags == sorted(set(tags))
    assert "table:scores" in tags
    assert "service:booking" in tags
    assert any(tag.startswith("function_unique_code:") for tag in tags)


def test_metric_points_use_epoch_seconds(sink, timers):
    telemetry = TelemetryService(
        sink,
        Settings(service_name="svc", datadog_enabled=True),
        timer_factory=timers,
        clock=lambda: 1700000000.4,
    )
    telemetry.queue_metric("x", 5)
    assert telemetry.pending_metrics()[0]["points"] == [(1700000000, 5)]


def test_disabled_telemetry_drops_metrics_and_events(sink, timers):
    telemetry = TelemetryService(sink, Settings(datadog_enabled=False), timer_factory=timers)
    telemetry.queue_metric("x")
    telemetry.queue_event("title", "text")
    telemetry.flush()
    assert sink.metric_batches == []
    assert sink.events == []
    assert timers.timers == []


def test_no_sink_means_disabled(timers):
    telemetry = TelemetryService(None, Settings(datadog_enabled=True), timer_factory=timers)
    assert telemetry.enabled is False
    telemetry.queue_metric("x")
    telemetry.flush()


def test_events_are_published_on_flush(telemetry, sink):
    telemetry.queue_event("DynamoDB put.t execution error", "details", "error", ["table:t"])
    telemetry.flush()
    assert sink.events == [("DynamoDB put.t execution error", "details", "error", ["table:t"])]


def test_sink_failures_are_swallowed(sink, timers):
    sink.fail = True
    telemetry = TelemetryService(
        sink, Settings(datadog_enabled=True), timer_factory=timers
    )
    telemetry.queue_metric("x")
    telemetry.queue_event("t", "x")
    timers.fire_all()
    telemetry.flush()
    assert telemetry.pending_metrics() == []


def test_messages_are_logged_even_when_disabled(timers):
    telemetry = TelemetryService(None, Settings(log_debounce_ms=1000), timer_factory=timers)
    telemetry.queue_message("[Statistic] A.b executed in 3ms")
    assert timers.timers[0].delay == 1.0
    telemetry.flush()
    assert timers.timers[0].cancelled is True
