"""statistic decorator timing tests."""

from unittest.mock import MagicMock

import pytest

from utils.statistic import statistic


class Worker:
    def __init__(self, telemetry):
        self.telemetry = telemetry

    @statistic()
    def run(self, value):
        return value * 2

    @statistic(log_to_telemetry=True)
    def explode(self):
        raise ValueError("nope")


def test_logs_execution_time_by_default():
    telemetry = MagicMock()
    assert Worker(telemetry).run(2) == 4

    message = telemetry.queue_message.call_args[0][0]
    assert message.startswith("[Statistic] Worker.run executed in ")
    telemetry.queue_metric.assert_not_called()


def test_failure_gauge_recorded_and_error_reraised():
    telemetry = MagicMock()
    with pytest.raises(ValueError):
        Worker(telemetry).explode()

    name, _, metric_type, tags = telemetry.queue_metric.call_args[0]
    assert name == "statistic.method-execution-duration"
    assert metric_type == "gauge"
    assert "status:failure" in tags
    assert "class_name:Worker" in tags


def test_handler_style_call_finds_container_telemetry():
    services = MagicMock()

    @statistic(log_to_telemetry=True)
    def handler(event, context, services):
        return {"statusCode": 200}

    handler({}, None, services)
    assert "status:success" in services.telemetry.queue_metric.call_args[0][3]


def test_without_telemetry_is_transparent():
    @statistic()
    def add(a, b):
        return a + b

    assert add(1, 2) == 3
