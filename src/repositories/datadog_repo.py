"""Datadog sink used by the telemetry batcher."""

from typing import Any, Dict, Iterable, List, Optional

from datadog_api_client import ApiClient, Configuration
from datadog_api_client.v1.api.events_api import EventsApi
from datadog_api_client.v1.api.metrics_api import MetricsApi
from datadog_api_client.v1.model.event_alert_type import EventAlertType
from datadog_api_client.v1.model.event_create_request import EventCreateRequest
from datadog_api_client.v1.model.metrics_payload import MetricsPayload
from datadog_api_client.v1.model.point import Point
from datadog_api_client.v1.model.series import Series


class DatadogRepository:
    """
    Thin wrapper over the Datadog v1 metrics and events APIs.

    Credentials come from DD_API_KEY / DD_APP_KEY, which Configuration reads
    from the environment (populated from Parameter Store at cold start).
    """

    def __init__(self, configuration: Optional[Configuration] = None):
        self.api_client = ApiClient(configuration or Configuration())
        self.metrics_api = MetricsApi(self.api_client)
        self.events_api = EventsApi(self.api_client)

    def submit_metrics(self, series: List[Dict[str, Any]]) -> bool:
        """Publish a batch of series dicts built by TelemetryService."""
        if not series:
            return True
        payload = MetricsPayload(
            series=[
                Series(
                    metric=entry["metric"],
                    type=entry.get("type", "count"),
                    points=[Point([float(ts), float(value)]) for ts, value in entry["points"]],
                    host=entry.get("host", ""),
                    tags=list(entry.get("tags", [])),
                )
                for entry in series
            ]
        )
        self.metrics_api.submit_metrics(body=payload)
        return True

    def submit_event(
        self, title: str, text: str, alert_type: str = "error", tags: Iterable[str] = ()
    ) -> bool:
        if not title and not text:
            return True
        self.events_api.create_event(
            body=EventCreateRequest(
                title=title,
                text=text,
                alert_type=EventAlertType(alert_type),
                tags=list(tags),
            )
        )
        return True
