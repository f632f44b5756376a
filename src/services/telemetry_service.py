"""
Telemetry batcher.

Metrics, events and log lines are each buffered on their own coalescer and
published in one call per flush. Publishing is fire-and-forget: failures are
logged here and never reach the business path that queued them.
"""

from __future__ import annotations

import os
import time
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional

from config.settings import Settings
from services.coalescer import BatchCoalescer, TimerFactory
from utils.logging_config import get_logger

logger = get_logger(__name__)

_CHANNEL = "default"


class TelemetryService:
    """Queue metrics/events for a telemetry sink and log lines for CloudWatch."""

    def __init__(
        self,
        sink=None,
        settings: Optional[Settings] = None,
        enabled: Optional[bool] = None,
        timer_factory: Optional[TimerFactory] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or Settings()
        self.sink = sink
        self.enabled = sink is not None and (
            self.settings.datadog_enabled if enabled is None else enabled
        )
        self._clock = clock
        self._default_tags = self.settings.default_tags()

        self._metrics: BatchCoalescer[Dict[str, Any]] = BatchCoalescer(
            "metrics",
            self._publish_metrics,
            delay_ms=self.settings.metric_debounce_ms,
            max_wait_ms=self.settings.max_wait_ms,
            timer_factory=timer_factory,
        )
        self._events: BatchCoalescer[Dict[str, Any]] = BatchCoalescer(
            "events",
            self._publish_events,
            delay_ms=self.settings.event_debounce_ms,
            max_wait_ms=self.settings.max_wait_ms,
            timer_factory=timer_factory,
        )
        self._messages: BatchCoalescer[str] = BatchCoalescer(
            "messages",
            self._publish_messages,
            delay_ms=self.settings.log_debounce_ms,
            max_wait_ms=self.settings.max_wait_ms,
            timer_factory=timer_factory,
        )

    def queue_metric(
        self,
        name: str,
        value: float = 1,
        metric_type: str = "count",
        tags: Iterable[str] = (),
    ) -> None:
        if not self.enabled:
            return
        merged_tags = sorted({tag.lower() for tag in [*self._default_tags, *tags]})
        self._metrics.enqueue(
            _CHANNEL,
            {
                "metric": f"{self.settings.service_name}.{name}",
                "points": [(int(round(self._clock())), value)],
                "host": os.environ.get("AWS_LAMBDA_FUNCTION_NAME", ""),
                "type": metric_type,
                "tags": merged_tags,
            },
        )

    def queue_event(
        self,
        title: str,
        text: str,
        alert_type: str = "error",
        tags: Iterable[str] = (),
    ) -> None:
        if not self.enabled:
            return
        self._events.enqueue(
            _CHANNEL,
            {"title": title, "text": text, "alert_type": alert_type, "tags": list(tags)},
        )

    def queue_message(self, message: str) -> None:
        """Batch a log line; emitted through the logger on flush."""
        self._messages.enqueue(_CHANNEL, message)

    def pending_metrics(self) -> List[Dict[str, Any]]:
        return self._metrics.pending(_CHANNEL)

    def pending_events(self) -> List[Dict[str, Any]]:
        return self._events.pending(_CHANNEL)

    def flush(self) -> None:
        """Publish everything buffered now. Never raises."""
        for coalescer in (self._messages, self._events, self._metrics):
            try:
                coalescer.flush()
            except Exception:
                logger.exception("Telemetry flush failed", extra={"coalescer": coalescer.name})

    def _publish_metrics(self, channel: Hashable, series: List[Dict[str, Any]]) -> None:
        logger.info("Publishing metrics", extra={"count": len(series)})
        try:
            self.sink.submit_metrics(series)
        except Exception as exc:
            logger.error("Failed to publish metrics", extra={"count": len(series), "error": str(exc)})
            return
        logger.info("Published metrics", extra={"count": len(series)})

    def _publish_events(self, channel: Hashable, events: List[Dict[str, Any]]) -> None:
        for event in events:
            try:
                self.sink.submit_event(
                    event["title"], event["text"], event["alert_type"], event["tags"]
                )
            except Exception as exc:
                logger.error("Failed to publish event", extra={"title": event["title"], "error": str(exc)})

    def _publish_messages(self, channel: Hashable, messages: List[str]) -> None:
        for message in messages:
            logger.info(message)
