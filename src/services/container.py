"""
Explicitly constructed service graph for one Lambda execution environment.

Built once by the handler shell and passed to every handler, so the schema
cache, write buffers and telemetry queues are owned state rather than module
globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from config.settings import Settings
from repositories.dynamodb_repo import DynamoDbRepository
from services.coalescer import TimerFactory
from services.dynamodb_service import DynamoDBService
from services.telemetry_service import TelemetryService
from utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    telemetry: TelemetryService
    dynamodb: DynamoDBService

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        repository: Optional[DynamoDbRepository] = None,
        sink=None,
        timer_factory: Optional[TimerFactory] = None,
    ) -> "ServiceContainer":
        if sink is None and settings.datadog_enabled:
            # Imported lazily: the Datadog client is only needed when keys are configured.
            from repositories.datadog_repo import DatadogRepository

            sink = DatadogRepository()

        telemetry = TelemetryService(sink, settings, timer_factory=timer_factory)
        dynamodb = DynamoDBService(
            repository or DynamoDbRepository(region=settings.aws_region),
            telemetry,
            settings=settings,
            timer_factory=timer_factory,
        )
        logger.info(
            "Services initialized",
            extra={"function_name": settings.function_name, "telemetry": telemetry.enabled},
        )
        return cls(settings=settings, telemetry=telemetry, dynamodb=dynamodb)

    def flush(self) -> None:
        """Drain queued writes first; their outcomes feed the telemetry queues."""
        try:
            self.dynamodb.flush()
        except Exception:
            logger.exception("Write flush failed")
        finally:
            self.telemetry.flush()
