"""
Environment-specific configuration settings.

Defaults mirror the reference behaviour: 300 ms write/telemetry debounce,
one-second log batching and 25-item bulk writes.
"""

from dataclasses import dataclass
import os


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value in (None, ""):
        return default
    return int(value)


def _datadog_keys_present() -> bool:
    """Datadog stays off until real keys replace the deploy-time placeholders."""
    for name in ("DD_API_KEY", "DD_APP_KEY"):
        value = os.environ.get(name, "")
        if not value or value == "placeholder":
            return False
    return True


@dataclass
class Settings:
    """Application settings with reference-behaviour defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "ap-southeast-1"

    # Function identity (used for telemetry tags and dispatch)
    service_name: str = "-"
    service_version: str = "-"
    function_name: str = "-"
    function_unique_code: str = "-"

    # SSM prefix loaded into os.environ at cold start
    parameter_store_path: str = ""

    # Coalescing
    write_debounce_ms: int = 300
    metric_debounce_ms: int = 300
    event_debounce_ms: int = 300
    log_debounce_ms: int = 1000
    max_wait_ms: int = 0  # 0 keeps the unbounded debounce
    batch_size: int = 25
    flush_workers: int = 4

    # Telemetry
    datadog_enabled: bool = False

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            environment=os.environ.get("ENVIRONMENT", "dev"),
            aws_region=os.environ.get("AWS_REGION", "ap-southeast-1"),
            service_name=os.environ.get(
                "FUNCTION_SERVICE_NAME", os.environ.get("SERVICE_NAME", "-")
            ),
            service_version=os.environ.get("SERVICE_VERSION", "-"),
            function_name=os.environ.get("FUNCTION_NAME", "-"),
            function_unique_code=os.environ.get("FUNCTION_UNIQUE_CODE", "-"),
            parameter_store_path=os.environ.get("PARAMETER_STORE_PATH", ""),
            write_debounce_ms=_int_env("WRITE_DEBOUNCE_MS", 300),
            metric_debounce_ms=_int_env("METRIC_DEBOUNCE_MS", 300),
            event_debounce_ms=_int_env("EVENT_DEBOUNCE_MS", 300),
            log_debounce_ms=_int_env("LOG_DEBOUNCE_MS", 1000),
            max_wait_ms=_int_env("MAX_WAIT_MS", 0),
            batch_size=_int_env("DYNAMODB_BATCH_SIZE", 25),
            flush_workers=_int_env("FLUSH_WORKERS", 4),
            datadog_enabled=_datadog_keys_present(),
        )

    def default_tags(self) -> list:
        """Tags attached to every metric emitted by this function."""
        return [
            f"service:{self.service_name}",
            f"version:{self.service_version}",
            f"function_name:{self.function_name}",
            f"function_unique_code:{self.function_unique_code}",
        ]
