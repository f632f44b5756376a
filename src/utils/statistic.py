"""
Execution-time decorator.

Looks for a `telemetry` attribute on the call arguments (the service's own
`self`, or the ServiceContainer passed to a handler) and records the timing
there: as a gauge when `log_to_telemetry` is set, otherwise as a batched log
line. Without a telemetry service in reach the call is left untouched.
"""

from functools import wraps
import time
from typing import Any, Callable, Optional


def _find_telemetry(args) -> Optional[Any]:
    for arg in args:
        telemetry = getattr(arg, "telemetry", None)
        if telemetry is not None:
            return telemetry
    return None


def statistic(log_to_telemetry: bool = False) -> Callable:
    def decorator(func: Callable) -> Callable:
        parts = func.__qualname__.split(".")
        class_name = parts[0] if len(parts) > 1 else func.__module__
        method_name = parts[-1]

        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            status = "failure"
            try:
                result = func(*args, **kwargs)
                status = "success"
                return result
            finally:
                telemetry = _find_telemetry(args)
                elapsed_ms = int((time.perf_counter() - start) * 1000)
                if telemetry is not None:
                    if log_to_telemetry:
                        telemetry.queue_metric(
                            "statistic.method-execution-duration",
                            elapsed_ms,
                            "gauge",
                            [
                                f"class_name:{class_name}",
                                f"method_name:{method_name}",
                                f"status:{status}",
                            ],
                        )
                    else:
                        telemetry.queue_message(
                            f"[Statistic] {class_name}.{method_name} executed in {elapsed_ms}ms"
                        )

        return wrapper

    return decorator
