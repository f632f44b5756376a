"""Naming conventions shared by models and parameter loading."""

import re

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")

TABLE_ENV_PREFIX = "DYNAMODB_TABLE_"


def table_env_name(entity_name: str) -> str:
    """
    Map a logical entity name to the environment variable holding its table.

    `FlightSchedule` and `FlightScheduleModel` both map to
    `DYNAMODB_TABLE_FLIGHT_SCHEDULE`.
    """
    snake = _CAMEL_BOUNDARY.sub(r"\1_\2", entity_name).upper()
    if snake.endswith("_MODEL"):
        snake = snake[: -len("_MODEL")]
    return f"{TABLE_ENV_PREFIX}{snake}"


def parameter_env_name(parameter_name: str, prefix: str) -> str:
    """Turn an SSM parameter name under `prefix` into an environment variable name."""
    key = parameter_name
    if prefix and key.startswith(prefix):
        key = key[len(prefix):]
    key = _NON_ALNUM.sub("_", key.upper())
    return key.lstrip("_")
