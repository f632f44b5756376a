"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AppError):
    """Raised when a requested resource is missing."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=422)


class ConfigurationError(AppError):
    """Raised when a required setting (e.g. a table name mapping) is missing."""

    def __init__(self, message: str = "Missing configuration"):
        super().__init__(message, status_code=500)


class SchemaUnavailable(AppError):
    """Raised when a table's key schema cannot be resolved."""

    def __init__(self, table_name: str, reason: str = ""):
        message = f"Key schema unavailable for table {table_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, status_code=500)
        self.table_name = table_name


class StoreUnavailable(AppError):
    """Wraps a failed call against the underlying table store."""

    def __init__(self, table_name: str, method: str, cause: Exception):
        super().__init__(
            f"DynamoDB {method}.{table_name} failed: {cause}", status_code=503
        )
        self.table_name = table_name
        self.method = method
        self.cause = cause


def to_response(error: AppError) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    return {
        "statusCode": error.status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"message": str(error), "status": "error"}),
    }
