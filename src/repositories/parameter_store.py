"""SSM Parameter Store loader run once per cold start."""

import os
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils.logging_config import get_logger
from utils.naming import parameter_env_name

logger = get_logger(__name__)


class ParameterStoreRepository:
    """Copy every parameter under a path into os.environ."""

    def __init__(self, region: Optional[str] = None, client=None):
        self.client = client or boto3.client("ssm", region_name=region)

    def fetch(self, path: str) -> List[Dict]:
        """All parameters under `path`; a failing page ends the listing early."""
        parameters: List[Dict] = []
        paginator = self.client.get_paginator("get_parameters_by_path")
        try:
            for page in paginator.paginate(Path=path, WithDecryption=True):
                parameters.extend(page.get("Parameters", []))
        except (ClientError, BotoCoreError) as exc:
            logger.error(
                "Failed to get parameters from parameter store",
                extra={"path": path, "error": str(exc), "loaded": len(parameters)},
            )
        return parameters

    def populate_environment(self, path: str) -> Dict[str, str]:
        """Set os.environ from the parameters under `path` and return what was set."""
        prefix = path.rstrip("/") + "/"
        populated: Dict[str, str] = {}
        for parameter in self.fetch(prefix):
            name = parameter.get("Name")
            value = parameter.get("Value")
            if not name or not value:
                continue
            key = parameter_env_name(name, prefix)
            logger.info("Setting environment variable", extra={"key": key})
            os.environ[key] = value
            populated[key] = value
        return populated
