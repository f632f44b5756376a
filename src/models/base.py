"""
Base record model mapped onto a DynamoDB table.

Subclasses are plain pydantic models; the table is resolved from the class
name through `DYNAMODB_TABLE_<ENTITY>` environment variables, and all store
access goes through an explicitly passed DynamoDBService.
"""

from __future__ import annotations

import os
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from utils.error_handling import ConfigurationError
from utils.naming import table_env_name

if TYPE_CHECKING:
    from services.dynamodb_service import DynamoDBService


def _now_ms() -> int:
    return int(time.time() * 1000)


class Model(BaseModel):
    """Arbitrary attribute mapping with write-path bookkeeping timestamps."""

    model_config = ConfigDict(extra="allow")

    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @classmethod
    def table_name(cls, entity_name: Optional[str] = None) -> str:
        """Resolve the physical table name; fails fast when unmapped."""
        env_name = table_env_name(entity_name or cls.__name__)
        table = os.environ.get(env_name)
        if not table:
            raise ConfigurationError(f"table name not found for {env_name}")
        return table

    def to_item(self) -> Dict[str, Any]:
        """Serialisable attribute map, unset optional fields dropped."""
        return self.model_dump(exclude_none=True)

    def compare_and_save(self, new_data: Union["Model", Dict[str, Any]]) -> List[str]:
        """Copy changed attributes from `new_data` onto self and return their names."""
        incoming = new_data.to_item() if isinstance(new_data, Model) else dict(new_data)
        current = self.to_item()
        updated_fields = []
        for name, value in incoming.items():
            if current.get(name) != value:
                setattr(self, name, value)
                updated_fields.append(name)
        return updated_fields

    def save(self, db: "DynamoDBService", queued: bool = True) -> bool:
        return type(self).put(db, self, queued=queued)

    def remove(self, db: "DynamoDBService", queued: bool = True) -> bool:
        return type(self).delete(db, self.to_item(), queued=queued)

    @classmethod
    def get(cls, db: "DynamoDBService", key: Dict[str, Any]) -> Optional["Model"]:
        item = db.get(cls.table_name(), key)
        return cls.model_validate(item) if item is not None else None

    @classmethod
    def scan(
        cls,
        db: "DynamoDBService",
        filter: Optional[Dict[str, Any]] = None,
        operator: str = "AND",
    ) -> List["Model"]:
        return [cls.model_validate(item) for item in db.scan(cls.table_name(), filter, operator)]

    @classmethod
    def put(cls, db: "DynamoDBService", record: "Model", queued: bool = True) -> bool:
        """Stamp bookkeeping timestamps and hand the record to the write path."""
        now = _now_ms()
        if not record.created_at:
            record.created_at = now
        record.updated_at = now
        return db.put(cls.table_name(), record.to_item(), queued=queued)

    @classmethod
    def delete(
        cls,
        db: "DynamoDBService",
        record_or_key: Dict[str, Any],
        queued: bool = True,
    ) -> bool:
        return db.delete(cls.table_name(), record_or_key, queued=queued)
