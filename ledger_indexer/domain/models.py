"""
Domain models for the ledger indexer.

Transactions arrive as node JSON and are validated into frozen Pydantic
models. Versions and timestamps may be decimal strings on the wire; timestamps
are microseconds since the Unix epoch and are kept as naive UTC datetimes,
which is what the `timestamp` columns store.

Decoded facts derive from `DomainRecord`, which carries the target table, the
natural key and the column length limits the batch writer needs.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EPOCH = datetime(1970, 1, 1)

WRITE_TABLE_ITEM = "write_table_item"


def parse_timestamp(value: Any) -> Any:
    """Coerce microseconds-since-epoch (int or str) into a naive UTC datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, int) or (isinstance(value, str) and value.isdigit()):
        return _EPOCH + timedelta(microseconds=int(value))
    return value


class Event(BaseModel):
    """An event emitted by a transaction: fully-qualified type tag plus data."""

    type: str
    data: Any = None

    model_config = ConfigDict(frozen=True, extra="ignore")


class WriteTableItemData(BaseModel):
    """Decoded table-item write: typed key and value."""

    key: Any = None
    key_type: str
    value: Any = None
    value_type: str

    model_config = ConfigDict(frozen=True, extra="ignore")


class WriteSetChange(BaseModel):
    """One write-set change. Only table-item writes carry decoded `data`."""

    type: str
    handle: Optional[str] = None
    key: Optional[str] = None
    data: Optional[WriteTableItemData] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("data", mode="before")
    @classmethod
    def _only_table_item_data(cls, value: Any) -> Any:
        # Resource writes also carry `data` but with a different shape.
        if isinstance(value, dict) and "value_type" not in value:
            return None
        return value

    @property
    def table_item(self) -> Optional[WriteTableItemData]:
        if self.type == WRITE_TABLE_ITEM:
            return self.data
        return None


class EntryFunctionPayload(BaseModel):
    """Invoked entry function and its ordered argument values."""

    function: str
    type_arguments: List[str] = Field(default_factory=list)
    arguments: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="ignore")


class Transaction(BaseModel):
    """A committed ledger entry."""

    version: int = Field(..., ge=0)
    timestamp: datetime = _EPOCH
    type: str = "user_transaction"
    payload: Optional[EntryFunctionPayload] = None
    events: Tuple[Event, ...] = ()
    changes: Tuple[WriteSetChange, ...] = ()

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return parse_timestamp(value)

    @field_validator("payload", mode="before")
    @classmethod
    def _entry_function_only(cls, value: Any) -> Any:
        # Script and multisig payloads have no `function` to dispatch on.
        if isinstance(value, dict) and "function" not in value:
            return None
        return value


class DomainRecord(BaseModel):
    """
    A decoded fact bound for one table.

    Subclasses set `table_name`, `natural_key` (primary key columns) and
    `max_lengths` (VARCHAR limits used by sanitization).
    """

    table_name: ClassVar[str]
    natural_key: ClassVar[Tuple[str, ...]]
    max_lengths: ClassVar[Dict[str, int]] = {}

    model_config = ConfigDict(frozen=True)

    @classmethod
    def columns(cls) -> Tuple[str, ...]:
        return tuple(cls.model_fields)

    @classmethod
    def column_count(cls) -> int:
        return len(cls.model_fields)

    def key(self) -> Tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self.natural_key)

    def row(self) -> Tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self.columns())


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of one successfully committed batch."""

    processor_name: str
    start_version: int
    end_version: int
    record_count: int = 0

    @property
    def num_versions(self) -> int:
        return self.end_version - self.start_version + 1


__all__ = [
    "DomainRecord",
    "EntryFunctionPayload",
    "Event",
    "ProcessingResult",
    "Transaction",
    "WRITE_TABLE_ITEM",
    "WriteSetChange",
    "WriteTableItemData",
    "parse_timestamp",
]
