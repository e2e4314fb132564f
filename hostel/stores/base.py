"""Query interface to the relational store.

Rows are plain dicts keyed by column name. Filters are ANDed.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol

FILTER_OPS = ("eq", "neq", "lt", "lte", "gt", "gte", "in")


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter op: {self.op}")


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def gt(column: str, value: Any) -> Filter:
    return Filter(column, "gt", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def in_(column: str, values: list[Any]) -> Filter:
    return Filter(column, "in", list(values))


def to_db_value(value: Any) -> Any:
    """Normalize a python value to what the store holds (ISO strings for dates)."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        return value.value
    return value


class BookingStore(Protocol):
    async def select(
        self,
        table: str,
        filters: list[Filter] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict]: ...

    async def insert(self, table: str, rows: dict | list[dict]) -> list[dict]: ...

    async def update(
        self, table: str, filters: list[Filter], values: dict
    ) -> list[dict]: ...

    async def delete(self, table: str, filters: list[Filter]) -> list[dict]: ...
