import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from hostel.stores.base import Filter, to_db_value

logger = logging.getLogger(__name__)


def _matches(row: dict, flt: Filter) -> bool:
    current = row.get(flt.column)
    if flt.op == "in":
        return current in [to_db_value(v) for v in flt.value]
    expected = to_db_value(flt.value)
    if flt.op == "eq":
        return current == expected
    if flt.op == "neq":
        return current != expected
    if current is None or expected is None:
        return False
    if flt.op == "lt":
        return current < expected
    if flt.op == "lte":
        return current <= expected
    if flt.op == "gt":
        return current > expected
    if flt.op == "gte":
        return current >= expected
    return False


def _sort_key(value: Any) -> tuple[bool, Any]:
    return (value is None, value if value is not None else "")


class MemoryStore:
    """In-process tables, one list of rows per table.

    Every row gets a UUID ``id`` and ``created_at``/``updated_at`` timestamps
    unless the caller provides them.
    """

    def __init__(self) -> None:
        self._tables: dict[str, list[dict]] = {}

    def _rows(self, table: str) -> list[dict]:
        return self._tables.setdefault(table, [])

    async def select(
        self,
        table: str,
        filters: list[Filter] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        rows = [
            r for r in self._rows(table)
            if all(_matches(r, f) for f in filters or [])
        ]
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda r: _sort_key(r.get(column)), reverse=direction == "desc")
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        batch = [rows] if isinstance(rows, dict) else rows
        now = datetime.now(timezone.utc).isoformat()
        created: list[dict] = []
        for row in batch:
            record = {k: to_db_value(v) for k, v in row.items()}
            record.setdefault("id", str(uuid.uuid4()))
            record.setdefault("created_at", now)
            record.setdefault("updated_at", now)
            created.append(record)
        self._rows(table).extend(created)
        logger.debug("Inserted %d rows into %s", len(created), table)
        return copy.deepcopy(created)

    async def update(self, table: str, filters: list[Filter], values: dict) -> list[dict]:
        changes = {k: to_db_value(v) for k, v in values.items()}
        updated: list[dict] = []
        for row in self._rows(table):
            if all(_matches(row, f) for f in filters):
                row.update(changes)
                updated.append(row)
        return copy.deepcopy(updated)

    async def delete(self, table: str, filters: list[Filter]) -> list[dict]:
        keep: list[dict] = []
        removed: list[dict] = []
        for row in self._rows(table):
            (removed if all(_matches(row, f) for f in filters) else keep).append(row)
        self._tables[table] = keep
        return removed
