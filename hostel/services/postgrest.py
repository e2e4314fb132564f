import logging

import httpx

from hostel.exceptions.custom import RateLimitError, StoreError
from hostel.stores.base import Filter, to_db_value

logger = logging.getLogger(__name__)


def _encode_value(value: object) -> str:
    value = to_db_value(value)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_filters(filters: list[Filter] | None) -> list[tuple[str, str]]:
    """Render filters as PostgREST query params, e.g. ("status", "eq.confirmed")."""
    params: list[tuple[str, str]] = []
    for f in filters or []:
        if f.op == "in":
            joined = ",".join(_encode_value(v) for v in f.value)
            params.append((f.column, f"in.({joined})"))
        elif f.op == "eq" and f.value is None:
            params.append((f.column, "is.null"))
        else:
            params.append((f.column, f"{f.op}.{_encode_value(f.value)}"))
    return params


class PostgrestStore:
    """BookingStore over a PostgREST gateway (e.g. Supabase ``/rest/v1``)."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, service_key: str):
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _url(self, table: str) -> str:
        return f"{self._base_url}/{table}"

    def _check(self, resp: httpx.Response, action: str, table: str) -> None:
        if resp.status_code == 429:
            raise RateLimitError("PostgREST")
        if resp.status_code >= 400:
            logger.error("%s on %s failed: %s", action, table, resp.status_code)
            raise StoreError(resp.text, status_code=resp.status_code)

    @staticmethod
    def _rows(resp: httpx.Response) -> list[dict]:
        if not resp.content:
            return []
        data = resp.json()
        return data if isinstance(data, list) else [data]

    async def select(
        self,
        table: str,
        filters: list[Filter] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        params = [("select", "*"), *encode_filters(filters)]
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))

        resp = await self._client.get(self._url(table), params=params, headers=self._headers)
        self._check(resp, "select", table)
        return self._rows(resp)

    async def insert(self, table: str, rows: dict | list[dict]) -> list[dict]:
        batch = [rows] if isinstance(rows, dict) else rows
        payload = [{k: to_db_value(v) for k, v in row.items()} for row in batch]

        resp = await self._client.post(self._url(table), json=payload, headers=self._headers)
        self._check(resp, "insert", table)
        logger.info("Inserted %d rows into %s", len(payload), table)
        return self._rows(resp)

    async def update(self, table: str, filters: list[Filter], values: dict) -> list[dict]:
        payload = {k: to_db_value(v) for k, v in values.items()}

        resp = await self._client.patch(
            self._url(table),
            params=encode_filters(filters),
            json=payload,
            headers=self._headers,
        )
        self._check(resp, "update", table)
        return self._rows(resp)

    async def delete(self, table: str, filters: list[Filter]) -> list[dict]:
        resp = await self._client.delete(
            self._url(table), params=encode_filters(filters), headers=self._headers
        )
        self._check(resp, "delete", table)
        return self._rows(resp)
