# src/farm_tasks/sources/supabase_source.py

from __future__ import annotations

"""
Supabase (PostgREST) backed configuration source and domain snapshot.

Every read is best-effort: HTTP or decoding failures are logged and surface
as an empty list, so a reconciliation pass simply has less to do.
"""

import logging
from typing import Any

import httpx

from ..tasks.task_models import Batch, FeedConfiguration, Group, TaskTemplate

logger = logging.getLogger(__name__)

FEED_CONFIGURATIONS_TABLE = "feed_configurations"
TASK_TEMPLATES_TABLE = "tasks_templates"
BATCHES_TABLE = "lotes"
GROUPS_TABLE = "galpoes"

_ACTIVE_BATCH_STATUSES = {"ativo", "active"}


def _batch_from_row(row: dict[str, Any]) -> Batch:
    raw_status = str(row.get("status") or "").strip().lower()
    return Batch(
        id=str(row.get("id")),
        name=str(row.get("name") or row.get("nome") or ""),
        group_id=(
            str(row.get("galpao_id") or row.get("group_id"))
            if (row.get("galpao_id") or row.get("group_id"))
            else None
        ),
        category_id=row.get("category_id") or None,
        status="active" if raw_status in _ACTIVE_BATCH_STATUSES else "inactive",
    )


def _group_from_row(row: dict[str, Any]) -> Group:
    return Group(
        id=str(row.get("id")),
        name=str(row.get("name") or row.get("nome") or ""),
        type=str(row.get("type") or row.get("tipo") or ""),
    )


class SupabaseSource:
    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("Supabase URL is required")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _select(self, table: str, params: dict[str, str] | None = None) -> list[dict[str, Any]]:
        query = {"select": "*"}
        query.update(params or {})
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=query, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Supabase %s error: %s", table, e)
            return []
        except httpx.RequestError as e:
            logger.error("Supabase %s connection error: %s", table, e)
            return []
        except ValueError as e:
            logger.error("Supabase %s returned invalid JSON: %s", table, e)
            return []

        if not isinstance(data, list):
            logger.error("Supabase %s returned non-array payload: %r", table, type(data).__name__)
            return []
        return [row for row in data if isinstance(row, dict)]

    # ---- ConfigSource ----

    async def get_feed_configurations(self) -> list[FeedConfiguration]:
        rows = await self._select(FEED_CONFIGURATIONS_TABLE)
        return [FeedConfiguration.from_row(r) for r in rows]

    async def get_active_task_templates(self) -> list[TaskTemplate]:
        rows = await self._select(
            TASK_TEMPLATES_TABLE, {"active": "eq.true", "order": "default_time"}
        )
        return [TaskTemplate.from_row(r) for r in rows]

    # ---- DomainSnapshot ----

    async def get_active_batches(self) -> list[Batch]:
        rows = await self._select(BATCHES_TABLE)
        return [b for b in (_batch_from_row(r) for r in rows) if b.status == "active"]

    async def get_groups(self) -> list[Group]:
        rows = await self._select(GROUPS_TABLE)
        return [_group_from_row(r) for r in rows]
