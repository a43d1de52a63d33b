"""Backlog list loader."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx
from loguru import logger

from anischedule.modules.schedule.domain.entities import BacklogEntry
from anischedule.modules.schedule.domain.exceptions import BacklogFetchError


class HttpBacklogSource:
    """Load the backlog JSON array from a URL with a bounded total timeout."""

    def __init__(
        self,
        *,
        url: str,
        timeout_sec: float = 8.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout_sec = timeout_sec
        self.user_agent = user_agent
        self._transport = transport

    async def fetch_backlog(self) -> list[BacklogEntry]:
        """Fetch and parse the backlog.

        Raises:
            BacklogFetchError: 超时、非 2xx 或 JSON 格式错误
        """
        start_time = time.time()
        try:
            # wait_for 超时后会取消底层请求
            payload = await asyncio.wait_for(
                self._load_remote(), timeout=self.timeout_sec
            )
            entries = self._parse_payload(payload)
        except TimeoutError as exc:
            logger.warning(f"Backlog fetch timed out after {self.timeout_sec}s")
            raise BacklogFetchError(
                f"Backlog fetch timed out after {self.timeout_sec}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(f"Backlog fetch HTTP error: {exc.response.status_code}")
            raise BacklogFetchError(
                f"Backlog fetch failed: HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            logger.warning(f"Backlog fetch error: {exc}")
            raise BacklogFetchError(f"Backlog fetch failed: {exc}") from exc

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"Loaded {len(entries)} backlog entries in {duration_ms}ms")
        return entries

    async def _load_remote(self) -> Any:
        headers = {"Accept": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        async with httpx.AsyncClient(
            timeout=self.timeout_sec,
            transport=self._transport,
        ) as client:
            response = await client.get(self.url, headers=headers)
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _parse_payload(payload: Any) -> list[BacklogEntry]:
        if not isinstance(payload, list):
            raise ValueError("Backlog payload must be a JSON array")

        entries: list[BacklogEntry] = []
        for raw_item in payload:
            if not isinstance(raw_item, dict):
                continue

            title_value = raw_item.get("title")
            if not isinstance(title_value, str) or not title_value.strip():
                continue

            category_value = raw_item.get("category")
            category = category_value.strip() if isinstance(category_value, str) else ""

            entries.append(BacklogEntry(title=title_value.strip(), category=category))
        return entries
