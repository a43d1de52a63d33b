"""HttpBacklogSource 单元测试。"""

import asyncio
import json

import httpx
import pytest

from anischedule.modules.schedule.domain.entities import BacklogEntry
from anischedule.modules.schedule.domain.exceptions import BacklogFetchError
from anischedule.modules.schedule.infrastructure.backlog_source import (
    HttpBacklogSource,
)

pytestmark = pytest.mark.anyio

BACKLOG_URL = "https://backlog.test/anime_backup.json"


def _source(handler, **kwargs) -> HttpBacklogSource:
    return HttpBacklogSource(
        url=BACKLOG_URL,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def test_fetch_backlog_parses_entries(sample_backlog_payload):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=sample_backlog_payload)

    source = _source(handler, user_agent="anischedule-test")
    entries = await source.fetch_backlog()

    assert entries == [
        BacklogEntry(title="Frieren", category="Planned to Watch"),
        BacklogEntry(title="Dungeon Meshi", category="Completed"),
        BacklogEntry(
            title="Kusuriya no Hitorigoto", category="Unfinished / Disinterested"
        ),
        BacklogEntry(title="Spy x Family", category="Watching"),
    ]
    assert str(seen[0].url) == BACKLOG_URL
    assert seen[0].headers["User-Agent"] == "anischedule-test"


async def test_malformed_items_are_skipped():
    payload = [
        "just a string",
        {"category": "Planned to Watch"},
        {"title": "   ", "category": "Planned to Watch"},
        {"title": "  Mushishi ", "category": " Planned to Watch "},
        {"title": "No Category"},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    entries = await _source(handler).fetch_backlog()

    assert entries == [
        BacklogEntry(title="Mushishi", category="Planned to Watch"),
        BacklogEntry(title="No Category", category=""),
    ]


async def test_non_2xx_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="Not Found")

    with pytest.raises(BacklogFetchError, match="HTTP 404"):
        await _source(handler).fetch_backlog()


async def test_invalid_json_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(BacklogFetchError):
        await _source(handler).fetch_backlog()


async def test_non_array_payload_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=json.dumps({"items": []}))

    with pytest.raises(BacklogFetchError, match="JSON array"):
        await _source(handler).fetch_backlog()


async def test_network_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BacklogFetchError):
        await _source(handler).fetch_backlog()


async def test_slow_backlog_times_out():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=[])

    source = _source(handler, timeout_sec=0.05)

    with pytest.raises(BacklogFetchError, match="timed out"):
        await source.fetch_backlog()


async def test_failure_is_exposed_as_schedule_build_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with pytest.raises(BacklogFetchError) as exc_info:
        await _source(handler).fetch_backlog()

    assert exc_info.value.http_status_code == 500
    assert exc_info.value.client_message == "Failed to build schedule"
