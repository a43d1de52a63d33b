"""MediaResolver 单元测试。

测试覆盖：
- 缓存命中时不访问上游、不占用限流令牌
- 429 / 上游错误 / 格式错误返回 None 且不缓存
- 成功结果写入缓存，每个标题独立过期
"""

from typing import Any

import httpx
import pytest
from conftest import make_media_payload

from anischedule.modules.schedule.application.media_resolver import MediaResolver
from anischedule.modules.schedule.application.rate_limiter import RateLimiter
from anischedule.modules.schedule.application.ttl_cache import TTLCache
from anischedule.modules.schedule.domain.entities import AiringEpisode, MediaRecord
from anischedule.modules.schedule.domain.exceptions import (
    CredentialError,
    UpstreamError,
    UpstreamThrottledError,
)
from anischedule.modules.schedule.infrastructure.anilist_client import AniListClient

pytestmark = pytest.mark.anyio


class _FakeSearchClient:
    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    async def search_media(self, title: str) -> dict[str, Any]:
        self.calls.append(title)
        response = self.responses[title]
        if isinstance(response, Exception):
            raise response
        return response

    async def ensure_credentials(self) -> None:
        return None


@pytest.fixture
def limiter(fake_clock) -> RateLimiter:
    return RateLimiter(
        min_interval_sec=0.0, clock=fake_clock, sleep=fake_clock.sleep
    )


@pytest.fixture
def cache(fake_clock) -> TTLCache[MediaRecord]:
    return TTLCache(ttl_sec=3600, clock=fake_clock)


async def test_resolve_success_normalizes_and_caches(limiter, cache):
    client = _FakeSearchClient({"Frieren": make_media_payload()})
    resolver = MediaResolver(client, limiter, cache)

    record = await resolver.resolve("Frieren")

    assert record == MediaRecord(
        title_romaji="Sousou no Frieren",
        title_english="Frieren: Beyond Journey's End",
        cover_image_medium="https://img.test/medium.jpg",
        cover_image_large="https://img.test/large.jpg",
        total_episodes=28,
        next_airing_episode=AiringEpisode(episode=5, airing_at=1_700_100_000),
    )
    assert cache.get("Frieren") == record


async def test_cache_hit_skips_upstream_and_limiter(limiter, cache):
    client = _FakeSearchClient({"Frieren": make_media_payload()})
    resolver = MediaResolver(client, limiter, cache)

    first = await resolver.resolve("Frieren")
    second = await resolver.resolve("Frieren")

    assert first is second
    assert client.calls == ["Frieren"]
    assert limiter.calls_in_window() == 1


async def test_expired_entry_is_refetched(limiter, cache, fake_clock):
    client = _FakeSearchClient({"Frieren": make_media_payload()})
    resolver = MediaResolver(client, limiter, cache)

    await resolver.resolve("Frieren")
    fake_clock.advance(3600)
    await resolver.resolve("Frieren")

    assert client.calls == ["Frieren", "Frieren"]


async def test_titles_expire_independently(limiter, cache, fake_clock):
    client = _FakeSearchClient(
        {
            "Frieren": make_media_payload(),
            "Apothecary": make_media_payload(english="The Apothecary Diaries"),
        }
    )
    resolver = MediaResolver(client, limiter, cache)

    await resolver.resolve("Frieren")
    fake_clock.advance(1800)
    await resolver.resolve("Apothecary")
    fake_clock.advance(1800)  # Frieren 过期，Apothecary 仍新鲜

    await resolver.resolve("Frieren")
    await resolver.resolve("Apothecary")

    assert client.calls == ["Frieren", "Apothecary", "Frieren"]


async def test_throttled_returns_none_and_is_not_cached(limiter, cache):
    client = _FakeSearchClient({"Frieren": UpstreamThrottledError()})
    resolver = MediaResolver(client, limiter, cache)

    assert await resolver.resolve("Frieren") is None
    assert await resolver.resolve("Frieren") is None

    assert client.calls == ["Frieren", "Frieren"]
    assert len(cache) == 0


async def test_upstream_error_returns_none(limiter, cache):
    client = _FakeSearchClient({"Unknown": UpstreamError("HTTP 404", status_code=404)})
    resolver = MediaResolver(client, limiter, cache)

    assert await resolver.resolve("Unknown") is None
    assert cache.get("Unknown") is None


async def test_malformed_payload_returns_none(limiter, cache):
    client = _FakeSearchClient(
        {
            "Broken": {"title": "not-an-object"},
            "BadEpisode": make_media_payload(next_episode=0),
        }
    )
    resolver = MediaResolver(client, limiter, cache)

    assert await resolver.resolve("Broken") is None
    assert await resolver.resolve("BadEpisode") is None
    assert len(cache) == 0


async def test_null_episode_count_normalizes_to_zero(limiter, cache):
    client = _FakeSearchClient({"Ongoing": make_media_payload(episodes=None)})
    resolver = MediaResolver(client, limiter, cache)

    record = await resolver.resolve("Ongoing")

    assert record is not None
    assert record.total_episodes == 0


async def test_limiter_released_after_upstream_failure(limiter, cache):
    client = _FakeSearchClient({"Frieren": UpstreamError("boom")})
    resolver = MediaResolver(client, limiter, cache)

    await resolver.resolve("Frieren")

    assert limiter.in_flight is False


class _SlotCheckingCredentials:
    """记录每次取 token 时限流槽位是否被占用。"""

    def __init__(self, limiter: RateLimiter, fail: bool = False) -> None:
        self.limiter = limiter
        self.fail = fail
        self.slot_held: list[bool] = []

    async def get_token(self) -> str | None:
        self.slot_held.append(self.limiter.in_flight)
        if self.fail:
            raise CredentialError("token endpoint down")
        return "token"


async def test_token_is_obtained_before_taking_a_limiter_slot(limiter, cache):
    credentials = _SlotCheckingCredentials(limiter)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"Media": make_media_payload()}})

    client = AniListClient(
        api_url="https://graphql.anilist.test",
        credentials=credentials,
        transport=httpx.MockTransport(handler),
    )
    resolver = MediaResolver(client, limiter, cache)

    assert await resolver.resolve("Frieren") is not None
    assert credentials.slot_held[0] is False


async def test_credential_failure_skips_title_without_using_limiter(limiter, cache):
    credentials = _SlotCheckingCredentials(limiter, fail=True)

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request should not be sent")

    client = AniListClient(
        api_url="https://graphql.anilist.test",
        credentials=credentials,
        transport=httpx.MockTransport(handler),
    )
    resolver = MediaResolver(client, limiter, cache)

    assert await resolver.resolve("Frieren") is None
    assert credentials.slot_held == [False]
    assert limiter.calls_in_window() == 0
