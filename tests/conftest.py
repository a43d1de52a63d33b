"""
pytest 配置和共享 fixtures。

测试分层：
- unit/: 单元测试（不依赖外部服务，上游 HTTP 用 httpx.MockTransport 模拟）

使用方法：
    # 运行所有测试
    uv run pytest

    # 只运行单元测试
    uv run pytest tests/unit/
"""

import asyncio
from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from anischedule.core.config import Settings

# ============================================
# 配置 Fixtures
# ============================================


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    """测试环境配置。"""
    return Settings(
        ENVIRONMENT="local",
        ANILIST_API_URL="https://graphql.anilist.test",
        ANILIST_ACCESS_TOKEN="test-token",
        BACKLOG_URL="https://backlog.test/anime_backup.json",
        RATE_LIMIT_MIN_INTERVAL_MS=0,  # 测试时不做间隔等待
        SCHEDULE_CACHE_TTL_SEC=3600,
        MEDIA_CACHE_TTL_SEC=3600,
    )


# ============================================
# 时间控制 Fixtures
# ============================================


class FakeClock:
    """可控时钟：sleep 直接推进时间而不真正等待。"""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ============================================
# 示例数据 Fixtures
# ============================================


def make_media_payload(
    *,
    romaji: str | None = "Sousou no Frieren",
    english: str | None = "Frieren: Beyond Journey's End",
    medium: str | None = "https://img.test/medium.jpg",
    large: str | None = "https://img.test/large.jpg",
    episodes: int | None = 28,
    next_episode: int | None = 5,
    airing_at: int = 1_700_100_000,
) -> dict[str, Any]:
    """构造 AniList Media 对象。"""
    return {
        "title": {"romaji": romaji, "english": english},
        "coverImage": {"medium": medium, "large": large},
        "episodes": episodes,
        "nextAiringEpisode": (
            {"episode": next_episode, "airingAt": airing_at}
            if next_episode is not None
            else None
        ),
    }


@pytest.fixture
def sample_backlog_payload() -> list[dict[str, Any]]:
    """示例 backlog 列表。"""
    return [
        {"title": "Frieren", "category": "Planned to Watch", "rating": 10},
        {"title": "Dungeon Meshi", "category": "Completed"},
        {"title": "Kusuriya no Hitorigoto", "category": "Unfinished / Disinterested"},
        {"title": "Spy x Family", "category": "Watching"},
    ]


# ============================================
# HTTP Client Fixtures
# ============================================


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """异步 HTTP 客户端（用于 API 测试）。

    不运行 lifespan；测试自行覆盖依赖或设置 app.state.schedule_runtime。
    """
    from main import app

    original_overrides = dict(app.dependency_overrides)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
    if hasattr(app.state, "schedule_runtime"):
        del app.state.schedule_runtime
