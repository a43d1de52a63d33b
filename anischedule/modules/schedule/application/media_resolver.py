"""Media 解析服务。

按标题查询 AniList，支持：
- 每个标题独立的 TTL 缓存
- 全局限流（所有上游调用都经过同一个 RateLimiter）
- 失败降级：429 / 其他错误都返回 None，不缓存，不重试
"""

from loguru import logger

from anischedule.core.infrastructure.logging import BusinessEvents
from anischedule.modules.schedule.application.rate_limiter import RateLimiter
from anischedule.modules.schedule.application.ttl_cache import TTLCache
from anischedule.modules.schedule.domain.entities import MediaRecord
from anischedule.modules.schedule.domain.exceptions import (
    CredentialError,
    UpstreamError,
    UpstreamThrottledError,
)
from anischedule.modules.schedule.domain.ports import MediaSearchClient


class MediaResolver:
    """Resolve a backlog title to normalized media metadata."""

    def __init__(
        self,
        client: MediaSearchClient,
        rate_limiter: RateLimiter,
        cache: TTLCache[MediaRecord],
    ):
        self.client = client
        self.rate_limiter = rate_limiter
        self.cache = cache

    async def resolve(self, title: str) -> MediaRecord | None:
        """Return metadata for ``title`` or ``None`` when it cannot be resolved.

        Args:
            title: 搜索用标题（同时作为缓存 key）

        Returns:
            MediaRecord，失败时返回 None
        """
        cached = self.cache.get(title)
        if cached is not None:
            return cached

        # token 刷新可能带重试，必须在占用限流槽位之前完成
        try:
            await self.client.ensure_credentials()
        except CredentialError as exc:
            logger.warning(f"No AniList token for '{title}': {exc.message}")
            BusinessEvents.title_skipped(title=title, reason=exc.error_code)
            return None

        async with self.rate_limiter.acquire() as token:
            try:
                media = await self.client.search_media(title)
            except UpstreamThrottledError:
                logger.warning(f"AniList 429 for '{title}', skipping this build")
                BusinessEvents.upstream_throttled(title=title, sequence=token.sequence)
                return None
            except UpstreamError as exc:
                logger.warning(f"AniList lookup failed for '{title}': {exc.message}")
                BusinessEvents.title_skipped(title=title, reason=exc.error_code)
                return None

        try:
            record = MediaRecord.from_payload(media)
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning(f"Malformed media payload for '{title}': {exc}")
            BusinessEvents.title_skipped(title=title, reason="MALFORMED_MEDIA")
            return None

        self.cache.set(title, record)
        return record
