"""Runtime factory wiring the process-wide schedule components.

所有对象在应用启动时创建一次，生命周期与进程相同，重启才会重置。
"""

import httpx

from anischedule.core.config import Settings
from anischedule.modules.schedule.application.media_resolver import MediaResolver
from anischedule.modules.schedule.application.passthrough_service import (
    PassthroughService,
)
from anischedule.modules.schedule.application.rate_limiter import RateLimiter
from anischedule.modules.schedule.application.schedule_builder import ScheduleBuilder
from anischedule.modules.schedule.application.schedule_service import ScheduleService
from anischedule.modules.schedule.application.ttl_cache import TTLCache
from anischedule.modules.schedule.domain.entities import MediaRecord
from anischedule.modules.schedule.infrastructure.anilist_client import AniListClient
from anischedule.modules.schedule.infrastructure.backlog_source import (
    HttpBacklogSource,
)
from anischedule.modules.schedule.infrastructure.credentials import (
    build_credential_provider,
)


class ScheduleRuntimeComponents:
    """Bundle of process-wide objects shared by all requests."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        media_cache: TTLCache[MediaRecord],
        anilist_client: AniListClient,
        schedule_service: ScheduleService,
        passthrough_service: PassthroughService,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.media_cache = media_cache
        self.anilist_client = anilist_client
        self.schedule_service = schedule_service
        self.passthrough_service = passthrough_service


class ScheduleRuntimeFactory:
    """Factory to build the schedule pipeline from settings."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport

    def create(self) -> ScheduleRuntimeComponents:
        s = self.settings

        rate_limiter = RateLimiter(
            min_interval_sec=s.RATE_LIMIT_MIN_INTERVAL_MS / 1000,
            max_calls=s.RATE_LIMIT_MAX_CALLS,
            window_sec=s.RATE_LIMIT_WINDOW_SEC,
        )
        media_cache: TTLCache[MediaRecord] = TTLCache(ttl_sec=s.MEDIA_CACHE_TTL_SEC)

        anilist_client = AniListClient(
            api_url=s.ANILIST_API_URL,
            credentials=build_credential_provider(s, transport=self.transport),
            timeout_sec=s.ANILIST_TIMEOUT_SEC,
            user_agent=s.FETCHER_USER_AGENT,
            transport=self.transport,
        )
        backlog_source = HttpBacklogSource(
            url=s.BACKLOG_URL,
            timeout_sec=s.BACKLOG_FETCH_TIMEOUT_SEC,
            user_agent=s.FETCHER_USER_AGENT,
            transport=self.transport,
        )

        resolver = MediaResolver(anilist_client, rate_limiter, media_cache)
        builder = ScheduleBuilder(
            backlog_source,
            resolver,
            categories=s.BACKLOG_CATEGORIES,
            concurrency=s.SCHEDULE_RESOLVE_CONCURRENCY,
        )
        schedule_service = ScheduleService(
            builder,
            ttl_sec=s.SCHEDULE_CACHE_TTL_SEC,
            serve_stale_on_error=s.SCHEDULE_SERVE_STALE_ON_ERROR,
        )

        return ScheduleRuntimeComponents(
            rate_limiter=rate_limiter,
            media_cache=media_cache,
            anilist_client=anilist_client,
            schedule_service=schedule_service,
            passthrough_service=PassthroughService(anilist_client, rate_limiter),
        )
