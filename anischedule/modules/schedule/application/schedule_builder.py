"""Schedule 构建流程。

backlog → 分类过滤 → 逐个标题解析 → 选集策略 → 有序列表。
单个标题失败不会影响整体；只有 backlog 拉取失败会让整次构建失败。
"""

import asyncio
import time
from collections.abc import Callable, Iterable

from loguru import logger

from anischedule.core.infrastructure.logging import BusinessEvents
from anischedule.modules.schedule.application.media_resolver import MediaResolver
from anischedule.modules.schedule.domain.entities import (
    RELEVANT_CATEGORIES,
    BacklogEntry,
    ScheduleItem,
)
from anischedule.modules.schedule.domain.episode_policy import select_episode
from anischedule.modules.schedule.domain.ports import BacklogSource


class ScheduleBuilder:
    """Build the aggregated airing schedule from the backlog."""

    def __init__(
        self,
        backlog_source: BacklogSource,
        resolver: MediaResolver,
        *,
        categories: Iterable[str] = RELEVANT_CATEGORIES,
        concurrency: int = 1,
        clock: Callable[[], float] = time.time,
    ):
        self.backlog_source = backlog_source
        self.resolver = resolver
        self.categories = frozenset(categories)
        self.concurrency = max(1, concurrency)
        self._clock = clock

    async def build(self) -> list[ScheduleItem]:
        """Run one full build.

        Raises:
            BacklogFetchError: backlog 拉取失败
        """
        start_time = time.monotonic()
        backlog = await self.backlog_source.fetch_backlog()
        relevant = self.filter_relevant(backlog)
        logger.info(
            f"Rebuilding schedule: {len(relevant)} relevant of {len(backlog)} titles"
        )

        if not relevant:
            return []

        # 并发只影响等待方式；上游调用仍由共享 RateLimiter 串行化
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _resolve_one(entry: BacklogEntry) -> ScheduleItem | None:
            async with semaphore:
                return await self._build_item(entry)

        results = await asyncio.gather(*(_resolve_one(entry) for entry in relevant))
        items = [item for item in results if item is not None]

        BusinessEvents.schedule_built(
            item_count=len(items),
            relevant_count=len(relevant),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        return items

    def filter_relevant(self, backlog: list[BacklogEntry]) -> list[BacklogEntry]:
        return [entry for entry in backlog if entry.category in self.categories]

    async def _build_item(self, entry: BacklogEntry) -> ScheduleItem | None:
        record = await self.resolver.resolve(entry.title)
        if record is None:
            return None

        selected = select_episode(record.next_airing_episode, self._clock())
        if selected is None:
            logger.debug(f"No airing episode for '{entry.title}', omitted")
            BusinessEvents.title_skipped(title=entry.title, reason="NOT_AIRING")
            return None

        return ScheduleItem.from_record(entry.title, record, selected)
