"""Schedule 缓存 + single-flight 服务。

状态机：
- Fresh: 缓存未过期，直接返回
- Stale/Empty 且无构建: 创建共享构建任务（在第一次挂起之前）
- Building: 后续请求加入同一个任务，拿到同样的结果或同样的异常

缓存只在构建成功后整体替换；构建失败不会改动已有缓存。
没有后台刷新，过期只在访问时发现。
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from loguru import logger

from anischedule.core.infrastructure.logging import BusinessEvents
from anischedule.modules.schedule.application.schedule_builder import ScheduleBuilder
from anischedule.modules.schedule.domain.entities import CacheEntry, ScheduleItem
from anischedule.modules.schedule.domain.exceptions import BacklogFetchError

Schedule = list[ScheduleItem]


@dataclass(frozen=True)
class ScheduleCacheStatus:
    state: Literal["empty", "fresh", "stale"]
    building: bool
    item_count: int
    age_sec: float | None


class ScheduleService:
    """Serve the schedule from cache, coalescing concurrent rebuilds."""

    def __init__(
        self,
        builder: ScheduleBuilder,
        *,
        ttl_sec: float = 3600,
        serve_stale_on_error: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self.builder = builder
        self.ttl_sec = ttl_sec
        self.serve_stale_on_error = serve_stale_on_error
        self._clock = clock
        self._entry: CacheEntry[Schedule] | None = None
        self._build_task: asyncio.Task[Schedule] | None = None

    async def get_schedule(self) -> Schedule:
        """Return the cached schedule, building it if needed.

        Raises:
            BacklogFetchError: 构建失败（并且没有启用旧数据回退）
        """
        entry = self._entry
        if entry is not None and entry.is_fresh(self.ttl_sec, self._clock()):
            logger.debug("Serving cached schedule")
            return entry.value

        task = self._build_task
        if task is None:
            task = asyncio.ensure_future(self._run_build())
            task.add_done_callback(_consume_task_exception)
            self._build_task = task
        else:
            logger.debug("Schedule build in flight, joining it")

        try:
            # shield: 单个请求断开不应取消其他请求共享的构建
            return await asyncio.shield(task)
        except BacklogFetchError as exc:
            stale = self._entry
            if self.serve_stale_on_error and stale is not None:
                BusinessEvents.schedule_served_stale(
                    age_sec=stale.age(self._clock()), error=exc.message
                )
                return stale.value
            raise

    async def _run_build(self) -> Schedule:
        try:
            schedule = await self.builder.build()
        except Exception as exc:
            logger.error(f"Schedule build failed: {exc}")
            BusinessEvents.schedule_build_failed(error=str(exc))
            raise
        else:
            self._entry = CacheEntry(value=schedule, fetched_at=self._clock())
            logger.info(f"Schedule cached ({len(schedule)} titles)")
            return schedule
        finally:
            self._build_task = None

    def status(self) -> ScheduleCacheStatus:
        entry = self._entry
        building = self._build_task is not None
        if entry is None:
            return ScheduleCacheStatus("empty", building, 0, None)

        now = self._clock()
        state = "fresh" if entry.is_fresh(self.ttl_sec, now) else "stale"
        return ScheduleCacheStatus(state, building, len(entry.value), entry.age(now))


def _consume_task_exception(task: asyncio.Task) -> None:
    # 所有等待者都已断开时，避免 "Task exception was never retrieved"
    if not task.cancelled():
        task.exception()
