"""Schedule module application dependencies.

These functions define application-level dependency boundaries and are overridden
by infrastructure in `main.py`.
"""

from typing import NoReturn

from anischedule.modules.schedule.application.passthrough_service import (
    PassthroughService,
)
from anischedule.modules.schedule.application.schedule_service import ScheduleService


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_schedule_service() -> ScheduleService:
    _missing_dependency("ScheduleService")


async def get_passthrough_service() -> PassthroughService:
    _missing_dependency("PassthroughService")
