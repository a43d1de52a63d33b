"""Schedule module infrastructure dependencies."""

from fastapi import Request

from anischedule.modules.schedule.application.passthrough_service import (
    PassthroughService,
)
from anischedule.modules.schedule.application.schedule_service import ScheduleService
from anischedule.modules.schedule.infrastructure.runtime_factory import (
    ScheduleRuntimeComponents,
)


def get_schedule_runtime(request: Request) -> ScheduleRuntimeComponents:
    runtime = getattr(request.app.state, "schedule_runtime", None)
    if runtime is None:
        raise RuntimeError("Schedule runtime not initialized (lifespan not run?)")
    return runtime


async def get_schedule_service(request: Request) -> ScheduleService:
    return get_schedule_runtime(request).schedule_service


async def get_passthrough_service(request: Request) -> PassthroughService:
    return get_schedule_runtime(request).passthrough_service
