"""Schedule API routes."""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from anischedule.core.domain.exceptions import ValidationError
from anischedule.modules.schedule.application.dependencies import (
    get_passthrough_service,
    get_schedule_service,
)
from anischedule.modules.schedule.application.passthrough_service import (
    PassthroughService,
)
from anischedule.modules.schedule.application.schedule_service import ScheduleService
from anischedule.modules.schedule.domain.entities import ScheduleItem
from anischedule.modules.schedule.interfaces.schemas import (
    AiringEpisodeResponse,
    ErrorResponse,
    ScheduleItemResponse,
)

router = APIRouter(tags=["schedule"])


def _to_schedule_item_response(item: ScheduleItem) -> ScheduleItemResponse:
    return ScheduleItemResponse(
        title=item.title,
        cover_image=item.cover_image,
        total_episodes=item.total_episodes,
        next_episode=AiringEpisodeResponse(
            episode=item.next_episode.episode,
            airing_at=item.next_episode.airing_at,
        ),
    )


@router.get(
    "/cached-schedule",
    response_model=list[ScheduleItemResponse],
    responses={500: {"model": ErrorResponse}},
    summary="获取缓存的播出时间表",
    description="返回缓存的 schedule；缓存过期时触发（或加入进行中的）重建",
)
async def get_cached_schedule(
    service: ScheduleService = Depends(get_schedule_service),
) -> list[ScheduleItemResponse]:
    """Serve the aggregated schedule."""
    schedule = await service.get_schedule()
    return [_to_schedule_item_response(item) for item in schedule]


@router.post(
    "/anilist",
    responses={500: {"model": ErrorResponse}},
    summary="AniList GraphQL 透传",
    description="将请求体原样转发给 AniList（经过全局限流），返回上游的 JSON 与状态码",
)
async def anilist_passthrough(
    request: Request,
    service: PassthroughService = Depends(get_passthrough_service),
) -> JSONResponse:
    """Forward a raw GraphQL request."""
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc

    forwarded = await service.forward(body)
    return JSONResponse(status_code=forwarded.status_code, content=forwarded.body)


@router.options("/anilist", include_in_schema=False)
@router.options("/cached-schedule", include_in_schema=False)
async def preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK)
