"""Schedule API schemas.

Field names stay camelCase on the wire; the schedule page reads them as-is.
"""

from pydantic import BaseModel, ConfigDict, Field


class AiringEpisodeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    episode: int = Field(..., description="集数")
    airing_at: int = Field(..., alias="airingAt", description="播出时间（Unix 秒）")


class ScheduleItemResponse(BaseModel):
    """One airing title."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Frieren: Beyond Journey's End",
                "coverImage": "https://example.com/covers/frieren-medium.jpg",
                "totalEpisodes": 28,
                "nextEpisode": {"episode": 5, "airingAt": 1696600800},
            }
        },
    )

    title: str = Field(..., description="英文标题，其次罗马音，最后为原查询标题")
    cover_image: str = Field(..., alias="coverImage", description="封面图 URL")
    total_episodes: int = Field(..., alias="totalEpisodes", description="总集数")
    next_episode: AiringEpisodeResponse = Field(
        ..., alias="nextEpisode", description="当前相关的一集"
    )


class ErrorResponse(BaseModel):
    """Error body returned with 4xx/5xx statuses."""

    error: str
    code: str
