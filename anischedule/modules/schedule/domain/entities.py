"""Schedule domain entities."""

import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class BacklogCategory(StrEnum):
    """Watch-status categories used by the backlog list."""

    PLANNED_TO_WATCH = "Planned to Watch"
    UNFINISHED_DISINTERESTED = "Unfinished / Disinterested"
    WATCHING = "Watching"
    COMPLETED = "Completed"


RELEVANT_CATEGORIES: frozenset[str] = frozenset(
    {
        BacklogCategory.PLANNED_TO_WATCH.value,
        BacklogCategory.UNFINISHED_DISINTERESTED.value,
    }
)


class BacklogEntry(BaseModel):
    """One title from the backlog list."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="番剧标题（用于搜索）")
    category: str = Field(..., description="观看状态分类")


class AiringEpisode(BaseModel):
    """An episode number with its airing time (epoch seconds)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    episode: int = Field(..., gt=0, description="集数")
    airing_at: int = Field(..., alias="airingAt", description="播出时间（Unix 秒）")


class MediaRecord(BaseModel):
    """Normalized media metadata returned by the upstream search."""

    model_config = ConfigDict(frozen=True)

    title_romaji: str | None = None
    title_english: str | None = None
    cover_image_medium: str | None = None
    cover_image_large: str | None = None
    total_episodes: int = Field(default=0, ge=0)
    next_airing_episode: AiringEpisode | None = None

    @classmethod
    def from_payload(cls, media: dict[str, Any]) -> "MediaRecord":
        """Build a record from an AniList ``Media`` object.

        Raises:
            ValueError: payload is malformed (pydantic.ValidationError included)
        """
        title = media.get("title") or {}
        cover = media.get("coverImage") or {}
        next_airing = media.get("nextAiringEpisode")
        if not isinstance(title, dict) or not isinstance(cover, dict):
            raise ValueError("Media title/coverImage must be objects")

        return cls(
            title_romaji=title.get("romaji"),
            title_english=title.get("english"),
            cover_image_medium=cover.get("medium"),
            cover_image_large=cover.get("large"),
            total_episodes=media.get("episodes") or 0,
            next_airing_episode=(
                AiringEpisode.model_validate(next_airing) if next_airing else None
            ),
        )

    def display_title(self, fallback: str) -> str:
        return self.title_english or self.title_romaji or fallback

    @property
    def cover_image_url(self) -> str:
        return self.cover_image_medium or self.cover_image_large or ""


class ScheduleItem(BaseModel):
    """One row of the served schedule."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    cover_image: str = Field(..., alias="coverImage")
    total_episodes: int = Field(..., alias="totalEpisodes")
    next_episode: AiringEpisode = Field(..., alias="nextEpisode")

    @classmethod
    def from_record(
        cls,
        query_title: str,
        record: MediaRecord,
        selected: AiringEpisode,
    ) -> "ScheduleItem":
        return cls(
            title=record.display_title(query_title),
            cover_image=record.cover_image_url,
            total_episodes=record.total_episodes,
            next_episode=selected,
        )


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value with the time it was fetched (epoch seconds)."""

    value: T
    fetched_at: float

    def age(self, now: float | None = None) -> float:
        return (time.time() if now is None else now) - self.fetched_at

    def is_fresh(self, ttl_sec: float, now: float | None = None) -> bool:
        return self.age(now) < ttl_sec
