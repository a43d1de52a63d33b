"""Application configuration."""

from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BeforeValidator, Field, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_csv_list(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    PROJECT_NAME: str = "anischedule"
    VERSION: str = "0.1.0"
    SERVER_PORT: int = Field(
        default=3000,
        validation_alias=AliasChoices("PORT", "SERVER_PORT"),
    )
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    # CORS (the schedule is consumed by a static site on another origin)
    BACKEND_CORS_ORIGINS: Annotated[list[str] | str, BeforeValidator(parse_csv_list)] = [
        "*"
    ]
    CORS_ALLOW_METHODS: Annotated[
        list[str] | str, BeforeValidator(parse_csv_list)
    ] = ["GET", "POST", "OPTIONS"]
    CORS_ALLOW_HEADERS: Annotated[
        list[str] | str, BeforeValidator(parse_csv_list)
    ] = ["Content-Type"]

    @computed_field
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Sentry
    SENTRY_DSN: HttpUrl | None = None

    # AniList upstream
    ANILIST_API_URL: str = "https://graphql.anilist.co"
    ANILIST_OAUTH_TOKEN_URL: str = "https://anilist.co/api/v2/oauth/token"
    ANILIST_CLIENT_ID: str | None = None
    ANILIST_CLIENT_SECRET: str | None = None
    ANILIST_ACCESS_TOKEN: str | None = None  # 静态 token，优先于 client credentials
    ANILIST_TIMEOUT_SEC: float = 15.0
    ANILIST_TOKEN_REFRESH_MARGIN_SEC: int = 60

    # Backlog list
    BACKLOG_URL: str = (
        "https://raw.githubusercontent.com/Mythyxs/website/refs/heads/main/"
        "anime_backup.json"
    )
    BACKLOG_FETCH_TIMEOUT_SEC: float = 8.0
    BACKLOG_CATEGORIES: Annotated[list[str] | str, BeforeValidator(parse_csv_list)] = [
        "Planned to Watch",
        "Unfinished / Disinterested",
    ]

    # Rate limiting (AniList allows 90 req/min)
    RATE_LIMIT_MIN_INTERVAL_MS: int = 700
    RATE_LIMIT_MAX_CALLS: int = 90
    RATE_LIMIT_WINDOW_SEC: float = 60.0

    # Caches
    SCHEDULE_CACHE_TTL_SEC: float = 60 * 60  # 1 hour
    MEDIA_CACHE_TTL_SEC: float = 60 * 60  # 1 hour

    # Schedule build
    SCHEDULE_RESOLVE_CONCURRENCY: int = 1
    SCHEDULE_SERVE_STALE_ON_ERROR: bool = False

    FETCHER_USER_AGENT: str = "anischedule/0.1 (+schedule proxy)"

    @computed_field
    @property
    def anilist_credentials_configured(self) -> bool:
        return bool(
            self.ANILIST_ACCESS_TOKEN
            or (self.ANILIST_CLIENT_ID and self.ANILIST_CLIENT_SECRET)
        )


settings = Settings()
