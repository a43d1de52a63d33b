"""AniList GraphQL client."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from anischedule.modules.schedule.domain.exceptions import (
    CredentialError,
    PassthroughError,
    UpstreamError,
    UpstreamThrottledError,
)
from anischedule.modules.schedule.domain.ports import (
    CredentialProvider,
    ForwardedResponse,
)

SEARCH_MEDIA_QUERY = """
query ($search: String) {
  Media(search: $search, type: ANIME) {
    title { romaji english }
    coverImage { medium large }
    episodes
    nextAiringEpisode { episode airingAt }
  }
}
""".strip()


class AniListClient:
    """HTTP adapter for the AniList GraphQL endpoint.

    不做限流也不做重试：调用方负责通过 RateLimiter 获取令牌。
    """

    def __init__(
        self,
        *,
        api_url: str,
        credentials: CredentialProvider,
        timeout_sec: float = 15.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.credentials = credentials
        self.timeout_sec = timeout_sec
        self.user_agent = user_agent
        self._transport = transport

    async def ensure_credentials(self) -> None:
        """Obtain (or refresh) the bearer token before a rate-limited call.

        Raises:
            CredentialError: token endpoint 不可用或返回异常
        """
        await self.credentials.get_token()

    async def search_media(self, title: str) -> dict[str, Any]:
        """Search one anime by title and return the raw ``Media`` object.

        Raises:
            UpstreamThrottledError: HTTP 429
            UpstreamError: 网络错误、非 2xx、响应格式错误或未找到 media
        """
        body = {"query": SEARCH_MEDIA_QUERY, "variables": {"search": title}}
        try:
            response = await self._send(body)
        except CredentialError as exc:
            raise UpstreamError(exc.message) from exc
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"Timeout: {exc}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Error: {exc}") from exc

        if response.status_code == 429:
            raise UpstreamThrottledError()
        if not response.is_success:
            raise UpstreamError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError("Invalid JSON from AniList") from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        media = data.get("Media") if isinstance(data, dict) else None
        if not isinstance(media, dict):
            raise UpstreamError("No media in AniList response")
        return media

    async def forward(self, body: Any) -> ForwardedResponse:
        """Forward a raw GraphQL request body and relay the upstream answer.

        Raises:
            PassthroughError: 网络错误、凭据错误或上游返回非 JSON
        """
        try:
            response = await self._send(body)
        except (CredentialError, httpx.HTTPError) as exc:
            logger.error(f"Passthrough failed: {exc}")
            raise PassthroughError(f"Passthrough failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise PassthroughError(
                f"Upstream returned non-JSON body (HTTP {response.status_code})"
            ) from exc
        return ForwardedResponse(status_code=response.status_code, body=data)

    async def _send(self, body: Any) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        token = await self.credentials.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        async with httpx.AsyncClient(
            timeout=self.timeout_sec,
            transport=self._transport,
        ) as client:
            return await client.post(self.api_url, json=body, headers=headers)
