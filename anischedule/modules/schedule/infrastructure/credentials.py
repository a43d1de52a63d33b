"""AniList credential providers.

- StaticTokenProvider: 使用配置中的 ANILIST_ACCESS_TOKEN
- ClientCredentialsTokenProvider: OAuth2 client-credentials 流程，提前刷新
- AnonymousCredentialProvider: 未配置凭据时匿名访问
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from anischedule.core.config import Settings
from anischedule.core.infrastructure.logging import BusinessEvents
from anischedule.modules.schedule.domain.exceptions import CredentialError
from anischedule.modules.schedule.domain.ports import CredentialProvider


class AnonymousCredentialProvider:
    async def get_token(self) -> str | None:
        return None


class StaticTokenProvider:
    def __init__(self, token: str):
        self._token = token

    async def get_token(self) -> str | None:
        return self._token


class ClientCredentialsTokenProvider:
    """Obtain and cache an access token via the client-credentials grant."""

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        token_url: str,
        refresh_margin_sec: float = 60,
        timeout_sec: float = 10.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.refresh_margin_sec = refresh_margin_sec
        self.timeout_sec = timeout_sec
        self.user_agent = user_agent
        self._transport = transport
        self._clock = clock

        self._token: str | None = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    async def get_token(self) -> str | None:
        """Return a cached token, refreshing it shortly before expiry.

        Raises:
            CredentialError: token endpoint 不可用或返回异常
        """
        if self._is_token_valid():
            return self._token

        async with self._lock:
            # 等锁期间可能已被其他请求刷新
            if self._is_token_valid():
                return self._token

            try:
                payload = await self._request_token()
            except httpx.HTTPStatusError as exc:
                raise CredentialError(
                    f"OAuth token request failed: HTTP {exc.response.status_code}"
                ) from exc
            except (httpx.HTTPError, ValueError) as exc:
                raise CredentialError(f"OAuth token request failed: {exc}") from exc

            token = payload.get("access_token") if isinstance(payload, dict) else None
            expires_in = payload.get("expires_in") if isinstance(payload, dict) else None
            if not isinstance(token, str) or not isinstance(expires_in, int | float):
                raise CredentialError("OAuth token response missing access_token")

            self._token = token
            self._expires_at = self._clock() + expires_in
            logger.info(f"AniList token refreshed (expires in {expires_in / 3600:.1f} h)")
            BusinessEvents.token_refreshed(expires_in_sec=int(expires_in))
            return token

    def _is_token_valid(self) -> bool:
        return (
            self._token is not None
            and self._clock() < self._expires_at - self.refresh_margin_sec
        )

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _request_token(self) -> Any:
        headers = {"Accept": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        async with httpx.AsyncClient(
            timeout=self.timeout_sec,
            transport=self._transport,
        ) as client:
            response = await client.post(
                self.token_url,
                json={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                headers=headers,
            )
            response.raise_for_status()
            return response.json()


def build_credential_provider(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CredentialProvider:
    """Pick the credential provider from configuration."""
    if settings.ANILIST_ACCESS_TOKEN:
        return StaticTokenProvider(settings.ANILIST_ACCESS_TOKEN)

    if settings.ANILIST_CLIENT_ID and settings.ANILIST_CLIENT_SECRET:
        return ClientCredentialsTokenProvider(
            client_id=settings.ANILIST_CLIENT_ID,
            client_secret=settings.ANILIST_CLIENT_SECRET,
            token_url=settings.ANILIST_OAUTH_TOKEN_URL,
            refresh_margin_sec=settings.ANILIST_TOKEN_REFRESH_MARGIN_SEC,
            timeout_sec=settings.ANILIST_TIMEOUT_SEC,
            user_agent=settings.FETCHER_USER_AGENT,
            transport=transport,
        )

    logger.warning("No AniList credentials configured, using anonymous access")
    return AnonymousCredentialProvider()
