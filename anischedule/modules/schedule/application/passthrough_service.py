"""Raw GraphQL passthrough, throttled by the shared rate limiter."""

from typing import Any

from anischedule.modules.schedule.application.rate_limiter import RateLimiter
from anischedule.modules.schedule.domain.exceptions import (
    CredentialError,
    PassthroughError,
)
from anischedule.modules.schedule.domain.ports import (
    ForwardedResponse,
    GraphQLForwarder,
)


class PassthroughService:
    def __init__(self, forwarder: GraphQLForwarder, rate_limiter: RateLimiter):
        self.forwarder = forwarder
        self.rate_limiter = rate_limiter

    async def forward(self, body: Any) -> ForwardedResponse:
        # token 在占用限流槽位之前获取
        try:
            await self.forwarder.ensure_credentials()
        except CredentialError as exc:
            raise PassthroughError(f"Passthrough failed: {exc.message}") from exc

        async with self.rate_limiter.acquire():
            return await self.forwarder.forward(body)
