"""PassthroughService 单元测试。"""

import httpx
import pytest

from anischedule.modules.schedule.application.passthrough_service import (
    PassthroughService,
)
from anischedule.modules.schedule.application.rate_limiter import RateLimiter
from anischedule.modules.schedule.domain.exceptions import (
    CredentialError,
    PassthroughError,
)
from anischedule.modules.schedule.infrastructure.anilist_client import AniListClient

pytestmark = pytest.mark.anyio


class _SlotCheckingCredentials:
    def __init__(self, limiter: RateLimiter, fail: bool = False) -> None:
        self.limiter = limiter
        self.fail = fail
        self.slot_held: list[bool] = []

    async def get_token(self) -> str | None:
        self.slot_held.append(self.limiter.in_flight)
        if self.fail:
            raise CredentialError("token endpoint down")
        return "token"


def _service(handler, fail: bool = False):
    limiter = RateLimiter(min_interval_sec=0.0)
    credentials = _SlotCheckingCredentials(limiter, fail=fail)
    client = AniListClient(
        api_url="https://graphql.anilist.test",
        credentials=credentials,
        transport=httpx.MockTransport(handler),
    )
    return PassthroughService(client, limiter), limiter, credentials


async def test_forward_relays_upstream_answer():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"Viewer": None}})

    service, limiter, _ = _service(handler)

    forwarded = await service.forward({"query": "{ Viewer { id } }"})

    assert forwarded.status_code == 200
    assert forwarded.body == {"data": {"Viewer": None}}
    assert limiter.calls_in_window() == 1


async def test_token_is_obtained_before_taking_a_limiter_slot():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {}})

    service, _, credentials = _service(handler)

    await service.forward({"query": "{}"})

    assert credentials.slot_held[0] is False


async def test_credential_failure_raises_without_using_limiter():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request should not be sent")

    service, limiter, credentials = _service(handler, fail=True)

    with pytest.raises(PassthroughError):
        await service.forward({"query": "{}"})

    assert credentials.slot_held == [False]
    assert limiter.calls_in_window() == 0
