"""Schedule domain ports."""

from dataclasses import dataclass
from typing import Any, Protocol

from anischedule.modules.schedule.domain.entities import BacklogEntry


class BacklogSource(Protocol):
    """Port for loading the backlog list.

    Implementations raise ``BacklogFetchError`` on any failure.
    """

    async def fetch_backlog(self) -> list[BacklogEntry]: ...


class MediaSearchClient(Protocol):
    """Port for the upstream search-by-title call.

    Returns the raw ``Media`` object. Raises ``UpstreamThrottledError`` on 429
    and ``UpstreamError`` on any other failure.
    ``ensure_credentials`` obtains the bearer token ahead of the call so a slow
    refresh never happens while a rate-limit slot is held.
    """

    async def search_media(self, title: str) -> dict[str, Any]: ...

    async def ensure_credentials(self) -> None: ...


class CredentialProvider(Protocol):
    """Port for the upstream bearer token. ``None`` means anonymous access."""

    async def get_token(self) -> str | None: ...


@dataclass(frozen=True)
class ForwardedResponse:
    """Upstream answer to a passthrough request."""

    status_code: int
    body: Any


class GraphQLForwarder(Protocol):
    """Port for forwarding a raw GraphQL request body."""

    async def forward(self, body: Any) -> ForwardedResponse: ...

    async def ensure_credentials(self) -> None: ...
