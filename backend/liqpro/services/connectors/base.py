from abc import ABC, abstractmethod
from typing import Any

import httpx

from ...core.config import get_settings


class ConnectorResult(dict):
    """Light wrapper, but can add metadata later."""


class BaseConnector:
    """
    Shared plumbing for every outbound HTTP collaborator.

    A `transport` can be injected so tests drive connectors through
    `httpx.MockTransport` without touching the network. Clients are opened
    per call so nothing (credentials included) outlives a single request.
    """

    name: str

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self._transport = transport
        self._timeout = timeout if timeout is not None else get_settings().HTTP_TIMEOUT_SECONDS

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self._timeout,
            **kwargs,
        )


class SearchConnector(BaseConnector, ABC):
    @abstractmethod
    async def fetch(self, **kwargs) -> ConnectorResult:
        ...

    async def search(self, query: str) -> list[dict[str, Any]]:
        res = await self.fetch(query=query)
        return list(res.get("results") or [])
