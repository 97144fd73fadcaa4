from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from .base import ConnectorResult, SearchConnector
from ...core.config import get_settings
from ...core.errors import EnrichmentError

logger = logging.getLogger(__name__)


class ExaSearchConnector(SearchConnector):
    """
    Plain keyword web search over Exa's /search API.

    Results are normalised to:
        {"url": ..., "title": ..., "domain": ..., "provider": "exa"}
    preserving the provider's ranking order. Without an API key the connector
    is disabled and returns no results.
    """

    name = "exa"

    def __init__(
        self,
        api_key: str | None = None,
        search_url: str | None = None,
        num_results: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(transport=transport, timeout=timeout)
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.EXA_API_KEY
        self.search_url = search_url or settings.EXA_SEARCH_URL
        self.num_results = num_results or settings.WEB_SEARCH_RESULTS

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "Content-Type": "application/json",
            "accept": "application/json",
        }

    def _build_search_payload(self, query: str, num_results: Optional[int] = None) -> Dict[str, Any]:
        return {
            "query": query,
            "numResults": num_results or self.num_results,
            "type": "keyword",
        }

    def _parse_results(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        for r in data.get("results") or []:
            if not isinstance(r, dict):
                continue
            url = r.get("url")
            if not url:
                continue
            results.append(
                {
                    "url": url,
                    "title": r.get("title"),
                    "domain": urlparse(url).netloc or None,
                    "provider": "exa",
                }
            )
        return results

    async def fetch(self, **params: Any) -> ConnectorResult:
        query = str(params.get("query") or "").strip()
        if not query:
            return ConnectorResult({"results": []})

        if not self.api_key:
            logger.info(
                "ExaSearchConnector disabled (no API key). Returning empty result.",
                extra={"connector": self.name},
            )
            return ConnectorResult({"results": []})

        async with self._client() as client:
            try:
                resp = await client.post(
                    self.search_url,
                    headers=self._headers(),
                    json=self._build_search_payload(query, params.get("num_results")),
                )
            except httpx.HTTPError as e:
                raise EnrichmentError(f"Web search request failed: {e}") from e

        if not resp.is_success:
            raise EnrichmentError(f"Web search returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise EnrichmentError("Web search returned a non-JSON body") from e

        return ConnectorResult({"results": self._parse_results(data if isinstance(data, dict) else {})})
