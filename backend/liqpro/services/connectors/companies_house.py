from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .base import BaseConnector
from ...core.config import get_settings
from ...core.errors import RegistryLookupError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompanyProfile:
    company_number: str
    company_name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any], requested_number: str) -> "CompanyProfile":
        return cls(
            company_number=str(data.get("company_number") or requested_number),
            company_name=str(data.get("company_name") or ""),
        )


@dataclass(frozen=True)
class FilingHistoryItem:
    category: str
    description: str
    document_metadata: Optional[str] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "FilingHistoryItem":
        links = item.get("links") or {}
        doc = links.get("document_metadata") if isinstance(links, dict) else None
        return cls(
            category=str(item.get("category") or ""),
            description=str(item.get("description") or ""),
            document_metadata=doc or None,
        )


@dataclass(frozen=True)
class Officer:
    name: str
    officer_role: str

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Officer":
        return cls(
            name=str(item.get("name") or ""),
            officer_role=str(item.get("officer_role") or ""),
        )


def first_director_name(officers: List[Officer]) -> str:
    for officer in officers:
        if officer.officer_role == "director" and officer.name:
            return officer.name
    return ""


class CompaniesHouseConnector(BaseConnector):
    """
    Registry lookups against the Companies House public data API.

    Every method takes the caller's API key and authenticates with HTTP Basic
    (`key:` with an empty password). Non-success responses raise
    `RegistryLookupError`; whether that aborts the run is the caller's call.
    """

    name = "companies_house"

    def __init__(
        self,
        base_url: str | None = None,
        filings_items_per_page: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(transport=transport, timeout=timeout)
        settings = get_settings()
        self.base_url = (base_url or settings.COMPANIES_HOUSE_BASE_URL).rstrip("/")
        self.filings_items_per_page = filings_items_per_page or settings.FILING_HISTORY_ITEMS_PER_PAGE

    async def _get_json(
        self,
        credential: str,
        url: str,
        resource: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        async with self._client(auth=(credential, "")) as client:
            try:
                resp = await client.get(url, params=params)
            except httpx.HTTPError as e:
                raise RegistryLookupError(resource, None, str(e) or type(e).__name__) from e

        if not resp.is_success:
            raise RegistryLookupError(resource, resp.status_code, resp.reason_phrase)

        try:
            data = resp.json()
        except ValueError as e:
            raise RegistryLookupError(resource, resp.status_code, "invalid JSON body") from e
        return data if isinstance(data, dict) else {}

    async def get_profile(self, company_number: str, credential: str) -> CompanyProfile:
        data = await self._get_json(
            credential,
            f"{self.base_url}/company/{company_number}",
            resource="company details",
        )
        return CompanyProfile.from_api(data, company_number)

    async def get_filing_history(self, company_number: str, credential: str) -> List[FilingHistoryItem]:
        data = await self._get_json(
            credential,
            f"{self.base_url}/company/{company_number}/filing-history",
            resource="filing history",
            params={"items_per_page": self.filings_items_per_page},
        )
        items = data.get("items") or []
        return [FilingHistoryItem.from_api(i) for i in items if isinstance(i, dict)]

    async def get_officers(self, company_number: str, credential: str) -> List[Officer]:
        data = await self._get_json(
            credential,
            f"{self.base_url}/company/{company_number}/officers",
            resource="officers",
        )
        items = data.get("items") or []
        return [Officer.from_api(i) for i in items if isinstance(i, dict)]
