"""
Shared test fixtures for extraction pipeline tests.

Contains fake collaborators (registry, document fetcher, extractor, web
search) that record their calls, plus canned Companies House payloads.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from liqpro.core.errors import DocumentFetchError, RegistryLookupError
from liqpro.services.connectors.base import ConnectorResult, SearchConnector
from liqpro.services.connectors.companies_house import (
    CompanyProfile,
    FilingHistoryItem,
    Officer,
)


# ---------------------------------------------------------------------------
# Canned registry data
# ---------------------------------------------------------------------------

COMPANY_NUMBER = "11969947"
CREDENTIAL = "ch-test-key"

SOA_URL = "https://reg/doc/1"
ACCOUNTS_URLS = [
    "https://reg/doc/acc-1",
    "https://reg/doc/acc-2",
    "https://reg/doc/acc-3",
    "https://reg/doc/acc-4",
]


def filing(category: str, description: str, url: Optional[str]) -> FilingHistoryItem:
    return FilingHistoryItem(category=category, description=description, document_metadata=url)


SOA_HISTORY: List[FilingHistoryItem] = [
    filing("insolvency", "statement-of-affairs filed", SOA_URL),
]

ACCOUNTS_ONLY_HISTORY: List[FilingHistoryItem] = [
    filing("accounts", "accounts-with-accounts-type-micro-entity", ACCOUNTS_URLS[0]),
    filing("officers", "appoint-person-director-company-with-name", None),
    filing("accounts", "accounts-with-accounts-type-total-exemption-full", ACCOUNTS_URLS[1]),
]


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

@dataclass
class FakeRegistry:
    """Stands in for CompaniesHouseConnector."""

    profile: CompanyProfile = field(
        default_factory=lambda: CompanyProfile(company_number=COMPANY_NUMBER, company_name="ACME LTD")
    )
    history: List[FilingHistoryItem] = field(default_factory=list)
    officers: List[Officer] = field(default_factory=list)
    profile_status: Optional[int] = None
    history_status: Optional[int] = None
    officers_status: Optional[int] = None
    calls: List[str] = field(default_factory=list)
    credentials_seen: List[str] = field(default_factory=list)

    async def get_profile(self, company_number: str, credential: str) -> CompanyProfile:
        self.calls.append("profile")
        self.credentials_seen.append(credential)
        if self.profile_status is not None:
            raise RegistryLookupError("company details", self.profile_status, "Not Found")
        return self.profile

    async def get_filing_history(self, company_number: str, credential: str) -> List[FilingHistoryItem]:
        self.calls.append("filing_history")
        if self.history_status is not None:
            raise RegistryLookupError("filing history", self.history_status, "Error")
        return list(self.history)

    async def get_officers(self, company_number: str, credential: str) -> List[Officer]:
        self.calls.append("officers")
        if self.officers_status is not None:
            raise RegistryLookupError("officers", self.officers_status, "Error")
        return list(self.officers)


@dataclass
class FakeFetcher:
    """Stands in for DocumentFetcher; maps URL -> base64 body."""

    documents: Dict[str, str] = field(default_factory=dict)
    failing: Dict[str, int] = field(default_factory=dict)
    calls: List[str] = field(default_factory=list)

    async def fetch_document(self, metadata_url: str, credential: str) -> str:
        self.calls.append(metadata_url)
        if metadata_url in self.failing:
            raise DocumentFetchError("metadata", metadata_url, status_code=self.failing[metadata_url])
        return self.documents.get(metadata_url, f"b64:{metadata_url}")


@dataclass
class FakeExtractor:
    """
    Stands in for DocumentExtractor.

    `by_document` maps a base64 body to the record (or exception) returned
    for it; `ethnicity` is returned for text prompts.
    """

    by_document: Dict[str, Any] = field(default_factory=dict)
    ethnicity: str = ""
    ethnicity_error: Optional[Exception] = None
    fallback_model: str = "fake-fallback"
    calls: List[Dict[str, Any]] = field(default_factory=list)
    prompts: List[str] = field(default_factory=list)

    async def extract(self, document_b64: str, schema, *, model: Optional[str] = None) -> Dict[str, str]:
        self.calls.append({"document": document_b64, "schema": schema.name, "model": model})
        outcome = self.by_document.get(document_b64, {})
        if isinstance(outcome, Exception):
            raise outcome
        record = schema.empty_record()
        record.update({k: v for k, v in outcome.items() if k in schema.fields})
        return record

    async def complete_json(self, prompt: str, schema, *, model: Optional[str] = None) -> Dict[str, str]:
        self.prompts.append(prompt)
        if self.ethnicity_error is not None:
            raise self.ethnicity_error
        return {"ethnicity": self.ethnicity}


class FakeSearch(SearchConnector):
    name = "fake_search"

    def __init__(self, results: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None) -> None:
        super().__init__()
        self.results = results or []
        self.error = error
        self.queries: List[str] = []

    async def fetch(self, **params: Any) -> ConnectorResult:
        self.queries.append(params.get("query"))
        if self.error is not None:
            raise self.error
        return ConnectorResult({"results": list(self.results)})
