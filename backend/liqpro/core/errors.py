"""
Exception taxonomy for the extraction pipeline.

Fatal errors (`RegistryLookupError`, `MissingInputError`) abort a request and
reach the API boundary. Everything else is raised by a best-effort stage and
is caught by the aggregator at that stage.
"""
from __future__ import annotations


class LiqProError(Exception):
    """Base class for all pipeline errors."""


class MissingInputError(LiqProError):
    """A required request input (company number, credential) was not supplied."""


class RegistryLookupError(LiqProError):
    """A mandatory Companies House lookup returned a non-success response."""

    def __init__(self, resource: str, status_code: int | None, reason: str = "") -> None:
        self.resource = resource
        self.status_code = status_code
        self.reason = reason
        detail = f"{status_code} {reason}".strip() if status_code is not None else reason
        super().__init__(f"Failed to fetch {resource}: {detail or 'request failed'}")


class DocumentFetchError(LiqProError):
    """Either hop of the secure document fetch failed."""

    def __init__(self, hop: str, url: str, status_code: int | None = None, reason: str = "") -> None:
        self.hop = hop
        self.url = url
        self.status_code = status_code
        detail = f"HTTP {status_code}" if status_code is not None else (reason or "transport error")
        super().__init__(f"Document fetch failed at {hop} hop: {detail}")


class ExtractionError(LiqProError):
    """The AI provider call for a document or prompt failed."""


class EnrichmentError(LiqProError):
    """A web-search or inference enrichment call failed."""
