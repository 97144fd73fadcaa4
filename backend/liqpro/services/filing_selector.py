"""
Filing selection over a company's filing history.

Two predicates for "the insolvency document" exist in the field:

- STATEMENT_OF_AFFAIRS: category "insolvency" and a description mentioning
  "statement-of-affairs".
- RESOLUTION: category "statement-of-affairs", or any description
  mentioning "resolution".

Both are exposed as named strategies; the default comes from settings.
Items without a document link cannot be fetched and are never selected.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .connectors.companies_house import FilingHistoryItem
from ..core.config import get_settings


class InsolvencyMatchMode(str, Enum):
    STATEMENT_OF_AFFAIRS = "statement_of_affairs"
    RESOLUTION = "resolution"


def _matches_statement_of_affairs(item: FilingHistoryItem) -> bool:
    return item.category == "insolvency" and "statement-of-affairs" in item.description


def _matches_resolution(item: FilingHistoryItem) -> bool:
    return item.category == "statement-of-affairs" or "resolution" in item.description


INSOLVENCY_PREDICATES: Dict[InsolvencyMatchMode, Callable[[FilingHistoryItem], bool]] = {
    InsolvencyMatchMode.STATEMENT_OF_AFFAIRS: _matches_statement_of_affairs,
    InsolvencyMatchMode.RESOLUTION: _matches_resolution,
}


@dataclass
class SelectedFilings:
    insolvency: Optional[FilingHistoryItem] = None
    accounts: List[FilingHistoryItem] = field(default_factory=list)

    @property
    def insolvency_url(self) -> Optional[str]:
        return self.insolvency.document_metadata if self.insolvency else None

    @property
    def accounts_urls(self) -> List[str]:
        return [a.document_metadata for a in self.accounts if a.document_metadata]


def default_match_mode() -> InsolvencyMatchMode:
    return InsolvencyMatchMode(get_settings().INSOLVENCY_MATCH_MODE)


def select_filings(
    history: Sequence[FilingHistoryItem],
    mode: InsolvencyMatchMode | str | None = None,
    max_accounts: int | None = None,
) -> SelectedFilings:
    """
    Pick the first insolvency candidate and the first `max_accounts`
    accounts filings, both in filing-history order. Never re-sorts and
    never fetches. An empty result is not an error.
    """
    mode = InsolvencyMatchMode(mode) if mode is not None else default_match_mode()
    limit = max_accounts if max_accounts is not None else get_settings().MAX_ACCOUNTS_CANDIDATES
    predicate = INSOLVENCY_PREDICATES[mode]

    fetchable = [item for item in history if item.document_metadata]

    insolvency = next((item for item in fetchable if predicate(item)), None)
    accounts = [item for item in fetchable if item.category == "accounts"][:limit]

    return SelectedFilings(insolvency=insolvency, accounts=accounts)
