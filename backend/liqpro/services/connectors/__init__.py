from .base import BaseConnector, ConnectorResult, SearchConnector
from .companies_house import (
    CompaniesHouseConnector,
    CompanyProfile,
    FilingHistoryItem,
    Officer,
)
from .documents import DocumentFetcher
from .web_search import ExaSearchConnector

__all__ = [
    "BaseConnector",
    "ConnectorResult",
    "SearchConnector",
    "CompaniesHouseConnector",
    "CompanyProfile",
    "FilingHistoryItem",
    "Officer",
    "DocumentFetcher",
    "ExaSearchConnector",
]
