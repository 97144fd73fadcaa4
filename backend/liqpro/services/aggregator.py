from __future__ import annotations

import logging
from typing import Dict, Optional
from uuid import uuid4

from .connectors.base import SearchConnector
from .connectors.companies_house import CompaniesHouseConnector, first_director_name
from .connectors.documents import DocumentFetcher
from .connectors.web_search import ExaSearchConnector
from .enrichment import find_accountant_url, infer_ethnicity
from .extractor import (
    STATEMENT_OF_AFFAIRS,
    DocumentExtractor,
    extract_accountant_fallback,
)
from .filing_selector import InsolvencyMatchMode, select_filings
from .tracing import ExtractionTrace, PipelineState
from ..core.errors import MissingInputError, RegistryLookupError
from ..schemas.extraction import AggregatedRow

logger = logging.getLogger(__name__)


class CompanyDataAggregator:
    """
    Runs one company through the whole pipeline:

        profile -> filing history -> officers -> filing selection
        -> primary SoA extraction -> accounts fallback -> enrichment -> row

    Only the profile and filing-history lookups can abort a run; every later
    stage degrades to empty fields. Steps run strictly in sequence.

    Collaborators are injected so the pipeline can be driven by fakes. The
    registry key is passed through each call and never stored on `self`.
    """

    def __init__(
        self,
        registry: CompaniesHouseConnector | None = None,
        fetcher: DocumentFetcher | None = None,
        extractor: DocumentExtractor | None = None,
        search: SearchConnector | None = None,
        match_mode: InsolvencyMatchMode | str | None = None,
        max_accounts: int | None = None,
    ) -> None:
        self.registry = registry or CompaniesHouseConnector()
        self.fetcher = fetcher or DocumentFetcher()
        self.extractor = extractor or DocumentExtractor()
        self.search = search or ExaSearchConnector()
        self.match_mode = match_mode
        self.max_accounts = max_accounts

    async def extract_company(
        self,
        company_number: str,
        credential: str,
        *,
        request_id: Optional[str] = None,
        match_mode: InsolvencyMatchMode | str | None = None,
        trace: ExtractionTrace | None = None,
    ) -> AggregatedRow:
        company_number = (company_number or "").strip()
        credential = (credential or "").strip()
        if not company_number or not credential:
            raise MissingInputError("Company Number and Companies House API Key are required.")

        request_id = request_id or str(uuid4())
        trace = trace if trace is not None else ExtractionTrace()
        trace.request_id = request_id
        trace.company_number = company_number
        trace.step(PipelineState.INIT, "Extraction started")

        # Mandatory registry lookups
        try:
            profile = await self.registry.get_profile(company_number, credential)
            trace.step(PipelineState.PROFILE_FETCHED, "Company profile fetched")

            history = await self.registry.get_filing_history(company_number, credential)
            trace.step(
                PipelineState.HISTORY_FETCHED,
                "Filing history fetched",
                detail=f"{len(history)} filings",
            )
        except RegistryLookupError as e:
            trace.step(PipelineState.FAILED, "Mandatory registry lookup failed", detail=str(e))
            raise

        director_name = await self._resolve_director(company_number, credential, trace)

        selected = select_filings(
            history,
            mode=match_mode or self.match_mode,
            max_accounts=self.max_accounts,
        )
        trace.step(
            PipelineState.FILINGS_SELECTED,
            "Filings selected",
            detail=(
                f"insolvency={'yes' if selected.insolvency else 'no'}, "
                f"accounts={len(selected.accounts)}"
            ),
        )

        extracted = STATEMENT_OF_AFFAIRS.empty_record()

        if selected.insolvency_url:
            extracted.update(
                await self._extract_primary(selected.insolvency_url, credential, request_id)
            )
            trace.step(PipelineState.PRIMARY_EXTRACTED, "Statement of affairs processed")
        else:
            trace.step(PipelineState.PRIMARY_EXTRACTED, "No statement of affairs found", skipped=True)

        if not extracted.get("accountantFirmName") and selected.accounts_urls:
            extracted["accountantFirmName"] = await extract_accountant_fallback(
                selected.accounts_urls,
                self.fetcher,
                self.extractor,
                credential,
            )
            trace.step(PipelineState.FALLBACK_EXTRACTED, "Accounts fallback processed")
        else:
            trace.step(PipelineState.FALLBACK_EXTRACTED, "Accounts fallback not needed", skipped=True)

        ethnicity = await infer_ethnicity(self.extractor, director_name, request_id)
        accountant_url = await find_accountant_url(
            self.search, extracted.get("accountantFirmName", ""), request_id
        )
        trace.step(PipelineState.ENRICHED, "Enrichment finished")

        row = AggregatedRow(
            company_number=profile.company_number,
            company_name=profile.company_name,
            director_name=director_name,
            ethnicity=ethnicity,
            total_assets=extracted["totalAssets"],
            odla=extracted["odla"],
            total_deficiency=extracted["totalDeficiency"],
            bbl_cbils=extracted["bblCbils"],
            hmrc_preferential=extracted["hmrcPreferential"],
            hmrc_unsecured=extracted["hmrcUnsecured"],
            trade_creditors=extracted["tradeCreditors"],
            accountant_firm_name=extracted["accountantFirmName"],
            accountant_url=accountant_url,
        )
        trace.step(PipelineState.DONE, "Extraction finished")
        return row

    async def _resolve_director(
        self,
        company_number: str,
        credential: str,
        trace: ExtractionTrace,
    ) -> str:
        try:
            officers = await self.registry.get_officers(company_number, credential)
        except Exception as e:
            logger.warning(
                "Officers lookup failed: %s",
                e,
                extra={"request_id": trace.request_id, "step": "officers"},
            )
            trace.step(PipelineState.OFFICERS_RESOLVED, "Officers unavailable", skipped=True)
            return ""

        director_name = first_director_name(officers)
        trace.step(PipelineState.OFFICERS_RESOLVED, "Officers resolved")
        return director_name

    async def _extract_primary(
        self,
        document_url: str,
        credential: str,
        request_id: str,
    ) -> Dict[str, str]:
        try:
            document_b64 = await self.fetcher.fetch_document(document_url, credential)
            return await self.extractor.extract(document_b64, STATEMENT_OF_AFFAIRS)
        except Exception as e:
            logger.exception(
                "Failed to extract statement of affairs: %s",
                e,
                extra={"request_id": request_id, "step": "primary_extraction"},
            )
            return STATEMENT_OF_AFFAIRS.empty_record()
