from uuid import uuid4
import logging

from fastapi import APIRouter, Body, Depends, Header
from fastapi.responses import JSONResponse

from ..core.errors import DocumentFetchError, LiqProError, MissingInputError
from ..schemas.extraction import DocumentOut, ExtractionRequest, ResultsOut
from ..services.aggregator import CompanyDataAggregator
from ..services.connectors.documents import DocumentFetcher
from ..services.results import SessionResults, get_results_log

router = APIRouter(tags=["extraction"])

logger = logging.getLogger(__name__)


def get_aggregator() -> CompanyDataAggregator:
    """Fresh pipeline (and fresh provider clients) per request."""
    return CompanyDataAggregator()


def get_document_fetcher() -> DocumentFetcher:
    return DocumentFetcher()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/extract")
async def extract_company(
    payload: ExtractionRequest | None = Body(default=None),
    x_session_id: str | None = Header(default=None),
    aggregator: CompanyDataAggregator = Depends(get_aggregator),
    results: SessionResults = Depends(get_results_log),
):
    if payload is None or not payload.company_number or not payload.registry_credential:
        return _error(400, "Company Number and Companies House API Key are required.")

    # Correlation ID so one extraction can be followed through the logs
    request_id = str(uuid4())

    logger.info(
        "Starting extraction",
        extra={
            "request_id": request_id,
            "company_number": payload.company_number,
            "step": "extract_company",
        },
    )

    try:
        row = await aggregator.extract_company(
            payload.company_number,
            payload.registry_credential,
            request_id=request_id,
            match_mode=payload.match_mode,
        )
    except MissingInputError as e:
        return _error(400, str(e))
    except LiqProError as e:
        logger.warning(
            "Extraction aborted: %s",
            e,
            extra={"request_id": request_id, "company_number": payload.company_number},
        )
        return _error(500, str(e))
    except Exception as e:
        logger.exception(
            "Extraction failed for %s: %s", payload.company_number, e,
            extra={"request_id": request_id, "company_number": payload.company_number},
        )
        return _error(500, "Failed to extract company data")

    results.append(x_session_id, row)
    return row.to_wire()


@router.get("/pdf", response_model=DocumentOut)
async def proxy_document(
    x_target_url: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
    fetcher: DocumentFetcher = Depends(get_document_fetcher),
):
    """
    Server-side secure fetch for browser callers: resolves the document URL
    with the caller's registry key and returns the PDF as base64.
    """
    target_url = (x_target_url or "").strip()
    api_key = (x_api_key or "").strip()
    if not target_url or not api_key:
        return _error(400, "Missing headers")

    try:
        document_b64 = await fetcher.fetch_document(target_url, api_key)
    except DocumentFetchError as e:
        logger.warning("Document proxy failed: %s", e, extra={"step": "proxy_document"})
        return _error(500, str(e))

    return DocumentOut(base64=document_b64)


@router.get("/results", response_model=ResultsOut)
def list_results(
    x_session_id: str | None = Header(default=None),
    results: SessionResults = Depends(get_results_log),
):
    rows = [r.to_wire() for r in results.list(x_session_id)]
    return ResultsOut(count=len(rows), results=rows)


@router.delete("/results", response_model=ResultsOut)
def clear_results(
    x_session_id: str | None = Header(default=None),
    results: SessionResults = Depends(get_results_log),
):
    results.clear(x_session_id)
    return ResultsOut(count=0, results=[])


@router.get("/health")
def health():
    return {"status": "ok"}
