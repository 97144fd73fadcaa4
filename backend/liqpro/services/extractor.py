# backend/liqpro/services/extractor.py
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from openai import OpenAI

from .llm import build_llm_client, limit_llm_concurrency
from ..core.config import get_settings
from ..core.errors import ExtractionError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class ExtractionSchema:
    """
    A named set of string fields the model must return as a flat JSON object.
    """

    name: str
    instruction: str
    fields: tuple[str, ...]

    def json_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {f: {"type": "string"} for f in self.fields},
            "required": list(self.fields),
            "additionalProperties": False,
        }

    def response_format(self) -> Dict[str, Any]:
        return {
            "type": "json_schema",
            "json_schema": {
                "name": self.name,
                "strict": True,
                "schema": self.json_schema(),
            },
        }

    def empty_record(self) -> Dict[str, str]:
        return {f: "" for f in self.fields}


STATEMENT_OF_AFFAIRS = ExtractionSchema(
    name="statement_of_affairs",
    instruction=(
        "Extract the liquidation figures from this Statement of Affairs. "
        "Find Total Assets (estimated to realise), ODLA (Overdrawn Director Loan Account), "
        "Total Deficiency, BBL/CBILS (government-backed bank loans), HMRC Preferential, "
        "HMRC Unsecured, Trade Creditors, and the Accountant Firm Name. "
        "Use an empty string for any value not present in the document. Return JSON only."
    ),
    fields=(
        "totalAssets",
        "odla",
        "totalDeficiency",
        "bblCbils",
        "hmrcPreferential",
        "hmrcUnsecured",
        "tradeCreditors",
        "accountantFirmName",
    ),
)

ACCOUNTANT_ONLY = ExtractionSchema(
    name="accountant_firm",
    instruction=(
        "Extract the Accountant Firm Name from this document. "
        "Use an empty string if no accountant is named. Return JSON only."
    ),
    fields=("accountantFirmName",),
)

ETHNICITY = ExtractionSchema(
    name="ethnicity",
    instruction=(
        "Guess the broad ethnicity based on onomastics for the name: {name}. "
        "Return JSON with a single property 'ethnicity'."
    ),
    fields=("ethnicity",),
)


def parse_record(raw: Optional[str], schema: ExtractionSchema) -> Dict[str, str]:
    """
    Parse the model's JSON text into a complete record for `schema`.

    Unknown keys are dropped, missing or null fields become "", and
    non-string scalars are stringified. Unparseable output yields an
    all-empty record.
    """
    record = schema.empty_record()
    if not raw:
        return record

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        start = raw.find("{")
        end = raw.rfind("}")
        if start == -1 or end <= start:
            logger.warning("Extractor: model output for '%s' is not JSON.", schema.name)
            return record
        try:
            data = json.loads(raw[start : end + 1])
        except json.JSONDecodeError:
            logger.warning("Extractor: failed to parse JSON for '%s'.", schema.name)
            return record

    if not isinstance(data, dict):
        logger.warning("Extractor: model output for '%s' is not an object.", schema.name)
        return record

    for f in schema.fields:
        value = data.get(f)
        if value is None:
            continue
        record[f] = value.strip() if isinstance(value, str) else str(value)
    return record


class DocumentExtractor:
    """
    Schema-constrained extraction over an OpenAI-compatible chat API.

    The client is injected (tests pass a fake) or built lazily from settings
    the first time a call is made, so a missing AI key only degrades the AI
    stages instead of failing the whole request up front.
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        model: str | None = None,
        fallback_model: str | None = None,
    ) -> None:
        settings = get_settings()
        self._client = client
        self.model = model or settings.EXTRACTION_MODEL
        self.fallback_model = fallback_model or settings.FALLBACK_MODEL

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = build_llm_client()
        return self._client

    def _complete(self, model: str, content: Any, schema: ExtractionSchema) -> Optional[str]:
        client = self._get_client()
        with limit_llm_concurrency():
            response = client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": content}],
                response_format=schema.response_format(),
                temperature=0,
            )
        try:
            return response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            return None

    async def _run(self, model: str, content: Any, schema: ExtractionSchema) -> Dict[str, str]:
        try:
            raw = await asyncio.to_thread(self._complete, model, content, schema)
        except Exception as e:
            raise ExtractionError(f"{schema.name} extraction call failed: {e}") from e
        return parse_record(raw, schema)

    async def extract(
        self,
        document_b64: str,
        schema: ExtractionSchema,
        *,
        model: str | None = None,
    ) -> Dict[str, str]:
        content = [
            {
                "type": "file",
                "file": {
                    "filename": f"{schema.name}.pdf",
                    "file_data": f"data:application/pdf;base64,{document_b64}",
                },
            },
            {"type": "text", "text": schema.instruction},
        ]
        return await self._run(model or self.model, content, schema)

    async def complete_json(
        self,
        prompt: str,
        schema: ExtractionSchema,
        *,
        model: str | None = None,
    ) -> Dict[str, str]:
        return await self._run(model or self.fallback_model, prompt, schema)


async def first_successful(
    candidates: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
) -> R | str:
    """
    Await `fn(candidate)` for each candidate in order and return the first
    truthy result. A candidate that raises is logged and skipped. Candidates
    after the first success are never evaluated. Returns "" when none succeed.
    """
    for idx, candidate in enumerate(candidates):
        try:
            result = await fn(candidate)
        except Exception as e:
            logger.warning(
                "Candidate %d failed: %s",
                idx,
                e,
                extra={"step": "first_successful"},
            )
            continue
        if result:
            return result
    return ""


async def extract_accountant_fallback(
    document_urls: List[str],
    fetcher: Any,
    extractor: DocumentExtractor,
    credential: str,
) -> str:
    """
    Walk the accounts filings in order and return the first accountant firm
    name any of them yields.
    """

    async def _try(url: str) -> str:
        document_b64 = await fetcher.fetch_document(url, credential)
        record = await extractor.extract(
            document_b64,
            ACCOUNTANT_ONLY,
            model=extractor.fallback_model,
        )
        return record.get("accountantFirmName", "")

    return await first_successful(document_urls, _try)
