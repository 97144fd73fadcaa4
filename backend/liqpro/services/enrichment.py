from __future__ import annotations

import logging
from typing import Optional

from .connectors.base import SearchConnector
from .extractor import ETHNICITY, DocumentExtractor

logger = logging.getLogger(__name__)


async def infer_ethnicity(
    extractor: DocumentExtractor,
    director_name: str,
    request_id: Optional[str] = None,
) -> str:
    """
    Best-effort onomastic guess for the director's name. Empty on any failure.
    """
    if not director_name:
        return ""

    prompt = ETHNICITY.instruction.format(name=director_name)
    try:
        record = await extractor.complete_json(prompt, ETHNICITY)
    except Exception as e:
        logger.warning(
            "Failed to infer ethnicity: %s",
            e,
            extra={"request_id": request_id, "step": "infer_ethnicity"},
        )
        return ""
    return record.get("ethnicity", "")


async def find_accountant_url(
    search: SearchConnector,
    firm_name: str,
    request_id: Optional[str] = None,
) -> str:
    """
    First web-search hit for "<firm> UK". Empty when there is nothing to search,
    no hits, or the search fails.
    """
    if not firm_name:
        return ""

    try:
        results = await search.search(f"{firm_name} UK")
    except Exception as e:
        logger.warning(
            "Web search failed: %s",
            e,
            extra={"request_id": request_id, "connector": search.name, "step": "find_accountant_url"},
        )
        return ""

    for r in results:
        url = r.get("url") if isinstance(r, dict) else None
        if url:
            return str(url)
    return ""
