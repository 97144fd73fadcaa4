from __future__ import annotations

from functools import lru_cache
from typing import Dict, List

from ..schemas.extraction import AggregatedRow

DEFAULT_SESSION = "default"


class SessionResults:
    """
    Append-only, per-session list of extracted rows, held in process memory.

    Rows are kept in insertion order with no deduplication. Nothing is
    written to disk; a restart drops every session.
    """

    def __init__(self) -> None:
        self._rows: Dict[str, List[AggregatedRow]] = {}

    def append(self, session_id: str | None, row: AggregatedRow) -> None:
        self._rows.setdefault(session_id or DEFAULT_SESSION, []).append(row)

    def list(self, session_id: str | None) -> List[AggregatedRow]:
        return list(self._rows.get(session_id or DEFAULT_SESSION, []))

    def clear(self, session_id: str | None) -> int:
        return len(self._rows.pop(session_id or DEFAULT_SESSION, []))


@lru_cache(maxsize=1)
def get_results_log() -> SessionResults:
    return SessionResults()
