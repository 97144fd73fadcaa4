# backend/liqpro/services/tracing.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    INIT = "init"
    PROFILE_FETCHED = "profile_fetched"
    HISTORY_FETCHED = "history_fetched"
    OFFICERS_RESOLVED = "officers_resolved"
    FILINGS_SELECTED = "filings_selected"
    PRIMARY_EXTRACTED = "primary_extracted"
    FALLBACK_EXTRACTED = "fallback_extracted"
    ENRICHED = "enriched"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TraceEvent:
    state: PipelineState
    label: str
    skipped: bool = False
    detail: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ExtractionTrace:
    """
    In-memory record of the states one extraction run passed through.
    Lives only as long as the run that owns it.
    """

    request_id: Optional[str] = None
    company_number: Optional[str] = None
    events: List[TraceEvent] = field(default_factory=list)

    @property
    def states(self) -> List[PipelineState]:
        return [e.state for e in self.events]

    @property
    def state(self) -> PipelineState:
        return self.events[-1].state if self.events else PipelineState.INIT

    def step(
        self,
        state: PipelineState,
        label: str,
        *,
        skipped: bool = False,
        detail: Optional[str] = None,
        **meta: Any,
    ) -> None:
        """
        Best-effort trace writer.
        Failure must NEVER break the extraction run.
        """
        try:
            self.events.append(TraceEvent(state=state, label=label, skipped=skipped, detail=detail))
            logger.info(
                label,
                extra={
                    "request_id": self.request_id,
                    "company_number": self.company_number,
                    "step": state.value,
                    **meta,
                },
            )
        except Exception:
            logger.exception("Failed to record trace event", extra={"request_id": self.request_id})
