from __future__ import annotations

from contextlib import contextmanager
from threading import BoundedSemaphore

from openai import OpenAI

from ..core.config import Settings, get_settings

_llm_semaphore: BoundedSemaphore | None = None


def _get_semaphore() -> BoundedSemaphore:
    """Process-wide cap on in-flight AI calls, sized from LLM_MAX_CONCURRENCY."""
    global _llm_semaphore
    if _llm_semaphore is None:
        settings = get_settings()
        _llm_semaphore = BoundedSemaphore(settings.LLM_MAX_CONCURRENCY)
    return _llm_semaphore


@contextmanager
def limit_llm_concurrency():
    """
    Hold one AI-provider slot for the duration of the block.

    The extractor runs each completion in `asyncio.to_thread`, so the slot is
    taken inside that worker thread, not on the event loop.
    """
    sem = _get_semaphore()
    sem.acquire()
    try:
        yield
    finally:
        sem.release()


def build_llm_client(settings: Settings | None = None) -> OpenAI:
    """
    Factory for the OpenAI-compatible client used by the extractor.

    - If OPENROUTER_API_KEY is set, route requests via OpenRouter.
    - Otherwise, fall back to the standard OpenAI API using OPENAI_API_KEY.

    Not cached: each extraction run builds (or is handed) its own client.
    """
    settings = settings or get_settings()

    if settings.OPENROUTER_API_KEY:
        return OpenAI(
            base_url="https://openrouter.ai/api/v1",
            api_key=settings.OPENROUTER_API_KEY.strip(),
            default_headers={
                "HTTP-Referer": settings.FRONTEND_ORIGIN or "http://localhost:3000",
                "X-Title": "LiqPro Extraction Engine",
            },
        )

    if settings.OPENAI_API_KEY:
        return OpenAI(api_key=settings.OPENAI_API_KEY.strip())

    raise RuntimeError(
        "No LLM API key configured. Set either OPENAI_API_KEY or OPENROUTER_API_KEY."
    )
