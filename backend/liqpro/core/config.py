from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # core
    ENV: str = "dev"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Companies House (the API key itself is supplied per request, never here)
    COMPANIES_HOUSE_BASE_URL: str = "https://api.company-information.service.gov.uk"
    FILING_HISTORY_ITEMS_PER_PAGE: int = 100
    MAX_ACCOUNTS_CANDIDATES: int = 3
    # "statement_of_affairs" or "resolution"
    INSOLVENCY_MATCH_MODE: str = "statement_of_affairs"

    # None means no client-side deadline on outbound calls
    HTTP_TIMEOUT_SECONDS: float | None = None

    # llm
    OPENROUTER_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    EXTRACTION_MODEL: str = "gpt-4.1"
    FALLBACK_MODEL: str = "gpt-4.1-mini"
    # Hard cap on concurrent LLM calls per process
    LLM_MAX_CONCURRENCY: int = 4

    # web search
    EXA_API_KEY: str | None = None
    EXA_SEARCH_URL: str = "https://api.exa.ai/search"
    WEB_SEARCH_RESULTS: int = 5

    # auth / security
    FRONTEND_ORIGIN: str | None = None
    # Explicit debug-only switch for wide-open CORS in non-prod envs
    CORS_ALLOW_ALL_ORIGINS: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
