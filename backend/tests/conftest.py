import os

import pytest

# Keep tests hermetic: no provider keys leak in from the developer's shell.
os.environ["ENV"] = "test"
for _key in ("OPENAI_API_KEY", "OPENROUTER_API_KEY", "EXA_API_KEY"):
    os.environ.pop(_key, None)

from liqpro.core.config import get_settings  # noqa: E402
from liqpro.services.results import get_results_log  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_state():
    get_settings.cache_clear()
    get_results_log.cache_clear()
    yield
    get_results_log.cache_clear()
