import sys
from pathlib import Path

import pytest

# Ensure the `instockr` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from instockr.core.config import Settings  # noqa: E402


@pytest.fixture
def make_settings():
    def factory(**overrides):
        values = dict(
            google_maps_api_key="",
            serpapi_api_key="",
            google_cse_api_key="",
            google_cse_id="",
            openai_api_key="",
            firecrawl_api_key="",
            database_url="",
            nominatim_min_interval=0.0,
        )
        values.update(overrides)
        return Settings(**values)

    return factory
