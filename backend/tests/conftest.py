import pytest

from invoice_parser.core.config import get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache(monkeypatch):
    # Tests must not pick up a developer's real provider keys.
    for name in (
        "AI_PROVIDER",
        "AI_MODEL",
        "AI_CLASSIFY_PROVIDER",
        "AI_CLASSIFY_MODEL",
        "AI_EXTRACT_PROVIDER",
        "AI_EXTRACT_MODEL",
        "AI_ALLOWED_PROVIDERS",
        "AI_ALLOWED_MODELS",
        "AI_DEBUG_STORE_RAW",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
