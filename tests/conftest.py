import pytest

from regcache.config import ENV_VARS


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ENV_VARS.values():
        monkeypatch.delenv(name, raising=False)
