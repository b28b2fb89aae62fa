import pytest


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    """
    Ensure tests never pick up real credentials from the shell or .env.
    """
    monkeypatch.setenv("CS_API_KEY", "test-key")
    monkeypatch.setenv("CS_API_SECRET", "test-secret")
    monkeypatch.setenv("CS_BASE_URL", "https://api.coinstore.test/api")
    monkeypatch.setenv("CS_SYMBOL", "")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
