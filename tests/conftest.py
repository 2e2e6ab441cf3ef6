import pytest

from neoapi.constants import API_KEY_ENV, API_URL_ENV


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network access")


@pytest.fixture(autouse=True)
def clean_neoapi_env(monkeypatch):
    """
    Tests never pick up a developer's real credentials.
    """
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    monkeypatch.delenv(API_URL_ENV, raising=False)
