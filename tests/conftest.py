# tests/conftest.py
import pytest

from app import app as flask_app
from returns import AssetClass, GlobalParameters, default_assets


@pytest.fixture
def assets():
    return default_assets()


@pytest.fixture
def params():
    return GlobalParameters(inflation=2.1, tax_rate=20, borrowing_cost=4, percent_debt=20)


@pytest.fixture
def equities():
    return AssetClass("Equities", 8.0, 0.5)


@pytest.fixture
def client():
    flask_app.config.update(TESTING=True)
    with flask_app.test_client() as c:
        yield c
