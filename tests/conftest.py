"""Shared fixtures for the test suite."""

import os
import tempfile

import pytest

from flipanalyzer.db.repository import Repository
from flipanalyzer.models import BuyBox, Deal


@pytest.fixture
def repo():
    """Create a temporary database for testing."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    r = Repository(f"sqlite:///{path}")
    yield r
    r._session_factory.kw["bind"].dispose()
    os.unlink(path)


def make_deal(**overrides) -> Deal:
    defaults = {
        "address": "123 Main St, Austin, TX 78701",
        "zip_code": "78701",
        "list_price": 200_000,
        "estimated_arv": 350_000,
        "rehab_estimate": 50_000,
    }
    defaults.update(overrides)
    return Deal(**defaults)


def make_buy_box(**overrides) -> BuyBox:
    defaults = {
        "name": "Austin flips",
        "zip_codes": ["78701"],
        "max_purchase_price": 300_000,
        "min_cash_on_cash": 20,
        "max_rehab_budget": 75_000,
        "holding_period_months": 6,
        "target_profit_min": 40_000,
        "hard_money_rate": 12,
        "hard_money_points": 2,
        "selling_costs_percent": 6,
    }
    defaults.update(overrides)
    return BuyBox(**defaults)
