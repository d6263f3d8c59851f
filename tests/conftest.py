"""Canonical fixtures used across the financing tests.

Fixture loan: 100,000 financed at 1% per month over 12 installments,
originated on 2024-01-15.
"""

import pytest
from datetime import date
from decimal import Decimal
from click.testing import CliRunner

from financing_calc.data_models import AmortizationMethod
from financing_calc_web.app import app


@pytest.fixture
def sac_loan() -> dict:
    return {
        "principal": Decimal("100000"),
        "periodic_rate": Decimal("0.01"),
        "term_periods": 12,
        "method": AmortizationMethod.SAC,
        "start_date": date(2024, 1, 15),
    }


@pytest.fixture
def price_loan(sac_loan) -> dict:
    return {**sac_loan, "method": AmortizationMethod.PRICE}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client
