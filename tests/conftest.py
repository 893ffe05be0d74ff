from __future__ import annotations

import pytest

from liquidacao.calculo import storage
from liquidacao.calculo.models import Calculation, LineItem, MonthlyBreakdown, NATURE_INDEMNITY, NATURE_WAGE


@pytest.fixture
def db(tmp_path):
    storage.use_database(tmp_path / "history.db")
    yield tmp_path / "history.db"
    storage.use_database(None)


@pytest.fixture
def sample_calc() -> Calculation:
    return Calculation(
        claimant="Maria da Silva",
        respondent="Acme Comercio Ltda",
        case_number="0001234-56.2023.5.02.0001",
        line_items=[
            LineItem(
                description="Horas extras",
                nature=NATURE_WAGE,
                monthly_breakdown=[
                    MonthlyBreakdown(reference="01/2023", calculation_base=3000, nominal_amount=400,
                                     index=1.05, corrected_amount=420, interest=30),
                    MonthlyBreakdown(reference="02/2023", calculation_base=3000, nominal_amount=560,
                                     index=1.0, corrected_amount=580, interest=20),
                ],
            ),
            LineItem(description="Multa art. 477", nature=NATURE_INDEMNITY,
                     nominal_amount=3000, corrected_amount=3100, interest=100),
        ],
        social_security=100,
        income_tax=50,
        severance_fund=80,
        fee_percentage=10,
        employer_charge_percentage=23,
    )
