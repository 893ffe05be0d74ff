from __future__ import annotations

import pytest

from liquidacao.calculo.models import (
    Calculation,
    HistoryEntry,
    NATURE_INDEMNITY,
    NATURE_WAGE,
    normalize_nature,
    parse_number,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (10, 10.0),
        ("1234.56", 1234.56),
        ("1.234,56", 1234.56),
        ("R$ 10,00", 10.0),
        (None, 0.0),
        ("abc", 0.0),
        (float("nan"), 0.0),
        (True, 0.0),
    ],
)
def test_parse_number(value, expected) -> None:
    assert parse_number(value) == expected


def test_normalize_nature() -> None:
    assert normalize_nature("Indenizatória") == NATURE_INDEMNITY
    assert normalize_nature("salarial") == NATURE_WAGE
    assert normalize_nature(None) == NATURE_WAGE


def test_calculation_from_model_output_fills_gaps() -> None:
    calc = Calculation.from_dict({
        "claimant": "Maria",
        "respondent": "Acme",
        "line_items": [
            {"description": "Ferias", "nature": "salarial", "corrected_amount": "1.000,00",
             "monthly_breakdown": [{"reference": "01/2023", "nominal_amount": 100}]},
            "not an item",
        ],
        "is_calculation_possible": "false",
        "calculation_source": "SOMETHING_ELSE",
    })

    assert calc.case_number == ""
    assert len(calc.line_items) == 1
    assert calc.line_items[0].corrected_amount == 1000.0
    assert calc.line_items[0].monthly_breakdown[0].index == 1.0
    assert calc.is_calculation_possible is False
    assert calc.calculation_source == ""


def test_failed_placeholder() -> None:
    calc = Calculation.failed("timeout", 23)

    assert calc.claimant == "Erro"
    assert calc.is_calculation_possible is False
    assert calc.error_reason == "timeout"
    assert calc.employer_charge_percentage == 23


def test_history_entry_dict_roundtrip(sample_calc) -> None:
    entry = HistoryEntry(filename="inicial.pdf", result=sample_calc, observation="HE 100%")

    restored = HistoryEntry.from_dict(entry.to_dict())

    assert restored == entry
