from __future__ import annotations

import pytest

from liquidacao.calculo.models import Calculation, LineItem, NATURE_INDEMNITY, NATURE_WAGE
from liquidacao.calculo.recalculate import recalculate


def test_recalculate_rebuilds_totals(sample_calc) -> None:
    result, changed = recalculate(sample_calc)

    assert changed is True
    overtime = result.line_items[0]
    assert overtime.corrected_amount == pytest.approx(1000)
    assert overtime.interest == pytest.approx(50)
    assert overtime.total == pytest.approx(1050)
    assert overtime.nominal_amount == pytest.approx(960)

    assert result.corrected_total == pytest.approx(4100)
    assert result.interest_total == pytest.approx(150)
    assert result.gross_total == pytest.approx(4250)
    assert result.net_total == pytest.approx(4250 - 100 - 50 + 80)
    assert result.fee_amount == pytest.approx(425)
    assert result.grand_total == pytest.approx(4250 + 425 + 230)


def test_employer_charge_only_counts_wage_items(sample_calc) -> None:
    result, _ = recalculate(sample_calc)

    assert result.employer_charge_base == pytest.approx(1000)
    assert result.employer_charge_amount == pytest.approx(230)


def test_recalculate_is_idempotent(sample_calc) -> None:
    first, _ = recalculate(sample_calc)
    second, changed = recalculate(first)

    assert changed is False
    assert second is first


def test_item_totals_match_breakdown_rows(sample_calc) -> None:
    result, _ = recalculate(sample_calc)

    for item in result.line_items:
        if item.monthly_breakdown:
            assert item.total == pytest.approx(sum(r.total for r in item.monthly_breakdown))
            for row in item.monthly_breakdown:
                assert row.total == pytest.approx(row.corrected_amount + row.interest)
        else:
            assert item.total == pytest.approx(item.corrected_amount + item.interest)


def test_gross_total_equals_corrected_plus_interest(sample_calc) -> None:
    result, _ = recalculate(sample_calc)

    assert result.gross_total == pytest.approx(result.corrected_total + result.interest_total)
    assert result.grand_total == pytest.approx(
        result.gross_total + result.fee_amount + result.employer_charge_amount
    )


def test_recalculate_does_not_mutate_input(sample_calc) -> None:
    recalculate(sample_calc)

    assert sample_calc.gross_total == 0
    assert sample_calc.line_items[0].total == 0


def test_indemnity_only_calculation_has_no_employer_charge() -> None:
    calc = Calculation(
        claimant="A", respondent="B", case_number="1",
        line_items=[LineItem(description="Dano moral", nature=NATURE_INDEMNITY, corrected_amount=5000)],
        employer_charge_percentage=20,
    )

    result, _ = recalculate(calc)

    assert result.employer_charge_base == 0
    assert result.employer_charge_amount == 0
    assert result.grand_total == pytest.approx(5000)


def test_empty_calculation_totals_are_zero() -> None:
    calc = Calculation(claimant="A", respondent="B", case_number="1", line_items=[
        LineItem(description="Saldo", nature=NATURE_WAGE),
    ])

    result, _ = recalculate(calc)

    assert result.gross_total == 0
    assert result.grand_total == 0
