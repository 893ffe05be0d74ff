from __future__ import annotations

import pytest

from liquidacao.calculo import editing
from liquidacao.calculo.models import NATURE_INDEMNITY, NATURE_WAGE
from liquidacao.calculo.recalculate import recalculate


def test_set_text_and_number_fields(sample_calc) -> None:
    updated = editing.set_field(sample_calc, "reclamante", "  Joana Souza ")
    updated = editing.set_field(updated, "inss", "1.234,56")

    assert updated.claimant == "Joana Souza"
    assert updated.social_security == 1234.56
    assert sample_calc.claimant == "Maria da Silva"


def test_unknown_field_returns_same_object(sample_calc) -> None:
    assert editing.set_field(sample_calc, "nada", "1") is sample_calc
    assert editing.set_line_item_field(sample_calc, 0, "nada", "1") is sample_calc
    assert editing.set_line_item_field(sample_calc, 9, "juros", "1") is sample_calc


def test_bad_number_becomes_zero(sample_calc) -> None:
    updated = editing.set_field(sample_calc, "irrf", "abc")

    assert updated.income_tax == 0


def test_line_item_nature(sample_calc) -> None:
    updated = editing.set_line_item_field(sample_calc, 1, "natureza", "salarial")

    assert updated.line_items[1].nature == NATURE_WAGE
    assert sample_calc.line_items[1].nature == NATURE_INDEMNITY


def test_breakdown_nominal_drives_corrected(sample_calc) -> None:
    updated = editing.set_breakdown_field(sample_calc, 0, 0, "nominal", "500")

    row = updated.line_items[0].monthly_breakdown[0]
    assert row.corrected_amount == pytest.approx(525.0)
    assert row.total == pytest.approx(555.0)


def test_breakdown_index_drives_corrected(sample_calc) -> None:
    updated = editing.set_breakdown_field(sample_calc, 0, 1, "indice", "1,1")

    row = updated.line_items[0].monthly_breakdown[1]
    assert row.corrected_amount == pytest.approx(616.0)


def test_derived_fields_on_items_with_breakdown(sample_calc) -> None:
    assert editing.is_derived_field(sample_calc.line_items[0], "juros")
    assert not editing.is_derived_field(sample_calc.line_items[0], "descricao")
    assert not editing.is_derived_field(sample_calc.line_items[1], "juros")


def test_add_and_remove_line_items(sample_calc) -> None:
    added = editing.add_line_item(sample_calc)
    assert added.line_items[-1].description == "Nova Rubrica"
    assert added.line_items[-1].nature == NATURE_WAGE

    removed = editing.remove_line_item(added, 0)
    assert [i.description for i in removed.line_items] == ["Multa art. 477", "Nova Rubrica"]


def test_add_and_remove_breakdown_rows(sample_calc) -> None:
    added = editing.add_breakdown_row(sample_calc, 1)
    assert len(added.line_items[1].monthly_breakdown) == 1
    assert added.line_items[1].monthly_breakdown[0].quantity == 0.0

    removed = editing.remove_breakdown_row(added, 0, 0)
    assert [r.reference for r in removed.line_items[0].monthly_breakdown] == ["02/2023"]
    assert editing.remove_breakdown_row(added, 0, 7) is added


def test_edit_then_recalculate_moves_totals(sample_calc) -> None:
    before, _ = recalculate(sample_calc)
    edited = editing.set_breakdown_field(before, 0, 0, "juros", "130")

    after, changed = recalculate(edited)

    assert changed is True
    assert after.interest_total == pytest.approx(before.interest_total + 100)
    assert after.grand_total > before.grand_total
