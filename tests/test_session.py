from __future__ import annotations

import pytest

from liquidacao.calculo.history import HistoryStore, history_key
from liquidacao.calculo.models import Calculation, HistoryEntry, LineItem, NATURE_WAGE
from liquidacao.calculo.session import CalculationSession


def _session_with_entry(sample_calc) -> tuple[CalculationSession, HistoryEntry]:
    session = CalculationSession(history=HistoryStore(history_key(7)))
    entry = session.history.append(HistoryEntry(filename="inicial.pdf", result=sample_calc))
    session.select_entry(entry)
    return session, entry


def test_defaults_come_from_config(db) -> None:
    session = CalculationSession(history=HistoryStore(history_key(7)))

    assert session.employer_percentage == "23"
    assert session.model_variant == "rapido"


def test_cancel_edit_restores_snapshot(db, sample_calc) -> None:
    session, _ = _session_with_entry(sample_calc)

    assert session.start_edit()
    session.current.claimant = "Outro"
    session.cancel_edit()

    assert session.current.claimant == "Maria da Silva"
    assert session.editing is False


def test_save_edit_writes_history(db, sample_calc) -> None:
    session, entry = _session_with_entry(sample_calc)

    session.start_edit()
    session.current.claimant = "Outro"
    assert session.save_edit() is True

    reloaded = HistoryStore(history_key(7))
    assert reloaded.get(entry.id).result.claimant == "Outro"
    assert session.current_entry.result.claimant == "Outro"


def test_start_edit_needs_a_result(db) -> None:
    session = CalculationSession(history=HistoryStore(history_key(7)))

    assert session.start_edit() is False


def test_clear_selection(db, sample_calc) -> None:
    session, _ = _session_with_entry(sample_calc)
    session.instructions = "HE"

    session.clear_selection()

    assert session.current is None
    assert session.instructions == ""
    assert len(session.history) == 1


def test_start_edit_recomputes_model_totals(db) -> None:
    raw = Calculation(
        claimant="Maria", respondent="Acme", case_number="1",
        line_items=[LineItem(description="Horas extras", nature=NATURE_WAGE, corrected_amount=1000)],
        employer_charge_percentage=23,
        grand_total=5.0,
    )
    session = CalculationSession(history=HistoryStore(history_key(7)))
    entry = session.history.append(HistoryEntry(filename="inicial.pdf", result=raw))
    session.select_entry(entry)

    session.start_edit()
    assert session.current.grand_total == pytest.approx(1230.0)

    session.save_edit()
    saved = HistoryStore(history_key(7)).get(entry.id).result
    assert saved.grand_total == pytest.approx(1230.0)
    assert saved.employer_charge_amount == pytest.approx(230.0)


def test_cancel_edit_restores_model_totals(db) -> None:
    raw = Calculation(
        claimant="Maria", respondent="Acme", case_number="1",
        line_items=[LineItem(description="Horas extras", corrected_amount=1000)],
        grand_total=5.0,
    )
    session = CalculationSession(history=HistoryStore(history_key(7)))
    session.select_entry(session.history.append(HistoryEntry(filename="inicial.pdf", result=raw)))

    session.start_edit()
    session.cancel_edit()

    assert session.current.grand_total == 5.0


def test_selected_result_is_independent_of_history(db, sample_calc) -> None:
    session, entry = _session_with_entry(sample_calc)

    session.current.claimant = "Outro"

    assert session.history.get(entry.id).result.claimant == "Maria da Silva"
