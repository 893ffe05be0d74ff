from __future__ import annotations

from datetime import date

from openpyxl import load_workbook
from reportlab.platypus import PageBreak

from liquidacao.calculo.export_excel import export_calculation_excel, export_history_excel
from liquidacao.calculo.export_pdf import build_report, export_calculation_pdf, export_calculations_pdf
from liquidacao.calculo.formatting import excel_filename, format_brl, format_number, pdf_filename
from liquidacao.calculo.models import Calculation, HistoryEntry
from liquidacao.calculo.recalculate import recalculate


def test_format_number_brazilian_style() -> None:
    assert format_number(1234567.891) == "1.234.567,89"
    assert format_number(0) == "0,00"
    assert format_brl(10.5) == "R$ 10,50"


def test_export_filenames(sample_calc) -> None:
    assert pdf_filename(sample_calc) == "DEMONSTRATIVO_LIQUIDACAO_MARIA_DA_SILVA.pdf"
    assert excel_filename("inicial processo.pdf") == "Liquidacao_inicial_processo.xlsx"


def test_calculation_excel_has_summary_and_breakdown(sample_calc, tmp_path) -> None:
    calc, _ = recalculate(sample_calc)

    path = export_calculation_excel(calc, tmp_path / "out.xlsx")

    wb = load_workbook(path)
    assert wb.sheetnames == ["Resumo da Liquidacao", "Memoria de Calculo"]
    summary = wb["Resumo da Liquidacao"]
    values = [cell.value for row in summary.iter_rows() for cell in row]
    assert "Maria da Silva" in values
    assert "HORAS EXTRAS" in values
    assert calc.grand_total in values
    breakdown = wb["Memoria de Calculo"]
    assert breakdown.max_row == 5  # title, blank, header, two rows


def test_calculation_excel_without_breakdown(tmp_path) -> None:
    calc = Calculation(claimant="A", respondent="B", case_number="1")

    wb = load_workbook(export_calculation_excel(calc, tmp_path / "out.xlsx"))

    assert wb.sheetnames == ["Resumo da Liquidacao"]


def test_history_excel_totals(sample_calc, tmp_path) -> None:
    calc, _ = recalculate(sample_calc)
    entries = [
        HistoryEntry(filename="a.pdf", result=calc, created_at="2024-03-15T10:30:00"),
        HistoryEntry(filename="b.pdf", result=Calculation.failed("boom")),
    ]

    ws = load_workbook(export_history_excel(entries, tmp_path / "hist.xlsx"))["Historico"]

    assert ws["A4"].value == "15/03/2024 10:30"
    assert ws["B4"].value == "a.pdf"
    assert ws["D5"].value == "Falha"
    assert ws["A6"].value == "TOTAL"
    assert ws["E6"].value == calc.grand_total


def test_pdf_exports_are_valid_files(sample_calc, tmp_path) -> None:
    calc, _ = recalculate(sample_calc)
    calc.observation = "Juros <1%> & correcao"

    single = export_calculation_pdf(calc, tmp_path / "one.pdf")
    consolidated = export_calculations_pdf([calc, Calculation.failed("sem dados")], tmp_path / "all.pdf")
    empty = export_calculations_pdf([], tmp_path / "empty.pdf")

    for path in (single, consolidated, empty):
        assert path.read_bytes().startswith(b"%PDF")


def test_failed_report_skips_tables() -> None:
    elements = build_report(Calculation.failed("documento ilegivel"), today=date(2024, 1, 1))

    assert not any(isinstance(e, PageBreak) for e in elements)
    assert "documento ilegivel" in elements[-1].getPlainText()
