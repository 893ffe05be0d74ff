"""Excel exports for settlement calculations."""

from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from liquidacao.calculo.formatting import nature_label
from liquidacao.calculo.models import Calculation, HistoryEntry

logger = logging.getLogger(__name__)

CURRENCY_FORMAT = '"R$" #,##0.00'
INDEX_FORMAT = "0.000000"

HEADER_FILL = PatternFill(start_color="282828", end_color="282828", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
TOTAL_FILL = PatternFill(start_color="F0F0F0", end_color="F0F0F0", fill_type="solid")
BORDER = Border(
    left=Side(style="thin"), right=Side(style="thin"),
    top=Side(style="thin"), bottom=Side(style="thin"),
)


def _title(ws: Worksheet, text: str, last_col: str):
    ws.merge_cells(f"A1:{last_col}1")
    ws["A1"] = text
    ws["A1"].font = Font(bold=True, size=14)


def _header_row(ws: Worksheet, row: int, headers: list[str]):
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center")
        cell.border = BORDER


def _value_row(ws: Worksheet, row: int, values: list, money_cols=(), bold=False, fill=None):
    for col, value in enumerate(values, 1):
        cell = ws.cell(row=row, column=col, value=value)
        cell.border = BORDER
        if col in money_cols:
            cell.number_format = CURRENCY_FORMAT
            cell.alignment = Alignment(horizontal="right")
        if bold:
            cell.font = Font(bold=True)
        if fill is not None:
            cell.fill = fill


def _write_summary_sheet(wb: Workbook, calc: Calculation):
    ws = wb.create_sheet(title="Resumo da Liquidacao")
    ws.page_setup.orientation = "landscape"
    ws.page_setup.paperSize = ws.PAPERSIZE_A4
    ws.page_setup.fitToWidth = 1

    _title(ws, "DEMONSTRATIVO DE LIQUIDACAO JUDICIAL - PLANILHA ANALITICA", "F")

    ws["A3"] = "DADOS DA APURACAO"
    ws["A3"].font = Font(bold=True)
    case_data = [
        ("Numero do Processo:", calc.case_number),
        ("Reclamante:", calc.claimant),
        ("Reclamada:", calc.respondent),
        ("Periodo de Apuracao:", f"{calc.period_start or '-'} a {calc.period_end or '-'}"),
        ("Data de Ajuizamento:", calc.filing_date or "-"),
        ("Data Base:", calc.settlement_date or "-"),
    ]
    row = 4
    for label, value in case_data:
        ws.cell(row=row, column=1, value=label).font = Font(bold=True)
        ws.cell(row=row, column=2, value=value)
        row += 1

    row += 1
    ws.cell(row=row, column=1, value="DEMONSTRATIVO DE VERBAS LIQUIDADAS").font = Font(bold=True)
    row += 1
    _header_row(ws, row, ["Rubrica", "Nat.", "Valor Nominal", "Principal Corrigido", "Juros de Mora", "Total Bruto"])
    row += 1
    for item in calc.line_items:
        _value_row(
            ws, row,
            [item.description.upper(), nature_label(item.nature), item.nominal_amount,
             item.corrected_amount, item.interest, item.total],
            money_cols=(3, 4, 5, 6),
        )
        row += 1
    _value_row(
        ws, row,
        ["TOTAIS ACUMULADOS", "", sum(i.nominal_amount for i in calc.line_items),
         calc.corrected_total, calc.interest_total, calc.gross_total],
        money_cols=(3, 4, 5, 6), bold=True, fill=TOTAL_FILL,
    )
    row += 3

    ws.cell(row=row, column=1, value="QUADRO RESUMO DE VALORES").font = Font(bold=True)
    row += 1
    summary = [
        ("BRUTO DEVIDO (PRINCIPAL + JUROS)", calc.gross_total),
        ("(-) INSS COTA EMPREGADO", calc.social_security),
        ("(-) IRRF RETIDO NA FONTE", calc.income_tax),
        ("(+) FGTS (CREDITO AO RECLAMANTE)", calc.severance_fund),
        ("VALOR LIQUIDO DEVIDO AO RECLAMANTE", calc.net_total),
        (f"HONORARIOS DE SUCUMBENCIA ({calc.fee_percentage:g}%)", calc.fee_amount),
        (f"COTA PATRONAL PREVIDENCIARIA ({calc.employer_charge_percentage:g}%)", calc.employer_charge_amount),
        ("TOTAL GERAL DO DEBITO (CUSTO DA RECLAMADA)", calc.grand_total),
    ]
    for label, value in summary:
        emphasis = label.startswith("VALOR LIQUIDO") or label.startswith("TOTAL GERAL")
        _value_row(ws, row, [label, value], money_cols=(2,), bold=emphasis)
        row += 1

    if calc.observation:
        row += 1
        ws.cell(row=row, column=1, value="Observacoes:").font = Font(bold=True)
        ws.cell(row=row, column=2, value=calc.observation)

    ws.column_dimensions["A"].width = 50
    ws.column_dimensions["B"].width = 22
    for col in range(3, 7):
        ws.column_dimensions[get_column_letter(col)].width = 20


def _write_breakdown_sheet(wb: Workbook, calc: Calculation):
    ws = wb.create_sheet(title="Memoria de Calculo")
    _title(ws, "ANEXO I - MEMORIA DE CALCULO MENSAL DISCRIMINADA", "H")

    headers = ["Rubrica", "Competencia", "Base Calculo", "Vl. Nominal", "Indice", "Princ. Corr.", "Juros", "Subtotal"]
    _header_row(ws, 3, headers)
    row = 4
    for item in calc.line_items:
        for m in item.monthly_breakdown:
            _value_row(
                ws, row,
                [item.description, m.reference, m.calculation_base, m.nominal_amount,
                 m.index, m.corrected_amount, m.interest, m.total],
                money_cols=(3, 4, 6, 7, 8),
            )
            ws.cell(row=row, column=5).number_format = INDEX_FORMAT
            row += 1

    for col in range(1, len(headers) + 1):
        max_len = max(
            (len(str(ws.cell(row=r, column=col).value or "")) for r in range(3, ws.max_row + 1)),
            default=10,
        )
        ws.column_dimensions[get_column_letter(col)].width = min(max(max_len + 2, 14), 50)


def export_calculation_excel(calc: Calculation, output_path: str | Path) -> Path:
    """Export one calculation: summary sheet plus monthly breakdown sheet."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    wb.remove(wb.active)
    _write_summary_sheet(wb, calc)
    if any(item.monthly_breakdown for item in calc.line_items):
        _write_breakdown_sheet(wb, calc)

    wb.save(str(output_path))
    logger.info(f"Calculation Excel exported to {output_path}")
    return output_path


def export_history_excel(entries: list[HistoryEntry], output_path: str | Path) -> Path:
    """Export the consolidated history: one row per processed document."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    wb.remove(wb.active)
    ws = wb.create_sheet(title="Historico")
    _title(ws, "Historico Consolidado de Liquidacoes Judiciais", "E")

    _header_row(ws, 3, ["Data de Apuracao", "Arquivo Origem", "N. Processo", "Situacao", "Total Geral do Debito"])
    for row, entry in enumerate(entries, 4):
        status = "Calculado" if entry.result.is_calculation_possible else "Falha"
        _value_row(
            ws, row,
            [entry.created.strftime("%d/%m/%Y %H:%M"), entry.filename, entry.result.case_number,
             status, entry.result.grand_total],
            money_cols=(5,),
        )

    total_row = len(entries) + 4
    ws.cell(row=total_row, column=1, value="TOTAL").font = Font(bold=True)
    cell = ws.cell(row=total_row, column=5, value=sum(e.result.grand_total for e in entries))
    cell.font = Font(bold=True)
    cell.number_format = CURRENCY_FORMAT
    cell.border = BORDER

    for col, width in zip("ABCDE", (20, 30, 28, 12, 22)):
        ws.column_dimensions[col].width = width

    wb.save(str(output_path))
    logger.info(f"History Excel exported to {output_path} ({len(entries)} entries)")
    return output_path
