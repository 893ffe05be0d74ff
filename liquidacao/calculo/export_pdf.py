"""PDF report (demonstrativo de liquidacao) for settlement calculations."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from liquidacao.calculo.formatting import format_brl, format_number, nature_label
from liquidacao.calculo.models import Calculation

logger = logging.getLogger(__name__)

MARGIN = 12 * mm
PAGE_WIDTH = landscape(A4)[0] - 2 * MARGIN

_styles = getSampleStyleSheet()
TITLE_STYLE = ParagraphStyle("ReportTitle", parent=_styles["Title"], fontSize=14, alignment=0, spaceAfter=4)
HEADING_STYLE = ParagraphStyle("ReportHeading", parent=_styles["Heading2"], fontSize=10, spaceBefore=6, spaceAfter=4)
CELL_STYLE = ParagraphStyle("Cell", parent=_styles["Normal"], fontSize=7.5, leading=9)
SMALL_STYLE = ParagraphStyle("Small", parent=_styles["Normal"], fontSize=8)

GRID_STYLE = [
    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ("FONTSIZE", (0, 0), (-1, -1), 7.5),
    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
]


def _party_table(calc: Calculation, base_date: str) -> Table:
    data = [
        ["RECLAMANTE:", calc.claimant.upper(), "Inicio Calc.:", calc.period_start or "-"],
        ["RECLAMADA:", calc.respondent.upper(), "Fim Calc.:", calc.period_end or "-"],
        ["AJUIZAMENTO:", calc.filing_date or "-", "Data Base:", base_date],
    ]
    table = Table(data, colWidths=[28 * mm, 150 * mm, 28 * mm, None])
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8.5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 1),
        ("TOPPADDING", (0, 0), (-1, -1), 1),
    ]))
    return table


def _line_items_table(calc: Calculation) -> Table:
    data = [["Rubrica Apurada", "Nat.", "Vl. Nominal", "Princ. Corrigido", "Juros (SELIC)", "Total Bruto"]]
    for item in calc.line_items:
        data.append([
            Paragraph(escape(item.description.upper()), CELL_STYLE),
            nature_label(item.nature),
            format_brl(item.nominal_amount),
            format_brl(item.corrected_amount),
            format_brl(item.interest),
            format_brl(item.total),
        ])
    data.append([
        "TOTAIS ACUMULADOS", "", "",
        format_brl(calc.corrected_total), format_brl(calc.interest_total), format_brl(calc.gross_total),
    ])

    money_width = 36 * mm
    first_width = PAGE_WIDTH - 10 * mm - 4 * money_width
    table = Table(data, colWidths=[first_width, 10 * mm] + [money_width] * 4, repeatRows=1)
    table.setStyle(TableStyle(GRID_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#282828")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
        ("ALIGN", (1, 1), (1, -1), "CENTER"),
        ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
        ("FONTNAME", (5, 1), (5, -1), "Helvetica-Bold"),
        ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#F0F0F0")),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
    ]))
    return table


def _summary_tables(calc: Calculation) -> Table:
    """Claimant's net computation beside the respondent's total cost."""
    col_width = (PAGE_WIDTH - MARGIN) / 2
    claimant = Table([
        ["CONTA DO RECLAMANTE", "VALOR (R$)"],
        ["(+) Principal Corrigido Bruto", format_brl(calc.corrected_total)],
        ["(+) Juros de Mora (SELIC)", format_brl(calc.interest_total)],
        ["(-) Previdencia Social (Segurado)", f"({format_brl(calc.social_security)})"],
        ["(-) Imposto de Renda (IRRF)", f"({format_brl(calc.income_tax)})"],
        ["(+) FGTS Apurado", format_brl(calc.severance_fund)],
        ["VALOR LIQUIDO DEVIDO AO RECLAMANTE", format_brl(calc.net_total)],
    ], colWidths=[col_width * 0.65, col_width * 0.35])
    claimant.setStyle(TableStyle(GRID_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#505050")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (1, 1), (1, -1), "RIGHT"),
        ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#E6E6E6")),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
    ]))

    employer = Table([
        ["ENCARGOS DA RECLAMADA", "VALOR (R$)"],
        ["Total da Condenacao (Bruto)", format_brl(calc.gross_total)],
        [f"Honorarios de Sucumbencia ({format_number(calc.fee_percentage)}%)", format_brl(calc.fee_amount)],
        [f"Cota Patronal INSS ({format_number(calc.employer_charge_percentage)}%)",
         format_brl(calc.employer_charge_amount)],
        ["Base da Cota Patronal (verbas salariais)", format_brl(calc.employer_charge_base)],
        ["TOTAL GERAL DO DEBITO", format_brl(calc.grand_total)],
    ], colWidths=[col_width * 0.65, col_width * 0.35])
    employer.setStyle(TableStyle(GRID_STYLE + [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#505050")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (1, 1), (1, -1), "RIGHT"),
        ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#1E1E1E")),
        ("TEXTCOLOR", (0, -1), (-1, -1), colors.white),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
    ]))

    outer = Table([[claimant, employer]], colWidths=[col_width + MARGIN / 2, col_width + MARGIN / 2])
    outer.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
    ]))
    return outer


def _breakdown_table(item) -> Table:
    data = [["Comp.", "Base Calculo", "Vl. Nominal", "Indice", "Princ. Corr.", "Juros SELIC", "Subtotal"]]
    for m in item.monthly_breakdown:
        data.append([
            m.reference,
            format_brl(m.calculation_base),
            format_brl(m.nominal_amount),
            format_number(m.index or 1, 6),
            format_brl(m.corrected_amount),
            format_brl(m.interest),
            format_brl(m.total),
        ])
    other_width = (PAGE_WIDTH - 22 * mm) / 6
    table = Table(data, colWidths=[22 * mm] + [other_width] * 6, repeatRows=1)
    table.setStyle(TableStyle(GRID_STYLE + [
        ("FONTSIZE", (0, 0), (-1, -1), 6.5),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F0F0F0")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
        ("ALIGN", (0, 1), (0, -1), "CENTER"),
        ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ("ALIGN", (3, 1), (3, -1), "CENTER"),
        ("FONTNAME", (4, 1), (4, -1), "Helvetica-Bold"),
        ("FONTNAME", (6, 1), (6, -1), "Helvetica-Bold"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F7F7F7")]),
    ]))
    return table


def build_report(calc: Calculation, today: date | None = None) -> list:
    """Flowables for one calculation; the appendix starts on its own page."""
    today_text = (today or date.today()).strftime("%d/%m/%Y")
    base_date = calc.settlement_date or today_text

    elements = [
        Paragraph("DEMONSTRATIVO DE LIQUIDACAO DE SENTENCA", TITLE_STYLE),
        Paragraph(
            f"<b>N. do Processo:</b> {escape(calc.case_number or 'N/I')} &nbsp;&nbsp; "
            f"<b>Data de Emissao:</b> {today_text}",
            SMALL_STYLE,
        ),
        Spacer(1, 4 * mm),
        _party_table(calc, base_date),
        Spacer(1, 6 * mm),
    ]

    if not calc.is_calculation_possible:
        elements.append(Paragraph("CALCULO NAO REALIZADO", HEADING_STYLE))
        elements.append(Paragraph(escape(calc.error_reason or "Motivo nao informado."), SMALL_STYLE))
        return elements

    elements += [
        Paragraph("1. DEMONSTRATIVO DAS VERBAS APURADAS", HEADING_STYLE),
        _line_items_table(calc),
        Spacer(1, 8 * mm),
        Paragraph("2. QUADRO RESUMO DO DEBITO ATUALIZADO", HEADING_STYLE),
        _summary_tables(calc),
    ]
    if calc.observation:
        elements += [Spacer(1, 4 * mm), Paragraph(f"<b>Observacoes:</b> {escape(calc.observation)}", SMALL_STYLE)]

    detailed = [(i, item) for i, item in enumerate(calc.line_items, 1) if item.monthly_breakdown]
    if detailed:
        elements += [PageBreak(), Paragraph("ANEXO I - MEMORIA DE CALCULO MENSAL DISCRIMINADA", TITLE_STYLE)]
        for position, item in detailed:
            elements.append(Paragraph(f"{position}.1 - {escape(item.description.upper())}", HEADING_STYLE))
            elements.append(_breakdown_table(item))
            elements.append(Spacer(1, 6 * mm))

    return elements


def _build(elements: list, output_path: str | Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    doc = SimpleDocTemplate(
        str(output_path), pagesize=landscape(A4),
        leftMargin=MARGIN, rightMargin=MARGIN,
        topMargin=MARGIN, bottomMargin=MARGIN,
    )
    doc.build(elements)
    return output_path


def export_calculation_pdf(calc: Calculation, output_path: str | Path) -> Path:
    path = _build(build_report(calc), output_path)
    logger.info(f"Calculation PDF exported to {path}")
    return path


def export_calculations_pdf(calcs: list[Calculation], output_path: str | Path) -> Path:
    """Consolidated report, each calculation starting on a new page."""
    elements = []
    for i, calc in enumerate(calcs):
        if i > 0:
            elements.append(PageBreak())
        elements += build_report(calc)
    if not elements:
        elements.append(Paragraph("Nenhuma liquidacao no historico.", SMALL_STYLE))
    path = _build(elements, output_path)
    logger.info(f"Consolidated PDF exported to {path} ({len(calcs)} calculations)")
    return path
