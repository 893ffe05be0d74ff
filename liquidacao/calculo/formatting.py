"""Brazilian number formatting and deterministic export filenames."""

from __future__ import annotations

import re
from pathlib import Path

from liquidacao.calculo.models import NATURE_WAGE, Calculation

CONSOLIDATED_PDF_NAME = "CONSOLIDADO_LIQUIDACOES_JUDICIAIS.pdf"
CONSOLIDATED_EXCEL_NAME = "Historico_Consolidado_Liquidacoes.xlsx"


def format_number(value: float, decimals: int = 2) -> str:
    """1234.5 -> '1.234,50'"""
    text = f"{value or 0:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_brl(value: float) -> str:
    return f"R$ {format_number(value)}"


def nature_label(nature: str) -> str:
    return "S" if nature == NATURE_WAGE else "I"


def pdf_filename(calc: Calculation) -> str:
    safe = re.sub(r"\s", "_", (calc.claimant or "Calculo").upper())[:30]
    safe = re.sub(r'[\\/:*?"<>|]', "", safe) or "CALCULO"
    return f"DEMONSTRATIVO_LIQUIDACAO_{safe}.pdf"


def excel_filename(source_filename: str) -> str:
    stem = Path(source_filename or "calculo").stem
    stem = re.sub(r'[\\/:*?"<>|\s]+', "_", stem).strip("_") or "calculo"
    return f"Liquidacao_{stem}.xlsx"
