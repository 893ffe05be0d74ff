"""Manual adjustments to a calculation (ajuste pericial).

Every operation returns a new Calculation and never fails: unknown
fields and out-of-range positions leave the input as it was, and bad
numbers become zero. Run ``recalculate`` afterwards to refresh totals.
"""

from __future__ import annotations

import copy

from liquidacao.calculo.models import (
    NATURE_WAGE,
    Calculation,
    LineItem,
    MonthlyBreakdown,
    normalize_nature,
    parse_number,
)

# User-facing (Portuguese) names -> attribute names
TEXT_FIELDS = {
    "reclamante": "claimant",
    "reclamada": "respondent",
    "processo": "case_number",
    "observacao": "observation",
}
NUMBER_FIELDS = {
    "inss": "social_security",
    "irrf": "income_tax",
    "fgts": "severance_fund",
    "honorarios": "fee_percentage",
    "patronal": "employer_charge_percentage",
}
LINE_ITEM_FIELDS = {
    "descricao": "description",
    "natureza": "nature",
    "nominal": "nominal_amount",
    "corrigido": "corrected_amount",
    "juros": "interest",
}
BREAKDOWN_FIELDS = {
    "competencia": "reference",
    "base": "calculation_base",
    "nominal": "nominal_amount",
    "indice": "index",
    "corrigido": "corrected_amount",
    "juros": "interest",
}
DERIVED_ITEM_FIELDS = {"nominal_amount", "corrected_amount", "interest", "total"}


def _resolve(key: str, mapping: dict) -> str | None:
    key = key.strip().lower()
    if key in mapping:
        return mapping[key]
    if key in mapping.values():
        return key
    return None


def is_derived_field(item: LineItem, key: str) -> bool:
    """True when the field is summed from breakdown rows and cannot be typed in."""
    attr = _resolve(key, LINE_ITEM_FIELDS)
    return bool(item.monthly_breakdown) and attr in DERIVED_ITEM_FIELDS


def set_field(calc: Calculation, key: str, raw) -> Calculation:
    attr = _resolve(key, TEXT_FIELDS)
    if attr:
        value = str(raw).strip()
    else:
        attr = _resolve(key, NUMBER_FIELDS)
        if not attr:
            return calc
        value = parse_number(raw)
    updated = copy.deepcopy(calc)
    setattr(updated, attr, value)
    return updated


def set_line_item_field(calc: Calculation, index: int, key: str, raw) -> Calculation:
    attr = _resolve(key, LINE_ITEM_FIELDS)
    if not attr or not 0 <= index < len(calc.line_items):
        return calc
    if attr == "description":
        value = str(raw).strip()
    elif attr == "nature":
        value = normalize_nature(raw)
    else:
        value = parse_number(raw)
    updated = copy.deepcopy(calc)
    setattr(updated.line_items[index], attr, value)
    return updated


def set_breakdown_field(calc: Calculation, item_index: int, row_index: int, key: str, raw) -> Calculation:
    attr = _resolve(key, BREAKDOWN_FIELDS)
    if not attr or not 0 <= item_index < len(calc.line_items):
        return calc
    if not 0 <= row_index < len(calc.line_items[item_index].monthly_breakdown):
        return calc

    updated = copy.deepcopy(calc)
    row = updated.line_items[item_index].monthly_breakdown[row_index]
    setattr(row, attr, str(raw).strip() if attr == "reference" else parse_number(raw))

    # nominal x index drives the corrected amount
    if attr in ("nominal_amount", "index"):
        row.corrected_amount = round(row.nominal_amount * (row.index or 1), 2)
    row.total = round(row.corrected_amount + row.interest, 2)
    return updated


def add_line_item(calc: Calculation, description: str = "") -> Calculation:
    updated = copy.deepcopy(calc)
    updated.line_items.append(LineItem(description=description.strip() or "Nova Rubrica", nature=NATURE_WAGE))
    return updated


def remove_line_item(calc: Calculation, index: int) -> Calculation:
    if not 0 <= index < len(calc.line_items):
        return calc
    updated = copy.deepcopy(calc)
    del updated.line_items[index]
    return updated


def add_breakdown_row(calc: Calculation, item_index: int) -> Calculation:
    if not 0 <= item_index < len(calc.line_items):
        return calc
    updated = copy.deepcopy(calc)
    updated.line_items[item_index].monthly_breakdown.append(MonthlyBreakdown(quantity=0.0))
    return updated


def remove_breakdown_row(calc: Calculation, item_index: int, row_index: int) -> Calculation:
    if not 0 <= item_index < len(calc.line_items):
        return calc
    if not 0 <= row_index < len(calc.line_items[item_index].monthly_breakdown):
        return calc
    updated = copy.deepcopy(calc)
    del updated.line_items[item_index].monthly_breakdown[row_index]
    return updated
