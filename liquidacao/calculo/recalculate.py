"""Recompute the derived sums of a calculation after manual edits."""

from __future__ import annotations

from dataclasses import replace

from liquidacao.calculo.models import Calculation, LineItem


def _recalculate_item(item: LineItem) -> LineItem:
    rows = item.monthly_breakdown
    if not rows:
        return replace(item, total=item.corrected_amount + item.interest)

    new_rows = [replace(r, total=r.corrected_amount + r.interest) for r in rows]
    return replace(
        item,
        monthly_breakdown=new_rows,
        nominal_amount=sum(r.nominal_amount for r in new_rows),
        corrected_amount=sum(r.corrected_amount for r in new_rows),
        interest=sum(r.interest for r in new_rows),
        total=sum(r.total for r in new_rows),
    )


def recalculate(calc: Calculation) -> tuple[Calculation, bool]:
    """Rebuild item aggregates and top-level totals from the editable inputs.

    Rows drive their line item, line items drive the totals, and the
    fee / employer-charge percentages drive their amounts. Returns the
    updated calculation and whether anything changed; when nothing did,
    the same object comes back so callers can skip re-rendering.
    """
    items = [_recalculate_item(i) for i in calc.line_items]

    corrected_total = sum(i.corrected_amount for i in items)
    interest_total = sum(i.interest for i in items)
    gross_total = corrected_total + interest_total

    employer_base = sum(i.corrected_amount for i in items if i.is_wage)
    employer_amount = employer_base * (calc.employer_charge_percentage / 100)
    fee_amount = gross_total * (calc.fee_percentage / 100)
    net_total = gross_total - calc.social_security - calc.income_tax + calc.severance_fund
    grand_total = gross_total + fee_amount + employer_amount

    updated = replace(
        calc,
        line_items=items,
        corrected_total=corrected_total,
        interest_total=interest_total,
        gross_total=gross_total,
        employer_charge_base=employer_base,
        employer_charge_amount=employer_amount,
        fee_amount=fee_amount,
        net_total=net_total,
        grand_total=grand_total,
    )
    if updated == calc:
        return calc, False
    return updated, True
