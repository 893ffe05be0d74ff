"""Data models for labor-lawsuit settlement calculations."""

from __future__ import annotations

import re
import unicodedata
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime

NATURE_WAGE = "salarial"
NATURE_INDEMNITY = "indenizatoria"

SOURCE_AI = "AI_CALCULATED"
SOURCE_CLAIMANT = "CLAIMANT_PROVIDED_BASIS"
_SOURCES = (SOURCE_AI, SOURCE_CLAIMANT)

_NUMBER_JUNK = re.compile(r"[^0-9,.\-]")


def parse_number(value, default: float = 0.0) -> float:
    """Coerce a model or user value into a float.

    Accepts numbers, "1234.56", "1.234,56" and "R$ 10,00". Anything
    unreadable becomes ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if value == value else default  # NaN check
    text = _NUMBER_JUNK.sub("", str(value))
    if not text:
        return default
    if "," in text and "." in text:
        text = text.replace(".", "").replace(",", ".")
    elif "," in text:
        text = text.replace(",", ".")
    try:
        return float(text)
    except ValueError:
        return default


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_nature(value) -> str:
    """Map free text to wage-type or indemnity-type. Defaults to wage-type."""
    plain = unicodedata.normalize("NFKD", _text(value)).encode("ascii", "ignore").decode().lower()
    if plain.startswith("i"):  # "indenizatoria", "indenizatório", "I"
        return NATURE_INDEMNITY
    return NATURE_WAGE


@dataclass
class MonthlyBreakdown:
    reference: str = ""          # competencia, e.g. 03/2023
    calculation_base: float = 0.0
    nominal_amount: float = 0.0
    index: float = 1.0           # correction index
    corrected_amount: float = 0.0
    interest: float = 0.0
    total: float = 0.0           # corrected_amount + interest
    quantity: float | None = None
    unit: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> MonthlyBreakdown:
        quantity = data.get("quantity")
        return cls(
            reference=_text(data.get("reference")),
            calculation_base=parse_number(data.get("calculation_base")),
            nominal_amount=parse_number(data.get("nominal_amount")),
            index=parse_number(data.get("index"), 1.0) or 1.0,
            corrected_amount=parse_number(data.get("corrected_amount")),
            interest=parse_number(data.get("interest")),
            total=parse_number(data.get("total")),
            quantity=parse_number(quantity) if quantity not in (None, "") else None,
            unit=_text(data.get("unit")),
        )


@dataclass
class LineItem:
    description: str
    nature: str = NATURE_WAGE
    nominal_amount: float = 0.0
    corrected_amount: float = 0.0
    interest: float = 0.0
    total: float = 0.0
    monthly_breakdown: list[MonthlyBreakdown] = field(default_factory=list)

    @property
    def is_wage(self) -> bool:
        return self.nature == NATURE_WAGE

    @classmethod
    def from_dict(cls, data: dict) -> LineItem:
        rows = data.get("monthly_breakdown") or []
        return cls(
            description=_text(data.get("description")),
            nature=normalize_nature(data.get("nature")),
            nominal_amount=parse_number(data.get("nominal_amount")),
            corrected_amount=parse_number(data.get("corrected_amount")),
            interest=parse_number(data.get("interest")),
            total=parse_number(data.get("total")),
            monthly_breakdown=[MonthlyBreakdown.from_dict(r) for r in rows if isinstance(r, dict)],
        )


@dataclass
class InterestCorrectionDetail:
    period: str = ""
    index_name: str = ""
    correction_amount: float = 0.0
    interest_amount: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> InterestCorrectionDetail:
        return cls(
            period=_text(data.get("period")),
            index_name=_text(data.get("index_name")),
            correction_amount=parse_number(data.get("correction_amount")),
            interest_amount=parse_number(data.get("interest_amount")),
        )


@dataclass
class Calculation:
    """One settlement calculation (demonstrativo de liquidacao)."""
    claimant: str            # reclamante
    respondent: str          # reclamada
    case_number: str
    line_items: list[LineItem] = field(default_factory=list)

    filing_date: str = ""
    settlement_date: str = ""
    period_start: str = ""
    period_end: str = ""

    corrected_total: float = 0.0     # sum of corrected principal
    interest_total: float = 0.0
    gross_total: float = 0.0         # corrected_total + interest_total
    social_security: float = 0.0     # INSS withheld from the claimant
    income_tax: float = 0.0          # IRRF
    severance_fund: float = 0.0      # FGTS credited to the claimant
    net_total: float = 0.0
    monetary_correction: float = 0.0
    interest_details: list[InterestCorrectionDetail] = field(default_factory=list)

    fee_percentage: float = 0.0
    fee_amount: float = 0.0
    employer_charge_base: float = 0.0
    employer_charge_percentage: float = 0.0
    employer_charge_amount: float = 0.0
    grand_total: float = 0.0         # gross_total + fees + employer charge

    is_calculation_possible: bool = True
    error_reason: str = ""
    calculation_source: str = ""
    observation: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Calculation:
        """Build a Calculation from model output or stored JSON, defaulting gaps."""
        data = data or {}
        items = data.get("line_items") or []
        details = data.get("interest_details") or []
        possible = data.get("is_calculation_possible", True)
        if isinstance(possible, str):
            possible = possible.strip().lower() not in ("false", "0", "no", "nao", "")
        source = _text(data.get("calculation_source"))
        return cls(
            claimant=_text(data.get("claimant")),
            respondent=_text(data.get("respondent")),
            case_number=_text(data.get("case_number")),
            line_items=[LineItem.from_dict(i) for i in items if isinstance(i, dict)],
            filing_date=_text(data.get("filing_date")),
            settlement_date=_text(data.get("settlement_date")),
            period_start=_text(data.get("period_start")),
            period_end=_text(data.get("period_end")),
            corrected_total=parse_number(data.get("corrected_total")),
            interest_total=parse_number(data.get("interest_total")),
            gross_total=parse_number(data.get("gross_total")),
            social_security=parse_number(data.get("social_security")),
            income_tax=parse_number(data.get("income_tax")),
            severance_fund=parse_number(data.get("severance_fund")),
            net_total=parse_number(data.get("net_total")),
            monetary_correction=parse_number(data.get("monetary_correction")),
            interest_details=[InterestCorrectionDetail.from_dict(d) for d in details if isinstance(d, dict)],
            fee_percentage=parse_number(data.get("fee_percentage")),
            fee_amount=parse_number(data.get("fee_amount")),
            employer_charge_base=parse_number(data.get("employer_charge_base")),
            employer_charge_percentage=parse_number(data.get("employer_charge_percentage")),
            employer_charge_amount=parse_number(data.get("employer_charge_amount")),
            grand_total=parse_number(data.get("grand_total")),
            is_calculation_possible=bool(possible),
            error_reason=_text(data.get("error_reason")),
            calculation_source=source if source in _SOURCES else "",
            observation=_text(data.get("observation")),
        )

    @classmethod
    def failed(cls, reason: str, employer_percentage: float = 0.0) -> Calculation:
        """Placeholder result recorded when processing a file blew up."""
        return cls(
            claimant="Erro",
            respondent="Erro",
            case_number="Erro",
            employer_charge_percentage=employer_percentage,
            is_calculation_possible=False,
            error_reason=reason or "Erro de sistema",
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class HistoryEntry:
    filename: str
    result: Calculation
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))
    observation: str = ""

    @property
    def created(self) -> datetime:
        try:
            return datetime.fromisoformat(self.created_at)
        except ValueError:
            return datetime.now()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "result": self.result.to_dict(),
            "created_at": self.created_at,
            "observation": self.observation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> HistoryEntry:
        return cls(
            id=_text(data.get("id")) or str(uuid.uuid4()),
            filename=_text(data.get("filename")),
            result=Calculation.from_dict(data.get("result") or {}),
            created_at=_text(data.get("created_at")) or datetime.now().isoformat(timespec="seconds"),
            observation=_text(data.get("observation")),
        )
