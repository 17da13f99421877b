"""Jurisdiction tables used by settlement and payroll.

Reserve tiers and cantonal withholding rates are kept here rather than inline
so a tenant or canton change is a table edit.
"""
import enum
from decimal import Decimal
from typing import Dict, NamedTuple, Optional


class ReserveRate(int, enum.Enum):
    """Share of a collaborator's commission retained on the reserve account (percent)."""
    NONE = 0
    STANDARD = 10
    HIGH = 20


class WithholdingRates(NamedTuple):
    single: Decimal
    married: Decimal


DEFAULT_CANTON = "DEFAULT"

WITHHOLDING_TAX_RATES: Dict[str, WithholdingRates] = {
    "GE": WithholdingRates(Decimal("0.14"), Decimal("0.10")),
    "VD": WithholdingRates(Decimal("0.13"), Decimal("0.09")),
    "VS": WithholdingRates(Decimal("0.12"), Decimal("0.08")),
    "FR": WithholdingRates(Decimal("0.125"), Decimal("0.085")),
    "NE": WithholdingRates(Decimal("0.135"), Decimal("0.095")),
    "JU": WithholdingRates(Decimal("0.13"), Decimal("0.09")),
    "BE": WithholdingRates(Decimal("0.12"), Decimal("0.08")),
    "ZH": WithholdingRates(Decimal("0.11"), Decimal("0.07")),
    "BS": WithholdingRates(Decimal("0.125"), Decimal("0.085")),
    "TI": WithholdingRates(Decimal("0.12"), Decimal("0.08")),
    DEFAULT_CANTON: WithholdingRates(Decimal("0.12"), Decimal("0.08")),
}

# Substrings of civil_status that select the married rate ("marié", "mariée", "married")
MARRIED_MARKERS = ("mari", "married")


def is_married(civil_status: Optional[str]) -> bool:
    status = (civil_status or "").lower()
    return any(marker in status for marker in MARRIED_MARKERS)


def canton_code(canton: Optional[str]) -> str:
    """Table key for a canton; unlisted or missing cantons use the DEFAULT row."""
    code = (canton or "").strip().upper()
    return code if code in WITHHOLDING_TAX_RATES else DEFAULT_CANTON


def withholding_rate(canton: Optional[str], civil_status: Optional[str]) -> Decimal:
    rates = WITHHOLDING_TAX_RATES[canton_code(canton)]
    return rates.married if is_married(civil_status) else rates.single
