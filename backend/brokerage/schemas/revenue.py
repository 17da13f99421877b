from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal
import enum


class ProductCategory(str, enum.Enum):
    LCA = "lca"  # supplementary health
    VIE = "vie"  # life / pillar 3
    HYPO = "hypo"  # mortgage
    NON_VIE = "non_vie"  # everything else (P&C)


class Period(str, enum.Enum):
    ALL = "all"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class RevenueSummary(BaseModel):
    lca: Decimal = Decimal("0")
    vie: Decimal = Decimal("0")
    non_vie: Decimal = Decimal("0")
    hypo: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.lca + self.vie + self.non_vie + self.hypo

    def add(self, category: ProductCategory, amount: Decimal) -> None:
        setattr(self, category.value, getattr(self, category.value) + amount)

    def as_dict(self) -> Dict[str, float]:
        return {
            "lca": float(self.lca),
            "vie": float(self.vie),
            "nonVie": float(self.non_vie),
            "hypo": float(self.hypo),
            "total": float(self.total),
        }


class MonthlyRevenue(BaseModel):
    """One month of the yearly series, all three view modes precomputed."""
    month: int
    estimated: RevenueSummary
    realized: RevenueSummary
    prime: RevenueSummary


class PeriodCommissionTotals(BaseModel):
    period: Period
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    paid: Decimal = Decimal("0")
    unpaid: Decimal = Decimal("0")
    count: int = 0

    @property
    def total(self) -> Decimal:
        return self.paid + self.unpaid


class RevenueKpis(BaseModel):
    period: Period
    active_contracts: int
    period_contracts: int
    active_by_category: Dict[ProductCategory, int]
    commissions: PeriodCommissionTotals


class ReserveEntry(BaseModel):
    year: int
    month: int
    commission_amount: Decimal
    reserve_amount: Decimal
    cumulative_reserve: Decimal


class ReserveAccount(BaseModel):
    collaborator_id: int
    reserve_rate: int
    entries: List[ReserveEntry]

    @property
    def balance(self) -> Decimal:
        return self.entries[-1].cumulative_reserve if self.entries else Decimal("0")

    def reserve_for_year(self, year: int) -> Decimal:
        return sum((e.reserve_amount for e in self.entries if e.year == year), Decimal("0"))


class CollaboratorPerformance(BaseModel):
    """Book of one collaborator: the policies assigned to them and their commissions."""
    collaborator_id: int
    name: str
    role: str  # "manager" when anyone reports to them, else "agent"
    manager_id: Optional[int] = None
    clients_count: int = 0
    contracts_count: int = 0
    contracts_active: int = 0
    contracts_pending: int = 0
    premiums_monthly: Decimal = Decimal("0")
    premiums_yearly: Decimal = Decimal("0")
    total_commissions: Decimal = Decimal("0")
    paid_commissions: Decimal = Decimal("0")
    pending_commissions: Decimal = Decimal("0")


class TeamTotals(BaseModel):
    clients_count: int = 0
    contracts_count: int = 0
    premiums_monthly: Decimal = Decimal("0")
    total_commissions: Decimal = Decimal("0")


class TeamPerformance(BaseModel):
    """A manager's direct reports; totals include the manager's own book."""
    manager_id: int
    manager_name: str
    members: List[CollaboratorPerformance]
    totals: TeamTotals


class CompanyTotals(BaseModel):
    clients_count: int
    contracts_count: int
    contracts_active: int
    contracts_pending: int
    premiums_monthly: Decimal
    premiums_yearly: Decimal
    total_commissions: Decimal
    paid_commissions: Decimal
    pending_commissions: Decimal
    collaborators_count: int
