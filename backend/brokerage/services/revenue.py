"""Revenue estimator: estimated vs. realized turnover by product category.

Single shared definition of the revenue formulas used by settlement and
dashboard views.

- estimated: projected value of each active policy
    vie      matching commission amount, else yearly premium * 5%
    lca      monthly premium * 16
    hypo     yearly premium * 1%
    non_vie  yearly premium * 15%
- realized: paid commissions, attributed as-is to their policy's category
- prime: raw yearly premium of active policies

Performance views attribute each policy to its assigned agent and roll the
agents up into teams by manager.
"""
import logging
from collections import defaultdict
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from dateutil.relativedelta import relativedelta

from brokerage.core.money import ZERO, money, to_decimal, total
from brokerage.models.policy import PolicyStatus
from brokerage.schemas.ledger import CollaboratorRecord, CommissionRecord, PolicyRecord
from brokerage.schemas.revenue import (
    CollaboratorPerformance, CompanyTotals, MonthlyRevenue, Period, PeriodCommissionTotals,
    ProductCategory, RevenueKpis, RevenueSummary, TeamPerformance, TeamTotals,
)
from brokerage.services.categorizer import categorize_policy
from brokerage.services.ledger import LedgerSource, call_source, local_naive

logger = logging.getLogger(__name__)

LCA_MONTHLY_FACTOR = Decimal("16")
VIE_YEARLY_RATE = Decimal("0.05")
HYPO_YEARLY_RATE = Decimal("0.01")
NON_VIE_YEARLY_RATE = Decimal("0.15")


def period_bounds(period: Period, now: datetime) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Calendar bounds of the week/month/quarter/year containing ``now`` (naive local)."""
    period = Period(period)
    if period == Period.ALL:
        return None, None

    today = local_naive(now).date()
    if period == Period.WEEK:
        first = today - timedelta(days=today.weekday())  # Monday
        span = relativedelta(weeks=1)
    elif period == Period.MONTH:
        first = today.replace(day=1)
        span = relativedelta(months=1)
    elif period == Period.QUARTER:
        first = today.replace(month=3 * ((today.month - 1) // 3) + 1, day=1)
        span = relativedelta(months=3)
    else:
        first = today.replace(month=1, day=1)
        span = relativedelta(years=1)

    start = datetime.combine(first, time.min)
    end = datetime.combine(first + span - relativedelta(days=1), time.max)
    return start, end


def _within(value: Optional[datetime], start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None and end is None:
        return True
    if value is None:
        return False
    value = local_naive(value)
    return (start is None or value >= start) and (end is None or value <= end)


def yearly_premium(policy: PolicyRecord) -> Decimal:
    """Yearly premium, derived from the monthly one when missing."""
    if policy.premium_yearly is not None:
        return to_decimal(policy.premium_yearly)
    return to_decimal(policy.premium_monthly) * 12


class RevenueEstimator:
    """Aggregations over one in-memory snapshot of policies and commissions."""

    def __init__(self, policies: Iterable[PolicyRecord], commissions: Iterable[CommissionRecord]):
        self.policies = list(policies)
        self.commissions = list(commissions)
        self.categories: Dict[int, ProductCategory] = {p.id: categorize_policy(p) for p in self.policies}

        self._commission_sum_by_policy: Dict[int, Decimal] = defaultdict(lambda: ZERO)
        for commission in self.commissions:
            self._commission_sum_by_policy[commission.policy_id] += to_decimal(commission.amount)

    @classmethod
    def from_source(cls, source: LedgerSource) -> "RevenueEstimator":
        return cls(
            call_source("list_policies", source.list_policies),
            call_source("list_commissions", source.list_commissions),
        )

    @property
    def active_policies(self) -> List[PolicyRecord]:
        return [p for p in self.policies if p.is_active]

    def estimated_value(self, policy: PolicyRecord) -> Decimal:
        category = self.categories[policy.id]
        if category == ProductCategory.VIE:
            if policy.id in self._commission_sum_by_policy:
                return money(self._commission_sum_by_policy[policy.id])
            return money(yearly_premium(policy) * VIE_YEARLY_RATE)
        if category == ProductCategory.LCA:
            return money(to_decimal(policy.premium_monthly) * LCA_MONTHLY_FACTOR)
        if category == ProductCategory.HYPO:
            return money(yearly_premium(policy) * HYPO_YEARLY_RATE)
        return money(yearly_premium(policy) * NON_VIE_YEARLY_RATE)

    def estimated(self) -> RevenueSummary:
        summary = RevenueSummary()
        for policy in self.active_policies:
            summary.add(self.categories[policy.id], self.estimated_value(policy))
        return summary

    def realized(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> RevenueSummary:
        """Paid commissions dated within [start, end]; unknown policies are not attributed."""
        summary = RevenueSummary()
        for commission in self.commissions:
            if not commission.is_paid or commission.policy_id not in self.categories:
                continue
            if not _within(commission.effective_date, start, end):
                continue
            summary.add(self.categories[commission.policy_id], to_decimal(commission.amount))
        return summary

    def prime(self) -> RevenueSummary:
        summary = RevenueSummary()
        for policy in self.active_policies:
            summary.add(self.categories[policy.id], money(yearly_premium(policy)))
        return summary

    def period_commission_totals(self, period: Period, now: Optional[datetime] = None) -> PeriodCommissionTotals:
        """Commissions created in the period, paid vs. not yet paid, all categories."""
        start, end = period_bounds(period, now or datetime.now())
        totals = PeriodCommissionTotals(period=Period(period), start=start, end=end)
        for commission in self.commissions:
            if not _within(commission.created_at, start, end):
                continue
            if commission.is_paid:
                totals.paid += to_decimal(commission.amount)
            else:
                totals.unpaid += to_decimal(commission.amount)
            totals.count += 1
        return totals

    def monthly_series(self, year: int) -> List[MonthlyRevenue]:
        """Twelve buckets with estimated, realized and prime views all precomputed.

        Premium views are bucketed by policy creation date, the realized view by
        commission date.
        """
        buckets = [
            MonthlyRevenue(month=m, estimated=RevenueSummary(), realized=RevenueSummary(), prime=RevenueSummary())
            for m in range(1, 13)
        ]

        for policy in self.active_policies:
            if policy.created_at is None:
                continue
            created = local_naive(policy.created_at)
            if created.year != year:
                continue
            bucket = buckets[created.month - 1]
            category = self.categories[policy.id]
            bucket.estimated.add(category, self.estimated_value(policy))
            bucket.prime.add(category, money(yearly_premium(policy)))

        for commission in self.commissions:
            if not commission.is_paid or commission.policy_id not in self.categories:
                continue
            dated = local_naive(commission.effective_date)
            if dated.year != year:
                continue
            buckets[dated.month - 1].realized.add(
                self.categories[commission.policy_id], to_decimal(commission.amount),
            )

        return buckets

    def kpis(self, period: Period, now: Optional[datetime] = None) -> RevenueKpis:
        now = now or datetime.now()
        start, end = period_bounds(period, now)
        active = self.active_policies

        by_category = {category: 0 for category in ProductCategory}
        for policy in active:
            by_category[self.categories[policy.id]] += 1

        return RevenueKpis(
            period=Period(period),
            active_contracts=len(active),
            period_contracts=sum(1 for p in self.policies if _within(p.created_at, start, end)),
            active_by_category=by_category,
            commissions=self.period_commission_totals(period, now),
        )

    def _commission_totals(self, commissions: Iterable[CommissionRecord]) -> Tuple[Decimal, Decimal]:
        paid = pending = ZERO
        for commission in commissions:
            if commission.is_paid:
                paid += to_decimal(commission.amount)
            else:
                pending += to_decimal(commission.amount)
        return paid, pending

    def collaborator_performance(self, collaborators: Iterable[CollaboratorRecord]) -> List[CollaboratorPerformance]:
        """Book of each collaborator, built from the policies assigned to them."""
        collaborators = list(collaborators)
        managers = {c.manager_id for c in collaborators if c.manager_id is not None}

        policies_by_agent: Dict[int, List[PolicyRecord]] = defaultdict(list)
        for policy in self.policies:
            if policy.assigned_agent_id is not None:
                policies_by_agent[policy.assigned_agent_id].append(policy)

        commissions_by_policy: Dict[int, List[CommissionRecord]] = defaultdict(list)
        for commission in self.commissions:
            commissions_by_policy[commission.policy_id].append(commission)

        results = []
        for collaborator in collaborators:
            assigned = policies_by_agent.get(collaborator.id, [])
            paid, pending = self._commission_totals(
                c for p in assigned for c in commissions_by_policy.get(p.id, [])
            )
            results.append(CollaboratorPerformance(
                collaborator_id=collaborator.id,
                name=collaborator.name,
                role="manager" if collaborator.id in managers else "agent",
                manager_id=collaborator.manager_id,
                clients_count=len({p.client_id for p in assigned if p.client_id is not None}),
                contracts_count=len(assigned),
                contracts_active=sum(1 for p in assigned if p.is_active),
                contracts_pending=sum(1 for p in assigned if p.status == PolicyStatus.PENDING),
                premiums_monthly=total(p.premium_monthly for p in assigned),
                premiums_yearly=total(p.premium_yearly for p in assigned),
                total_commissions=paid + pending,
                paid_commissions=paid,
                pending_commissions=pending,
            ))
        return results

    @staticmethod
    def team_performance(performance: List[CollaboratorPerformance]) -> List[TeamPerformance]:
        """One team per manager: their direct reports, totals including the manager."""
        teams = []
        for manager in performance:
            if manager.role != "manager":
                continue
            members = [
                p for p in performance
                if p.manager_id == manager.collaborator_id and p.collaborator_id != manager.collaborator_id
            ]
            everyone = [manager] + members
            teams.append(TeamPerformance(
                manager_id=manager.collaborator_id,
                manager_name=manager.name,
                members=members,
                totals=TeamTotals(
                    clients_count=sum(p.clients_count for p in everyone),
                    contracts_count=sum(p.contracts_count for p in everyone),
                    premiums_monthly=total(p.premiums_monthly for p in everyone),
                    total_commissions=total(p.total_commissions for p in everyone),
                ),
            ))
        return teams

    def company_totals(self, collaborators_count: int) -> CompanyTotals:
        paid, pending = self._commission_totals(self.commissions)
        return CompanyTotals(
            clients_count=len({p.client_id for p in self.policies if p.client_id is not None}),
            contracts_count=len(self.policies),
            contracts_active=len(self.active_policies),
            contracts_pending=sum(1 for p in self.policies if p.status == PolicyStatus.PENDING),
            premiums_monthly=total(p.premium_monthly for p in self.policies),
            premiums_yearly=total(p.premium_yearly for p in self.policies),
            total_commissions=paid + pending,
            paid_commissions=paid,
            pending_commissions=pending,
            collaborators_count=collaborators_count,
        )
