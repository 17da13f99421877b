"""Revenue API: estimated vs. realized turnover and KPI cards for dashboards."""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from brokerage.core.exceptions import InvalidLedgerRecord, UpstreamFailure
from brokerage.schemas.revenue import Period
from brokerage.services.ledger import call_source
from brokerage.services.revenue import RevenueEstimator, period_bounds
from brokerage.services.sources import get_ledger_source

router = APIRouter(prefix="/api/revenue", tags=["revenue"])


def _load_estimator(source) -> RevenueEstimator:
    try:
        return RevenueEstimator.from_source(source)
    except InvalidLedgerRecord as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UpstreamFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/summary")
def get_revenue_summary(
    period: Period = Query(Period.ALL, description="all, week, month, quarter, year"),
    source=Depends(get_ledger_source),
):
    """Turnover by category under the three view modes."""
    estimator = _load_estimator(source)
    start, end = period_bounds(period, datetime.now())
    return {
        "period": period.value,
        "estimated": estimator.estimated().as_dict(),
        "realized": estimator.realized(start, end).as_dict(),
        "prime": estimator.prime().as_dict(),
    }


@router.get("/monthly")
def get_monthly_revenue(
    year: Optional[int] = None,
    source=Depends(get_ledger_source),
):
    """Twelve monthly buckets; each carries every view mode so the chart can switch without refetching."""
    year = year or datetime.now().year
    estimator = _load_estimator(source)
    return {
        "year": year,
        "months": [
            {
                "month": bucket.month,
                "estimated": bucket.estimated.as_dict(),
                "realized": bucket.realized.as_dict(),
                "prime": bucket.prime.as_dict(),
            }
            for bucket in estimator.monthly_series(year)
        ],
    }


@router.get("/kpis")
def get_revenue_kpis(
    period: Period = Query(Period.MONTH, description="all, week, month, quarter, year"),
    source=Depends(get_ledger_source),
):
    estimator = _load_estimator(source)
    kpis = estimator.kpis(period)
    return {
        "period": kpis.period.value,
        "active_contracts": kpis.active_contracts,
        "period_contracts": kpis.period_contracts,
        "active_by_category": {c.value: n for c, n in kpis.active_by_category.items()},
        "commissions": {
            "paid": float(kpis.commissions.paid),
            "unpaid": float(kpis.commissions.unpaid),
            "total": float(kpis.commissions.total),
            "count": kpis.commissions.count,
        },
    }


def _performance_row(p):
    return {
        "collaborator_id": p.collaborator_id,
        "name": p.name,
        "role": p.role,
        "manager_id": p.manager_id,
        "clients_count": p.clients_count,
        "contracts_count": p.contracts_count,
        "contracts_active": p.contracts_active,
        "contracts_pending": p.contracts_pending,
        "premiums_monthly": float(p.premiums_monthly),
        "premiums_yearly": float(p.premiums_yearly),
        "total_commissions": float(p.total_commissions),
        "paid_commissions": float(p.paid_commissions),
        "pending_commissions": float(p.pending_commissions),
    }


@router.get("/performance")
def get_performance(source=Depends(get_ledger_source)):
    """Per-collaborator books, teams grouped by manager, and company-wide totals."""
    estimator = _load_estimator(source)
    try:
        collaborators = call_source("list_collaborators", source.list_collaborators)
    except UpstreamFailure as e:
        raise HTTPException(status_code=502, detail=str(e))

    individual = estimator.collaborator_performance(collaborators)
    company = estimator.company_totals(len(collaborators))
    return {
        "individual": [_performance_row(p) for p in individual],
        "teams": [
            {
                "manager_id": team.manager_id,
                "manager_name": team.manager_name,
                "members": [_performance_row(p) for p in team.members],
                "totals": {
                    "clients_count": team.totals.clients_count,
                    "contracts_count": team.totals.contracts_count,
                    "premiums_monthly": float(team.totals.premiums_monthly),
                    "total_commissions": float(team.totals.total_commissions),
                },
            }
            for team in estimator.team_performance(individual)
        ],
        "company": {
            key: float(value) if isinstance(value, Decimal) else value
            for key, value in company.model_dump().items()
        },
    }
