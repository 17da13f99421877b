from datetime import datetime
from decimal import Decimal

import pytest

from brokerage.core.exceptions import UpstreamFailure
from brokerage.schemas.revenue import Period, ProductCategory
from brokerage.services.revenue import RevenueEstimator, period_bounds, yearly_premium
from ledger_fakes import FakeLedgerSource, collaborator, commission, dt, policy


@pytest.fixture
def book():
    policies = [
        policy(1, "LAMal", premium_monthly=Decimal("300"), created_at=dt(2024, 1, 10)),
        policy(2, "3e pilier", premium_yearly=Decimal("6000"), created_at=dt(2024, 2, 3)),
        policy(3, "Assurance vie", premium_yearly=Decimal("2000"), created_at=dt(2024, 2, 20)),
        policy(4, "Hypothèque", premium_yearly=Decimal("500000"), created_at=dt(2024, 3, 1)),
        policy(5, "RC ménage", premium_monthly=Decimal("35"), created_at=dt(2024, 3, 4)),
        policy(6, "LAMal", status="cancelled", premium_monthly=Decimal("999"), created_at=dt(2024, 3, 5)),
    ]
    commissions = [
        commission(1, 1, 1200, dt(2024, 1, 15), status="paid"),
        commission(2, 2, 700, dt(2024, 2, 10), status="paid"),
        commission(3, 2, 300, dt(2024, 2, 11), status="due"),
        commission(4, 5, 60, dt(2024, 3, 25), status="paid", date=dt(2024, 4, 2)),
        commission(5, 4, 5000, dt(2024, 3, 28)),
        commission(6, 6, 90, dt(2024, 3, 6), status="paid"),
        commission(7, 99, 40, dt(2024, 3, 7), status="paid"),  # policy not in the book
    ]
    return RevenueEstimator(policies, commissions)


def test_lca_estimate_is_sixteen_monthly_premiums(book):
    assert book.estimated_value(book.policies[0]) == Decimal("4800.00")


def test_vie_estimate_uses_the_policy_commissions_when_present(book):
    assert book.estimated_value(book.policies[1]) == Decimal("1000.00")


def test_vie_estimate_falls_back_to_five_percent_of_yearly_premium(book):
    assert book.estimated_value(book.policies[2]) == Decimal("100.00")


def test_hypo_and_non_vie_estimates(book):
    assert book.estimated_value(book.policies[3]) == Decimal("5000.00")
    # yearly premium derived from the monthly one: 35 * 12 * 15%
    assert book.estimated_value(book.policies[4]) == Decimal("63.00")


def test_estimated_summary_only_counts_active_policies(book):
    summary = book.estimated()

    assert summary.lca == Decimal("4800.00")
    assert summary.vie == Decimal("1100.00")
    assert summary.hypo == Decimal("5000.00")
    assert summary.non_vie == Decimal("63.00")
    assert summary.total == Decimal("10963.00")


def test_realized_counts_paid_commissions_of_known_policies(book):
    summary = book.realized()

    assert summary.lca == Decimal("1290")  # includes the cancelled policy's paid commission
    assert summary.vie == Decimal("700")
    assert summary.non_vie == Decimal("60")
    assert summary.hypo == Decimal("0")


def test_realized_categories_add_up_to_the_paid_commissions(book):
    attributable = sum(
        c.amount for c in book.commissions if c.is_paid and c.policy_id in book.categories
    )
    assert book.realized().total == attributable


def test_realized_filters_on_the_business_date(book):
    march = book.realized(datetime(2024, 3, 1), datetime(2024, 3, 31, 23, 59, 59))
    april = book.realized(datetime(2024, 4, 1), datetime(2024, 4, 30, 23, 59, 59))

    assert march.non_vie == Decimal("0")
    assert april.non_vie == Decimal("60")


def test_prime_is_the_yearly_premium_of_active_policies(book):
    prime = book.prime()

    assert prime.lca == Decimal("3600.00")
    assert prime.vie == Decimal("8000.00")
    assert prime.non_vie == Decimal("420.00")


def test_as_dict_uses_dashboard_keys(book):
    data = book.estimated().as_dict()
    assert set(data) == {"lca", "vie", "nonVie", "hypo", "total"}
    assert data["nonVie"] == 63.0


def test_yearly_premium_of_a_policy_without_premiums_is_zero():
    assert yearly_premium(policy(1)) == Decimal("0")


class TestPeriodBounds:
    now = datetime(2024, 5, 15, 10, 30)  # a Wednesday

    def test_all_is_unbounded(self):
        assert period_bounds(Period.ALL, self.now) == (None, None)

    def test_week_starts_on_monday(self):
        start, end = period_bounds(Period.WEEK, self.now)
        assert start == datetime(2024, 5, 13)
        assert end.date() == datetime(2024, 5, 19).date()

    def test_month_quarter_and_year(self):
        assert period_bounds("month", self.now)[0] == datetime(2024, 5, 1)
        assert period_bounds("month", self.now)[1].date().day == 31
        assert period_bounds(Period.QUARTER, self.now)[0] == datetime(2024, 4, 1)
        assert period_bounds(Period.QUARTER, self.now)[1].date() == datetime(2024, 6, 30).date()
        assert period_bounds(Period.YEAR, self.now)[0] == datetime(2024, 1, 1)


def test_period_commission_totals_split_paid_and_unpaid(book):
    totals = book.period_commission_totals(Period.MONTH, now=datetime(2024, 3, 10))

    # created in March: 4 (paid), 5 (pending), 6 (paid), 7 (paid)
    assert totals.count == 4
    assert totals.paid == Decimal("190")
    assert totals.unpaid == Decimal("5000")
    assert totals.total == Decimal("5190")


def test_monthly_series_buckets_premiums_by_creation_and_realized_by_date(book):
    series = book.monthly_series(2024)

    assert [b.month for b in series] == list(range(1, 13))
    assert series[0].estimated.lca == Decimal("4800.00")
    assert series[1].prime.vie == Decimal("8000.00")
    assert series[2].estimated.lca == Decimal("0")  # cancelled policy stays out
    assert series[0].realized.lca == Decimal("1200")
    assert series[3].realized.non_vie == Decimal("60")
    assert book.monthly_series(2023)[0].estimated.total == Decimal("0")


def test_kpis(book):
    kpis = book.kpis(Period.MONTH, now=datetime(2024, 3, 10))

    assert kpis.active_contracts == 5
    assert kpis.period_contracts == 3
    assert kpis.active_by_category[ProductCategory.LCA] == 1
    assert kpis.active_by_category[ProductCategory.VIE] == 2
    assert kpis.commissions.count == 4


def test_from_source_wraps_source_failures():
    class BrokenSource(FakeLedgerSource):
        def list_policies(self):
            raise ConnectionError("down")

    with pytest.raises(UpstreamFailure):
        RevenueEstimator.from_source(BrokenSource())


class TestPerformance:
    @pytest.fixture
    def team(self):
        return [
            collaborator(1),
            collaborator(2, manager_id=1),
            collaborator(3, manager_id=1),
            collaborator(4),
        ]

    @pytest.fixture
    def estimator(self):
        policies = [
            policy(1, "LAMal", client_id=10, assigned_agent_id=2, premium_monthly=Decimal("300")),
            policy(2, "RC ménage", client_id=10, assigned_agent_id=2, status="pending",
                   premium_monthly=Decimal("30"), premium_yearly=Decimal("360")),
            policy(3, "3e pilier", client_id=11, assigned_agent_id=3, premium_yearly=Decimal("6000")),
            policy(4, "LAMal", client_id=12, assigned_agent_id=1, premium_monthly=Decimal("200")),
            policy(5, "LAMal", client_id=13, premium_monthly=Decimal("100")),  # unassigned
        ]
        commissions = [
            commission(1, 1, 1200, dt(2024, 1, 15), status="paid"),
            commission(2, 1, -200, dt(2024, 2, 1), status="paid", type="decommission"),
            commission(3, 2, 50, dt(2024, 2, 3), status="due"),
            commission(4, 3, 700, dt(2024, 2, 10)),
            commission(5, 5, 999, dt(2024, 2, 11), status="paid"),
        ]
        return RevenueEstimator(policies, commissions)

    def test_collaborator_book(self, estimator, team):
        by_id = {p.collaborator_id: p for p in estimator.collaborator_performance(team)}
        agent = by_id[2]

        assert agent.role == "agent"
        assert agent.manager_id == 1
        assert agent.clients_count == 1
        assert (agent.contracts_count, agent.contracts_active, agent.contracts_pending) == (2, 1, 1)
        assert agent.premiums_monthly == Decimal("330")
        assert agent.premiums_yearly == Decimal("360")
        assert agent.paid_commissions == Decimal("1000")
        assert agent.pending_commissions == Decimal("50")
        assert agent.total_commissions == Decimal("1050")

    def test_roles_follow_reporting_lines(self, estimator, team):
        roles = {p.collaborator_id: p.role for p in estimator.collaborator_performance(team)}
        assert roles == {1: "manager", 2: "agent", 3: "agent", 4: "agent"}

    def test_collaborator_without_policies_has_an_empty_book(self, estimator, team):
        idle = estimator.collaborator_performance(team)[3]

        assert idle.contracts_count == 0
        assert idle.total_commissions == Decimal("0")

    def test_team_totals_include_the_manager(self, estimator, team):
        teams = estimator.team_performance(estimator.collaborator_performance(team))

        assert len(teams) == 1
        assert teams[0].manager_id == 1
        assert [m.collaborator_id for m in teams[0].members] == [2, 3]
        totals = teams[0].totals
        assert totals.clients_count == 3
        assert totals.contracts_count == 4
        assert totals.premiums_monthly == Decimal("530")
        assert totals.total_commissions == Decimal("1750")

    def test_company_totals_cover_every_policy(self, estimator):
        company = estimator.company_totals(collaborators_count=4)

        assert company.clients_count == 4
        assert company.contracts_count == 5
        assert company.contracts_pending == 1
        assert company.paid_commissions == Decimal("1999")
        assert company.pending_commissions == Decimal("750")
