from decimal import Decimal

import pytest

from brokerage.core.exceptions import InvalidDecommission
from brokerage.services.splits import suggest_decommission, suggest_splits
from ledger_fakes import collaborator, commission, dt, policy, split


@pytest.fixture
def manager():
    return collaborator(
        2, manager_commission_rate_lca=Decimal("5"), manager_commission_rate_vie=Decimal("10"),
    )


@pytest.fixture
def agent():
    return collaborator(
        1, commission_rate=Decimal("40"), commission_rate_lca=Decimal("50"),
        commission_rate_vie=Decimal("45"), manager_id=2,
    )


def _propose(product_type, agent, collaborators, amount=1000):
    return suggest_splits(commission(7, 3, amount, dt(2024, 3, 1)), policy(3, product_type), agent, collaborators)


def test_lca_business_pays_agent_and_manager(agent, manager):
    proposal = _propose("LAMal", agent, {2: manager})

    assert proposal.category == "lca"
    assert [(p.collaborator_id, p.role, p.rate, p.amount) for p in proposal.parts] == [
        (1, "agent", Decimal("50"), Decimal("500.00")),
        (2, "manager", Decimal("5"), Decimal("50.00")),
    ]
    assert proposal.brokerage_amount == Decimal("450.00")
    assert proposal.anomaly is None


def test_vie_business_uses_vie_rates(agent, manager):
    proposal = _propose("3e pilier", agent, {2: manager})

    assert [p.amount for p in proposal.parts] == [Decimal("450.00"), Decimal("100.00")]
    assert proposal.brokerage_amount == Decimal("450.00")


def test_other_business_uses_the_general_rate_without_manager_override(agent, manager):
    proposal = _propose("RC ménage", agent, {2: manager})

    assert [(p.role, p.amount) for p in proposal.parts] == [("agent", Decimal("400.00"))]
    assert proposal.brokerage_amount == Decimal("600.00")


def test_agent_without_rates_leaves_everything_to_the_brokerage():
    proposal = _propose("LAMal", collaborator(5), {})

    assert proposal.parts == []
    assert proposal.brokerage_amount == Decimal("1000.00")


def test_missing_manager_record_is_skipped(agent):
    proposal = _propose("LAMal", agent, {})
    assert [p.role for p in proposal.parts] == ["agent"]


def test_rates_above_hundred_percent_are_flagged(manager):
    greedy = collaborator(1, commission_rate_lca=Decimal("98"), manager_id=2)

    proposal = _propose("LAMal", greedy, {2: manager})

    assert proposal.anomaly.total_rate == Decimal("103")
    assert proposal.brokerage_amount == Decimal("0.00")


class TestDecommission:
    original = commission(7, 3, 1000, dt(2024, 3, 1), status="paid", date=dt(2024, 3, 4), notes="Résiliation")
    parts = [split(original, 1, 50), split(original, 2, 5)]

    def test_full_reversal_mirrors_every_split(self):
        proposal = suggest_decommission(self.original, self.parts)

        assert proposal.original_commission_id == 7
        assert proposal.policy_id == 3
        assert proposal.amount == Decimal("-1000.00")
        assert proposal.type == "decommission"
        assert proposal.status == "paid"
        assert [(p.collaborator_id, p.rate, p.amount) for p in proposal.parts] == [
            (1, Decimal("50"), Decimal("-500.00")),
            (2, Decimal("5"), Decimal("-50.00")),
        ]
        assert proposal.brokerage_amount == Decimal("-450.00")

    def test_partial_reversal_keeps_the_original_rates(self):
        proposal = suggest_decommission(self.original, self.parts, Decimal("333.33"))

        assert proposal.amount == Decimal("-333.33")
        assert [p.amount for p in proposal.parts] == [Decimal("-166.67"), Decimal("-16.67")]

    def test_default_notes_reference_the_original_date(self):
        proposal = suggest_decommission(self.original, self.parts)
        assert proposal.notes == "Décommission de la commission du 04/03/2024. Résiliation"

        undated = commission(8, 3, 100, dt(2024, 3, 1))
        assert suggest_decommission(undated, []).notes == "Décommission de la commission du N/A."
        assert suggest_decommission(undated, [], notes="Erreur de saisie").notes == "Erreur de saisie"

    def test_commission_without_splits_is_reversed_entirely_by_the_brokerage(self):
        proposal = suggest_decommission(commission(8, 3, 100, dt(2024, 3, 1)), [])

        assert proposal.parts == []
        assert proposal.brokerage_amount == Decimal("-100.00")

    def test_a_decommission_cannot_be_decommissioned(self):
        reversal = commission(9, 3, -1000, dt(2024, 4, 1), type="decommission")

        with pytest.raises(InvalidDecommission):
            suggest_decommission(reversal, [])

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-10"), Decimal("1000.01")])
    def test_amount_must_be_within_the_original(self, amount):
        with pytest.raises(InvalidDecommission):
            suggest_decommission(self.original, self.parts, amount)
