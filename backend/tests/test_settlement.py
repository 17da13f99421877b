from datetime import date
from decimal import Decimal

import pytest

from brokerage.core.exceptions import EmptySelection, InvalidLedgerRecord, InvalidRange, UpstreamFailure
from brokerage.core.rates import ReserveRate
from brokerage.services.settlement import SettlementGenerator
from ledger_fakes import FakeLedgerSource, collaborator, commission, dt, split


MARCH = (date(2024, 3, 1), date(2024, 3, 31))


@pytest.fixture
def ledger():
    c1 = commission(1, 1, 2000, dt(2024, 3, 5))
    c2 = commission(2, 2, 1000, dt(2024, 3, 20))
    c3 = commission(3, 3, 4000, dt(2024, 4, 2))  # outside March
    return FakeLedgerSource(
        commissions=[c2, c1, c3],
        parts=[split(c1, 10, 50), split(c2, 10, 50), split(c1, 11, 20), split(c3, 10, 50)],
        collaborators=[
            collaborator(10, reserve_rate=10),
            collaborator(11),
            collaborator(12),
        ],
    )


def test_statement_totals_withhold_the_reserve(ledger):
    result = SettlementGenerator(ledger).generate(*MARCH, [10])

    assert len(result.statements) == 1
    totals = result.statements[0].totals
    assert totals.total_agent_amount == Decimal("1500.00")
    assert totals.reserve_rate == ReserveRate.STANDARD
    assert totals.reserve_amount == Decimal("150.00")
    assert totals.net_amount == Decimal("1350.00")
    assert totals.total_commissions == Decimal("3000.00")
    assert totals.commissions_count == 2


def test_statement_lines_are_in_chronological_order(ledger):
    statement = SettlementGenerator(ledger).generate(*MARCH, [10]).statements[0]
    assert [line.commission.id for line in statement.lines] == [1, 2]
    assert [line.agent_amount for line in statement.lines] == [Decimal("1000.00"), Decimal("500.00")]


def test_reserve_plus_net_equals_agent_total(ledger):
    ledger.collaborators[1] = collaborator(11, reserve_rate=20)
    result = SettlementGenerator(ledger).generate(*MARCH, [10, 11])

    for statement in result.statements:
        totals = statement.totals
        assert totals.reserve_amount + totals.net_amount == totals.total_agent_amount


def test_collaborators_without_splits_get_no_statement(ledger):
    result = SettlementGenerator(ledger).generate(*MARCH, [10, 11, 12])

    assert [s.collaborator.id for s in result.statements] == [10, 11]
    assert result.statements[1].totals.total_agent_amount == Decimal("400.00")


def test_empty_range_is_a_normal_result(ledger):
    result = SettlementGenerator(ledger).generate(date(2023, 1, 1), date(2023, 1, 31), [10])

    assert result.is_empty
    assert result.statements == []
    assert "No commissions" in result.message
    assert ledger.part_calls == []


def test_splits_are_fetched_once_per_commission_for_the_whole_batch():
    commissions = [commission(i, 1, 100 * i, dt(2024, 3, i)) for i in range(1, 11)]
    collaborators = [collaborator(100 + n) for n in range(6)]
    parts = [split(c, 100 + n, 10) for c in commissions for n in range(6)]
    source = FakeLedgerSource(commissions=commissions, parts=parts, collaborators=collaborators)

    result = SettlementGenerator(source, max_workers=4).generate(*MARCH, [c.id for c in collaborators])

    assert len(result.statements) == 6
    assert sorted(source.part_calls) == list(range(1, 11))


def test_duplicate_collaborator_ids_produce_one_statement(ledger):
    result = SettlementGenerator(ledger).generate(*MARCH, [10, 10, 10])
    assert len(result.statements) == 1


def test_unknown_collaborator_ids_are_skipped(ledger, caplog):
    with caplog.at_level("WARNING"):
        result = SettlementGenerator(ledger).generate(*MARCH, [10, 999])

    assert [s.collaborator.id for s in result.statements] == [10]
    assert "999" in caplog.text


def test_inverted_range_is_rejected_before_any_read(ledger):
    with pytest.raises(InvalidRange):
        SettlementGenerator(ledger).generate(date(2024, 3, 31), date(2024, 3, 1), [10])
    assert ledger.read_calls == []
    assert ledger.part_calls == []


def test_empty_selection_is_rejected_before_any_read(ledger):
    with pytest.raises(EmptySelection):
        SettlementGenerator(ledger).generate(*MARCH, [])
    assert ledger.read_calls == []


def test_failed_split_lookup_aborts_the_generation(ledger):
    ledger.failing_commissions = {2}

    with pytest.raises(UpstreamFailure):
        SettlementGenerator(ledger).generate(*MARCH, [10, 11])


def test_failed_collaborator_listing_is_an_upstream_failure(ledger):
    ledger.fail_collaborators = True

    with pytest.raises(UpstreamFailure) as exc:
        SettlementGenerator(ledger).generate(*MARCH, [10])
    assert exc.value.operation == "list_collaborators"


def test_over_allocated_commission_is_reported(ledger):
    c1 = ledger.commissions[1]
    ledger.parts.append(split(c1, 12, 45))  # 50 + 20 + 45 = 115%

    result = SettlementGenerator(ledger).generate(*MARCH, [10])

    assert [a.commission_id for a in result.rate_anomalies] == [1]
    assert result.rate_anomalies[0].total_rate == Decimal("115")
    # the agent's own share is unaffected
    assert result.statements[0].totals.total_agent_amount == Decimal("1500.00")


def test_decommission_reduces_the_agent_total():
    sale = commission(1, 1, 1000, dt(2024, 3, 2))
    clawback = commission(2, 1, -400, dt(2024, 3, 28), type="decommission")
    source = FakeLedgerSource(
        commissions=[sale, clawback],
        parts=[split(sale, 10, 50), split(clawback, 10, 50)],
        collaborators=[collaborator(10, reserve_rate=20)],
    )

    totals = SettlementGenerator(source).generate(*MARCH, [10]).statements[0].totals

    assert totals.total_agent_amount == Decimal("300.00")
    assert totals.reserve_amount == Decimal("60.00")
    assert totals.net_amount == Decimal("240.00")


def test_requested_collaborator_with_an_invalid_row_is_a_data_error(ledger):
    ledger.rejected_collaborators = {13: "reserve_rate: 15 is not a valid ReserveRate"}

    with pytest.raises(InvalidLedgerRecord) as excinfo:
        SettlementGenerator(ledger).generate(*MARCH, [10, 13])

    assert excinfo.value.record_id == 13
    assert not isinstance(excinfo.value, UpstreamFailure)


def test_invalid_rows_of_other_collaborators_are_ignored(ledger):
    ledger.rejected_collaborators = {13: "reserve_rate: 15 is not a valid ReserveRate"}

    result = SettlementGenerator(ledger).generate(*MARCH, [10])

    assert result.statements[0].totals.total_agent_amount == Decimal("1500.00")
