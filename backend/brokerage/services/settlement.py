"""Settlement generator: commission statements (décomptes) per collaborator.

For a date range and a set of collaborators:
1. Select commissions created in the range
2. Fetch each commission's splits once, for the whole batch
3. Keep, per collaborator, the commissions with a split targeting them
4. Total the agent share and withhold the collaborator's reserve

Read-only over the ledger. A generation is all-or-nothing: an upstream
failure aborts it and no partial batch is returned.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from brokerage.core.exceptions import InvalidLedgerRecord
from brokerage.core.money import money, percent_of, total
from brokerage.schemas.ledger import CollaboratorRecord, CommissionRecord, SplitRecord
from brokerage.schemas.statement import SettlementResult, Statement, StatementLine, StatementTotals
from brokerage.services.ledger import (
    LedgerSource, agent_share, call_source, collect_anomalies, day_bounds,
    fetch_parts_batch, in_range, local_naive, normalize_ids,
)

logger = logging.getLogger(__name__)


def build_statement(
    collaborator: CollaboratorRecord,
    commissions: Iterable[CommissionRecord],
    parts_by_commission: Dict[int, List[SplitRecord]],
    start: date,
    end: date,
) -> Optional[Statement]:
    """Statement of one collaborator, or None when no commission has a split for them."""
    lines = []
    for commission in commissions:
        parts = parts_by_commission.get(commission.id, [])
        if not any(p.collaborator_id == collaborator.id for p in parts):
            continue
        lines.append(StatementLine(
            commission=commission,
            parts=parts,
            agent_amount=agent_share(parts, collaborator.id),
        ))

    if not lines:
        return None

    total_agent_amount = money(total(line.agent_amount for line in lines))
    reserve_amount = percent_of(total_agent_amount, collaborator.reserve_rate.value)

    return Statement(
        collaborator=collaborator,
        start_date=start,
        end_date=end,
        lines=lines,
        totals=StatementTotals(
            total_commissions=money(total(line.commission.amount for line in lines)),
            total_agent_amount=total_agent_amount,
            commissions_count=len(lines),
            reserve_rate=collaborator.reserve_rate,
            reserve_amount=reserve_amount,
            net_amount=total_agent_amount - reserve_amount,
        ),
    )


class SettlementGenerator:
    def __init__(self, source: LedgerSource, max_workers: Optional[int] = None):
        self.source = source
        self.max_workers = max_workers

    def generate(self, start: date, end: date, collaborator_ids: Iterable[int]) -> SettlementResult:
        """Build one statement per collaborator with commissions in [start, end]."""
        day_bounds(start, end)
        ids = normalize_ids(collaborator_ids)

        collaborators = self.load_collaborators(ids)
        result = self.settle(collaborators, start, end)

        if result.is_empty:
            logger.info(f"Settlement {start}..{end}: no commissions for {len(ids)} collaborator(s)")
        else:
            logger.info(
                f"Settlement {start}..{end}: {len(result.statements)} statement(s) "
                f"for {len(ids)} requested collaborator(s)"
            )
        return result

    def load_collaborators(self, ids: List[int]) -> List[CollaboratorRecord]:
        """Requested collaborators in request order; unknown ids are skipped.

        A requested collaborator whose stored row is invalid raises
        InvalidLedgerRecord rather than silently dropping out of the batch.
        """
        by_id = {c.id: c for c in call_source("list_collaborators", self.source.list_collaborators)}
        missing = [cid for cid in ids if cid not in by_id]
        for cid in missing:
            if cid in self.source.rejected_collaborators:
                raise InvalidLedgerRecord("collaborator", cid, self.source.rejected_collaborators[cid])
        if missing:
            logger.warning(f"Unknown collaborator id(s) ignored: {missing}")
        return [by_id[cid] for cid in ids if cid in by_id]

    def settle(
        self,
        collaborators: List[CollaboratorRecord],
        start: date,
        end: date,
    ) -> SettlementResult:
        """Statements for already-loaded collaborators (shared with payroll)."""
        start_dt, end_dt = day_bounds(start, end)
        result = SettlementResult(start_date=start, end_date=end)
        if not collaborators:
            return result

        commissions = in_range(
            call_source("list_commissions", self.source.list_commissions), start_dt, end_dt,
        )
        commissions.sort(key=lambda c: (local_naive(c.created_at), c.id))
        if not commissions:
            return result

        parts_by_commission = fetch_parts_batch(
            self.source, [c.id for c in commissions], max_workers=self.max_workers,
        )
        result.rate_anomalies = collect_anomalies(commissions, parts_by_commission)

        for collaborator in collaborators:
            statement = build_statement(collaborator, commissions, parts_by_commission, start, end)
            if statement:
                result.statements.append(statement)
        return result
