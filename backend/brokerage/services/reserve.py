"""Reserve account: month-by-month retention on a collaborator's commission share."""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Tuple

from brokerage.core.exceptions import CollaboratorNotFound, InvalidLedgerRecord
from brokerage.core.money import ZERO, percent_of, to_decimal
from brokerage.schemas.revenue import ReserveAccount, ReserveEntry
from brokerage.services.ledger import (
    LedgerSource, call_source, fetch_parts_batch, local_naive,
)

logger = logging.getLogger(__name__)


def build_reserve_account(source: LedgerSource, collaborator_id: int) -> ReserveAccount:
    """Group the collaborator's splits by commission month, with a running reserve balance."""
    collaborators = {c.id: c for c in call_source("list_collaborators", source.list_collaborators)}
    collaborator = collaborators.get(collaborator_id)
    if collaborator is None and collaborator_id in source.rejected_collaborators:
        raise InvalidLedgerRecord("collaborator", collaborator_id, source.rejected_collaborators[collaborator_id])
    if collaborator is None:
        raise CollaboratorNotFound(f"Collaborator {collaborator_id} not found")

    rate = collaborator.reserve_rate.value
    commissions = call_source("list_commissions", source.list_commissions)
    parts_by_commission = fetch_parts_batch(source, [c.id for c in commissions])

    monthly: Dict[Tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
    for commission in commissions:
        dated = local_naive(commission.effective_date)
        for part in parts_by_commission.get(commission.id, []):
            if part.collaborator_id == collaborator_id:
                monthly[(dated.year, dated.month)] += to_decimal(part.amount)

    entries = []
    cumulative = ZERO
    for (year, month) in sorted(monthly):
        commission_amount = monthly[(year, month)]
        reserve_amount = percent_of(commission_amount, rate)
        cumulative += reserve_amount
        entries.append(ReserveEntry(
            year=year,
            month=month,
            commission_amount=commission_amount,
            reserve_amount=reserve_amount,
            cumulative_reserve=cumulative,
        ))

    logger.info(f"Reserve account for collaborator {collaborator_id}: {len(entries)} month(s), balance {cumulative}")
    return ReserveAccount(collaborator_id=collaborator_id, reserve_rate=rate, entries=entries)
