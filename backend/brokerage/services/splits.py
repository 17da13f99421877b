"""Default split proposal for a new commission.

The selling agent gets their per-category rate (LCA / VIE, else the general
commission rate); on LCA and VIE business their manager gets the manager
override rate. A missing rate means no split for that party.

A decommission reverses (part of) an existing commission: the amount goes
negative and every original split is mirrored at its original rate.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Sequence

from brokerage.core.exceptions import InvalidDecommission
from brokerage.core.money import HUNDRED, ZERO, money, percent_of, total
from brokerage.schemas.ledger import (
    CollaboratorRecord, CommissionRecord, DecommissionProposal, PolicyRecord, ProposedSplit,
    RateAnomaly, ReversalPart, SplitProposal, SplitRecord,
)
from brokerage.models.commission import CommissionType
from brokerage.schemas.revenue import ProductCategory
from brokerage.services.categorizer import categorize_policy

logger = logging.getLogger(__name__)


def agent_rate(agent: CollaboratorRecord, category: ProductCategory) -> Optional[Decimal]:
    if category == ProductCategory.LCA and agent.commission_rate_lca is not None:
        return agent.commission_rate_lca
    if category == ProductCategory.VIE and agent.commission_rate_vie is not None:
        return agent.commission_rate_vie
    return agent.commission_rate


def manager_rate(manager: CollaboratorRecord, category: ProductCategory) -> Optional[Decimal]:
    if category == ProductCategory.LCA:
        return manager.manager_commission_rate_lca
    if category == ProductCategory.VIE:
        return manager.manager_commission_rate_vie
    return None


def suggest_splits(
    commission: CommissionRecord,
    policy: PolicyRecord,
    agent: CollaboratorRecord,
    collaborators: Dict[int, CollaboratorRecord],
) -> SplitProposal:
    category = categorize_policy(policy)
    parts = []

    rate = agent_rate(agent, category)
    if rate:
        parts.append(ProposedSplit(
            collaborator_id=agent.id, role="agent", rate=rate,
            amount=percent_of(commission.amount, rate),
        ))

    manager = collaborators.get(agent.manager_id) if agent.manager_id else None
    if manager is not None and manager.id != agent.id:
        rate = manager_rate(manager, category)
        if rate:
            parts.append(ProposedSplit(
                collaborator_id=manager.id, role="manager", rate=rate,
                amount=percent_of(commission.amount, rate),
            ))

    rate_sum = total(p.rate for p in parts)
    anomaly = None
    if rate_sum > HUNDRED:
        logger.warning(f"Proposed splits for commission {commission.id} sum to {rate_sum}%")
        anomaly = RateAnomaly(commission_id=commission.id, total_rate=rate_sum, split_count=len(parts))

    return SplitProposal(
        commission_id=commission.id,
        category=category.value,
        parts=parts,
        brokerage_amount=money(commission.amount * max(ZERO, HUNDRED - rate_sum) / HUNDRED),
        anomaly=anomaly,
    )


def decommission_notes(commission: CommissionRecord) -> str:
    dated = commission.date.strftime("%d/%m/%Y") if commission.date else "N/A"
    return f"Décommission de la commission du {dated}. {commission.notes or ''}".strip()


def suggest_decommission(
    commission: CommissionRecord,
    parts: Sequence[SplitRecord],
    amount: Optional[Decimal] = None,
    notes: Optional[str] = None,
    date: Optional[datetime] = None,
) -> DecommissionProposal:
    """Reversal of ``amount`` (default: the whole commission) split like the original."""
    if commission.type == CommissionType.DECOMMISSION:
        raise InvalidDecommission(f"Commission {commission.id} is already a decommission")

    amount = money(commission.amount if amount is None else amount)
    if amount <= ZERO:
        raise InvalidDecommission(f"Decommission amount must be positive, got {amount}")
    if amount > commission.amount:
        raise InvalidDecommission(
            f"Decommission amount {amount} exceeds commission {commission.id} amount {commission.amount}"
        )

    reversals = [
        ReversalPart(collaborator_id=p.collaborator_id, rate=p.rate, amount=-percent_of(amount, p.rate))
        for p in parts
    ]
    logger.info(f"Decommission of {amount} proposed for commission {commission.id} ({len(reversals)} part(s))")

    return DecommissionProposal(
        original_commission_id=commission.id,
        policy_id=commission.policy_id,
        amount=-amount,
        date=date,
        notes=notes or decommission_notes(commission),
        parts=reversals,
        brokerage_amount=-amount - total(r.amount for r in reversals),
    )
