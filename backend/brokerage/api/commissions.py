from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from brokerage.core.database import get_db
from brokerage.core.exceptions import InvalidDecommission, InvalidStatusTransition
from brokerage.models.collaborator import Collaborator
from brokerage.models.commission import Commission, CommissionPart, CommissionStatus
from brokerage.models.policy import Policy
from brokerage.schemas.ledger import CollaboratorRecord, CommissionRecord, PolicyRecord, SplitRecord
from brokerage.services.ledger import advance_commission_status
from brokerage.services.splits import suggest_decommission, suggest_splits

router = APIRouter(prefix="/api/commissions", tags=["commissions"])


class StatusUpdate(BaseModel):
    status: CommissionStatus


@router.post("/{commission_id}/status")
def update_commission_status(
    commission_id: int,
    body: StatusUpdate,
    db: Session = Depends(get_db),
):
    """Move a commission forward in its lifecycle (pending → due → paid)."""
    commission = db.query(Commission).filter(Commission.id == commission_id).first()
    if not commission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commission not found")

    try:
        advance_commission_status(commission, body.status.value)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    db.commit()
    db.refresh(commission)

    return {
        "id": commission.id,
        "status": commission.status,
        "paid_at": commission.paid_at.isoformat() if commission.paid_at else None,
    }


@router.get("/{commission_id}/suggested-splits")
def get_suggested_splits(
    commission_id: int,
    agent_id: int,
    db: Session = Depends(get_db),
):
    """Default agent/manager split of a commission from the agent's per-category rates."""
    commission = db.query(Commission).filter(Commission.id == commission_id).first()
    if not commission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commission not found")

    policy = db.query(Policy).filter(Policy.id == commission.policy_id).first()
    agent = db.query(Collaborator).filter(Collaborator.id == agent_id).first()
    if not policy or not agent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Policy or agent not found")

    collaborators = {}
    if agent.manager_id:
        manager = db.query(Collaborator).filter(Collaborator.id == agent.manager_id).first()
        if manager:
            collaborators[manager.id] = CollaboratorRecord.model_validate(manager)

    proposal = suggest_splits(
        CommissionRecord.model_validate(commission),
        PolicyRecord.model_validate(policy),
        CollaboratorRecord.model_validate(agent),
        collaborators,
    )
    return proposal.model_dump(mode="json")


@router.get("/{commission_id}/suggested-decommission")
def get_suggested_decommission(
    commission_id: int,
    amount: Optional[Decimal] = None,
    db: Session = Depends(get_db),
):
    """Negative correction mirroring the commission's splits; nothing is written."""
    commission = db.query(Commission).filter(Commission.id == commission_id).first()
    if not commission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Commission not found")

    parts = (
        db.query(CommissionPart)
        .filter(CommissionPart.commission_id == commission_id)
        .order_by(CommissionPart.id)
        .all()
    )
    try:
        proposal = suggest_decommission(
            CommissionRecord.model_validate(commission),
            [SplitRecord.model_validate(p) for p in parts],
            amount,
        )
    except InvalidDecommission as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return proposal.model_dump(mode="json")
