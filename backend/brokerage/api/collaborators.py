from fastapi import APIRouter, Depends, HTTPException

from brokerage.core.exceptions import CollaboratorNotFound, InvalidLedgerRecord, UpstreamFailure
from brokerage.services.reserve import build_reserve_account
from brokerage.services.sources import get_ledger_source

router = APIRouter(prefix="/api/collaborators", tags=["collaborators"])


@router.get("/{collaborator_id}/reserve")
def get_reserve_account(
    collaborator_id: int,
    year: int = None,
    source=Depends(get_ledger_source),
):
    """Monthly reserve retention with running balance; optionally the total retained in one year."""
    try:
        account = build_reserve_account(source, collaborator_id)
    except CollaboratorNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidLedgerRecord as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UpstreamFailure as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "collaborator_id": account.collaborator_id,
        "reserve_rate": account.reserve_rate,
        "balance": float(account.balance),
        "year_total": float(account.reserve_for_year(year)) if year else None,
        "entries": [
            {
                "year": e.year,
                "month": e.month,
                "commission_amount": float(e.commission_amount),
                "reserve_amount": float(e.reserve_amount),
                "cumulative_reserve": float(e.cumulative_reserve),
            }
            for e in account.entries
        ],
    }
