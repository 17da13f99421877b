"""Settlements API: commission statements (décomptes) for a date range."""
import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from brokerage.core.exceptions import GenerationSuperseded, InvalidLedgerRecord, UpstreamFailure
from brokerage.services.generation import registry, run_generation
from brokerage.services.settlement import SettlementGenerator
from brokerage.services.sources import get_ledger_source

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/settlements", tags=["settlements"])


@router.get("")
def generate_settlements(
    start: Optional[date] = Query(None, description="First day, inclusive (YYYY-MM-DD)"),
    end: Optional[date] = Query(None, description="Last day, inclusive (YYYY-MM-DD)"),
    collaborator_ids: List[int] = Query(default=[]),
    view_key: str = Query("default", description="Requests sharing a view key supersede each other"),
    source=Depends(get_ledger_source),
):
    """Build one statement per collaborator with commissions created in the range."""
    generator = SettlementGenerator(source)
    params = (start, end, tuple(dict.fromkeys(collaborator_ids)))
    try:
        result = run_generation(
            registry, f"settlements:{view_key}", params,
            lambda: generator.generate(start, end, collaborator_ids),
        )
    except InvalidLedgerRecord as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationSuperseded as e:
        raise HTTPException(status_code=409, detail=str(e))
    except UpstreamFailure as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {
        **result.model_dump(mode="json"),
        "is_empty": result.is_empty,
        "message": result.message,
    }
