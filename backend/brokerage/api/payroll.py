"""Payroll API: monthly payslip preview for salaried collaborators."""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from brokerage.core.exceptions import GenerationSuperseded, InvalidLedgerRecord, UpstreamFailure
from brokerage.services.generation import registry, run_generation
from brokerage.services.payroll import PayrollGenerator
from brokerage.services.sources import get_ledger_source

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/payroll", tags=["payroll"])


@router.get("/payslips")
def generate_payslips(
    month: Optional[int] = Query(None, description="1-12"),
    year: Optional[int] = None,
    collaborator_ids: List[int] = Query(default=[]),
    view_key: str = Query("default", description="Requests sharing a view key supersede each other"),
    source=Depends(get_ledger_source),
):
    """Compute payslips for a month. Flat-rate estimate, not certified payroll."""
    generator = PayrollGenerator(source)
    params = (month, year, tuple(dict.fromkeys(collaborator_ids)))
    try:
        result = run_generation(
            registry, f"payroll:{view_key}", params,
            lambda: generator.generate(month, year, collaborator_ids),
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
