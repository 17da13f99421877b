from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from brokerage.schemas.ledger import CollaboratorRecord, RateAnomaly


class Payslip(BaseModel):
    """Monthly payslip (fiche de salaire).

    Flat-rate approximation: no contribution ceilings, no progressive
    brackets, no annual allowances. Not certified payroll output.
    """
    collaborator: CollaboratorRecord
    month: int
    year: int

    salaire_brut: Decimal
    commissions_brut: Decimal
    reserve_amount: Decimal
    commissions_net: Decimal
    total_brut: Decimal

    # Social contributions
    avs: Decimal
    ac: Decimal
    lpp: Decimal
    aanp: Decimal
    total_charges_sociales: Decimal

    # Withholding tax
    canton: Optional[str] = None
    taux_impot_source: Decimal
    impot_source: Decimal

    total_deductions: Decimal
    net_a_payer: Decimal

    is_estimate: bool = True


class PayrollResult(BaseModel):
    month: int
    year: int
    payslips: List[Payslip] = Field(default_factory=list)
    rate_anomalies: List[RateAnomaly] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.payslips

    @property
    def message(self) -> str:
        if self.is_empty:
            return "No salaried collaborators found for this selection"
        return f"{len(self.payslips)} payslip(s) generated"
