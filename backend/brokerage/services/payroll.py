"""Payroll generator: monthly payslips for salaried collaborators.

Layers statutory deductions on top of the settlement figures of the month:

    commissions_net = commissions_brut - reserve
    total_brut      = fixed salary + commissions_net
    charges         = AVS + AC + LPP + AANP, flat rates on total_brut
    impot_source    = total_brut * cantonal rate (single / married)
    net_a_payer     = total_brut - charges - impot_source

Flat-rate approximation (no ceilings, brackets or allowances); payslips are
flagged ``is_estimate`` and are not certified payroll output.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from brokerage.core.config import settings
from brokerage.core.money import ZERO, money, percent_of
from brokerage.core.rates import canton_code, withholding_rate
from brokerage.schemas.ledger import CollaboratorRecord
from brokerage.schemas.payslip import Payslip, PayrollResult
from brokerage.services.ledger import LedgerSource, month_bounds, normalize_ids
from brokerage.services.settlement import SettlementGenerator

logger = logging.getLogger(__name__)


def compute_payslip(
    collaborator: CollaboratorRecord,
    month: int,
    year: int,
    commissions_brut: Decimal = ZERO,
    reserve_amount: Optional[Decimal] = None,
) -> Payslip:
    commissions_brut = money(commissions_brut)
    if reserve_amount is None:
        reserve_amount = percent_of(commissions_brut, collaborator.reserve_rate.value)
    commissions_net = commissions_brut - reserve_amount

    salaire_brut = money(collaborator.fixed_salary)
    total_brut = salaire_brut + commissions_net

    avs = money(total_brut * settings.AVS_RATE)
    ac = money(total_brut * settings.AC_RATE)
    lpp = money(total_brut * settings.LPP_RATE)
    aanp = money(total_brut * settings.AANP_RATE)
    total_charges_sociales = avs + ac + lpp + aanp

    taux = withholding_rate(collaborator.canton, collaborator.civil_status)
    impot_source = money(total_brut * taux)

    total_deductions = total_charges_sociales + impot_source

    return Payslip(
        collaborator=collaborator,
        month=month,
        year=year,
        salaire_brut=salaire_brut,
        commissions_brut=commissions_brut,
        reserve_amount=reserve_amount,
        commissions_net=commissions_net,
        total_brut=total_brut,
        avs=avs,
        ac=ac,
        lpp=lpp,
        aanp=aanp,
        total_charges_sociales=total_charges_sociales,
        canton=canton_code(collaborator.canton),
        taux_impot_source=taux,
        impot_source=impot_source,
        total_deductions=total_deductions,
        net_a_payer=total_brut - total_deductions,
    )


class PayrollGenerator:
    def __init__(
        self,
        source: LedgerSource,
        settlement: Optional[SettlementGenerator] = None,
        max_workers: Optional[int] = None,
    ):
        self.source = source
        self.settlement = settlement or SettlementGenerator(source, max_workers=max_workers)

    def generate(self, month: int, year: int, collaborator_ids: Iterable[int]) -> PayrollResult:
        """One payslip per known collaborator, including those without commissions."""
        first, last = month_bounds(month, year)
        ids = normalize_ids(collaborator_ids)

        collaborators = self.settlement.load_collaborators(ids)
        result = PayrollResult(month=month, year=year)
        if not collaborators:
            logger.info(f"Payroll {year}-{month:02d}: none of {len(ids)} requested collaborator(s) found")
            return result

        # Net commission of the month comes straight from the settlement statements
        settlement = self.settlement.settle(collaborators, first, last)
        statements = {s.collaborator.id: s for s in settlement.statements}
        result.rate_anomalies = settlement.rate_anomalies

        for collaborator in collaborators:
            statement = statements.get(collaborator.id)
            if statement:
                payslip = compute_payslip(
                    collaborator, month, year,
                    commissions_brut=statement.totals.total_agent_amount,
                    reserve_amount=statement.totals.reserve_amount,
                )
            else:
                payslip = compute_payslip(collaborator, month, year)
            result.payslips.append(payslip)

        logger.info(
            f"Payroll {year}-{month:02d}: {len(result.payslips)} payslip(s), "
            f"{len(statements)} with commissions"
        )
        return result
