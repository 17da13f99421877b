from pydantic import BaseModel, Field
from typing import List
from datetime import date
from decimal import Decimal
from brokerage.core.rates import ReserveRate
from brokerage.schemas.ledger import CollaboratorRecord, CommissionRecord, SplitRecord, RateAnomaly


class StatementLine(BaseModel):
    commission: CommissionRecord
    parts: List[SplitRecord]
    agent_amount: Decimal  # this collaborator's share of the commission


class StatementTotals(BaseModel):
    total_commissions: Decimal
    total_agent_amount: Decimal
    commissions_count: int
    reserve_rate: ReserveRate
    reserve_amount: Decimal
    net_amount: Decimal


class Statement(BaseModel):
    """Commission statement (décompte) of one collaborator for a date range."""
    collaborator: CollaboratorRecord
    start_date: date
    end_date: date
    lines: List[StatementLine]
    totals: StatementTotals


class SettlementResult(BaseModel):
    start_date: date
    end_date: date
    statements: List[Statement] = Field(default_factory=list)
    rate_anomalies: List[RateAnomaly] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.statements

    @property
    def message(self) -> str:
        if self.is_empty:
            return "No commissions found for the selected collaborators and period"
        return f"{len(self.statements)} statement(s) generated"
