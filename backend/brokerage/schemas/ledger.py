"""In-memory snapshot of the system of record.

The calculation core never touches the ORM: sources load rows into these
records (``from_attributes``) and every generator works on them.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from brokerage.core.rates import ReserveRate
from brokerage.models.commission import CommissionStatus, CommissionType
from brokerage.models.policy import PolicyStatus


class ProductLine(BaseModel):
    """One sub-product of a bundled ("multi") policy."""
    category: Optional[str] = None
    premium: Optional[Decimal] = None
    deductible: Optional[Decimal] = None


class PolicyRecord(BaseModel):
    id: int
    client_id: Optional[int] = None
    policy_number: Optional[str] = None
    product_type: Optional[str] = None
    products_data: List[ProductLine] = Field(default_factory=list)
    premium_monthly: Optional[Decimal] = None
    premium_yearly: Optional[Decimal] = None
    status: PolicyStatus = PolicyStatus.PENDING
    start_date: Optional[date] = None
    created_at: Optional[datetime] = None
    assigned_agent_id: Optional[int] = None

    @field_validator("products_data", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return value or []

    @property
    def is_active(self) -> bool:
        return self.status == PolicyStatus.ACTIVE

    class Config:
        from_attributes = True


class CommissionRecord(BaseModel):
    id: int
    policy_id: int
    amount: Decimal
    type: CommissionType = CommissionType.ACQUISITION
    status: CommissionStatus = CommissionStatus.PENDING
    created_at: datetime
    date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None

    @property
    def effective_date(self) -> datetime:
        """Business date of the commission: explicit date, else creation time."""
        return self.date or self.created_at

    @property
    def is_paid(self) -> bool:
        return self.status == CommissionStatus.PAID

    class Config:
        from_attributes = True


class SplitRecord(BaseModel):
    id: int
    commission_id: int
    collaborator_id: int
    rate: Decimal = Field(..., ge=0)
    amount: Decimal

    class Config:
        from_attributes = True


class CollaboratorRecord(BaseModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    profession: Optional[str] = None
    status: Optional[str] = None
    fixed_salary: Decimal = Decimal("0")
    commission_rate: Optional[Decimal] = None
    commission_rate_lca: Optional[Decimal] = None
    commission_rate_vie: Optional[Decimal] = None
    manager_commission_rate_lca: Optional[Decimal] = None
    manager_commission_rate_vie: Optional[Decimal] = None
    bonus_rate: Optional[Decimal] = None
    reserve_rate: ReserveRate = ReserveRate.NONE
    contract_type: Optional[str] = None
    canton: Optional[str] = None
    civil_status: Optional[str] = None
    manager_id: Optional[int] = None

    @field_validator("fixed_salary", mode="before")
    @classmethod
    def _salary_default(cls, value):
        return Decimal("0") if value is None else value

    @field_validator("reserve_rate", mode="before")
    @classmethod
    def _reserve_tier(cls, value):
        if value is None:
            return ReserveRate.NONE
        if isinstance(value, ReserveRate):
            return value
        try:
            rate = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"reserve_rate must be a number, got {value!r}")
        if rate != rate.to_integral_value():
            raise ValueError(f"reserve_rate must be a whole percentage, got {value}")
        # ValueError for anything outside the 0 / 10 / 20 tiers
        return ReserveRate(int(rate))

    @property
    def name(self) -> str:
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or self.email or f"#{self.id}"

    class Config:
        from_attributes = True


class RateAnomaly(BaseModel):
    """Split rates of one commission summing above 100%; flagged for data-quality review."""
    commission_id: int
    total_rate: Decimal
    split_count: int


class ProposedSplit(BaseModel):
    collaborator_id: int
    role: str  # "agent" or "manager"
    rate: Decimal
    amount: Decimal


class SplitProposal(BaseModel):
    commission_id: int
    category: str
    parts: List[ProposedSplit] = Field(default_factory=list)
    brokerage_amount: Decimal
    anomaly: Optional[RateAnomaly] = None


class ReversalPart(BaseModel):
    collaborator_id: int
    rate: Decimal
    amount: Decimal  # negative


class DecommissionProposal(BaseModel):
    """Negative correction of a commission, mirroring its split rates. Not persisted."""
    original_commission_id: int
    policy_id: int
    amount: Decimal  # negative
    type: CommissionType = CommissionType.DECOMMISSION
    status: CommissionStatus = CommissionStatus.PAID
    date: Optional[datetime] = None
    notes: str
    parts: List[ReversalPart] = Field(default_factory=list)
    brokerage_amount: Decimal
