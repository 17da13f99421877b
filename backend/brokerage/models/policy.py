from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from brokerage.core.database import Base
import enum


class PolicyStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class Policy(Base):
    __tablename__ = "policies"

    id = Column(Integer, primary_key=True, index=True)
    policy_number = Column(String, nullable=True, index=True)
    client_id = Column(Integer, nullable=False, index=True)
    # Agent whose book the policy belongs to (performance views)
    assigned_agent_id = Column(Integer, ForeignKey("collaborators.id"), nullable=True, index=True)

    # Free-text product type, e.g. "LAMal", "3e pilier", "multi"
    product_type = Column(String, nullable=True)
    # Bundled sub-products: [{"category": ..., "premium": ..., "deductible": ...}]
    products_data = Column(JSON, nullable=True)

    # Premiums
    premium_monthly = Column(Numeric(10, 2), nullable=True)
    premium_yearly = Column(Numeric(12, 2), nullable=True)

    status = Column(String, default=PolicyStatus.PENDING.value, nullable=False, index=True)
    start_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    commissions = relationship("Commission", back_populates="policy")
