from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from brokerage.core.database import Base
import enum


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    DUE = "due"
    PAID = "paid"


class CommissionType(str, enum.Enum):
    ACQUISITION = "acquisition"
    RENEWAL = "renewal"
    BONUS = "bonus"
    GESTION = "gestion"
    DECOMMISSION = "decommission"  # negative correction


class Commission(Base):
    """Commission earned by the brokerage on a policy"""
    __tablename__ = "commissions"

    id = Column(Integer, primary_key=True, index=True)
    policy_id = Column(Integer, ForeignKey("policies.id"), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    type = Column(String, default=CommissionType.ACQUISITION.value, nullable=False)
    status = Column(String, default=CommissionStatus.PENDING.value, nullable=False, index=True)

    # Explicit business date; created_at is used when absent
    date = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    policy = relationship("Policy", back_populates="commissions")
    parts = relationship("CommissionPart", back_populates="commission", cascade="all, delete-orphan")


class CommissionPart(Base):
    """Share of a commission attributed to one collaborator"""
    __tablename__ = "commission_parts"

    id = Column(Integer, primary_key=True, index=True)
    commission_id = Column(Integer, ForeignKey("commissions.id"), nullable=False, index=True)
    collaborator_id = Column(Integer, ForeignKey("collaborators.id"), nullable=False, index=True)

    rate = Column(Numeric(5, 2), nullable=False)  # percent, 0-100
    amount = Column(Numeric(10, 2), nullable=False)  # commission.amount * rate / 100, stored

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    commission = relationship("Commission", back_populates="parts")
    collaborator = relationship("Collaborator", back_populates="commission_parts")
