from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from brokerage.core.database import Base


class Collaborator(Base):
    """Agent or employee paid by commission and/or fixed salary"""
    __tablename__ = "collaborators"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)
    profession = Column(String, nullable=True)
    status = Column(String, default="actif", nullable=False)

    # Pay structure
    fixed_salary = Column(Numeric(10, 2), nullable=True)
    commission_rate = Column(Numeric(5, 2), nullable=True)
    commission_rate_lca = Column(Numeric(5, 2), nullable=True)
    commission_rate_vie = Column(Numeric(5, 2), nullable=True)
    manager_commission_rate_lca = Column(Numeric(5, 2), nullable=True)
    manager_commission_rate_vie = Column(Numeric(5, 2), nullable=True)
    bonus_rate = Column(Numeric(5, 2), nullable=True)
    reserve_rate = Column(Integer, default=0)  # 0, 10 or 20
    contract_type = Column(String, nullable=True)

    # Payroll jurisdiction
    canton = Column(String(8), nullable=True)
    civil_status = Column(String, nullable=True)

    manager_id = Column(Integer, ForeignKey("collaborators.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    manager = relationship("Collaborator", remote_side=[id], backref="team_members")
    commission_parts = relationship("CommissionPart", back_populates="collaborator")
