"""
Database initialization script
Run this to create tables and seed demo ledger data
"""
import sys
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from brokerage.core.database import engine, Base, SessionLocal
from brokerage.models import Collaborator, Commission, CommissionPart, Policy


def init_db(bind=engine):
    """Initialize database with tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=bind)
    print("✓ Tables created successfully")


def _add_commission(db, policy, amount, created_at, splits, status="pending", type="acquisition"):
    commission = Commission(
        policy_id=policy.id,
        amount=Decimal(amount),
        type=type,
        status=status,
        created_at=created_at,
    )
    db.add(commission)
    db.flush()
    for collaborator, rate in splits:
        db.add(CommissionPart(
            commission_id=commission.id,
            collaborator_id=collaborator.id,
            rate=Decimal(rate),
            amount=(Decimal(amount) * Decimal(rate) / 100).quantize(Decimal("0.01")),
        ))
    return commission


def seed_data(db):
    """Seed demo collaborators, policies and commissions (skipped if collaborators exist)"""
    if db.query(Collaborator).first():
        print("Collaborators already present, skipping seed")
        return False

    print("\nSeeding demo data...")

    manager = Collaborator(
        first_name="Claire", last_name="Favre", email="claire.favre@example.ch",
        profession="Directrice commerciale", fixed_salary=Decimal("7000"),
        commission_rate=Decimal("20"), commission_rate_lca=Decimal("25"), commission_rate_vie=Decimal("30"),
        manager_commission_rate_lca=Decimal("5"), manager_commission_rate_vie=Decimal("10"),
        reserve_rate=0, canton="VD", civil_status="mariée",
    )
    db.add(manager)
    db.flush()

    agent = Collaborator(
        first_name="Marc", last_name="Rochat", email="marc.rochat@example.ch",
        profession="Conseiller", fixed_salary=Decimal("0"),
        commission_rate=Decimal("40"), commission_rate_lca=Decimal("50"), commission_rate_vie=Decimal("45"),
        reserve_rate=10, canton="GE", civil_status="célibataire", manager_id=manager.id,
    )
    employee = Collaborator(
        first_name="Sofia", last_name="Bernasconi", email="sofia.bernasconi@example.ch",
        profession="Gestionnaire", fixed_salary=Decimal("5000"),
        commission_rate=Decimal("10"), reserve_rate=20, canton="TI", civil_status="célibataire",
    )
    db.add_all([agent, employee])
    db.flush()
    print("✓ Created 3 collaborators")

    now = datetime.now()
    policies = [
        Policy(client_id=1, assigned_agent_id=agent.id, policy_number="LAM-001", product_type="LAMal + complémentaire",
               premium_monthly=Decimal("320"), premium_yearly=Decimal("3840"), status="active",
               start_date=date(now.year, 1, 1), created_at=datetime(now.year, 1, 10)),
        Policy(client_id=2, assigned_agent_id=agent.id, policy_number="3A-001", product_type="3e pilier 3a",
               premium_monthly=Decimal("500"), premium_yearly=Decimal("6000"), status="active",
               start_date=date(now.year, 2, 1), created_at=datetime(now.year, 2, 3)),
        Policy(client_id=3, assigned_agent_id=employee.id, policy_number="HYP-001", product_type="Hypothécaire",
               premium_yearly=Decimal("450000"), status="active", created_at=datetime(now.year, 3, 15)),
        Policy(client_id=4, assigned_agent_id=employee.id, policy_number="RC-001", product_type="RC ménage",
               premium_monthly=Decimal("35"), premium_yearly=Decimal("420"), status="active",
               created_at=datetime(now.year, 3, 20)),
        Policy(client_id=5, assigned_agent_id=manager.id, policy_number="MUL-001", product_type="multi",
               products_data=[{"category": "life", "premium": 150}, {"category": "health", "premium": 90}],
               premium_monthly=Decimal("240"), premium_yearly=Decimal("2880"), status="pending",
               created_at=datetime(now.year, 4, 2)),
    ]
    db.add_all(policies)
    db.flush()
    print(f"✓ Created {len(policies)} policies")

    _add_commission(db, policies[0], "1200", datetime(now.year, 1, 15), [(agent, "50"), (manager, "5")], status="paid")
    _add_commission(db, policies[1], "2400", datetime(now.year, 2, 10), [(agent, "45"), (manager, "10")], status="due")
    _add_commission(db, policies[2], "4500", datetime(now.year, 3, 18), [(employee, "10")])
    _add_commission(db, policies[3], "60", datetime(now.year, 3, 25), [(employee, "10")], status="paid")
    _add_commission(db, policies[0], "-300", datetime(now.year, 4, 5), [(agent, "50")], type="decommission")
    print("✓ Created 5 commissions with splits")

    db.commit()
    print("\n✓ Database seeded successfully!")
    return True


if __name__ == "__main__":
    print("=" * 60)
    print("Brokerage Back-Office - Database Initialization")
    print("=" * 60)

    init_db()
    session = SessionLocal()
    try:
        seed_data(session)
    except Exception as e:
        print(f"\n✗ Error seeding data: {e}")
        session.rollback()
        raise
    finally:
        session.close()

    print("\n" + "=" * 60)
    print("Initialization complete!")
    print("=" * 60)
    print("\nYou can now access:")
    print("  - API: http://localhost:8000")
    print("  - API Docs: http://localhost:8000/docs")
    print("=" * 60)
