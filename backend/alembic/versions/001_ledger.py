"""Create ledger tables: policies, collaborators, commissions, commission parts

Revision ID: 001_ledger
Revises: None
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = '001_ledger'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'policies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('policy_number', sa.String(), nullable=True),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('product_type', sa.String(), nullable=True),
        sa.Column('products_data', sa.JSON(), nullable=True),
        sa.Column('premium_monthly', sa.Numeric(10, 2), nullable=True),
        sa.Column('premium_yearly', sa.Numeric(12, 2), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_policies_id', 'policies', ['id'])
    op.create_index('ix_policies_policy_number', 'policies', ['policy_number'])
    op.create_index('ix_policies_client_id', 'policies', ['client_id'])
    op.create_index('ix_policies_status', 'policies', ['status'])

    op.create_table(
        'collaborators',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('profession', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='actif'),
        sa.Column('fixed_salary', sa.Numeric(10, 2), nullable=True),
        sa.Column('commission_rate', sa.Numeric(5, 2), nullable=True),
        sa.Column('commission_rate_lca', sa.Numeric(5, 2), nullable=True),
        sa.Column('commission_rate_vie', sa.Numeric(5, 2), nullable=True),
        sa.Column('manager_commission_rate_lca', sa.Numeric(5, 2), nullable=True),
        sa.Column('manager_commission_rate_vie', sa.Numeric(5, 2), nullable=True),
        sa.Column('bonus_rate', sa.Numeric(5, 2), nullable=True),
        sa.Column('reserve_rate', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('contract_type', sa.String(), nullable=True),
        sa.Column('canton', sa.String(8), nullable=True),
        sa.Column('civil_status', sa.String(), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('collaborators.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_collaborators_id', 'collaborators', ['id'])
    op.create_index('ix_collaborators_email', 'collaborators', ['email'])
    op.create_index('ix_collaborators_manager_id', 'collaborators', ['manager_id'])

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('policy_id', sa.Integer(), sa.ForeignKey('policies.id'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('type', sa.String(), nullable=False, server_default='acquisition'),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_commissions_id', 'commissions', ['id'])
    op.create_index('ix_commissions_policy_id', 'commissions', ['policy_id'])
    op.create_index('ix_commissions_status', 'commissions', ['status'])
    op.create_index('ix_commissions_created_at', 'commissions', ['created_at'])

    # Splits are looked up one commission at a time
    op.create_table(
        'commission_parts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('commission_id', sa.Integer(), sa.ForeignKey('commissions.id'), nullable=False),
        sa.Column('collaborator_id', sa.Integer(), sa.ForeignKey('collaborators.id'), nullable=False),
        sa.Column('rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_commission_parts_id', 'commission_parts', ['id'])
    op.create_index('ix_commission_parts_commission_id', 'commission_parts', ['commission_id'])
    op.create_index('ix_commission_parts_collaborator_id', 'commission_parts', ['collaborator_id'])


def downgrade():
    op.drop_table('commission_parts')
    op.drop_table('commissions')
    op.drop_table('collaborators')
    op.drop_table('policies')
