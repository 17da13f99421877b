"""Assign policies to an agent

Revision ID: 002_policy_agent
Revises: 001_ledger
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = '002_policy_agent'
down_revision = '001_ledger'
branch_labels = None
depends_on = None


def upgrade():
    # Batch mode so SQLite can take the foreign key (copy-and-move)
    with op.batch_alter_table('policies') as batch_op:
        batch_op.add_column(sa.Column('assigned_agent_id', sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            'fk_policies_assigned_agent_id', 'collaborators', ['assigned_agent_id'], ['id'],
        )
        batch_op.create_index('ix_policies_assigned_agent_id', ['assigned_agent_id'])


def downgrade():
    # Dropping the column drops its foreign key
    with op.batch_alter_table('policies') as batch_op:
        batch_op.drop_index('ix_policies_assigned_agent_id')
        batch_op.drop_column('assigned_agent_id')
