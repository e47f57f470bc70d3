"""Initial ops tables

Revision ID: 001_initial_ops
Revises:
Create Date: 2026-03-01

Creates all tables for the proposal lifecycle:
- ops_mission_proposals, ops_missions, ops_mission_steps
- ops_agent_events (audit sink)
- ops_policy (daily_quotas, auto_approve documents)
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_ops'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ==========================================================================
    # Create Enums
    # ==========================================================================

    proposal_status_enum = postgresql.ENUM(
        'pending', 'approved', 'rejected',
        name='proposalstatus',
        create_type=False,
    )
    proposal_status_enum.create(op.get_bind(), checkfirst=True)

    mission_status_enum = postgresql.ENUM(
        'active', 'completed', 'partial', 'failed', 'cancelled',
        name='missionstatus',
        create_type=False,
    )
    mission_status_enum.create(op.get_bind(), checkfirst=True)

    step_status_enum = postgresql.ENUM(
        'pending', 'running', 'completed', 'failed', 'skipped',
        name='stepstatus',
        create_type=False,
    )
    step_status_enum.create(op.get_bind(), checkfirst=True)

    # ==========================================================================
    # Proposal Lifecycle Tables
    # ==========================================================================

    op.create_table(
        'ops_mission_proposals',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('agent_id', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('estimated_cost_usd', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('proposed_steps', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('status', proposal_status_enum, nullable=False, server_default='pending'),
        sa.Column('auto_approved', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.String(length=100), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ops_mission_proposals_agent_id', 'ops_mission_proposals', ['agent_id'], unique=False)
    op.create_index('ix_ops_mission_proposals_status', 'ops_mission_proposals', ['status'], unique=False)
    op.create_index('ix_ops_mission_proposals_created_at', 'ops_mission_proposals', ['created_at'], unique=False)

    op.create_table(
        'ops_missions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('proposal_id', sa.UUID(), nullable=True),
        sa.Column('agent_id', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('estimated_cost_usd', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('actual_cost_usd', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('status', mission_status_enum, nullable=False, server_default='active'),
        sa.Column('progress_pct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['proposal_id'], ['ops_mission_proposals.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ops_missions_proposal_id', 'ops_missions', ['proposal_id'], unique=False)
    op.create_index('ix_ops_missions_agent_id', 'ops_missions', ['agent_id'], unique=False)
    op.create_index('ix_ops_missions_status', 'ops_missions', ['status'], unique=False)
    op.create_index('ix_ops_missions_created_at', 'ops_missions', ['created_at'], unique=False)

    op.create_table(
        'ops_mission_steps',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('mission_id', sa.UUID(), nullable=False),
        sa.Column('agent_id', sa.String(length=100), nullable=False),
        sa.Column('step_order', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('input_data', sa.JSON(), nullable=True),
        sa.Column('status', step_status_enum, nullable=False, server_default='pending'),
        sa.Column('max_retries', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('retry_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('output_data', sa.JSON(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['mission_id'], ['ops_missions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mission_id', 'step_order', name='uq_mission_step_order'),
    )
    op.create_index('ix_ops_mission_steps_mission_id', 'ops_mission_steps', ['mission_id'], unique=False)
    op.create_index('ix_ops_mission_steps_agent_id', 'ops_mission_steps', ['agent_id'], unique=False)
    op.create_index('ix_ops_mission_steps_kind', 'ops_mission_steps', ['kind'], unique=False)
    op.create_index('ix_ops_mission_steps_created_at', 'ops_mission_steps', ['created_at'], unique=False)

    # ==========================================================================
    # Audit and Policy Tables
    # ==========================================================================

    op.create_table(
        'ops_agent_events',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('agent_id', sa.String(length=100), nullable=False),
        sa.Column('kind', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('cost_usd', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ops_agent_events_agent_id', 'ops_agent_events', ['agent_id'], unique=False)
    op.create_index('ix_ops_agent_events_kind', 'ops_agent_events', ['kind'], unique=False)
    op.create_index('ix_ops_agent_events_created_at', 'ops_agent_events', ['created_at'], unique=False)

    op.create_table(
        'ops_policy',
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('updated_by', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('key'),
    )
    op.create_index('ix_ops_policy_created_at', 'ops_policy', ['created_at'], unique=False)


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('ops_policy')
    op.drop_table('ops_agent_events')
    op.drop_table('ops_mission_steps')
    op.drop_table('ops_missions')
    op.drop_table('ops_mission_proposals')

    # Drop enums
    op.execute("DROP TYPE IF EXISTS stepstatus")
    op.execute("DROP TYPE IF EXISTS missionstatus")
    op.execute("DROP TYPE IF EXISTS proposalstatus")
