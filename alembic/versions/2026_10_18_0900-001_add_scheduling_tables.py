"""Add templates, occurrences and day_overrides tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

activity_kind = sa.Enum('GENERIC', 'WORKOUT', name='activitykind')
occurrence_status = sa.Enum('PLANNED', 'DONE', 'SKIPPED', name='occurrencestatus')
override_action = sa.Enum('SKIPPED_TODAY', 'DELETED_TODAY', name='overrideaction')


def upgrade() -> None:
    """Create templates, occurrences and day_overrides tables."""
    op.create_table('templates', sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('start_minute', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('recurrence_data', sa.JSON(), nullable=False),
        sa.Column('kind', activity_kind, nullable=False),
        sa.Column('workout_routine_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.PrimaryKeyConstraint('id'))

    op.create_table('occurrences', sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column('start_at', sa.DateTime(), nullable=False),
        sa.Column('end_at', sa.DateTime(), nullable=True),
        sa.Column('template_id', sa.Uuid(), nullable=True),
        sa.Column('day_key', sqlmodel.sql.sqltypes.AutoString(length=10), nullable=True),
        sa.Column('generated_key', sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column('planned_title', sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column('planned_start_at', sa.DateTime(), nullable=True),
        sa.Column('planned_end_at', sa.DateTime(), nullable=True),
        sa.Column('kind', activity_kind, nullable=False),
        sa.Column('workout_routine_id', sa.Uuid(), nullable=True),
        sa.Column('workout_session_id', sa.Uuid(), nullable=True),
        sa.Column('status', occurrence_status, nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.PrimaryKeyConstraint('id'))
    op.create_index(op.f('ix_occurrences_start_at'), 'occurrences', ['start_at'], unique=False)
    op.create_index(op.f('ix_occurrences_template_id'), 'occurrences', ['template_id'], unique=False)
    op.create_index(op.f('ix_occurrences_day_key'), 'occurrences', ['day_key'], unique=False)
    op.create_index(op.f('ix_occurrences_generated_key'), 'occurrences', ['generated_key'], unique=True)

    op.create_table('day_overrides',
        sa.Column('key', sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column('template_id', sa.Uuid(), nullable=False),
        sa.Column('day_key', sqlmodel.sql.sqltypes.AutoString(length=10), nullable=False),
        sa.Column('action', override_action, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.PrimaryKeyConstraint('key'))
    op.create_index(op.f('ix_day_overrides_template_id'), 'day_overrides', ['template_id'], unique=False)
    op.create_index(op.f('ix_day_overrides_day_key'), 'day_overrides', ['day_key'], unique=False)


def downgrade() -> None:
    """Drop templates, occurrences and day_overrides tables."""
    op.drop_index(op.f('ix_day_overrides_day_key'), table_name='day_overrides')
    op.drop_index(op.f('ix_day_overrides_template_id'), table_name='day_overrides')
    op.drop_table('day_overrides')
    op.drop_index(op.f('ix_occurrences_generated_key'), table_name='occurrences')
    op.drop_index(op.f('ix_occurrences_day_key'), table_name='occurrences')
    op.drop_index(op.f('ix_occurrences_template_id'), table_name='occurrences')
    op.drop_index(op.f('ix_occurrences_start_at'), table_name='occurrences')
    op.drop_table('occurrences')
    op.drop_table('templates')
    activity_kind.drop(op.get_bind(), checkfirst=True)
    occurrence_status.drop(op.get_bind(), checkfirst=True)
    override_action.drop(op.get_bind(), checkfirst=True)
