"""Initial migration - create all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _definition_columns() -> list[sa.Column]:
    return [
        sa.Column('activity_key', sa.String(64), nullable=False),
        sa.Column('activity_name', sa.String(128), nullable=False),
        sa.Column('sport', sa.String(20), nullable=False),
        sa.Column('metric_type', sa.String(20), nullable=False),
        sa.Column('target_distance', sa.Integer(), nullable=True),
        sa.Column('target_time', sa.Integer(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    ]


def upgrade() -> None:
    # Create concept2_tokens table
    op.create_table(
        'concept2_tokens',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=False),
        sa.Column('token_type', sa.String(20), nullable=True),
        sa.Column('expires_in', sa.Integer(), nullable=True),
        sa.Column('issued_at', sa.BigInteger(), nullable=True),
        sa.Column('scope', sa.String(255), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_concept2_tokens_user_id', 'concept2_tokens', ['user_id'], unique=True)

    # Create workout_results table
    op.create_table(
        'workout_results',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('result_id', sa.BigInteger(), nullable=False),
        sa.Column('sport', sa.String(20), nullable=False),
        sa.Column('distance', sa.Integer(), nullable=False),
        sa.Column('time', sa.Integer(), nullable=False),
        sa.Column('achieved_at', sa.DateTime(), nullable=False),
        sa.Column('pace_per_500m', sa.Integer(), nullable=True),
        sa.Column('date_utc', sa.DateTime(), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=True),
        sa.Column('workout_type', sa.String(50), nullable=True),
        sa.Column('source', sa.String(100), nullable=True),
        sa.Column('weight_class', sa.String(10), nullable=True),
        sa.Column('verified', sa.Boolean(), nullable=True),
        sa.Column('ranked', sa.Boolean(), nullable=True),
        sa.Column('raw_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'result_id', name='uq_workout_results_user_result'),
    )
    op.create_index('ix_workout_results_user_id', 'workout_results', ['user_id'])
    op.create_index('ix_workout_results_achieved_at', 'workout_results', ['achieved_at'])

    # Create pr_type_templates table
    op.create_table(
        'pr_type_templates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        *_definition_columns(),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('activity_key', name='uq_pr_type_templates_key'),
    )

    # Create pr_types table
    op.create_table(
        'pr_types',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        *_definition_columns(),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'activity_key', name='uq_pr_types_user_key'),
    )
    op.create_index('ix_pr_types_user_id', 'pr_types', ['user_id'])

    # Create pr_events table
    op.create_table(
        'pr_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('results_id', sa.BigInteger(), nullable=False),
        sa.Column('activity_key', sa.String(64), nullable=False),
        sa.Column('sport', sa.String(20), nullable=False),
        sa.Column('metric_type', sa.String(20), nullable=False),
        sa.Column('metric_value', sa.Integer(), nullable=False),
        sa.Column('achieved_at', sa.DateTime(), nullable=False),
        sa.Column('season_identifier', sa.String(8), nullable=False),
        sa.Column('pace_per_500m', sa.Integer(), nullable=True),
        sa.Column('pr_scope', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            'user_id', 'results_id', 'activity_key',
            name='uq_pr_events_user_result_key',
        ),
    )
    op.create_index('ix_pr_events_user_id', 'pr_events', ['user_id'])
    op.create_index('ix_pr_events_results_id', 'pr_events', ['results_id'])
    op.create_index('ix_pr_events_activity_key', 'pr_events', ['activity_key'])

    # Create operation_leases table
    op.create_table(
        'operation_leases',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(128), nullable=False),
        sa.Column('operation', sa.String(50), nullable=False),
        sa.Column('holder', sa.String(36), nullable=False),
        sa.Column('acquired_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'operation', name='uq_operation_leases_user_operation'),
    )
    op.create_index('ix_operation_leases_user_id', 'operation_leases', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_operation_leases_user_id', 'operation_leases')
    op.drop_table('operation_leases')

    op.drop_index('ix_pr_events_activity_key', 'pr_events')
    op.drop_index('ix_pr_events_results_id', 'pr_events')
    op.drop_index('ix_pr_events_user_id', 'pr_events')
    op.drop_table('pr_events')

    op.drop_index('ix_pr_types_user_id', 'pr_types')
    op.drop_table('pr_types')

    op.drop_table('pr_type_templates')

    op.drop_index('ix_workout_results_achieved_at', 'workout_results')
    op.drop_index('ix_workout_results_user_id', 'workout_results')
    op.drop_table('workout_results')

    op.drop_index('ix_concept2_tokens_user_id', 'concept2_tokens')
    op.drop_table('concept2_tokens')
