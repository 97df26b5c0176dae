"""create report tables

Revision ID: 4b2e8d1f6a90
Revises:
Create Date: 2026-10-17 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '4b2e8d1f6a90'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE_VALUES = ('citizen', 'employee', 'admin')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def _report_columns() -> list[sa.Column]:
    return [
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('reported_by', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('assigned_to', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('thumbnail', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('dismissed_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _report_indexes(table: str) -> None:
    for column in ('created_at', 'reported_by', 'status'):
        op.create_index(op.f(f'ix_{table}_{column}'), table, [column], unique=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        *_timestamps(),
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('hashed_password', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('full_name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('role', sa.Enum(*ROLE_VALUES, name='user_role'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_created_at'), 'users', ['created_at'], unique=False)

    op.create_table(
        'user_roles',
        *_timestamps(),
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('user_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('role', sa.Enum(*ROLE_VALUES, name='user_role_grant'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )
    op.create_index(op.f('ix_user_roles_id'), 'user_roles', ['id'], unique=False)
    op.create_index(op.f('ix_user_roles_user_id'), 'user_roles', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_roles_created_at'), 'user_roles', ['created_at'], unique=False)

    op.create_table(
        'refresh_tokens',
        *_timestamps(),
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('token', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('user_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_refresh_tokens_id'), 'refresh_tokens', ['id'], unique=False)
    op.create_index(op.f('ix_refresh_tokens_token'), 'refresh_tokens', ['token'], unique=True)
    op.create_index(op.f('ix_refresh_tokens_user_id'), 'refresh_tokens', ['user_id'], unique=False)
    op.create_index(op.f('ix_refresh_tokens_created_at'), 'refresh_tokens', ['created_at'], unique=False)

    op.create_table(
        'issues',
        *_timestamps(),
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('category', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        *_report_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_issues_category'), 'issues', ['category'], unique=False)
    _report_indexes('issues')

    op.create_table(
        'buildings_at_risk',
        *_timestamps(),
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        *_report_columns(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_buildings_at_risk_id'), 'buildings_at_risk', ['id'], unique=False)
    _report_indexes('buildings_at_risk')


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('buildings_at_risk')
    op.drop_table('issues')
    op.drop_table('refresh_tokens')
    op.drop_table('user_roles')
    op.drop_table('users')
