"""Initial identity service schema

Revision ID: 001
Revises:
Create Date: 2024-01-15 00:00:00.000000

Creates the account directory and the single-use token table shared by
email verification and password reset codes. The two unique constraints on
single_use_token back the throttled upsert (kind, email) and the lookup of
a code (kind, code).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the account and single_use_token tables."""
    op.create_table(
        'account',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('firstname', sa.String(length=100), nullable=True),
        sa.Column('lastname', sa.String(length=100), nullable=True),
        sa.Column('roles', sa.JSON(), nullable=False),
        sa.Column('email_validated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_account_email', 'account', ['email'], unique=True)
    op.create_index('ix_account_created_at', 'account', ['created_at'])

    # Naive UTC timestamps
    op.create_table(
        'single_use_token',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('kind', 'email', name='uq_single_use_token_kind_email'),
        sa.UniqueConstraint('kind', 'code', name='uq_single_use_token_kind_code')
    )


def downgrade() -> None:
    """
    Drop both tables.

    WARNING: This deletes every account and every outstanding code.
    """
    op.drop_table('single_use_token')
    op.drop_index('ix_account_created_at', table_name='account')
    op.drop_index('ix_account_email', table_name='account')
    op.drop_table('account')
