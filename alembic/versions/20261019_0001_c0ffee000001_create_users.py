"""create users table

Revision ID: c0ffee000001
Revises:
Create Date: 2026-10-19

Accounts created by OTP-verified signup.

Fields:
  email: unique; the index settles concurrent signups for one address
  hashed_password: bcrypt hash only, never the plaintext
  gender: male | female | non-binary
  state/city/postal_code, is_address_complete: filled by POST /profile/complete
"""
from alembic import op
import sqlalchemy as sa

revision = 'c0ffee000001'
down_revision = None
branch_labels = None
depends_on = None

gender_enum = sa.Enum('male', 'female', 'non-binary', name='gender')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('gender', gender_enum, nullable=False, server_default='male'),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('postal_code', sa.String(12), nullable=True),
        sa.Column('is_address_complete', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    gender_enum.drop(op.get_bind(), checkfirst=True)
