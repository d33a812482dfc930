"""Create waitlist, verification token, email template and admin tables

Revision ID: 3b1f6c2a9d10
Revises:
Create Date: 2025-02-11 18:04:22.513207
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b1f6c2a9d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(), nullable=False, unique=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'waitlist',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('zip_code', sa.String(length=5), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_waitlist_email', 'waitlist', ['email'], unique=True)
    op.create_index('ix_waitlist_zip_code', 'waitlist', ['zip_code'])

    op.create_table(
        'verification_tokens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_verification_tokens_email', 'verification_tokens', ['email'])

    op.create_table(
        'email_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('html_content', sa.Text(), nullable=False),
        sa.Column('from_email', sa.String(), nullable=True),
        sa.Column('recipient_type', sa.String(), nullable=False, server_default='waitlist'),
        sa.Column('recipient_filter', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'email_segments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('template_id', sa.Integer(), sa.ForeignKey('email_templates.id', ondelete='SET NULL'), nullable=True),
        sa.Column('template_name', sa.String(), nullable=False),
        sa.Column('zip_codes', sa.JSON(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('total_recipients', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='completed'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('email_segments')
    op.drop_table('email_templates')
    op.drop_index('ix_verification_tokens_email', table_name='verification_tokens')
    op.drop_table('verification_tokens')
    op.drop_index('ix_waitlist_zip_code', table_name='waitlist')
    op.drop_index('ix_waitlist_email', table_name='waitlist')
    op.drop_table('waitlist')
    op.drop_table('admins')
