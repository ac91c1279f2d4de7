"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Key-value documents (tool collection, audit log, login codes)
    op.create_table(
        'kv_entries',
        sa.Column('key', sa.String(255), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_kv_entries_expires_at', 'kv_entries', ['expires_at'])

    # Login sessions
    op.create_table(
        'sessions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('session_token', sa.String(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_sessions_email', 'sessions', ['email'])
    op.create_index('ix_sessions_session_token', 'sessions', ['session_token'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_sessions_session_token', 'sessions')
    op.drop_index('ix_sessions_email', 'sessions')
    op.drop_table('sessions')

    op.drop_index('ix_kv_entries_expires_at', 'kv_entries')
    op.drop_table('kv_entries')
