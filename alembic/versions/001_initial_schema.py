"""Create user, session and post_read tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create tables for users, session records and post reads."""
    op.create_table(
        'user',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(320), nullable=False, comment='Email address the user signs in with'),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('role', sa.Enum('USER', 'ADMIN', name='user_role_enum'), server_default='USER', nullable=False),
        sa.Column('team', sa.Enum('BLUE', 'RED', 'YELLOW', 'UNKNOWN', name='team_enum'), server_default='UNKNOWN', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'session',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False, comment='User this session belongs to'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='When the session was created'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False, comment='When the session expires'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_session_user_id', 'session', ['user_id'])

    op.create_table(
        'post_read',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('post_slug', sa.String(200), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('client_id', sa.String(36), nullable=True, comment='Anonymous client identity from the client-id cookie'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('(user_id IS NULL) <> (client_id IS NULL)', name='ck_post_read_single_reader'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_post_read_post_slug', 'post_read', ['post_slug'])
    op.create_index('ix_post_read_user_id', 'post_read', ['user_id'])
    op.create_index('ix_post_read_client_id', 'post_read', ['client_id'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('post_read')
    op.drop_table('session')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_table('user')
    sa.Enum(name='team_enum').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='user_role_enum').drop(op.get_bind(), checkfirst=True)
