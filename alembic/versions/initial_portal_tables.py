"""initial portal tables

Creates users, issues, comments and report_drafts.

Revision ID: initial_portal_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_portal_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = ('infrastructure', 'environment', 'safety', 'utilities', 'governance',
              'transportation', 'healthcare', 'other')
PRIORITIES = ('low', 'medium', 'high', 'critical')
STATUSES = ('pending', 'verified', 'in_progress', 'resolved', 'closed')


def _enum(name, members):
    return sa.Enum(*members, name=name, native_enum=False, length=20)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=120), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('role', _enum('userrole', ('admin', 'citizen')), nullable=False),
        sa.Column('created_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_full_name', 'users', ['full_name'])

    op.create_table(
        'issues',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=4000), nullable=True),
        sa.Column('category', _enum('issuecategory', CATEGORIES), nullable=False),
        sa.Column('priority', _enum('issuepriority', PRIORITIES), nullable=False),
        sa.Column('status', _enum('issuestatus', STATUSES), nullable=False),
        sa.Column('location', sa.String(length=300), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('image_url', sa.String(length=2000), nullable=True),
        sa.Column('upvotes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('comments_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('department', sa.String(length=120), nullable=True),
        sa.Column('resolution_note', sa.String(length=4000), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_date', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_issues_title', 'issues', ['title'])
    op.create_index('ix_issues_category', 'issues', ['category'])
    op.create_index('ix_issues_status', 'issues', ['status'])
    op.create_index('ix_issues_department', 'issues', ['department'])
    op.create_index('ix_issues_created_date', 'issues', ['created_date'])
    op.create_index('ix_issues_lat_lng', 'issues', ['latitude', 'longitude'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('issue_id', sa.Integer(), sa.ForeignKey('issues.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.String(length=4000), nullable=False),
        sa.Column('user_name', sa.String(length=120), nullable=False),
        sa.Column('created_date', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_comments_issue_id', 'comments', ['issue_id'])
    op.create_index('ix_comments_created_date', 'comments', ['created_date'])

    op.create_table(
        'report_drafts',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('step', sa.Integer(), server_default='1', nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('submitted', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('issue_id', sa.String(length=64), nullable=True),
        sa.Column('uploading', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('locating', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('submitting', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('last_error', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('report_drafts')
    op.drop_index('ix_comments_created_date', table_name='comments')
    op.drop_index('ix_comments_issue_id', table_name='comments')
    op.drop_table('comments')
    op.drop_index('ix_issues_lat_lng', table_name='issues')
    op.drop_index('ix_issues_created_date', table_name='issues')
    op.drop_index('ix_issues_department', table_name='issues')
    op.drop_index('ix_issues_status', table_name='issues')
    op.drop_index('ix_issues_category', table_name='issues')
    op.drop_index('ix_issues_title', table_name='issues')
    op.drop_table('issues')
    op.drop_index('ix_users_full_name', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
