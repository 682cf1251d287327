"""create scan_coverage table

Revision ID: 001
Revises: 
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


scan_profile = sa.Enum('QUICK', 'SMART', 'DEEP', name='scanprofile')
stop_reason = sa.Enum(
    'enterprise_detected', 'url_limit', 'time_limit', 'complete', 'budget',
    name='stopreason',
)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'scan_coverage',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('scan_id', sa.String(), nullable=False),
        sa.Column('site_id', sa.String(), nullable=True),
        sa.Column('profile', scan_profile, nullable=False),
        sa.Column('stop_reason', stop_reason, nullable=False),
        sa.Column('reached_limit', sa.Boolean(), nullable=False),
        sa.Column('scanned_urls', sa.Integer(), nullable=False),
        sa.Column('estimated_total_urls', sa.Integer(), nullable=True),
        sa.Column('coverage_percent', sa.Integer(), nullable=False),
        sa.Column('pages_crawled', sa.Integer(), nullable=False),
        sa.Column('discovered_urls', sa.Integer(), nullable=False),
        sa.Column('enterprise_detection', sa.JSON(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            'coverage_percent >= 0 AND coverage_percent <= 100',
            name='check_coverage_percent_range'
        ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_scan_coverage_id', 'scan_coverage', ['id'])
    op.create_index('ix_scan_coverage_scan_id', 'scan_coverage', ['scan_id'], unique=True)
    op.create_index('ix_scan_coverage_site_id', 'scan_coverage', ['site_id'])
    op.create_index('idx_scan_coverage_site_profile', 'scan_coverage', ['site_id', 'profile'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_scan_coverage_site_profile', table_name='scan_coverage')
    op.drop_index('ix_scan_coverage_site_id', table_name='scan_coverage')
    op.drop_index('ix_scan_coverage_scan_id', table_name='scan_coverage')
    op.drop_index('ix_scan_coverage_id', table_name='scan_coverage')
    op.drop_table('scan_coverage')
    stop_reason.drop(op.get_bind(), checkfirst=True)
    scan_profile.drop(op.get_bind(), checkfirst=True)
