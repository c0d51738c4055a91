"""create posts table

Revision ID: 3f9c2a7d1b80
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f9c2a7d1b80'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'posts',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('original_image', sa.LargeBinary(), nullable=False),
        sa.Column('original_mime', sa.String(length=50), nullable=False),
        sa.Column('cutout_image', sa.LargeBinary(), nullable=True),
        sa.Column('processed_image', sa.LargeBinary(), nullable=True),
        sa.Column('processed_mime', sa.String(length=50), nullable=True),
        sa.Column('product_title', sa.String(length=255), nullable=True),
        sa.Column('captions', sa.JSON(), nullable=False),
        sa.Column('hashtags', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_posts_status', 'posts', ['status'])
    op.create_index('ix_posts_created_at', 'posts', ['created_at'])
    op.create_index('ix_posts_status_created_at', 'posts', ['status', 'created_at'])


def downgrade():
    op.drop_index('ix_posts_status_created_at', table_name='posts')
    op.drop_index('ix_posts_created_at', table_name='posts')
    op.drop_index('ix_posts_status', table_name='posts')
    op.drop_table('posts')
