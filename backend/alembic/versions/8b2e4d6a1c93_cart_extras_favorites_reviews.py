"""Cart line extras, favorites and reviews

Revision ID: 8b2e4d6a1c93
Revises: 3f1c9a2b7d10
Create Date: 2026-10-19 16:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '8b2e4d6a1c93'
down_revision: Union[str, Sequence[str], None] = '3f1c9a2b7d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'cart_item_ingredients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('cart_item_id', sa.Uuid(), sa.ForeignKey('cart_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ingredient_id', sa.Uuid(), nullable=False),
        sa.Column('ingredient_name', sa.String(), nullable=False),
        sa.Column('ingredient_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_free', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_cart_item_ingredients_cart_item_id', 'cart_item_ingredients', ['cart_item_id'])

    op.create_table(
        'favorite_plats',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('plat_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'plat_id', name='uq_favorite_plat_user_plat'),
    )
    op.create_index('ix_favorite_plats_user_id', 'favorite_plats', ['user_id'])
    op.create_index('ix_favorite_plats_plat_id', 'favorite_plats', ['plat_id'])
    op.create_index('ix_favorite_plats_created_at', 'favorite_plats', ['created_at'])

    op.create_table(
        'favorite_chefs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('chef_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'chef_id', name='uq_favorite_chef_user_chef'),
    )
    op.create_index('ix_favorite_chefs_user_id', 'favorite_chefs', ['user_id'])
    op.create_index('ix_favorite_chefs_chef_id', 'favorite_chefs', ['chef_id'])
    op.create_index('ix_favorite_chefs_created_at', 'favorite_chefs', ['created_at'])

    op.create_table(
        'plat_reviews',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('plat_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('review_text', sa.String(length=1000), nullable=False),
        sa.Column('rate', sa.Integer(), sa.CheckConstraint('rate >= 1 AND rate <= 5'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('plat_id', 'user_id', name='uq_plat_review_plat_user'),
    )
    op.create_index('ix_plat_reviews_plat_id', 'plat_reviews', ['plat_id'])
    op.create_index('ix_plat_reviews_user_id', 'plat_reviews', ['user_id'])
    op.create_index('ix_plat_reviews_created_at', 'plat_reviews', ['created_at'])

    op.create_table(
        'chef_reviews',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('chef_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('review_text', sa.String(length=1000), nullable=False),
        sa.Column('rate', sa.Integer(), sa.CheckConstraint('rate >= 1 AND rate <= 5'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('chef_id', 'user_id', name='uq_chef_review_chef_user'),
    )
    op.create_index('ix_chef_reviews_chef_id', 'chef_reviews', ['chef_id'])
    op.create_index('ix_chef_reviews_user_id', 'chef_reviews', ['user_id'])
    op.create_index('ix_chef_reviews_created_at', 'chef_reviews', ['created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('chef_reviews')
    op.drop_table('plat_reviews')
    op.drop_table('favorite_chefs')
    op.drop_table('favorite_plats')
    op.drop_table('cart_item_ingredients')
