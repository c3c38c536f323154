"""Create catalogue tables

Revision ID: 3b7e91c2d4a0
Revises:
Create Date: 2026-10-19 10:12:44.118203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b7e91c2d4a0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'category',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('image', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('remote_image_url', sa.String(length=500), nullable=False, server_default=''),
        sa.Column('remote_image_id', sa.String(length=255), nullable=False, server_default=''),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("(remote_image_url = '') = (remote_image_id = '')",
                           name='ck_category_remote_image_paired'),
    )
    with op.batch_alter_table('category', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_category_name'), ['name'], unique=True)

    op.create_table(
        'recipe',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('ingredients', sa.JSON(), nullable=False),
        sa.Column('steps', sa.JSON(), nullable=False),
        sa.Column('source_link', sa.String(length=500), nullable=True),
        sa.Column('source_text', sa.String(length=200), nullable=True),
        sa.Column('image', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('remote_image_url', sa.String(length=500), nullable=False, server_default=''),
        sa.Column('remote_image_id', sa.String(length=255), nullable=False, server_default=''),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("(remote_image_url = '') = (remote_image_id = '')",
                           name='ck_recipe_remote_image_paired'),
    )
    with op.batch_alter_table('recipe', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_recipe_name'), ['name'], unique=True)

    op.create_table(
        'recipe_category',
        sa.Column('recipe_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipe.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['category.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('recipe_id', 'category_id'),
    )


def downgrade():
    op.drop_table('recipe_category')
    with op.batch_alter_table('recipe', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_recipe_name'))
    op.drop_table('recipe')
    with op.batch_alter_table('category', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_category_name'))
    op.drop_table('category')
