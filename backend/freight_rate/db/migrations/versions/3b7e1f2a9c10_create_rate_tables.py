"""create freight rate reference and history tables

Revision ID: 3b7e1f2a9c10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3b7e1f2a9c10'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    op.create_table(
        'freight_classes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('freight_class', sa.String(length=16), nullable=False),
        sa.Column('min_density', sa.Numeric(10, 2), nullable=False),
        sa.Column('max_density', sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_freight_classes_density_range', 'freight_classes', ['min_density', 'max_density'])

    op.create_table(
        'distance_classes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('min_distance_km', sa.Numeric(10, 2), nullable=False),
        sa.Column('max_distance_km', sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'warehouses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('zipcode', sa.String(length=16), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'price_table_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('freight_class_id', sa.Integer(), sa.ForeignKey('freight_classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('distance_class_id', sa.Integer(), sa.ForeignKey('distance_classes.id', ondelete='CASCADE'), nullable=True),
        sa.Column('distance_min_km', sa.Numeric(10, 2), nullable=True),
        sa.Column('distance_max_km', sa.Numeric(10, 2), nullable=True),
        sa.Column('price_per_100lbs', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_price_table_entries_freight_class_id', 'price_table_entries', ['freight_class_id'])
    op.create_index('ix_price_table_entries_distance_class_id', 'price_table_entries', ['distance_class_id'])

    op.create_table(
        'freight_rate_records',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('origin_postal_code', sa.String(length=16), nullable=True),
        sa.Column('destination_postal_code', sa.String(length=16), nullable=False),
        sa.Column('selected_warehouse_id', sa.String(length=32), nullable=True),
        sa.Column('total_weight_g', sa.Numeric(14, 2), nullable=False),
        sa.Column('total_volume_mm3', sa.Numeric(20, 2), nullable=False),
        sa.Column('density', sa.Numeric(10, 2), nullable=False),
        sa.Column('freight_class', sa.String(length=16), nullable=False),
        sa.Column('distance_km', sa.Numeric(10, 3), nullable=False),
        sa.Column('final_price_cents', sa.Integer(), nullable=False),
        sa.Column('items', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('applicable_rates', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='calculated'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_freight_rate_records_created_at', 'freight_rate_records', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_freight_rate_records_created_at', table_name='freight_rate_records')
    op.drop_table('freight_rate_records')
    op.drop_index('ix_price_table_entries_distance_class_id', table_name='price_table_entries')
    op.drop_index('ix_price_table_entries_freight_class_id', table_name='price_table_entries')
    op.drop_table('price_table_entries')
    op.drop_table('warehouses')
    op.drop_table('distance_classes')
    op.drop_index('ix_freight_classes_density_range', table_name='freight_classes')
    op.drop_table('freight_classes')
