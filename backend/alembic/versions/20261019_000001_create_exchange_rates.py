"""Create currencies and exchange_rates tables

Daily exchange rates, one row per (from_currency, to_currency, rate_date).
Writers upsert on that key, so the unique constraint is required.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create currencies and exchange_rates tables."""
    currencies = op.create_table(
        'currencies',
        sa.Column('code', sa.String(3), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('symbol', sa.String(10), nullable=False),
        sa.Column('decimal_places', sa.SmallInteger(), nullable=False, server_default='2'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True, server_default=sa.func.now()),
        sa.CheckConstraint('decimal_places BETWEEN 0 AND 4', name='ck_currencies_decimal_places'),
    )

    op.create_table(
        'exchange_rates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('from_currency', sa.String(3), nullable=False),
        sa.Column('to_currency', sa.String(3), nullable=False),
        sa.Column('rate', sa.Numeric(precision=20, scale=10), nullable=False),
        sa.Column('rate_date', sa.Date(), nullable=False),
        sa.Column('source', sa.String(50), nullable=False, server_default='yahoo_finance'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('from_currency', 'to_currency', 'rate_date', name='uq_exchange_rates_pair_date'),
        sa.CheckConstraint('rate > 0', name='ck_exchange_rates_rate_positive'),
    )

    # Startup recency check scans by date
    op.create_index('ix_exchange_rates_rate_date', 'exchange_rates', ['rate_date'])

    op.bulk_insert(currencies, [
        {'code': 'USD', 'name': 'US Dollar', 'symbol': '$', 'decimal_places': 2, 'is_active': True},
        {'code': 'EUR', 'name': 'Euro', 'symbol': '€', 'decimal_places': 2, 'is_active': True},
        {'code': 'GBP', 'name': 'British Pound', 'symbol': '£', 'decimal_places': 2, 'is_active': True},
        {'code': 'CAD', 'name': 'Canadian Dollar', 'symbol': 'CA$', 'decimal_places': 2, 'is_active': True},
        {'code': 'CHF', 'name': 'Swiss Franc', 'symbol': 'CHF', 'decimal_places': 2, 'is_active': True},
        {'code': 'JPY', 'name': 'Japanese Yen', 'symbol': '¥', 'decimal_places': 0, 'is_active': True},
    ])


def downgrade() -> None:
    """Drop exchange_rates and currencies tables."""
    op.drop_index('ix_exchange_rates_rate_date', table_name='exchange_rates')
    op.drop_table('exchange_rates')
    op.drop_table('currencies')
