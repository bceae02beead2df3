"""Create contest tables.

Revision ID: initial_0001
Revises:
Create Date: 2026-10-19

Rounds, player profiles, per-round secret codes, the winner ledger and
hint payments. Rows that are updated concurrently carry a ``version``
column used for optimistic locking.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from codebreaker.migrations.util import get_uuid_type, active_round_predicate


# revision identifiers, used by Alembic.
revision: str = "initial_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    uuid_type = get_uuid_type()

    op.create_table(
        'rounds',
        sa.Column('round_id', uuid_type, nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('winner_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_winners', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('round_id'),
        sa.UniqueConstraint('round_number'),
    )
    op.create_index(
        'uq_rounds_single_active', 'rounds', ['is_active'], unique=True, **active_round_predicate()
    )

    op.create_table(
        'players',
        sa.Column('player_id', uuid_type, nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('current_round_id', uuid_type, nullable=True),
        sa.Column('is_winner_in_current_round', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('hint_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('revealed_hint_digits', sa.JSON(), nullable=False),
        sa.Column('attempt_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_guess_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_hint_request_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('player_id'),
        sa.ForeignKeyConstraint(['current_round_id'], ['rounds.round_id']),
    )
    op.create_index('ix_players_current_round_id', 'players', ['current_round_id'])

    op.create_table(
        'user_codes',
        sa.Column('user_code_id', uuid_type, nullable=False),
        sa.Column('player_id', uuid_type, nullable=False),
        sa.Column('round_id', uuid_type, nullable=False),
        sa.Column('secret_code', sa.String(16), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('hint_purchases', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('revealed_digits', sa.JSON(), nullable=False),
        sa.Column('is_winner', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('user_code_id'),
        sa.ForeignKeyConstraint(['player_id'], ['players.player_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['round_id'], ['rounds.round_id'], ondelete='CASCADE'),
        sa.UniqueConstraint('player_id', 'round_id', name='uq_user_codes_player_round'),
        sa.UniqueConstraint('round_id', 'secret_code', name='uq_user_codes_round_code'),
    )
    op.create_index('ix_user_codes_player_id', 'user_codes', ['player_id'])
    op.create_index('ix_user_codes_round_id', 'user_codes', ['round_id'])

    op.create_table(
        'winners',
        sa.Column('winner_id', uuid_type, nullable=False),
        sa.Column('round_id', uuid_type, nullable=False),
        sa.Column('player_id', uuid_type, nullable=False),
        sa.Column('winner_number', sa.Integer(), nullable=False),
        sa.Column('won_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('secret_code_at_win', sa.String(16), nullable=False),
        sa.PrimaryKeyConstraint('winner_id'),
        sa.ForeignKeyConstraint(['round_id'], ['rounds.round_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['player_id'], ['players.player_id'], ondelete='CASCADE'),
        sa.UniqueConstraint('round_id', 'winner_number', name='uq_winners_round_rank'),
        sa.UniqueConstraint('round_id', 'player_id', name='uq_winners_round_player'),
    )
    op.create_index('ix_winners_round_id', 'winners', ['round_id'])
    op.create_index('ix_winners_player_id', 'winners', ['player_id'])

    op.create_table(
        'payments',
        sa.Column('payment_id', uuid_type, nullable=False),
        sa.Column('player_id', uuid_type, nullable=False),
        sa.Column('round_id', uuid_type, nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(10), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('requested_digit_index', sa.Integer(), nullable=False),
        sa.Column('hint_provided', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('initiated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('payment_id'),
        sa.ForeignKeyConstraint(['player_id'], ['players.player_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['round_id'], ['rounds.round_id'], ondelete='CASCADE'),
    )
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_player_round', 'payments', ['player_id', 'round_id'])


def downgrade() -> None:
    op.drop_index('ix_payments_player_round', table_name='payments')
    op.drop_index('ix_payments_status', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_winners_player_id', table_name='winners')
    op.drop_index('ix_winners_round_id', table_name='winners')
    op.drop_table('winners')
    op.drop_index('ix_user_codes_round_id', table_name='user_codes')
    op.drop_index('ix_user_codes_player_id', table_name='user_codes')
    op.drop_table('user_codes')
    op.drop_index('ix_players_current_round_id', table_name='players')
    op.drop_table('players')
    op.drop_index('uq_rounds_single_active', table_name='rounds')
    op.drop_table('rounds')
