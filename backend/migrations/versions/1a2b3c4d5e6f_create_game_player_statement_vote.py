"""create game, player, statement and vote tables

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a2b3c4d5e6f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_code', sa.String(length=6), nullable=False),
        sa.Column('phase', sa.String(length=16), nullable=False),
        sa.Column('turn_mode', sa.String(length=16), nullable=False),
        sa.Column('current_statement_index', sa.Integer(), nullable=False),
        sa.Column('current_voter_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_game_game_code'), 'game', ['game_code'], unique=True)

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('name_key', sa.String(length=64), nullable=False),
        sa.Column('is_host', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'name_key', name='uq_player_game_name'),
    )
    op.create_index(op.f('ix_player_game_id'), 'player', ['game_id'], unique=False)

    op.create_table(
        'statement',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['player.id']),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'author_id', name='uq_statement_game_author'),
    )
    op.create_index(op.f('ix_statement_game_id'), 'statement', ['game_id'], unique=False)

    op.create_table(
        'vote',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('statement_id', sa.Integer(), nullable=False),
        sa.Column('voter_id', sa.Integer(), nullable=False),
        sa.Column('agree', sa.Boolean(), nullable=False),
        sa.Column('guessed_author_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['guessed_author_id'], ['player.id']),
        sa.ForeignKeyConstraint(['statement_id'], ['statement.id']),
        sa.ForeignKeyConstraint(['voter_id'], ['player.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('statement_id', 'voter_id', name='uq_vote_statement_voter'),
    )
    op.create_index(op.f('ix_vote_game_id'), 'vote', ['game_id'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_vote_game_id'), table_name='vote')
    op.drop_table('vote')
    op.drop_index(op.f('ix_statement_game_id'), table_name='statement')
    op.drop_table('statement')
    op.drop_index(op.f('ix_player_game_id'), table_name='player')
    op.drop_table('player')
    op.drop_index(op.f('ix_game_game_code'), table_name='game')
    op.drop_table('game')
