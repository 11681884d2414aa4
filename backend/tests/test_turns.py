import pytest

from hottake.services.games import turns
from hottake.services.games.snapshot import GameRecord, PlayerRecord, StatementRecord


def _game(phase='voting', statement_index=0, voter_index=0, mode='independent'):
    return GameRecord(id=1, game_code='ABCD', phase=phase, turn_mode=mode,
                      current_statement_index=statement_index, current_voter_index=voter_index)


def _players():
    return [
        PlayerRecord(id=12, game_id=1, name='Cara'),
        PlayerRecord(id=10, game_id=1, name='Anna', is_host=True),
        PlayerRecord(id=11, game_id=1, name='Bela'),
    ]


def _statements():
    return [
        StatementRecord(id=22, game_id=1, author_id=12, text='C', order_index=2),
        StatementRecord(id=20, game_id=1, author_id=10, text='A', order_index=0),
        StatementRecord(id=21, game_id=1, author_id=11, text='B', order_index=1),
    ]


def test_phase_order():
    assert turns.PHASES == ('lobby', 'statements', 'voting', 'results')
    assert turns.next_phase('lobby') == 'statements'
    assert turns.next_phase('results') is None
    assert turns.is_forward('statements', 'voting')
    assert not turns.is_forward('voting', 'lobby')
    with pytest.raises(ValueError):
        turns.phase_rank('finished')


def test_statements_follow_submission_order():
    assert [s.text for s in turns.ordered_statements(_statements())] == ['A', 'B', 'C']


def test_duplicate_order_index_resolved_by_id():
    raced = [
        StatementRecord(id=31, game_id=1, author_id=11, text='late', order_index=0),
        StatementRecord(id=30, game_id=1, author_id=10, text='early', order_index=0),
    ]
    assert [s.text for s in turns.ordered_statements(raced)] == ['early', 'late']


def test_host_sorts_first_then_join_order():
    assert [p.name for p in turns.ordered_players(_players())] == ['Anna', 'Bela', 'Cara']


def test_current_statement_and_voter():
    game = _game(statement_index=1, voter_index=2)
    assert turns.current_statement(game, _statements()).text == 'B'
    assert turns.current_voter(game, _players()).name == 'Cara'
    assert turns.current_statement(_game(statement_index=3), _statements()) is None
    assert turns.current_voter(_game(voter_index=5), _players()) is None


def test_all_statements_submitted():
    assert turns.all_statements_submitted(_players(), _statements())
    assert not turns.all_statements_submitted(_players(), _statements()[:2])
    assert not turns.all_statements_submitted([], [])


def test_expected_votes():
    statement = _statements()[1]
    assert turns.expected_votes_for(statement, _players()) == 3
    assert turns.expected_votes_for(statement, _players(), include_author=False) == 2


def test_advance_after_vote_waits_for_threshold():
    assert turns.advance_after_vote(_game(), _statements(), 2, 3) == {}


def test_advance_after_vote_moves_to_next_statement():
    updates = turns.advance_after_vote(_game(statement_index=0, voter_index=2), _statements(), 3, 3)
    assert updates == {'current_statement_index': 1, 'current_voter_index': 0}


def test_advance_after_vote_finishes_on_last_statement():
    assert turns.advance_after_vote(_game(statement_index=2), _statements(), 3, 3) == {'phase': 'results'}


def test_shared_device_walks_voter_pointer():
    game = _game(mode='shared_device', voter_index=0)
    assert turns.advance_after_vote(game, _statements(), 1, 3, _players()) == {'current_voter_index': 1}


def test_shared_device_skips_author_when_authors_sit_out():
    # Statement B is Bela's; Bela is second in host-first order
    game = _game(mode='shared_device', statement_index=1, voter_index=0)
    updates = turns.advance_after_vote(game, _statements(), 1, 2, _players(), include_author=False)
    assert updates == {'current_voter_index': 2}


def test_first_voter_index():
    statements, players = _statements(), _players()
    assert turns.first_voter_index(_game(mode='independent'), players, statements) == 0
    # Statement A is the host's, so the host sits out
    assert turns.first_voter_index(_game(mode='shared_device'), players, statements, include_author=False) == 1


def test_progress_counts_turns():
    assert turns.progress(_statements(), _players(), []) == {'completed_turns': 0, 'total_turns': 9}
