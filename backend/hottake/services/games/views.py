"""Read-only views derived from a game's entities.

Both the HTTP state endpoint and the client-side snapshot render the same
dict, so a participant sees the same thing whichever way the data arrived.
"""
from typing import Dict, Optional, Sequence

from hottake.models import PHASE_RESULTS, PHASE_VOTING, TURN_MODE_SHARED_DEVICE
from . import turns
from .scoring import agreement_tally, guess_accuracy, leaderboard


def _player_row(player, statements, statement, votes) -> Dict:
    return {
        'id': player.id,
        'name': player.name,
        'is_host': bool(player.is_host),
        'has_submitted': turns.has_submitted(player, statements),
        'has_voted_current': turns.has_voted(player, statement, votes) if statement is not None else False,
    }


def game_view(game, players: Sequence, statements: Sequence, votes: Sequence,
              viewer_id: Optional[int] = None, include_author: bool = True) -> Dict:
    ordered_players = turns.ordered_players(players)
    ordered_statements = turns.ordered_statements(statements)
    in_results = game.phase == PHASE_RESULTS
    statement = turns.current_statement(game, statements) if game.phase == PHASE_VOTING else None
    voter = turns.current_voter(game, players) if game.turn_mode == TURN_MODE_SHARED_DEVICE else None

    current = None
    if statement is not None:
        current = {
            'id': statement.id,
            'text': statement.text,
            'index': game.current_statement_index,
            'total': len(ordered_statements),
        }

    view = {
        'game': {
            'id': game.id,
            'game_code': game.game_code,
            'phase': game.phase,
            'turn_mode': game.turn_mode,
            'current_statement_index': game.current_statement_index,
            'current_voter_index': game.current_voter_index,
        },
        'phase': game.phase,
        'turn_mode': game.turn_mode,
        'players': [_player_row(p, statements, statement, votes) for p in ordered_players],
        'all_statements_submitted': turns.all_statements_submitted(players, statements),
        'current_statement': current,
        'current_voter': {'id': voter.id, 'name': voter.name} if voter is not None else None,
        'votes_for_current': len(turns.votes_for(statement, votes)),
        'expected_votes': turns.expected_votes_for(statement, players, include_author) if statement is not None else 0,
        'progress': turns.progress(statements, players, votes),
        'scores': leaderboard(players, guess_accuracy(players, statements, votes)),
    }

    if in_results:
        names = {p.id: p.name for p in players}
        tally = agreement_tally(statements, votes)
        view['statements'] = [{
            'id': s.id,
            'text': s.text,
            'order_index': s.order_index,
            'author_id': s.author_id,
            'author_name': names.get(s.author_id),
            'agree': tally[s.id]['agree'],
            'disagree': tally[s.id]['disagree'],
        } for s in ordered_statements]

    if viewer_id is not None:
        me = next((p for p in players if p.id == viewer_id), None)
        mine = next((s for s in statements if s.author_id == viewer_id), None)
        my_vote = None
        if statement is not None:
            my_vote = next((v for v in turns.votes_for(statement, votes) if v.voter_id == viewer_id), None)
        can_vote = me is not None and statement is not None and my_vote is None
        if can_vote and not include_author and statement.author_id == viewer_id:
            can_vote = False
        if can_vote and game.turn_mode == TURN_MODE_SHARED_DEVICE:
            can_vote = voter is not None and voter.id == viewer_id
        view.update({
            'me': {'id': me.id, 'name': me.name, 'is_host': bool(me.is_host)} if me is not None else None,
            'is_host': bool(me.is_host) if me is not None else False,
            'my_statement': {'id': mine.id, 'text': mine.text} if mine is not None else None,
            'my_vote_for_current': {'agree': my_vote.agree, 'guessed_author_id': my_vote.guessed_author_id}
            if my_vote is not None else None,
            'can_vote': can_vote,
            'guess_options': [{'id': p.id, 'name': p.name} for p in ordered_players if p.id != viewer_id],
        })
    return view
