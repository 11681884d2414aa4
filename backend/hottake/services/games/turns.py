"""Turn engine: whose turn it is and what a vote does to the game.

Everything here is a pure function of the entity records passed in. The
records can be ORM rows or snapshot records; only attribute names matter
(``phase``, ``current_statement_index``, ``order_index``, ``author_id``...).
"""
from typing import Dict, List, Optional, Sequence

from hottake.models import (
    PHASE_LOBBY,
    PHASE_RESULTS,
    PHASE_STATEMENTS,
    PHASE_VOTING,
    TURN_MODE_SHARED_DEVICE,
)

PHASES = (PHASE_LOBBY, PHASE_STATEMENTS, PHASE_VOTING, PHASE_RESULTS)


def phase_rank(phase: str) -> int:
    try:
        return PHASES.index(phase)
    except ValueError:
        raise ValueError(f'Unknown phase: {phase!r}')


def next_phase(phase: str) -> Optional[str]:
    rank = phase_rank(phase)
    return PHASES[rank + 1] if rank + 1 < len(PHASES) else None


def is_forward(current: str, candidate: str) -> bool:
    """True when moving from ``current`` to ``candidate`` does not go backwards."""
    return phase_rank(candidate) >= phase_rank(current)


def ordered_statements(statements: Sequence) -> List:
    # id breaks ties between statements that raced for the same order index
    return sorted(statements, key=lambda s: (s.order_index, s.id))


def ordered_players(players: Sequence) -> List:
    """Host first, everyone else in join order."""
    return sorted(players, key=lambda p: (not p.is_host, p.id))


def current_statement(game, statements: Sequence):
    ordered = ordered_statements(statements)
    idx = game.current_statement_index or 0
    if 0 <= idx < len(ordered):
        return ordered[idx]
    return None


def current_voter(game, players: Sequence):
    ordered = ordered_players(players)
    idx = game.current_voter_index or 0
    if 0 <= idx < len(ordered):
        return ordered[idx]
    return None


def all_statements_submitted(players: Sequence, statements: Sequence) -> bool:
    return len(players) > 0 and len(statements) == len(players)


def expected_votes_for(statement, players: Sequence, include_author: bool = True) -> int:
    if include_author or statement is None:
        return len(players)
    return len([p for p in players if p.id != statement.author_id])


def votes_for(statement, votes: Sequence) -> List:
    if statement is None:
        return []
    return [v for v in votes if v.statement_id == statement.id]


def has_submitted(player, statements: Sequence) -> bool:
    return any(s.author_id == player.id for s in statements)


def has_voted(player, statement, votes: Sequence) -> bool:
    return any(v.voter_id == player.id for v in votes_for(statement, votes))


def _first_eligible_voter(ordered: List, start: int, statement, include_author: bool) -> int:
    idx = start
    while idx < len(ordered):
        if include_author or statement is None or ordered[idx].id != statement.author_id:
            return idx
        idx += 1
    return idx


def advance_after_vote(game, statements: Sequence, new_vote_count: int, expected_votes: int,
                       players: Optional[Sequence] = None, include_author: bool = True) -> Dict:
    """Return the Game field updates caused by a vote on the current statement.

    An empty dict means nothing moves. ``players`` is only needed in
    shared-device mode, where the voter pointer walks the host-first order.
    """
    shared = game.turn_mode == TURN_MODE_SHARED_DEVICE
    if new_vote_count < expected_votes:
        if not shared or players is None:
            return {}
        ordered = ordered_players(players)
        statement = current_statement(game, statements)
        nxt = _first_eligible_voter(ordered, (game.current_voter_index or 0) + 1, statement, include_author)
        return {'current_voter_index': nxt}

    next_index = (game.current_statement_index or 0) + 1
    if next_index >= len(statements):
        return {'phase': PHASE_RESULTS}
    updates = {'current_statement_index': next_index, 'current_voter_index': 0}
    if shared and players is not None:
        next_statement = ordered_statements(statements)[next_index]
        updates['current_voter_index'] = _first_eligible_voter(
            ordered_players(players), 0, next_statement, include_author)
    return updates


def first_voter_index(game, players: Sequence, statements: Sequence, include_author: bool = True) -> int:
    """Voter pointer for the first statement when voting opens."""
    if game.turn_mode != TURN_MODE_SHARED_DEVICE:
        return 0
    first = ordered_statements(statements)[0] if statements else None
    return _first_eligible_voter(ordered_players(players), 0, first, include_author)


def progress(statements: Sequence, players: Sequence, votes: Sequence) -> Dict[str, int]:
    return {
        'completed_turns': len(votes),
        'total_turns': len(statements) * len(players),
    }
