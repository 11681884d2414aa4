from typing import Dict, List, Sequence


def guess_accuracy(players: Sequence, statements: Sequence, votes: Sequence) -> Dict[int, Dict[str, int]]:
    """Per-player guess accuracy, recomputed from the full vote set.

    A guess is correct when the guessed author wrote the statement voted on.
    Votes on unknown statements, or by unknown voters, are skipped.
    """
    scores = {p.id: {'correct_guesses': 0, 'total_guesses': 0} for p in players}
    authors = {s.id: s.author_id for s in statements}
    for v in votes:
        if v.statement_id not in authors or v.voter_id not in scores:
            continue
        scores[v.voter_id]['total_guesses'] += 1
        if v.guessed_author_id == authors[v.statement_id]:
            scores[v.voter_id]['correct_guesses'] += 1
    return scores


def agreement_tally(statements: Sequence, votes: Sequence) -> Dict[int, Dict[str, int]]:
    tally = {s.id: {'agree': 0, 'disagree': 0} for s in statements}
    for v in votes:
        counts = tally.get(v.statement_id)
        if counts is None:
            continue
        if v.agree:
            counts['agree'] += 1
        else:
            counts['disagree'] += 1
    return tally


def leaderboard(players: Sequence, accuracy: Dict[int, Dict[str, int]]) -> List[Dict]:
    """Players by correct guesses, best first; ties keep join order."""
    joined = sorted(players, key=lambda p: p.id)
    rows = []
    for p in joined:
        score = accuracy.get(p.id, {'correct_guesses': 0, 'total_guesses': 0})
        rows.append({
            'player_id': p.id,
            'name': p.name,
            'correct_guesses': score['correct_guesses'],
            'total_guesses': score['total_guesses'],
        })
    rows.sort(key=lambda r: -r['correct_guesses'])
    # Tied players share a rank; the next rank skips past them (1, 2, 2, 4)
    for position, row in enumerate(rows, start=1):
        if position > 1 and row['correct_guesses'] == rows[position - 2]['correct_guesses']:
            row['rank'] = rows[position - 2]['rank']
        else:
            row['rank'] = position
    return rows
