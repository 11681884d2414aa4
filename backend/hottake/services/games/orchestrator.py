"""Game state machine: lobby -> statements -> voting -> results.

Every action re-reads the committed state, checks its guards, applies one
commit and then publishes the changed entities to the game's room. Any
rejection raises a :class:`GameActionError` and leaves the store untouched.
"""
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hottake import db
from hottake.models import (
    PHASE_LOBBY,
    PHASE_RESULTS,
    PHASE_STATEMENTS,
    PHASE_VOTING,
    TURN_MODE_SHARED_DEVICE,
    TURN_MODES,
    Game,
    Player,
    Statement,
    Vote,
    normalize_game_code,
    normalize_name,
    normalize_statement_text,
)
from . import sync, turns
from .errors import (
    ConflictRejected,
    GameActionError,
    GameNotFound,
    PreconditionRejected,
    TransientFailure,
    ValidationRejected,
)
from .views import game_view


@contextmanager
def _unit_of_work(action: str, conflict_reason: str):
    """Commit on success; roll back and translate store failures otherwise."""
    try:
        yield
        db.session.commit()
    except GameActionError:
        db.session.rollback()
        raise
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.info(f"[{action}-conflict] {exc.orig}")
        raise ConflictRejected(conflict_reason) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[{action}-failed] store error: {exc}")
        raise TransientFailure('Could not save right now, please try again') from exc


@contextmanager
def _read(action: str):
    """Translate store failures during a read into a transient rejection."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[{action}-read-failed] store error: {exc}")
        raise TransientFailure('Could not reach the game store, please try again') from exc


def _turn_mode(raw: Optional[str]) -> str:
    mode = raw or current_app.config.get('DEFAULT_TURN_MODE', 'independent')
    if mode not in TURN_MODES:
        raise ValidationRejected(f'Unknown turn mode: {mode}')
    return mode


def _include_author() -> bool:
    return bool(current_app.config.get('ALLOW_SELF_VOTE', True))


def _as_id(value, label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationRejected(f'Invalid {label} id')


def _player_in(game: Game, player_id) -> Player:
    player = None
    if player_id is not None and player_id != '':
        pid = _as_id(player_id, 'player')
        with _read('player'):
            player = Player.query.filter_by(id=pid, game_id=game.id).first()
    if not player:
        raise PreconditionRejected('You are not a player in this game', status_code=403)
    return player


def get_game(game_code: str) -> Game:
    code = normalize_game_code(game_code)
    with _read('lookup'):
        game = Game.query.filter_by(game_code=code).first()
    if not game:
        raise GameNotFound('No game found with this code')
    return game


def load_entities(game: Game) -> Tuple[List[Player], List[Statement], List[Vote]]:
    players = Player.query.filter_by(game_id=game.id).order_by(Player.id).all()
    statements = Statement.query.filter_by(game_id=game.id).order_by(Statement.id).all()
    votes = Vote.query.filter_by(game_id=game.id).order_by(Vote.id).all()
    return players, statements, votes


def state_view(game: Game, viewer_id: Optional[int] = None) -> Dict:
    with _read('state'):
        players, statements, votes = load_entities(game)
    return game_view(game, players, statements, votes, viewer_id=viewer_id, include_author=_include_author())


def snapshot_for(game: Game) -> Dict:
    """Full snapshot payload for a client joining the game's room."""
    with _read('snapshot'):
        players, statements, votes = load_entities(game)
    return sync.snapshot_payload(game, players, statements, votes)


def create_room(turn_mode: Optional[str] = None) -> Game:
    """Create a game with no players yet; whoever joins first becomes host."""
    mode = _turn_mode(turn_mode)
    with _unit_of_work('create', 'Could not allocate a game code, please try again'):
        game = Game(code_length=int(current_app.config.get('GAME_CODE_LENGTH', 6)), turn_mode=mode)
        db.session.add(game)
    current_app.logger.info(f"[create] game={game.game_code} mode={game.turn_mode}")
    return game


def create_game(host_name: str, turn_mode: Optional[str] = None) -> Tuple[Game, Player]:
    name = normalize_name(host_name, int(current_app.config.get('MAX_NAME_LENGTH', 24)))
    mode = _turn_mode(turn_mode)
    with _unit_of_work('create', 'Could not allocate a game code, please try again'):
        game = Game(code_length=int(current_app.config.get('GAME_CODE_LENGTH', 6)), turn_mode=mode)
        db.session.add(game)
        db.session.flush()
        host = Player(game_id=game.id, name=name, is_host=True)
        db.session.add(host)
    current_app.logger.info(f"[create] game={game.game_code} mode={game.turn_mode} host={host.id}")
    return game, host


def join_game(game_code: str, name: str) -> Tuple[Game, Player]:
    name = normalize_name(name, int(current_app.config.get('MAX_NAME_LENGTH', 24)))
    game = get_game(game_code)
    if game.phase != PHASE_LOBBY:
        raise PreconditionRejected('This game has already started', status_code=403)
    with _read('join'):
        taken = Player.query.filter_by(game_id=game.id, name_key=name.lower()).first()
    if taken:
        raise ConflictRejected('That name is already taken in this game')

    with _unit_of_work('join', 'That name is already taken in this game'):
        is_host = Player.query.filter_by(game_id=game.id).count() == 0
        player = Player(game_id=game.id, name=name, is_host=is_host)
        db.session.add(player)
    current_app.logger.info(f"[join] game={game.game_code} player={player.id} host={player.is_host}")
    sync.publish(game.game_code, 'player', sync.INSERT, player.to_dict())
    return game, player


def submit_statement(game: Game, player_id, text: str) -> Statement:
    text = normalize_statement_text(text, int(current_app.config.get('MAX_STATEMENT_LENGTH', 220)))
    if game.phase != PHASE_STATEMENTS:
        raise PreconditionRejected('Statements can only be submitted while they are being collected')
    player = _player_in(game, player_id)
    with _read('statement'):
        already = Statement.query.filter_by(game_id=game.id, author_id=player.id).first()
    if already:
        raise ConflictRejected('You have already submitted a statement')

    with _unit_of_work('statement', 'You have already submitted a statement'):
        order_index = Statement.query.filter_by(game_id=game.id).count()
        statement = Statement(game_id=game.id, author_id=player.id, text=text, order_index=order_index)
        db.session.add(statement)
    current_app.logger.info(
        f"[statement] game={game.game_code} author={player.id} order_index={statement.order_index}")
    sync.publish(game.game_code, 'statement', sync.INSERT, statement.to_dict())
    return statement


def submit_vote(game: Game, player_id, agree, guessed_author_id, statement_id=None) -> Tuple[Vote, Dict]:
    """Record one vote on the current statement and apply the turn it triggers.

    Returns the vote and the Game field updates that were committed with it.
    """
    if not isinstance(agree, bool):
        raise ValidationRejected('Choose whether you agree or not')
    if guessed_author_id is None or guessed_author_id == '':
        raise ValidationRejected('Pick who you think wrote the statement')
    guessed_author_id = _as_id(guessed_author_id, 'guessed author')
    if statement_id is not None:
        statement_id = _as_id(statement_id, 'statement')
    if game.phase != PHASE_VOTING:
        raise PreconditionRejected('Voting is not open')

    voter = _player_in(game, player_id)
    with _read('vote'):
        players, statements, votes = load_entities(game)
    statement = turns.current_statement(game, statements)
    if statement is None:
        raise PreconditionRejected('No statement is open for voting')
    if statement_id is not None and statement_id != statement.id:
        raise PreconditionRejected('That statement is already closed')
    guessed = next((p for p in players if p.id == guessed_author_id), None)
    if guessed is None:
        raise ValidationRejected('The guessed author is not in this game')
    if guessed.id == voter.id:
        raise ValidationRejected('You cannot guess yourself')

    include_author = _include_author()
    if not include_author and statement.author_id == voter.id:
        raise PreconditionRejected('You cannot vote on your own statement')
    if game.turn_mode == TURN_MODE_SHARED_DEVICE:
        expected_voter = turns.current_voter(game, players)
        if expected_voter is None or expected_voter.id != voter.id:
            raise PreconditionRejected('It is not your turn to vote', status_code=403)
    if any(v.voter_id == voter.id for v in turns.votes_for(statement, votes)):
        raise ConflictRejected('You have already voted on this statement')

    with _unit_of_work('vote', 'You have already voted on this statement'):
        vote = Vote(game_id=game.id, statement_id=statement.id, voter_id=voter.id,
                    agree=agree, guessed_author_id=guessed.id)
        db.session.add(vote)
        db.session.flush()
        count = Vote.query.filter_by(statement_id=statement.id).count()
        expected = turns.expected_votes_for(statement, players, include_author)
        updates = turns.advance_after_vote(game, statements, count, expected, players, include_author)
        for field, value in updates.items():
            setattr(game, field, value)
    current_app.logger.info(
        f"[vote] game={game.game_code} statement={statement.id} voter={voter.id} "
        f"votes={count}/{expected} updates={updates}")

    sync.publish(game.game_code, 'vote', sync.INSERT, vote.to_dict())
    if updates:
        sync.publish(game.game_code, 'game', sync.UPDATE, game.to_dict())
    else:
        # Concurrent voters may each have counted before the other committed
        updates = settle_voting(game)
    return vote, updates


def settle_voting(game: Game) -> Dict:
    """Advance past the current statement if its votes are already complete."""
    with _read('settle'):
        db.session.refresh(game)
        if game.phase != PHASE_VOTING:
            return {}
        players, statements, votes = load_entities(game)
    statement = turns.current_statement(game, statements)
    if statement is None:
        return {}
    include_author = _include_author()
    count = len(turns.votes_for(statement, votes))
    expected = turns.expected_votes_for(statement, players, include_author)
    if count < expected:
        return {}
    with _unit_of_work('settle', 'The game moved on, please refresh'):
        updates = turns.advance_after_vote(game, statements, count, expected, players, include_author)
        for field, value in updates.items():
            setattr(game, field, value)
    current_app.logger.info(f"[settle] game={game.game_code} statement={statement.id} updates={updates}")
    sync.publish(game.game_code, 'game', sync.UPDATE, game.to_dict())
    return updates


def advance_phase(game: Game, player_id, from_phase: Optional[str] = None) -> Game:
    """Host-driven transitions: lobby -> statements -> voting.

    ``from_phase`` is the phase the caller was looking at; if the game has
    already moved past it the call is a no-op.
    """
    player = _player_in(game, player_id)
    if not player.is_host:
        raise PreconditionRejected('Only the host can advance the game', status_code=403)

    if from_phase is not None:
        try:
            turns.phase_rank(from_phase)
        except ValueError:
            raise ValidationRejected(f'Unknown phase: {from_phase}')
        if game.phase != from_phase:
            if turns.is_forward(from_phase, game.phase):
                current_app.logger.info(f"[advance-noop] game={game.game_code} already in {game.phase}")
                return game
            raise PreconditionRejected('Your view of the game is out of date, please refresh')

    with _read('advance'):
        players, statements, _ = load_entities(game)
    prev_phase = game.phase
    if game.phase == PHASE_LOBBY:
        min_players = int(current_app.config.get('MIN_PLAYERS', 2))
        if len(players) < min_players:
            raise PreconditionRejected(f'At least {min_players} players are required to start')
        updates = {'phase': PHASE_STATEMENTS}
    elif game.phase == PHASE_STATEMENTS:
        if not turns.all_statements_submitted(players, statements):
            raise PreconditionRejected('Every player must submit a statement first')
        updates = {
            'phase': PHASE_VOTING,
            'current_statement_index': 0,
            'current_voter_index': turns.first_voter_index(game, players, statements, _include_author()),
        }
    elif game.phase == PHASE_VOTING:
        raise PreconditionRejected('Voting advances on its own once everyone has voted')
    else:
        raise PreconditionRejected('The game is already over')

    with _unit_of_work('advance', 'The game moved on, please refresh'):
        for field, value in updates.items():
            setattr(game, field, value)
    current_app.logger.info(f"[advance] game={game.game_code} {prev_phase} -> {game.phase}")
    sync.publish(game.game_code, 'game', sync.UPDATE, game.to_dict())
    return game


def reset_game(game: Game, player_id) -> None:
    """Acknowledge one player leaving a finished game.

    Only the caller's own session is discarded (the client clears its
    snapshot). Stored rows stay for the other players; removing abandoned
    games is left to external cleanup.
    """
    player = _player_in(game, player_id)
    if game.phase != PHASE_RESULTS:
        raise PreconditionRejected('You can only leave once results are shown')
    current_app.logger.info(f"[reset] game={game.game_code} player={player.id} left")
