from flask import Blueprint, jsonify, request, current_app
from hottake.services.games import orchestrator
from hottake.services.games.errors import GameActionError, ValidationRejected


games = Blueprint('games', __name__)


@games.errorhandler(GameActionError)
def handle_game_action_error(exc: GameActionError):
    current_app.logger.info(f"[rejected] {request.method} {request.path} kind={exc.kind} reason={exc.reason}")
    return jsonify(exc.to_dict()), exc.status_code


def _optional_int(value, label):
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationRejected(f'Invalid {label}')


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    turn_mode = data.get('turn_mode')
    if name is None:
        # Host-less room; the first player to join becomes host
        game = orchestrator.create_room(turn_mode)
        return jsonify({
            'message': 'New game created!',
            'game_code': game.game_code,
            'game': game.to_dict(),
            'player': None,
        }), 201

    game, host = orchestrator.create_game(name, turn_mode)
    return jsonify({
        'message': 'New game created!',
        'game_code': game.game_code,
        'game': game.to_dict(),
        'player': host.to_dict(),
    }), 201


@games.route('/join', methods=['POST'])
def join_game():
    data = request.get_json(silent=True) or {}
    game, player = orchestrator.join_game(data.get('game_code'), data.get('name'))
    payload = player.to_dict()
    payload['game_code'] = game.game_code
    return jsonify(payload), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    viewer_id = _optional_int(request.args.get('player_id'), 'player id')
    game = orchestrator.get_game(game_code)
    return jsonify(orchestrator.state_view(game, viewer_id=viewer_id))


@games.route('/<string:game_code>/statements', methods=['POST'])
def submit_statement(game_code):
    data = request.get_json(silent=True) or {}
    game = orchestrator.get_game(game_code)
    statement = orchestrator.submit_statement(game, data.get('player_id'), data.get('text'))
    return jsonify(statement.to_dict()), 201


@games.route('/<string:game_code>/votes', methods=['POST'])
def submit_vote(game_code):
    data = request.get_json(silent=True) or {}
    game = orchestrator.get_game(game_code)
    vote, _ = orchestrator.submit_vote(
        game,
        data.get('player_id'),
        data.get('agree'),
        data.get('guessed_author_id'),
        statement_id=data.get('statement_id'),
    )
    return jsonify({'vote': vote.to_dict(), 'game': game.to_dict()}), 201


@games.route('/<string:game_code>/advance', methods=['POST'])
def advance_phase(game_code):
    data = request.get_json(silent=True) or {}
    game = orchestrator.get_game(game_code)
    game = orchestrator.advance_phase(game, data.get('player_id'), from_phase=data.get('from_phase'))
    return jsonify(game.to_dict())


@games.route('/<string:game_code>/reset', methods=['POST'])
def reset_game(game_code):
    data = request.get_json(silent=True) or {}
    game = orchestrator.get_game(game_code)
    orchestrator.reset_game(game, data.get('player_id'))
    return jsonify({'ok': True})
