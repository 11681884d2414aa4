from flask_socketio import join_room, leave_room, emit
from flask import current_app
from hottake.services.games import orchestrator, sync
from hottake.services.games.errors import GameActionError


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_game(data):
    """Subscribe this socket to a game's change feed.

    The socket gets the full entity set right away so it can fold later
    ``change`` events on top of it.
    """
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    try:
        game = orchestrator.get_game(game_code)
    except GameActionError as exc:
        emit('error', {'message': exc.reason, 'kind': exc.kind})
        return
    room = sync.room_for(game.game_code)
    join_room(room)
    emit('joined', {'room': room})
    try:
        payload = orchestrator.snapshot_for(game)
    except GameActionError as exc:
        emit('error', {'message': exc.reason, 'kind': exc.kind})
        return
    sync.publish_snapshot(payload)
    current_app.logger.info(f"[ws-join] game={game.game_code} players={len(payload['players'])}")


def handle_leave_game(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    room = sync.room_for(game_code)
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from hottake import socketio

    socketio.on_event('connect', handle_connect, namespace=sync.NAMESPACE)
    socketio.on_event('join_game', handle_join_game, namespace=sync.NAMESPACE)
    socketio.on_event('leave_game', handle_leave_game, namespace=sync.NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=sync.NAMESPACE)

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_game', handle_join_game, namespace='/')
        socketio.on_event('leave_game', handle_leave_game, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
