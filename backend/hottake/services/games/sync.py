"""Push entity changes to everyone in a game's Socket.IO room.

Events are per entity: ``{'table', 'type', 'record'}`` with type one of
``insert``, ``update``, ``delete``. Clients fold them with
:class:`hottake.services.games.snapshot.GameSnapshot`.
"""
from flask_socketio import emit

from hottake import socketio

NAMESPACE = '/ws'
INSERT = 'insert'
UPDATE = 'update'
DELETE = 'delete'
TABLES = ('game', 'player', 'statement', 'vote')


def room_for(game_code: str) -> str:
    return f"game:{game_code.upper()}"


def change_event(table: str, event_type: str, record: dict) -> dict:
    return {'table': table, 'type': event_type, 'record': record}


def publish(game_code: str, table: str, event_type: str, record: dict) -> None:
    socketio.emit('change', change_event(table, event_type, record), to=room_for(game_code), namespace=NAMESPACE)


def snapshot_payload(game, players, statements, votes) -> dict:
    return {
        'game': game.to_dict(),
        'players': [p.to_dict() for p in players],
        'statements': [s.to_dict() for s in statements],
        'votes': [v.to_dict() for v in votes],
    }


def publish_snapshot(payload: dict) -> None:
    """Send the full entity set to the socket handling the current event."""
    emit('snapshot', payload)
