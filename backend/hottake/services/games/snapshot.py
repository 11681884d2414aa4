"""A participant's local copy of one game, folded from change events.

The feed only guarantees ordering within one entity's stream, so the fold
is insert-or-replace by id and remove by id; every view is re-derived from
the folded sets. Records are parsed into typed dataclasses at this boundary.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from . import turns
from .sync import DELETE, INSERT, UPDATE
from .views import game_view

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameRecord:
    id: int
    game_code: str
    phase: str
    turn_mode: str
    current_statement_index: int = 0
    current_voter_index: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> 'GameRecord':
        return cls(
            id=int(data['id']),
            game_code=str(data['game_code']).upper(),
            phase=str(data['phase']),
            turn_mode=str(data.get('turn_mode') or 'independent'),
            current_statement_index=int(data.get('current_statement_index') or 0),
            current_voter_index=int(data.get('current_voter_index') or 0),
        )


@dataclass(frozen=True)
class PlayerRecord:
    id: int
    game_id: int
    name: str
    is_host: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'PlayerRecord':
        return cls(id=int(data['id']), game_id=int(data['game_id']), name=str(data['name']),
                   is_host=bool(data.get('is_host')))


@dataclass(frozen=True)
class StatementRecord:
    id: int
    game_id: int
    author_id: int
    text: str
    order_index: int

    @classmethod
    def from_dict(cls, data: dict) -> 'StatementRecord':
        return cls(id=int(data['id']), game_id=int(data['game_id']), author_id=int(data['author_id']),
                   text=str(data['text']), order_index=int(data['order_index']))


@dataclass(frozen=True)
class VoteRecord:
    id: int
    game_id: int
    statement_id: int
    voter_id: int
    agree: bool
    guessed_author_id: int

    @classmethod
    def from_dict(cls, data: dict) -> 'VoteRecord':
        return cls(id=int(data['id']), game_id=int(data['game_id']), statement_id=int(data['statement_id']),
                   voter_id=int(data['voter_id']), agree=bool(data['agree']),
                   guessed_author_id=int(data['guessed_author_id']))


RECORD_TYPES = {
    'player': PlayerRecord,
    'statement': StatementRecord,
    'vote': VoteRecord,
}


class GameSnapshot:
    """Local view of one game. ``game`` is None before loading and after the game is deleted."""

    def __init__(self, include_author: bool = True):
        self.include_author = include_author
        self.game: Optional[GameRecord] = None
        self.players: Dict[int, PlayerRecord] = {}
        self.statements: Dict[int, StatementRecord] = {}
        self.votes: Dict[int, VoteRecord] = {}

    def _table(self, name: str) -> Dict[int, object]:
        return {'player': self.players, 'statement': self.statements, 'vote': self.votes}[name]

    def load(self, payload: dict) -> None:
        """Replace the local state with a full ``snapshot`` payload."""
        self.clear()
        self.game = GameRecord.from_dict(payload['game'])
        for name in RECORD_TYPES:
            rows = payload.get(name + 's') or []
            table = self._table(name)
            for row in rows:
                record = RECORD_TYPES[name].from_dict(row)
                table[record.id] = record

    def clear(self) -> None:
        self.game = None
        self.players.clear()
        self.statements.clear()
        self.votes.clear()

    def apply(self, event: dict) -> bool:
        """Fold one change event. Returns True if the local state changed."""
        table = event.get('table')
        kind = event.get('type')
        record = event.get('record') or {}
        if kind not in (INSERT, UPDATE, DELETE):
            raise ValueError(f'Unknown event type: {kind!r}')

        if table == 'game':
            return self._apply_game(kind, record)
        if table not in RECORD_TYPES:
            raise ValueError(f'Unknown table: {table!r}')

        if self.game is not None and record.get('game_id') is not None and int(record['game_id']) != self.game.id:
            logger.debug('ignoring %s event for game %s', table, record.get('game_id'))
            return False
        rows = self._table(table)
        if kind == DELETE:
            return rows.pop(int(record['id']), None) is not None
        parsed = RECORD_TYPES[table].from_dict(record)
        rows[parsed.id] = parsed
        return True

    def _apply_game(self, kind: str, record: dict) -> bool:
        if self.game is not None and int(record['id']) != self.game.id:
            logger.debug('ignoring event for game %s', record.get('id'))
            return False
        if kind == DELETE:
            self.clear()
            return True
        incoming = GameRecord.from_dict(record)
        if self.game is not None and not turns.is_forward(self.game.phase, incoming.phase):
            logger.info('stale game update ignored: %s -> %s', self.game.phase, incoming.phase)
            return False
        self.game = incoming
        return True

    @property
    def phase(self) -> Optional[str]:
        return self.game.phase if self.game is not None else None

    def view(self, viewer_id: Optional[int] = None) -> Optional[dict]:
        if self.game is None:
            return None
        return game_view(self.game, list(self.players.values()), list(self.statements.values()),
                         list(self.votes.values()), viewer_id=viewer_id, include_author=self.include_author)
