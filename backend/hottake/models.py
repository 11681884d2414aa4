from hottake import db
from hottake.services.games.errors import ValidationRejected
import string
import random
import time

PHASE_LOBBY = 'lobby'
PHASE_STATEMENTS = 'statements'
PHASE_VOTING = 'voting'
PHASE_RESULTS = 'results'

TURN_MODE_INDEPENDENT = 'independent'
TURN_MODE_SHARED_DEVICE = 'shared_device'
TURN_MODES = (TURN_MODE_INDEPENDENT, TURN_MODE_SHARED_DEVICE)


def _as_text(raw, label):
    if raw is None:
        return ''
    if not isinstance(raw, str):
        raise ValidationRejected(f'{label} must be text')
    return raw


def normalize_name(raw, limit=24):
    """Trim and clamp a display name. Empty names are rejected, never stored."""
    name = _as_text(raw, 'Name').strip()[:limit].strip()
    if not name:
        raise ValidationRejected('Name is required')
    return name


def normalize_statement_text(raw, limit=220):
    text = _as_text(raw, 'Statement text').strip()[:limit].strip()
    if not text:
        raise ValidationRejected('Statement text is required')
    return text


def normalize_game_code(raw):
    code = _as_text(raw, 'Game code').strip().upper()
    if not code:
        raise ValidationRejected('Game code is required')
    return code


def generate_game_code(length=6):
    """Generate a unique, short game code."""
    alphabet = string.ascii_uppercase + string.digits
    while True:
        code = ''.join(random.choices(alphabet, k=length))
        if not Game.query.filter_by(game_code=code).first():
            return code


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(6), unique=True, index=True, nullable=False)
    phase = db.Column(db.String(16), nullable=False, default=PHASE_LOBBY)  # lobby, statements, voting, results
    turn_mode = db.Column(db.String(16), nullable=False, default=TURN_MODE_INDEPENDENT)
    current_statement_index = db.Column(db.Integer, nullable=False, default=0)
    current_voter_index = db.Column(db.Integer, nullable=False, default=0)  # shared_device mode only
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def __init__(self, code_length=6, **kwargs):
        super(Game, self).__init__(**kwargs)
        if not self.game_code:
            self.game_code = generate_game_code(code_length)
        if self.phase is None:
            self.phase = PHASE_LOBBY
        if self.turn_mode is None:
            self.turn_mode = TURN_MODE_INDEPENDENT
        if self.current_statement_index is None:
            self.current_statement_index = 0
        if self.current_voter_index is None:
            self.current_voter_index = 0

    def to_dict(self):
        return {
            'id': self.id,
            'game_code': self.game_code,
            'phase': self.phase,
            'turn_mode': self.turn_mode,
            'current_statement_index': self.current_statement_index,
            'current_voter_index': self.current_voter_index,
        }

    def __repr__(self):
        return f'<Game {self.game_code} phase={self.phase}>'


class Player(db.Model):
    __tablename__ = 'player'
    __table_args__ = (db.UniqueConstraint('game_id', 'name_key', name='uq_player_game_name'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    name_key = db.Column(db.String(64), nullable=False)  # lower-cased name, unique per game
    is_host = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def __init__(self, **kwargs):
        super(Player, self).__init__(**kwargs)
        if self.name and not self.name_key:
            self.name_key = self.name.lower()

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'name': self.name,
            'is_host': bool(self.is_host),
        }


class Statement(db.Model):
    __tablename__ = 'statement'
    __table_args__ = (db.UniqueConstraint('game_id', 'author_id', name='uq_statement_game_author'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    author_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    text = db.Column(db.Text, nullable=False)
    order_index = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'author_id': self.author_id,
            'text': self.text,
            'order_index': self.order_index,
        }


class Vote(db.Model):
    __tablename__ = 'vote'
    __table_args__ = (db.UniqueConstraint('statement_id', 'voter_id', name='uq_vote_statement_voter'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    statement_id = db.Column(db.Integer, db.ForeignKey('statement.id'), nullable=False)
    voter_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    agree = db.Column(db.Boolean, nullable=False)
    guessed_author_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'statement_id': self.statement_id,
            'voter_id': self.voter_id,
            'agree': bool(self.agree),
            'guessed_author_id': self.guessed_author_id,
        }
