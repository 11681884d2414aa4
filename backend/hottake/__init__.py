from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

# (key, lowest, highest) for limits the schema can hold; None means unbounded
CONFIG_BOUNDS = (
    ('GAME_CODE_LENGTH', 4, 6),
    ('MAX_NAME_LENGTH', 1, 64),
    ('MAX_STATEMENT_LENGTH', 1, None),
    ('MIN_PLAYERS', 1, None),
)


def _clamp_limits(flask_app):
    for key, lowest, highest in CONFIG_BOUNDS:
        if flask_app.config.get(key) is None:
            continue
        value = int(flask_app.config[key])
        clamped = max(lowest, value)
        if highest is not None:
            clamped = min(highest, clamped)
        if clamped != value:
            flask_app.logger.warning(f"[config] {key}={value} out of range, using {clamped}")
        flask_app.config[key] = clamped


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    _clamp_limits(flask_app)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from hottake.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    # Importing here ensures the handlers bind to the initialized socketio instance
    from hottake.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates all game tables."""
        import hottake.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('create-room')
    @click.option('--turn-mode', default=None, help='independent or shared_device')
    def create_room_command(turn_mode):
        """Creates an empty room and prints its code; the first player to join hosts it."""
        from hottake.services.games.errors import GameActionError
        from hottake.services.games.orchestrator import create_room
        with flask_app.app_context():
            try:
                game = create_room(turn_mode)
            except GameActionError as exc:
                raise click.ClickException(exc.reason)
            print(f'Room created: {game.game_code}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(create_room_command)

    return flask_app
