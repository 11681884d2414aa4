import os
import sys
import pytest

# Ensure the backend root (containing the `hottake` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from hottake import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MIN_PLAYERS = 2
    MAX_NAME_LENGTH = 24
    MAX_STATEMENT_LENGTH = 220
    GAME_CODE_LENGTH = 6
    DEFAULT_TURN_MODE = 'independent'
    ALLOW_SELF_VOTE = True


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import hottake.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def make_game(client):
    """Create a game hosted by the first name and join the rest; returns (code, players)."""
    def _make(*names, turn_mode=None):
        body = {'name': names[0]}
        if turn_mode:
            body['turn_mode'] = turn_mode
        created = client.post('/api/games/create', json=body).get_json()
        code = created['game_code']
        players = [created['player']]
        for name in names[1:]:
            res = client.post('/api/games/join', json={'game_code': code, 'name': name})
            assert res.status_code == 201
            players.append(res.get_json())
        return code, players
    return _make
