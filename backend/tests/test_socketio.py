from hottake.services.games.snapshot import GameSnapshot


def _events(sio_client, name):
    return [pkt for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_ping(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')
    sio_client.get_received('/ws')

    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    pongs = _events(sio_client, 'pong')
    assert pongs and pongs[0]['args'][0] == {'n': 1}


def test_join_unknown_game_reports_error(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_game', {'game_code': 'NOPE'}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['args'][0]['kind'] == 'not_found'


def test_join_receives_snapshot_and_changes(sio_client, client, make_game):
    code, (host, guest) = make_game('H', 'G')
    sio_client.get_received('/ws')

    sio_client.emit('join_game', {'game_code': code.lower()}, namespace='/ws')
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'joined' in names
    payload = next(pkt['args'][0] for pkt in received if pkt['name'] == 'snapshot')

    snapshot = GameSnapshot()
    snapshot.load(payload)
    assert snapshot.phase == 'lobby'
    assert {p.name for p in snapshot.players.values()} == {'H', 'G'}

    client.post(f'/api/games/{code}/advance', json={'player_id': host['id']})
    client.post(f'/api/games/{code}/statements', json={'player_id': host['id'], 'text': 'X'})
    for pkt in _events(sio_client, 'change'):
        snapshot.apply(pkt['args'][0])

    assert snapshot.phase == 'statements'
    assert [s.text for s in snapshot.statements.values()] == ['X']
    view = snapshot.view(viewer_id=guest['id'])
    assert view['my_statement'] is None
    assert view['all_statements_submitted'] is False


def test_leaving_finished_game_is_local(sio_client, client, make_game):
    code, (host, guest) = make_game('H', 'G')
    client.post(f'/api/games/{code}/advance', json={'player_id': host['id']})
    client.post(f'/api/games/{code}/statements', json={'player_id': host['id'], 'text': 'X'})
    client.post(f'/api/games/{code}/statements', json={'player_id': guest['id'], 'text': 'Y'})
    client.post(f'/api/games/{code}/advance', json={'player_id': host['id']})

    sio_client.emit('join_game', {'game_code': code}, namespace='/ws')
    received = sio_client.get_received('/ws')
    snapshot = GameSnapshot()
    snapshot.load(next(pkt['args'][0] for pkt in received if pkt['name'] == 'snapshot'))
    assert snapshot.phase == 'voting'

    for _ in range(2):
        client.post(f'/api/games/{code}/votes', json={'player_id': host['id'], 'agree': True, 'guessed_author_id': guest['id']})
        client.post(f'/api/games/{code}/votes', json={'player_id': guest['id'], 'agree': False, 'guessed_author_id': host['id']})
    assert client.post(f'/api/games/{code}/reset', json={'player_id': guest['id']}).status_code == 200

    seen_phases = []
    changes = _events(sio_client, 'change')
    for pkt in changes:
        snapshot.apply(pkt['args'][0])
        if snapshot.phase is not None and (not seen_phases or seen_phases[-1] != snapshot.phase):
            seen_phases.append(snapshot.phase)
    assert seen_phases == ['voting', 'results']
    # The guest leaving does not reach anyone else
    assert not any(pkt['args'][0]['type'] == 'delete' for pkt in changes)
    assert snapshot.view(viewer_id=host['id'])['phase'] == 'results'

    # The guest's own client drops its copy
    snapshot.clear()
    assert snapshot.game is None
    assert snapshot.view() is None


def test_join_during_store_outage_reports_transient(sio_client, make_game, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from hottake.services.games import orchestrator

    code, _ = make_game('H', 'G')
    sio_client.get_received('/ws')

    def _store_down(game):
        raise OperationalError('SELECT', {}, Exception('connection lost'))

    monkeypatch.setattr(orchestrator, 'load_entities', _store_down)
    sio_client.emit('join_game', {'game_code': code}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert not any(pkt['name'] == 'snapshot' for pkt in received)
    errors = [pkt['args'][0] for pkt in received if pkt['name'] == 'error']
    assert errors and errors[0]['kind'] == 'transient'
