from arcade_scores import create_app, db
from arcade_scores.services.leaderboard import LocalMirrorStore, TransportError
import conftest
from conftest import seed


def submit(client, game, name, score):
    return client.post(f'/api/scores/{game}', json={'playerName': name, 'score': score})


def test_submit_to_empty_board(client):
    res = submit(client, 'flappy-bird', 'ALICE', 100)
    assert res.status_code == 200
    assert res.get_json() == {'qualified': True, 'rank': 1}

    res = client.get('/api/scores/flappy-bird')
    assert res.status_code == 200
    board = res.get_json()
    assert len(board) == 1
    assert board[0]['playerName'] == 'ALICE'
    assert board[0]['score'] == 100
    assert isinstance(board[0]['timestamp'], int)


def test_full_board_flow(client, sql_store):
    seed(sql_store, 'snake', [100, 90, 80, 70, 60, 50, 40, 30, 20, 10])

    assert submit(client, 'snake', 'BOB', 95).get_json() == {'qualified': True, 'rank': 2}
    scores = [e['score'] for e in client.get('/api/scores/snake').get_json()]
    assert scores == [100, 95, 90, 80, 70, 60, 50, 40, 30, 20]

    assert submit(client, 'snake', 'CARA', 5).get_json() == {'qualified': False, 'rank': -1}
    assert submit(client, 'snake', 'DAN', 20).get_json() == {'qualified': False, 'rank': -1}
    assert [e['score'] for e in client.get('/api/scores/snake').get_json()] == scores


def test_lower_is_better_game(client, sql_store):
    seed(sql_store, 'bedtime-berzerk', [30, 45])
    assert submit(client, 'bedtime-berzerk', 'EVE', 20).get_json() == {'qualified': True, 'rank': 1}
    scores = [e['score'] for e in client.get('/api/scores/bedtime-berzerk').get_json()]
    assert scores == [20, 30, 45]


def test_submit_requires_name_and_score(client):
    assert client.post('/api/scores/pong', json={'score': 3}).status_code == 400
    assert client.post('/api/scores/pong', json={'playerName': 'A'}).status_code == 400
    res = client.post('/api/scores/pong', json={'playerName': 'A', 'score': 'lots'})
    assert res.status_code == 400
    assert 'error' in res.get_json()


def test_submit_unknown_game(client):
    res = submit(client, 'tetris', 'ALICE', 10)
    assert res.status_code == 404
    body = res.get_json()
    assert body['qualified'] is False
    assert body['rank'] == -1
    assert 'error' in body


def test_get_unknown_game(client):
    assert client.get('/api/scores/tetris').status_code == 404


def test_get_all_defaults_to_top_three(client, sql_store):
    seed(sql_store, 'chess', [9, 8, 7, 6, 5])
    res = client.get('/api/scores')
    assert res.status_code == 200
    data = res.get_json()
    assert [e['score'] for e in data['chess']] == [9, 8, 7]
    assert data['pong'] == []
    assert 'homerun-derby' in data

    data = client.get('/api/scores?limit=5').get_json()
    assert len(data['chess']) == 5


def test_limit_is_clamped(client, sql_store):
    seed(sql_store, 'chess', [9, 8, 7])
    assert client.get('/api/scores/chess?limit=0').get_json() == []
    assert len(client.get('/api/scores/chess?limit=99').get_json()) == 3
    assert len(client.get('/api/scores/chess?limit=abc').get_json()) == 3


def test_rank_check(client, sql_store):
    seed(sql_store, 'city-runner', [500, 300])
    res = client.get('/api/scores/city-runner/rank?score=400')
    assert res.get_json() == {'qualified': True, 'rank': 2}
    assert client.get('/api/scores/city-runner/rank').status_code == 400
    assert client.get('/api/scores/tetris/rank?score=1').status_code == 404
    # Nothing was written
    assert len(client.get('/api/scores/city-runner').get_json()) == 2


def test_games_registry(client):
    games = client.get('/api/scores/games').get_json()
    by_id = {g['id']: g for g in games}
    assert by_id['bedtime-berzerk']['scoreType'] == 'low'
    assert by_id['pong']['scoreType'] == 'high'
    assert by_id['pong']['capacity'] == 10
    assert len(games) == 9


def test_cors_headers(client):
    res = client.get('/api/scores/pong', headers={'Origin': 'http://localhost:5173'})
    assert res.headers.get('Access-Control-Allow-Origin') == 'http://localhost:5173'


class DownStore(LocalMirrorStore):
    def get_category(self, category):
        raise TransportError('unreachable')


def test_store_outage_returns_503():
    application = create_app(conftest.TestConfig, store=DownStore())
    with application.app_context():
        db.create_all()
        client = application.test_client()
        res = submit(client, 'pong', 'ALICE', 10)
        assert res.status_code == 503
        assert res.get_json() == {'error': 'Leaderboard store unavailable'}
        assert client.get('/api/scores/pong').status_code == 503
        db.drop_all()


class FallbackConfig(conftest.TestConfig):
    LEADERBOARD_BACKEND = 'remote-with-read-fallback'


def test_read_fallback_backend_serves_and_writes_remote(tmp_path):
    class Config(FallbackConfig):
        LEADERBOARD_LOCAL_PATH = str(tmp_path / 'mirror.json')

    application = create_app(Config)
    with application.app_context():
        db.create_all()
        client = application.test_client()
        assert submit(client, 'pong', 'ALICE', 7).get_json() == {'qualified': True, 'rank': 1}
        assert [e['score'] for e in client.get('/api/scores/pong').get_json()] == [7]
        # The read refreshed the on-disk mirror
        assert '"ALICE"' in (tmp_path / 'mirror.json').read_text('utf-8')
        db.drop_all()


def test_get_all_with_zero_limit(client, sql_store):
    seed(sql_store, 'chess', [9, 8, 7])
    data = client.get('/api/scores?limit=0').get_json()
    assert data['chess'] == []
