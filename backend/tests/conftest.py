import os
import sys
import pytest

# Ensure the backend root (containing the `arcade_scores` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from arcade_scores import create_app, db
from arcade_scores.services.leaderboard import Entry, LocalMirrorStore


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LEADERBOARD_BACKEND = 'remote'
    LEADERBOARD_LOCAL_PATH = None
    LEADERBOARD_CAPACITY = 10
    LEADERBOARD_NAME_MAX_LENGTH = 10
    CORS_ORIGINS = ['http://localhost:5173']


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def service(flask_app):
    return flask_app.extensions['leaderboard']


@pytest.fixture()
def sql_store(service):
    return service.store


@pytest.fixture()
def local_store():
    return LocalMirrorStore()


@pytest.fixture(params=['sql', 'local'])
def store(request):
    """Both backends behind the same capability set."""
    if request.param == 'sql':
        return request.getfixturevalue('sql_store')
    return request.getfixturevalue('local_store')


def seed(store, category, scores, start_ts=1000):
    """Write ``scores`` as ranks 1..n of ``category`` (already in rank order)."""
    for i, score in enumerate(scores):
        store.put_entry(Entry(category, i + 1, f'P{i + 1}', score, start_ts + i))


def scores_of(store, category):
    return [e.score for e in store.get_category(category)]


def ranks_of(store, category):
    return [e.rank for e in store.get_category(category)]
