import pytest
from flask_jwt_extended import create_access_token

from ballotbox import create_app
from ballotbox.config import Config
from ballotbox.extensions import db
from ballotbox.models import Poll, PollOption


@pytest.fixture
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        # File-backed so that worker threads share one database
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "ballotbox.db")
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        JWT_SECRET_KEY = "test-jwt-secret-key-of-reasonable-length"

    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def token(app):
    def _token(user_id="voter-1", **kwargs):
        with app.app_context():
            return create_access_token(identity=user_id, **kwargs)
    return _token


@pytest.fixture
def auth_headers(token):
    def _headers(user_id="voter-1"):
        return {"Authorization": f"Bearer {token(user_id)}"}
    return _headers


@pytest.fixture
def make_poll(app):
    """Insert a poll directly; returns (poll_id, {option text: option id})."""
    def _make(options=("X", "Y", "Z"), owner_id="owner-1", **fields):
        fields.setdefault("title", "Team lunch")
        fields.setdefault("status", Poll.STATUS_OPEN)
        with app.app_context():
            poll = Poll(owner_id=owner_id, **fields)
            for order, text in enumerate(options):
                poll.options.append(PollOption(text=text, order=order))
            db.session.add(poll)
            db.session.commit()
            return poll.id, {opt.text: opt.id for opt in poll.options}
    return _make
