import json
from types import SimpleNamespace

import pytest

from app import create_app
from models import db
from services import text_generation

ADMIN_PASSWORD = 'admin-pass'


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SECRET_KEY': 'test-secret',
        'ADMIN_USERNAME': 'admin',
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
        'GEMINI_API_KEY': 'test-key',
        'SEED_DEFAULTS': True,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Application context for calling the services directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app):
    client = app.test_client()
    res = client.post('/auth/login', json={'username': 'admin', 'password': ADMIN_PASSWORD})
    assert res.status_code == 200
    return client


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


def gemini_reply(text):
    return FakeResponse(payload={'candidates': [{'content': {'parts': [{'text': text}]}}]})


@pytest.fixture
def gemini(monkeypatch):
    """Stand-in for the Gemini endpoint.

    Queue FakeResponse objects (or exceptions to raise) on ``replies``; each
    request is recorded on ``calls`` with its URL and decoded payload.
    """
    calls, replies = [], []

    def fake_post(url, headers=None, data=None, timeout=None):
        calls.append({'url': url, 'payload': json.loads(data)})
        reply = replies.pop(0) if replies else gemini_reply('ok')
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(text_generation.requests, 'post', fake_post)
    monkeypatch.setattr(text_generation.time, 'sleep', lambda seconds: None)
    return SimpleNamespace(calls=calls, replies=replies)
