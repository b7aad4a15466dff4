import importlib

import pytest

import config
from interview_assistant.services import rate_limit


@pytest.fixture(autouse=True)
def clean_store(monkeypatch):
    monkeypatch.setattr(rate_limit, '_memory_store', {})


def test_memory_window():
    assert rate_limit.memory_rate_limit('k', 2, 60, now=1000) == (True, 1, 1060)
    assert rate_limit.memory_rate_limit('k', 2, 60, now=1001) == (True, 0, 1060)
    assert rate_limit.memory_rate_limit('k', 2, 60, now=1002) == (False, 0, 1060)
    # new window
    assert rate_limit.memory_rate_limit('k', 2, 60, now=1061)[0] is True


class FakePipeline:
    def __init__(self, store):
        self.store = store
        self.ops = []

    def incr(self, key):
        self.ops.append(key)

    def expire(self, key, seconds):
        pass

    def execute(self):
        key = self.ops[0]
        self.store[key] = self.store.get(key, 0) + 1
        return [self.store[key], True]


class FakeRedis:
    def __init__(self):
        self.store = {}

    def pipeline(self):
        return FakePipeline(self.store)


def test_redis_window():
    conn = FakeRedis()
    assert rate_limit.redis_rate_limit(conn, 'k', 1, 60, now=125) == (True, 0, 180)
    assert rate_limit.redis_rate_limit(conn, 'k', 1, 60, now=130) == (False, 0, 180)


def test_endpoint_returns_429(client, app, users, login):
    app.config['RATELIMIT_ENABLED'] = True
    c = login(users['alice'])
    limit = rate_limit.RATE_LIMITS['upload']['requests']
    for _ in range(limit):
        assert c.post('/api/transcribe').status_code == 400
    resp = c.post('/api/transcribe')
    assert resp.status_code == 429
    assert resp.headers['X-RateLimit-Remaining'] == '0'
    assert 'Retry-After' in resp.headers


def test_redis_is_off_unless_configured(monkeypatch):
    monkeypatch.delenv('REDIS_URL', raising=False)
    assert importlib.reload(config).Config.REDIS_URL is None
