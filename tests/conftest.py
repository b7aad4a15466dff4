from datetime import datetime

import pytest
from flask import g

from config import Config
from interview_assistant import create_app
from interview_assistant.extensions import db as _db
from interview_assistant.models import Interview, User, UserSetting

DIM = 768


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    REDIS_URL = None
    RATELIMIT_ENABLED = False
    GEMINI_API_KEY = None
    GEMINI_MAX_ATTEMPTS = 2
    ADMIN_EMAILS = ['admin@example.com']
    ALLOWED_MEETING_TYPES = ['Status Update', 'Client Call', 'Interview']
    FACILITATOR_NAMES = ['adam perlis', 'perlis']
    CRON_SECRET = 'cron-secret'
    LEVER_API_KEY = 'lever-key'
    LEVER_USER_ID = 'lever-user'
    LEVER_API_BASE = 'https://lever.test/v1'
    GOOGLE_CLIENT_ID = 'client-id'
    GOOGLE_CLIENT_SECRET = 'client-secret'
    GOOGLE_REDIRECT_URI = 'http://localhost/auth/callback'


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def users(db):
    alice = User(email='alice@example.com', name='Alice')
    bob = User(email='bob@example.com', name='Bob')
    admin = User(email='admin@example.com', name='Admin')
    db.session.add_all([alice, bob, admin])
    db.session.commit()
    return {'alice': alice, 'bob': bob, 'admin': admin}


@pytest.fixture
def login(client):
    def _login(user):
        # the test app context is shared across requests, so drop Flask-Login's cached user
        g.pop('_login_user', None)
        with client.session_transaction() as sess:
            sess['_user_id'] = str(user.id)
            sess['_fresh'] = True
            # a valid Google token so Drive routes do not try to refresh
            sess['google_token'] = {'access_token': 'token', 'refresh_token': 'refresh', 'expires_at': 4102444800}
        return client
    return _login


def unit_vector(index, dim=DIM):
    v = [0.0] * dim
    v[index] = 1.0
    return v


@pytest.fixture
def make_interview(db):
    def _make(**kwargs):
        defaults = {
            'transcript': 'We talked about design systems and prototyping for a while.',
            'meeting_title': 'Jane Doe <> Adam Perlis — Interview 01/02/2025',
            'meeting_type': 'Interview',
            'meeting_date': datetime(2025, 1, 2, 15, 0),
            'candidate_name': 'Jane Doe',
            'interviewer': 'Adam Perlis',
            'summary': 'A good conversation.',
        }
        defaults.update(kwargs)
        row = Interview(**defaults)
        db.session.add(row)
        db.session.commit()
        return row
    return _make


@pytest.fixture
def settings_for(db):
    def _settings(email, **kwargs):
        s = UserSetting.for_user(email, create=True)
        for k, v in kwargs.items():
            setattr(s, k, v)
        db.session.commit()
        return s
    return _settings


@pytest.fixture
def fake_gemini(monkeypatch, app):
    """Pretend Gemini is configured; tests set the canned replies."""
    state = {'json': None, 'text': 'stub answer', 'embedding': None, 'prompts': []}

    def generate_json(prompt, model=None):
        state['prompts'].append(prompt)
        if isinstance(state['json'], Exception):
            raise state['json']
        return state['json']

    def generate_text(prompt, model=None):
        state['prompts'].append(prompt)
        return state['text']

    def generate_embedding(text):
        return state['embedding']

    app.config['GEMINI_API_KEY'] = 'test-key'
    monkeypatch.setattr('interview_assistant.services.gemini_wrap.generate_json', generate_json)
    monkeypatch.setattr('interview_assistant.services.gemini_wrap.generate_text', generate_text)
    monkeypatch.setattr('interview_assistant.services.gemini_wrap.generate_embedding', generate_embedding)
    return state


class FakeDrive:
    """Stands in for DriveClient with an in-memory folder of docs."""

    def __init__(self, files=None, texts=None, subfolders=None):
        self.files = list(files or [])
        self.texts = dict(texts or {})
        self.subfolders = list(subfolders or [])
        self.renamed = {}
        self.list_calls = []

    def list_documents(self, folder_ids, modified_after=None, max_files=None, page_size=100):
        self.list_calls.append({'folder_ids': folder_ids, 'modified_after': modified_after, 'max_files': max_files})
        files = self.files[:max_files] if max_files else list(self.files)
        return files

    def list_subfolders(self, folder_id, recursive=True):
        return list(self.subfolders)

    def export_text(self, file_id):
        text = self.texts[file_id]
        if isinstance(text, Exception):
            raise text
        return text

    def rename_file(self, file_id, name):
        self.renamed[file_id] = name
        return {'id': file_id, 'name': name}


@pytest.fixture
def fake_drive(monkeypatch):
    drive = FakeDrive()
    monkeypatch.setattr(
        'interview_assistant.services.drive.DriveClient.from_token',
        classmethod(lambda cls, token: drive),
    )
    return drive
