"""
Shared fixtures: an app on an in-memory SQLite database using the rule
classifier, a test client, a store, and fake OpenAI clients.
"""
from types import SimpleNamespace

import pytest

from app import create_app
from models.database import db
from services.classifier import RuleBasedClassifier
from services.store import IncidentStore

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "SQLALCHEMY_ENGINE_OPTIONS": {},
    "USE_OPENAI": False,
    "OPENAI_API_KEY": "",
    "USE_TRANSCRIPTION": False,
    "LOG_LEVEL": "DEBUG",
}


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeTranscriptions:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def create(self, **kwargs):
        if self.error is not None:
            raise self.error
        return self.result


class FakeOpenAI:
    """Stands in for openai.OpenAI: chat.completions and audio.transcriptions."""

    def __init__(self, content=None, error=None, transcription=None):
        self.chat = SimpleNamespace(completions=FakeCompletions(content, error))
        self.audio = SimpleNamespace(transcriptions=FakeTranscriptions(transcription, error))


@pytest.fixture
def fake_openai():
    return FakeOpenAI


@pytest.fixture
def make_app():
    apps = []

    def factory(config=None, **collaborators):
        overrides = dict(TEST_CONFIG)
        overrides.update(config or {})
        collaborators.setdefault("classifier", RuleBasedClassifier())
        app = create_app(overrides, **collaborators)
        apps.append(app)
        return app

    yield factory

    for app in apps:
        with app.app_context():
            db.session.remove()
            db.drop_all()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    with app.app_context():
        yield IncidentStore(db.session)


@pytest.fixture
def incident_payload():
    """Incident body built from the rule engine's suggestion for a description."""
    def build(description="Strong gas odor in basement, no flame", address="1422 Pine Street", **edits):
        suggestion = RuleBasedClassifier().classify(description, address).model_dump()
        body = dict(suggestion, description=description, address=address)
        body.update(edits)
        return body, suggestion
    return build
