"""
Общие фикстуры: приложение с тестовым конфигом, SocketIO-клиенты
и поддельное соединение для модульных тестов сервисов.
"""
import random

import pytest

from chess_server import create_app, socketio
from chess_server.game_core import RulesEngine, WHITE
from chess_server.services.errors import TransportError
from chess_server.services.game_factory import GameFactory
from chess_server.services.game_registry import GameRegistry
from chess_server.services.game_session import GameSession


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_ASYNC_MODE = 'threading'
    REGISTRY_SHARDS = 1
    COLOR_SEED = 1234


class FakeConnection:
    """Записывает всё, что ему отправили; по флагу fail имитирует сбой транспорта."""

    def __init__(self, sid: str, fail: bool = False):
        self.sid = sid
        self.fail = fail
        self.sent = []

    def send(self, payload):
        if self.fail:
            raise TransportError(f"write to {self.sid} failed: broken pipe")
        self.sent.append(payload)

    def __repr__(self):
        return f"FakeConnection({self.sid!r})"


@pytest.fixture()
def flask_app(tmp_path):
    config = type('Config', (TestConfig,), {'LOG_FILE': str(tmp_path / 'test.log')})
    application, _ = create_app(config)
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    """Фабрика SocketIO-клиентов; все отключаются после теста."""
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()


@pytest.fixture()
def rules_engine():
    return RulesEngine()


@pytest.fixture()
def events():
    """log_event, который просто запоминает типы событий."""
    recorded = []

    def _log_event(event_type, message, sid=None, game_id=None, extra_data=None):
        recorded.append(event_type)

    _log_event.recorded = recorded
    return _log_event


@pytest.fixture()
def make_session(rules_engine, events):
    def _make(creator=None, color=WHITE, game_id='game-1', engine=None):
        creator = creator or FakeConnection('creator')
        return GameSession(
            game_id=game_id,
            rules_engine=engine or rules_engine,
            creator=creator,
            creator_color=color,
            log_event=events
        )
    return _make


@pytest.fixture()
def make_registry(rules_engine, events):
    def _make(shards=1, seed=42, factory=None):
        factory = factory or GameFactory(rules_engine, log_event=events, rng=random.Random(seed))
        return GameRegistry(factory, shards=shards, log_event_func=events)
    return _make


@pytest.fixture()
def make_connection():
    def _make(sid, fail=False):
        return FakeConnection(sid, fail=fail)
    return _make


def messages(sio_client):
    """Полезная нагрузка всех событий 'message', полученных клиентом."""
    return [pkt['args'] for pkt in sio_client.get_received() if pkt['name'] == 'message']


@pytest.fixture()
def received():
    return messages
