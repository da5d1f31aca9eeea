import pytest

from trivia.logic.settings import RoundSettings
from trivia.messaging.router import MessageRouter
from trivia.server.app import create_app
from trivia.server.settings import TriviaServerSettings
from trivia.session.manager import SessionManager
from trivia.tests.mocks import MockConnection


@pytest.fixture
def round_settings():
    return RoundSettings()


@pytest.fixture
def session_manager(round_settings):
    manager = SessionManager(round_settings)
    yield manager
    manager.cancel_all_timers()


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def server_settings(tmp_path):
    return TriviaServerSettings(static_dir=str(tmp_path / "no-static"), cors_origins=["http://localhost:3000"])


@pytest.fixture
def app(server_settings, session_manager, message_router):
    return create_app(
        settings=server_settings,
        session_manager=session_manager,
        message_router=message_router,
    )
