from unittest.mock import AsyncMock

import pytest

from trivia.logic.settings import RoundSettings
from trivia.session.broadcast import EventChannel
from trivia.session.models import Player, Session
from trivia.session.projector import BroadcastProjector
from trivia.session.round_controller import RoundController
from trivia.session.timer_manager import TimerManager
from trivia.tests.mocks import MockConnection


@pytest.fixture
def channel():
    return EventChannel()


@pytest.fixture
def projector(channel):
    return BroadcastProjector(channel)


@pytest.fixture
def on_expire():
    return AsyncMock()


@pytest.fixture
def timer_manager(on_expire):
    manager = TimerManager(on_expire=on_expire)
    yield manager
    manager.cancel_all()


@pytest.fixture
def controller(channel, projector, timer_manager):
    return RoundController(
        settings=RoundSettings(),
        channel=channel,
        projector=projector,
        timer_manager=timer_manager,
    )


@pytest.fixture
def connections(channel):
    """Registered mock connections for alice, bob and carol."""
    conns = {name: MockConnection(name) for name in ("alice", "bob", "carol")}
    for conn in conns.values():
        channel.register(conn)
    return conns


@pytest.fixture
def session(connections):
    """Idle session {alice (GM), bob, carol}."""
    session = Session(session_id="room1", gm="alice")
    for player_id in connections:
        session.add_player(Player(player_id=player_id, name=player_id.title()))
    return session
