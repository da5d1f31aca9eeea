"""Session registry: the one shared table of live sessions."""

import secrets
import string

import structlog

from trivia.logic.exceptions import DuplicateSessionIdError
from trivia.session.models import Player, Session

logger = structlog.get_logger()

SESSION_ID_LENGTH = 6
_SESSION_ID_ALPHABET = string.ascii_lowercase + string.digits
_MAX_ID_ATTEMPTS = 100


class SessionRegistry:
    """Own the mapping from session id to Session.

    An instance is created with the server and held by the SessionManager;
    nothing else reaches it implicitly. create() and delete() contain no
    awaits, so under asyncio they are atomic with respect to other intents.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    @property
    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def create(self, session_id: str | None, creator_id: str, creator_name: str) -> Session:
        """Create a session whose only member is its creator, who is also the GM.

        A caller-supplied id is taken verbatim; if it names a live session,
        DuplicateSessionIdError is raised. Without an id, a fresh one is
        generated and regenerated on collision.
        """
        if session_id:
            if session_id in self._sessions:
                raise DuplicateSessionIdError
        else:
            session_id = self._generate_id()

        session = Session(session_id=session_id, gm=creator_id)
        session.add_player(Player(player_id=creator_id, name=creator_name))
        self._sessions[session_id] = session
        logger.info("session created", session_id=session_id, gm=creator_id)
        return session

    def delete(self, session_id: str) -> Session | None:
        """Remove a session and return it, or None if it was already gone."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info("session deleted", session_id=session_id)
        return session

    def _generate_id(self) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = "".join(secrets.choice(_SESSION_ID_ALPHABET) for _ in range(SESSION_ID_LENGTH))
            if candidate not in self._sessions:
                return candidate
        # 36**6 ids make this unreachable in practice
        raise RuntimeError("could not generate a unique session id")
