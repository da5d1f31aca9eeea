from dataclasses import dataclass, field
from datetime import datetime

from trivia.logic.enums import RoundState


@dataclass
class Player:
    """Represent a member of a session.

    The player id is the connection id assigned by the transport. It is only
    assumed to be unique within a session and stable for the connection's lifetime.
    """

    player_id: str
    name: str
    score: int = 0
    attempts_left: int = 0


@dataclass
class Session:
    """A room with at most one active round.

    Lifecycle:
    - Created by a create intent with exactly one player, who is also the GM
    - Members join only while no round is running
    - Deleted the instant its last member leaves
    """

    session_id: str
    players: dict[str, Player] = field(default_factory=dict)  # player_id -> Player
    join_order: list[str] = field(default_factory=list)  # player ids in arrival order
    gm: str | None = None
    question: str | None = None
    answer_original: str | None = None
    answer_canonical: str | None = None
    round_state: RoundState = RoundState.IDLE
    deadline: datetime | None = None
    winner: str | None = None
    round_number: int = 0

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return self.player_count == 0

    @property
    def in_progress(self) -> bool:
        return self.round_state == RoundState.IN_PROGRESS

    @property
    def has_question(self) -> bool:
        return self.question is not None and self.answer_canonical is not None

    @property
    def ordered_players(self) -> list[Player]:
        """Members in join order."""
        return [self.players[player_id] for player_id in self.join_order]

    def get_player(self, player_id: str) -> Player | None:
        return self.players.get(player_id)

    def is_gm(self, player_id: str) -> bool:
        return self.gm == player_id

    def add_player(self, player: Player) -> None:
        self.players[player.player_id] = player
        self.join_order.append(player.player_id)

    def remove_player(self, player_id: str) -> Player | None:
        """Remove a member and return it, or None if the id is not a member."""
        player = self.players.pop(player_id, None)
        if player is not None:
            self.join_order.remove(player_id)
        return player

    def first_in_join_order(self) -> str | None:
        return self.join_order[0] if self.join_order else None

    def next_in_join_order(self, player_id: str | None) -> str | None:
        """Return the member after player_id in join order, wrapping around.

        Falls back to the first member when player_id is not (or no longer) present.
        """
        if not self.join_order:
            return None
        if player_id not in self.players:
            return self.join_order[0]
        idx = self.join_order.index(player_id)
        return self.join_order[(idx + 1) % len(self.join_order)]

    def clear_round(self) -> None:
        """Clear question, answers and deadline, and zero everyone's attempts."""
        self.question = None
        self.answer_original = None
        self.answer_canonical = None
        self.deadline = None
        for player in self.players.values():
            player.attempts_left = 0
