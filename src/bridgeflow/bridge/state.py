"""Lifecycle of a single bridge attempt."""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class BridgeState(str, Enum):
    IDLE = "idle"
    QUOTING = "quoting"
    COMPOSING = "composing"
    ESTIMATING = "estimating"
    REJECTED = "rejected"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    RECONCILING = "reconciling"
    SETTLED = "settled"
    UNRECONCILED = "unreconciled"


TERMINAL_STATES = frozenset(
    {BridgeState.REJECTED, BridgeState.REVERTED, BridgeState.SETTLED, BridgeState.UNRECONCILED}
)

# Any pre-broadcast stage may end in REJECTED (validation, quote, simulation,
# signer refusal or transport failure).
TRANSITIONS: dict[BridgeState, frozenset] = {
    BridgeState.IDLE: frozenset({BridgeState.QUOTING, BridgeState.REJECTED}),
    BridgeState.QUOTING: frozenset({BridgeState.COMPOSING, BridgeState.REJECTED}),
    BridgeState.COMPOSING: frozenset({BridgeState.ESTIMATING, BridgeState.REJECTED}),
    BridgeState.ESTIMATING: frozenset({BridgeState.SUBMITTED, BridgeState.REJECTED}),
    BridgeState.SUBMITTED: frozenset({BridgeState.CONFIRMED, BridgeState.REVERTED}),
    BridgeState.CONFIRMED: frozenset({BridgeState.RECONCILING}),
    BridgeState.RECONCILING: frozenset({BridgeState.SETTLED, BridgeState.UNRECONCILED}),
}


class BridgeAttempt:
    """Tracks the state of one attempt; states are never re-entered."""

    def __init__(self, label: str = ""):
        self.label = label
        self.state = BridgeState.IDLE
        self.history: list[BridgeState] = [BridgeState.IDLE]

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def broadcast(self) -> bool:
        """Whether a transaction has left the client for this attempt."""
        return BridgeState.SUBMITTED in self.history

    def advance(self, new_state: BridgeState) -> None:
        allowed = TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed or new_state in self.history:
            raise RuntimeError(
                f"Illegal bridge transition {self.state.value} -> {new_state.value}"
            )
        logger.debug(f"[{self.label}] {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)
