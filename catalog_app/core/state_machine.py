from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class InvalidTransition(ValueError):
    pass


HistoryEntry = Dict[str, Any]
Hook = Callable[[HistoryEntry], None]


class StateMachine:
    """
    Small, generic state machine with:
      - allowed transitions map
      - history recording (with metadata)
      - a transition counter (`version`)
      - optional after hooks for transitions

    Usage:
      sm = StateMachine(state="idle", allowed_transitions=ALLOWED_TRANSITIONS)
      sm.apply("validating")
      sm.state  # -> "validating"
    """

    def __init__(self, state: str, allowed_transitions: Dict[str, List[str]], name: str = "state"):
        self.state = state or ""
        self.name = name
        self.allowed_transitions = allowed_transitions or {}
        self.version = 0
        self.history: List[HistoryEntry] = []
        # hooks keyed by (from_state, to_state) tuple
        self._after_hooks: Dict[Tuple[str, str], List[Hook]] = {}

    def can_transition(self, to_state: str) -> bool:
        allowed = self.allowed_transitions.get(self.state, [])
        return to_state in allowed

    def register_after(self, from_state: str, to_state: str, fn: Hook) -> None:
        self._after_hooks.setdefault((from_state, to_state), []).append(fn)

    def _invoke_hooks(self, from_state: str, to_state: str, entry: HistoryEntry) -> None:
        for fn in self._after_hooks.get((from_state, to_state), []):
            try:
                fn(entry)
            except Exception:
                # hooks must not break state progression
                logger.exception("%s hook failed for %s -> %s", self.name, from_state, to_state)

    def apply(self, to_state: str, meta: Optional[Dict[str, Any]] = None) -> str:
        """
        Attempt to transition to `to_state`. Raises InvalidTransition.
        Returns the new state.
        """
        to_state = (to_state or "").strip()
        if not to_state:
            raise InvalidTransition("Empty target state")

        # idempotent: if already in desired state, no-op
        if to_state == self.state:
            return self.state

        if not self.can_transition(to_state):
            raise InvalidTransition(f"Invalid transition: {self.state} -> {to_state}")

        entry: HistoryEntry = {
            "from": self.state,
            "to": to_state,
            "at": datetime.now(timezone.utc).isoformat(sep=" "),
            "meta": dict(meta or {}),
        }

        prev_state = self.state
        self.state = to_state
        self.history.append(entry)
        self.version += 1
        logger.debug("%s: %s -> %s", self.name, prev_state, to_state)

        self._invoke_hooks(prev_state, to_state, entry)
        return self.state
