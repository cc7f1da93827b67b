import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from sticker_merge.services.models import SessionState


class SessionRepository:
    """
    In-memory store of one ``SessionState`` per user.

    ``exclusive(user_id)`` serialises event handling per user; sessions do not survive
    a process restart.
    """

    def __init__(self) -> None:
        self._states: Dict[int, SessionState] = {}
        self._user_locks: Dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, user_id: int) -> SessionState:
        with self._guard:
            return self._states.get(user_id) or SessionState.initial()

    def save(self, user_id: int, state: SessionState) -> None:
        with self._guard:
            self._states[user_id] = state

    def reset(self, user_id: int) -> None:
        with self._guard:
            self._states.pop(user_id, None)

    @contextmanager
    def exclusive(self, user_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._user_locks.setdefault(user_id, threading.Lock())
        with lock:
            yield
