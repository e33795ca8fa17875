import logging
import time
from typing import Callable, Iterable, List

from .actions import Action
from .models import AppState
from .reducer import Clock, apply

logger = logging.getLogger(__name__)

Listener = Callable[[AppState], None]


class StateContainer:
    """
    Holds the authoritative AppState and is the single dispatch path.

    Batches are folded completely before the result is published, so readers
    and listeners only ever see whole transitions.
    """

    def __init__(self, state: AppState, clock: Clock = time.time):
        self._state = state
        self._clock = clock
        self._listeners: List[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def dispatch(self, action: Action) -> bool:
        """Apply one action. Returns whether it matched anything."""
        return self.dispatch_all([action])[0]

    def dispatch_all(self, actions: Iterable[Action]) -> List[bool]:
        state = self._state
        found = []
        for action in actions:
            transition = apply(state, action, self._clock)
            state = transition.state
            found.append(transition.found)

        if state is not self._state:
            self._state = state
            self._notify()
        return found

    def _notify(self):
        for listener in list(self._listeners):
            listener(self._state)
