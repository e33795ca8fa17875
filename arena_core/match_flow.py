from typing import Optional
from dataclasses import dataclass

from .models import IncidentType, MatchStatus


class MatchTransitionError(Exception):
    def __init__(self, from_status: str, to_status: str, reason: str = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason or f"Cannot move match from {from_status} to {to_status}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_status: MatchStatus
    to_status: MatchStatus
    action: str


_OPEN = (
    MatchStatus.SCHEDULED,
    MatchStatus.LIVE,
    MatchStatus.PAUSED,
    MatchStatus.UNDER_REVIEW,
    MatchStatus.COMPLETED,
)


class MatchStateMachine:
    TRANSITIONS = [
        Transition(MatchStatus.SCHEDULED, MatchStatus.LIVE, "go_live"),
        Transition(MatchStatus.LIVE, MatchStatus.PAUSED, "pause"),
        Transition(MatchStatus.PAUSED, MatchStatus.LIVE, "resume"),
        Transition(MatchStatus.LIVE, MatchStatus.UNDER_REVIEW, "review"),
        Transition(MatchStatus.PAUSED, MatchStatus.UNDER_REVIEW, "review"),
        Transition(MatchStatus.COMPLETED, MatchStatus.UNDER_REVIEW, "dispute"),
    ] + [
        # Results may be entered from any open status; COMPLETED -> COMPLETED is an override
        Transition(status, MatchStatus.COMPLETED, "complete") for status in _OPEN
    ] + [
        Transition(status, MatchStatus.VOIDED, "void") for status in _OPEN
    ]

    INCIDENT_TYPES = {
        "pause": IncidentType.PAUSE,
        "resume": IncidentType.RESUME,
        "dispute": IncidentType.DISPUTE,
    }

    def __init__(self, initial_status: MatchStatus = MatchStatus.SCHEDULED):
        self._status = initial_status

    @property
    def status(self) -> MatchStatus:
        return self._status

    def action_for(self, target: MatchStatus) -> Optional[str]:
        """Name of the transition that reaches `target`, if one exists."""
        for t in self.TRANSITIONS:
            if t.from_status == self._status and t.to_status == target:
                return t.action
        return None

    def transition(self, action: str) -> MatchStatus:
        for t in self.TRANSITIONS:
            if t.from_status == self._status and t.action == action:
                self._status = t.to_status
                return self._status

        raise MatchTransitionError(
            self._status.value,
            "unknown",
            f"No valid transition for action '{action}' from status '{self._status.value}'"
        )

    def move_to(self, target: MatchStatus) -> str:
        """Transition to `target`, returning the action name used."""
        action = self.action_for(target)
        if action is None:
            raise MatchTransitionError(self._status.value, target.value)
        self.transition(action)
        return action

    @classmethod
    def incident_type_for(cls, action: str, overriding: bool = False) -> Optional[IncidentType]:
        if action == "complete" and overriding:
            return IncidentType.OVERRIDE
        return cls.INCIDENT_TYPES.get(action)
