from enum import Enum
from dataclasses import dataclass
from typing import Optional, Any

from .models import (
    AppSettings, AppState, Announcement, LogType, Match, MatchIncident,
    Role, Team, TeamRegistration, Tournament, UserAccount,
)


class ActionType(str, Enum):
    # Session and accounts
    SET_USER = "SET_USER"
    SIGN_UP = "SIGN_UP"
    TOGGLE_BAN_USER = "TOGGLE_BAN_USER"
    LOGIN_FAILURE = "LOGIN_FAILURE"

    # Audit
    ADD_LOG = "ADD_LOG"

    # Tournaments
    ADD_TOURNAMENT = "ADD_TOURNAMENT"
    UPDATE_TOURNAMENT = "UPDATE_TOURNAMENT"
    DELETE_TOURNAMENT = "DELETE_TOURNAMENT"
    ADD_ANNOUNCEMENT = "ADD_ANNOUNCEMENT"

    # Teams
    ADD_TEAM = "ADD_TEAM"
    UPDATE_TEAM = "UPDATE_TEAM"
    TOGGLE_TEAM_LOCK = "TOGGLE_TEAM_LOCK"
    DELETE_TEAM = "DELETE_TEAM"

    # Matches
    ADD_MATCH = "ADD_MATCH"
    UPDATE_MATCH = "UPDATE_MATCH"
    ADD_INCIDENT = "ADD_INCIDENT"
    DELETE_MATCH = "DELETE_MATCH"

    # Registration workflow
    ADD_REGISTRATION = "ADD_REGISTRATION"
    APPROVE_REGISTRATION = "APPROVE_REGISTRATION"
    REJECT_REGISTRATION = "REJECT_REGISTRATION"

    # Whole-state
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    IMPORT_STATE = "IMPORT_STATE"
    RESET_DATA = "RESET_DATA"


@dataclass(frozen=True)
class Action:
    type: Any
    payload: Any = None

    def to_dict(self) -> dict:
        """Loggable summary; entity payloads are reduced to their ids."""
        payload = self.payload
        if hasattr(payload, "to_dict"):
            payload = getattr(payload, "id", None) or getattr(payload, "secure_id", None) or type(payload).__name__
        elif isinstance(payload, dict):
            payload = {
                k: (getattr(v, "id", None) or type(v).__name__) if hasattr(v, "to_dict") else v
                for k, v in payload.items()
            }
        return {
            "type": self.type.value if isinstance(self.type, ActionType) else self.type,
            "payload": payload,
        }


def set_user(account: Optional[UserAccount]) -> Action:
    return Action(ActionType.SET_USER, account)


def sign_up(account: UserAccount) -> Action:
    return Action(ActionType.SIGN_UP, account)


def toggle_ban_user(secure_id: str) -> Action:
    return Action(ActionType.TOGGLE_BAN_USER, secure_id)


def login_failure(secure_id: str) -> Action:
    return Action(ActionType.LOGIN_FAILURE, secure_id)


def add_log(
    user: str,
    role: Role,
    action: str,
    details: str,
    log_type: LogType = LogType.INFO
) -> Action:
    return Action(ActionType.ADD_LOG, {
        "user": user,
        "role": role,
        "action": action,
        "details": details,
        "type": log_type,
    })


def add_tournament(tournament: Tournament) -> Action:
    return Action(ActionType.ADD_TOURNAMENT, tournament)


def update_tournament(tournament: Tournament) -> Action:
    return Action(ActionType.UPDATE_TOURNAMENT, tournament)


def delete_tournament(tournament_id: str) -> Action:
    return Action(ActionType.DELETE_TOURNAMENT, tournament_id)


def add_announcement(tournament_id: str, announcement: Announcement) -> Action:
    return Action(ActionType.ADD_ANNOUNCEMENT, {
        "tournament_id": tournament_id,
        "announcement": announcement,
    })


def add_team(team: Team) -> Action:
    return Action(ActionType.ADD_TEAM, team)


def update_team(team: Team) -> Action:
    return Action(ActionType.UPDATE_TEAM, team)


def toggle_team_lock(team_id: str) -> Action:
    return Action(ActionType.TOGGLE_TEAM_LOCK, team_id)


def delete_team(team_id: str) -> Action:
    return Action(ActionType.DELETE_TEAM, team_id)


def add_match(match: Match) -> Action:
    return Action(ActionType.ADD_MATCH, match)


def update_match(match: Match, author: str, reason: Optional[str] = None) -> Action:
    return Action(ActionType.UPDATE_MATCH, {
        "match": match,
        "author": author,
        "reason": reason,
    })


def add_incident(match_id: str, incident: MatchIncident) -> Action:
    return Action(ActionType.ADD_INCIDENT, {
        "match_id": match_id,
        "incident": incident,
    })


def delete_match(match_id: str) -> Action:
    return Action(ActionType.DELETE_MATCH, match_id)


def add_registration(registration: TeamRegistration) -> Action:
    return Action(ActionType.ADD_REGISTRATION, registration)


def approve_registration(registration_id: str, team_id: str) -> Action:
    return Action(ActionType.APPROVE_REGISTRATION, {
        "registration_id": registration_id,
        "team_id": team_id,
    })


def reject_registration(registration_id: str) -> Action:
    return Action(ActionType.REJECT_REGISTRATION, registration_id)


def update_settings(settings: AppSettings) -> Action:
    return Action(ActionType.UPDATE_SETTINGS, settings)


def import_state(state: AppState) -> Action:
    return Action(ActionType.IMPORT_STATE, state)


def reset_data() -> Action:
    return Action(ActionType.RESET_DATA)
