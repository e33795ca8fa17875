"""
State reducer.

`reduce(state, action)` is the only write path to the aggregate. It is total:
unknown actions and malformed payloads leave the state untouched, and lookup
misses are silent no-ops. `apply` returns the same result together with a
`found` flag for callers that need to tell a miss from a success.
"""
import logging
import secrets
import time
from collections import deque
from dataclasses import dataclass, replace
from typing import Callable, Dict, Tuple

from .actions import Action, ActionType
from .defaults import default_state
from .models import (
    ActivityLog, Announcement, AppSettings, AppState, LogType, Match,
    MatchIncident, RegistrationStatus, Role, Team, TeamRegistration,
    Tournament, UserAccount, iso_timestamp, parse_payload,
)

logger = logging.getLogger(__name__)

LOG_CAPACITY = 100
MAX_LOGIN_ATTEMPTS = 5
LOCKOUT_SECONDS = 60

Clock = Callable[[], float]


@dataclass(frozen=True)
class Transition:
    state: AppState
    found: bool


def _replace_where(items: tuple, match: Callable, update: Callable) -> Tuple[tuple, bool]:
    found = False
    out = []
    for item in items:
        if match(item):
            found = True
            out.append(update(item))
        else:
            out.append(item)
    return tuple(out), found


def _without(items: tuple, match: Callable) -> Tuple[tuple, bool]:
    kept = tuple(item for item in items if not match(item))
    return kept, len(kept) != len(items)


# ---------------------------------------------------------------- accounts

def _set_user(state, payload, now):
    account = None if payload is None else parse_payload(UserAccount, payload)
    return replace(state, current_user=account), True


def _sign_up(state, payload, now):
    account = parse_payload(UserAccount, payload)
    return replace(state, accounts=state.accounts + (account,)), True


def _toggle_ban(state, payload, now):
    accounts, found = _replace_where(
        state.accounts,
        lambda a: a.secure_id == payload,
        lambda a: replace(a, is_banned=not a.is_banned),
    )
    return (replace(state, accounts=accounts) if found else state), found


def _login_failure(state, payload, now):
    secure_id = str(payload)
    attempts = state.login_attempts.get(secure_id, 0) + 1
    lockout = now + LOCKOUT_SECONDS if attempts >= MAX_LOGIN_ATTEMPTS else 0
    return replace(
        state,
        login_attempts={**state.login_attempts, secure_id: attempts},
        lockout_until={**state.lockout_until, secure_id: lockout},
    ), True


# ---------------------------------------------------------------- audit

def _add_log(state, payload, now):
    entry = ActivityLog(
        id=f"l-{int(now * 1000)}-{secrets.token_hex(3)}",
        timestamp=iso_timestamp(now),
        user=str(payload.get("user", "")),
        role=Role(payload.get("role", Role.PLAYER)),
        action=str(payload.get("action", "")),
        details=str(payload.get("details", "")),
        type=LogType(payload.get("type", LogType.INFO)),
    )
    ring = deque(state.logs, maxlen=LOG_CAPACITY)
    ring.appendleft(entry)
    return replace(state, logs=tuple(ring)), True


# ---------------------------------------------------------------- tournaments

def _add_tournament(state, payload, now):
    tournament = parse_payload(Tournament, payload)
    return replace(state, tournaments=state.tournaments + (tournament,)), True


def _update_tournament(state, payload, now):
    tournament = parse_payload(Tournament, payload)
    tournaments, found = _replace_where(
        state.tournaments, lambda t: t.id == tournament.id, lambda t: tournament
    )
    return (replace(state, tournaments=tournaments) if found else state), found


def _delete_tournament(state, payload, now):
    # Matches and registrations of the tournament are left in place
    tournaments, found = _without(state.tournaments, lambda t: t.id == payload)
    return (replace(state, tournaments=tournaments) if found else state), found


def _add_announcement(state, payload, now):
    announcement = parse_payload(Announcement, payload["announcement"])
    tournaments, found = _replace_where(
        state.tournaments,
        lambda t: t.id == payload["tournament_id"],
        lambda t: replace(t, announcements=(announcement,) + t.announcements),
    )
    return (replace(state, tournaments=tournaments) if found else state), found


# ---------------------------------------------------------------- teams

def _add_team(state, payload, now):
    team = parse_payload(Team, payload)
    return replace(state, teams=state.teams + (team,)), True


def _update_team(state, payload, now):
    team = parse_payload(Team, payload)
    teams, found = _replace_where(state.teams, lambda t: t.id == team.id, lambda t: team)
    return (replace(state, teams=teams) if found else state), found


def _toggle_team_lock(state, payload, now):
    teams, found = _replace_where(
        state.teams,
        lambda t: t.id == payload,
        lambda t: replace(t, roster_locked=not t.roster_locked),
    )
    return (replace(state, teams=teams) if found else state), found


def _delete_team(state, payload, now):
    teams, found = _without(state.teams, lambda t: t.id == payload)
    return (replace(state, teams=teams) if found else state), found


# ---------------------------------------------------------------- matches

def _add_match(state, payload, now):
    match = parse_payload(Match, payload)
    return replace(state, matches=state.matches + (match,)), True


def _update_match(state, payload, now):
    match = replace(
        parse_payload(Match, payload["match"]),
        modified_by=payload.get("author"),
        modification_reason=payload.get("reason"),
    )
    matches, found = _replace_where(state.matches, lambda m: m.id == match.id, lambda m: match)
    return (replace(state, matches=matches) if found else state), found


def _add_incident(state, payload, now):
    incident = parse_payload(MatchIncident, payload["incident"])
    matches, found = _replace_where(
        state.matches,
        lambda m: m.id == payload["match_id"],
        lambda m: replace(m, incidents=m.incidents + (incident,)),
    )
    return (replace(state, matches=matches) if found else state), found


def _delete_match(state, payload, now):
    matches, found = _without(state.matches, lambda m: m.id == payload)
    return (replace(state, matches=matches) if found else state), found


# ---------------------------------------------------------------- registrations

def _add_registration(state, payload, now):
    registration = replace(
        parse_payload(TeamRegistration, payload), status=RegistrationStatus.PENDING
    )
    return replace(state, registrations=state.registrations + (registration,)), True


def _approve_registration(state, payload, now):
    registration = state.find_registration(payload["registration_id"])
    if registration is None:
        return state, False

    team = Team(
        id=str(payload["team_id"]),
        name=registration.team_name,
        tag=registration.team_tag,
        players=registration.players,
        substitutes=registration.substitutes,
        roster_locked=True,
        manager_id=registration.submitted_by,
    )
    registrations, _ = _replace_where(
        state.registrations,
        lambda r: r.id == registration.id,
        lambda r: replace(r, status=RegistrationStatus.APPROVED),
    )
    tournaments, _ = _replace_where(
        state.tournaments,
        lambda t: t.id == registration.tournament_id and team.id not in t.team_ids,
        lambda t: replace(t, team_ids=t.team_ids + (team.id,)),
    )
    # Team, registration status and tournament roster change together
    return replace(
        state,
        teams=state.teams + (team,),
        registrations=registrations,
        tournaments=tournaments,
    ), True


def _reject_registration(state, payload, now):
    registrations, found = _replace_where(
        state.registrations,
        lambda r: r.id == payload,
        lambda r: replace(r, status=RegistrationStatus.REJECTED),
    )
    return (replace(state, registrations=registrations) if found else state), found


# ---------------------------------------------------------------- whole state

def _update_settings(state, payload, now):
    return replace(state, settings=parse_payload(AppSettings, payload)), True


def _import_state(state, payload, now):
    return parse_payload(AppState, payload), True


def _reset_data(state, payload, now):
    # Accounts survive a wipe
    return default_state(now=now, accounts=state.accounts), True


HANDLERS: Dict[ActionType, Callable] = {
    ActionType.SET_USER: _set_user,
    ActionType.SIGN_UP: _sign_up,
    ActionType.TOGGLE_BAN_USER: _toggle_ban,
    ActionType.LOGIN_FAILURE: _login_failure,
    ActionType.ADD_LOG: _add_log,
    ActionType.ADD_TOURNAMENT: _add_tournament,
    ActionType.UPDATE_TOURNAMENT: _update_tournament,
    ActionType.DELETE_TOURNAMENT: _delete_tournament,
    ActionType.ADD_ANNOUNCEMENT: _add_announcement,
    ActionType.ADD_TEAM: _add_team,
    ActionType.UPDATE_TEAM: _update_team,
    ActionType.TOGGLE_TEAM_LOCK: _toggle_team_lock,
    ActionType.DELETE_TEAM: _delete_team,
    ActionType.ADD_MATCH: _add_match,
    ActionType.UPDATE_MATCH: _update_match,
    ActionType.ADD_INCIDENT: _add_incident,
    ActionType.DELETE_MATCH: _delete_match,
    ActionType.ADD_REGISTRATION: _add_registration,
    ActionType.APPROVE_REGISTRATION: _approve_registration,
    ActionType.REJECT_REGISTRATION: _reject_registration,
    ActionType.UPDATE_SETTINGS: _update_settings,
    ActionType.IMPORT_STATE: _import_state,
    ActionType.RESET_DATA: _reset_data,
}


def apply(state: AppState, action: Action, clock: Clock = time.time) -> Transition:
    try:
        handler = HANDLERS.get(ActionType(action.type))
    except (ValueError, AttributeError):
        handler = None

    if handler is None:
        logger.debug("Ignoring unrecognized action %r", getattr(action, "type", action))
        return Transition(state, False)

    try:
        new_state, found = handler(state, action.payload, clock())
    except (AttributeError, KeyError, TypeError, ValueError, OverflowError) as e:
        logger.warning("Ignoring malformed %s payload: %s", action.type, e)
        return Transition(state, False)

    return Transition(new_state, found)


def reduce(state: AppState, action: Action, clock: Clock = time.time) -> AppState:
    return apply(state, action, clock).state
