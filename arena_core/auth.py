"""
Authentication gate.

Decides the outcome of a login attempt against the current state and
translates that outcome into the reducer actions that must accompany it.
It never dispatches anything itself.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from werkzeug.security import generate_password_hash, check_password_hash

from . import actions
from .actions import Action
from .models import AppState, LogType, Permission, Role, UserAccount


SYSTEM_PERMISSIONS = {
    Role.SUPER_ADMIN: tuple(Permission),
    Role.ADMIN: (Permission.MANAGE_ROSTERS, Permission.ISSUE_BROADCASTS),
    Role.HOST: (Permission.OVERRIDE_SCORES,),
}

SYSTEM_NAMES = {
    Role.SUPER_ADMIN: "Super Admin",
    Role.ADMIN: "Admin Hub",
    Role.HOST: "Lobby Host",
}


@dataclass(frozen=True)
class AuthOutcome:
    kind = "unknown"

    @property
    def authorized(self) -> bool:
        return False


@dataclass(frozen=True)
class Authorized(AuthOutcome):
    account: UserAccount
    kind = "authorized"

    @property
    def authorized(self) -> bool:
        return True


@dataclass(frozen=True)
class Locked(AuthOutcome):
    seconds_remaining: int
    kind = "locked"


@dataclass(frozen=True)
class Banned(AuthOutcome):
    kind = "banned"


@dataclass(frozen=True)
class Denied(AuthOutcome):
    kind = "denied"


def hash_key(key: str) -> str:
    """One-way salted hash of an access key."""
    return generate_password_hash(key)


def verify_key(password_hash: str, key: str) -> bool:
    if not password_hash:
        return False
    try:
        return check_password_hash(password_hash, key)
    except (ValueError, TypeError):
        # Unknown hash format, e.g. a legacy encoded value
        return False


def system_account(role: Role, secure_id: str) -> UserAccount:
    """Virtual account for a system credential pair. Never stored."""
    return UserAccount(
        secure_id=secure_id,
        username=SYSTEM_NAMES[role],
        role=role,
        mobile="SYSTEM",
        permissions=SYSTEM_PERMISSIONS[role],
    )


def _match_system_credential(secure_id: str, key: str, state: AppState) -> Optional[UserAccount]:
    system_ids = state.settings.system_ids
    pairs: List[Tuple[Role, object]] = [
        (Role.SUPER_ADMIN, system_ids.super_admin),
        (Role.ADMIN, system_ids.admin),
        (Role.HOST, system_ids.host),
    ]
    for role, credential in pairs:
        if credential.matches(secure_id, key):
            return system_account(role, secure_id)
    return None


def lockout_remaining(secure_id: str, state: AppState, now: float) -> int:
    until = state.lockout_until.get(secure_id)
    if not until or until <= now:
        return 0
    return int(math.ceil(until - now))


def authenticate(
    secure_id: str,
    key: str,
    state: AppState,
    clock: Callable[[], float] = time.time
) -> AuthOutcome:
    remaining = lockout_remaining(secure_id, state, clock())
    if remaining > 0:
        return Locked(seconds_remaining=remaining)

    account = _match_system_credential(secure_id, key, state)
    if account is not None:
        return Authorized(account=account)

    for stored in state.accounts:
        if stored.secure_id == secure_id and verify_key(stored.password_hash, key):
            if stored.is_banned:
                return Banned()
            return Authorized(account=stored)

    return Denied()


def actions_for(outcome: AuthOutcome, secure_id: str) -> List[Action]:
    """Reducer actions that must accompany an authentication outcome."""
    if isinstance(outcome, Authorized):
        account = outcome.account
        return [
            actions.set_user(account),
            actions.add_log(
                user=account.username,
                role=account.role,
                action="Access Granted",
                details=f"Secure session initialized for {account.secure_id}",
                log_type=LogType.SUCCESS,
            ),
        ]
    if isinstance(outcome, Denied):
        return [actions.login_failure(secure_id)]
    # Locked and Banned leave the counters alone
    return []


def describe(outcome: AuthOutcome) -> str:
    """User-facing message for an outcome."""
    if isinstance(outcome, Authorized):
        return f"Welcome, {outcome.account.username}"
    if isinstance(outcome, Locked):
        return f"Terminal locked. Retry in {outcome.seconds_remaining}s"
    if isinstance(outcome, Banned):
        return "Identity terminated: this account has been banned."
    return "Identity authentication failed. Access denied."


def build_account(
    secure_id: str,
    key: str,
    username: str,
    role: Role,
    mobile: str = "",
    insta: str = "",
    discord: str = ""
) -> UserAccount:
    return UserAccount(
        secure_id=secure_id,
        username=username,
        role=role,
        mobile=mobile,
        insta=insta,
        discord=discord,
        password_hash=hash_key(key),
        permissions=(Permission.MANAGE_ROSTERS,) if role == Role.TEAM_MANAGER else (),
    )
