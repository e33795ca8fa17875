import random
import secrets
import string
from typing import Iterable

from arena_core.models import Role

# Prefixes for self-registered identities
ROLE_PREFIXES = {
    Role.TEAM_MANAGER: 'MGR',
    Role.PLAYER: 'PLR',
}

KEY_ALPHABET = string.ascii_uppercase + string.digits

MAX_ATTEMPTS = 100


def _name_stub(name: str) -> str:
    stub = ''.join(ch for ch in name if ch.isalnum())[:3].upper()
    return stub or 'USR'


def generate_secure_id(name: str, role: Role, existing: Iterable[str] = ()) -> str:
    """Generate an operator id like 'MGR-4821-SAH', avoiding ids in use."""
    prefix = ROLE_PREFIXES.get(role, 'PLR')
    stub = _name_stub(name)
    taken = set(existing)
    for _ in range(MAX_ATTEMPTS):
        candidate = f"{prefix}-{random.randint(1000, 9998)}-{stub}"
        if candidate not in taken:
            return candidate
    raise RuntimeError(f"Could not allocate a free identity for '{name}'")


def generate_access_key() -> str:
    """Generate an access key like 'KEY-Q7ZK2M-418'"""
    token = ''.join(secrets.choice(KEY_ALPHABET) for _ in range(6))
    return f"KEY-{token}-{random.randint(100, 998)}"


def generate_short_id(prefix: str = "") -> str:
    """Generate a short random id for new records"""
    short = secrets.token_hex(4)
    return f"{prefix}{short}" if prefix else short
