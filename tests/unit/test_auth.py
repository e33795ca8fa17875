"""
Unit tests for the authentication gate.
"""
import pytest
from dataclasses import replace

from arena_core import actions
from arena_core.actions import ActionType
from arena_core.auth import (
    Authorized, Banned, Denied, Locked,
    actions_for, authenticate, build_account, describe, hash_key, verify_key,
)
from arena_core.models import LogType, Permission, Role
from arena_core.reducer import reduce


class TestKeyHashing:
    """Tests for one-way credential hashing."""

    def test_hash_is_not_the_key(self):
        hashed = hash_key('password')
        assert hashed != 'password'
        assert 'password' not in hashed

    def test_hash_is_salted(self):
        assert hash_key('password') != hash_key('password')

    def test_verify(self):
        hashed = hash_key('KEY-ABCDEF-123')
        assert verify_key(hashed, 'KEY-ABCDEF-123') is True
        assert verify_key(hashed, 'KEY-ABCDEF-124') is False

    def test_verify_rejects_unknown_formats(self):
        """Legacy encoded values never verify."""
        assert verify_key('', 'anything') is False
        assert verify_key('cGFzc3dvcmQ=', 'password') is False


class TestSystemCredentials:
    """Tests for the three system credential pairs."""

    @pytest.mark.parametrize('secure_id,key,role', [
        ('SA-ROOT', 'SUPER-SECURE-2025', Role.SUPER_ADMIN),
        ('ADM-HUB', 'ADMIN-ACCESS-777', Role.ADMIN),
        ('HST-LOBBY', 'HOST-ENTRY-888', Role.HOST),
    ])
    def test_system_pairs_authorize(self, state, clock, secure_id, key, role):
        outcome = authenticate(secure_id, key, state, clock)
        assert isinstance(outcome, Authorized)
        assert outcome.account.role == role
        assert outcome.account.secure_id == secure_id

    def test_super_admin_has_every_permission(self, state, clock):
        outcome = authenticate('SA-ROOT', 'SUPER-SECURE-2025', state, clock)
        assert set(outcome.account.permissions) == set(Permission)

    def test_admin_permissions(self, state, clock):
        account = authenticate('ADM-HUB', 'ADMIN-ACCESS-777', state, clock).account
        assert account.permissions == (Permission.MANAGE_ROSTERS, Permission.ISSUE_BROADCASTS)

    def test_host_permissions(self, state, clock):
        account = authenticate('HST-LOBBY', 'HOST-ENTRY-888', state, clock).account
        assert account.permissions == (Permission.OVERRIDE_SCORES,)

    def test_wrong_system_key_denied(self, state, clock):
        assert isinstance(authenticate('SA-ROOT', 'nope', state, clock), Denied)

    def test_rotated_ids_take_effect(self, state, clock):
        system_ids = state.settings.system_ids
        rotated = replace(system_ids, admin=replace(system_ids.admin, key='NEW-KEY'))
        state = replace(state, settings=replace(state.settings, system_ids=rotated))
        assert isinstance(authenticate('ADM-HUB', 'ADMIN-ACCESS-777', state, clock), Denied)
        assert isinstance(authenticate('ADM-HUB', 'NEW-KEY', state, clock), Authorized)


class TestStoredAccounts:
    """Tests for self-registered accounts."""

    def test_seeded_manager(self, state, clock):
        outcome = authenticate('MGR-7080-SAH', 'password', state, clock)
        assert outcome.authorized
        assert outcome.account.username == 'Sahil'

    def test_wrong_key_denied(self, state, clock):
        assert isinstance(authenticate('MGR-7080-SAH', 'wrong', state, clock), Denied)

    def test_unknown_id_denied(self, state, clock):
        assert isinstance(authenticate('PLR-0000-NOP', 'password', state, clock), Denied)

    def test_banned_account(self, state, clock):
        banned = reduce(state, actions.toggle_ban_user('PLR-5678-ROH'), clock)
        assert isinstance(authenticate('PLR-5678-ROH', 'password', banned, clock), Banned)

    def test_banned_with_wrong_key_is_denied(self, state, clock):
        """The ban is only revealed to someone holding the key."""
        banned = reduce(state, actions.toggle_ban_user('PLR-5678-ROH'), clock)
        assert isinstance(authenticate('PLR-5678-ROH', 'wrong', banned, clock), Denied)


class TestLockout:
    """Tests for the failed-attempt lockout."""

    def fail(self, state, clock, secure_id, times):
        for _ in range(times):
            outcome = authenticate(secure_id, 'wrong', state, clock)
            for action in actions_for(outcome, secure_id):
                state = reduce(state, action, clock)
        return state

    def test_four_failures_do_not_lock(self, state, clock):
        state = self.fail(state, clock, 'MGR-7080-SAH', 4)
        assert authenticate('MGR-7080-SAH', 'password', state, clock).authorized

    def test_fifth_failure_locks_even_correct_key(self, state, clock):
        state = self.fail(state, clock, 'MGR-7080-SAH', 5)
        outcome = authenticate('MGR-7080-SAH', 'password', state, clock)
        assert isinstance(outcome, Locked)
        assert outcome.seconds_remaining == 60

    def test_remaining_seconds_round_up(self, state, clock):
        state = self.fail(state, clock, 'MGR-7080-SAH', 5)
        clock.advance(30.2)
        outcome = authenticate('MGR-7080-SAH', 'password', state, clock)
        assert outcome.seconds_remaining == 30

    def test_lockout_expires(self, state, clock):
        state = self.fail(state, clock, 'MGR-7080-SAH', 5)
        clock.advance(61)
        assert authenticate('MGR-7080-SAH', 'password', state, clock).authorized

    def test_lockout_applies_to_system_ids(self, state, clock):
        state = self.fail(state, clock, 'SA-ROOT', 5)
        assert isinstance(authenticate('SA-ROOT', 'SUPER-SECURE-2025', state, clock), Locked)

    def test_other_ids_unaffected(self, state, clock):
        state = self.fail(state, clock, 'MGR-7080-SAH', 5)
        assert authenticate('PLR-5678-ROH', 'password', state, clock).authorized


class TestPairedActions:
    """Tests for the actions emitted with each outcome."""

    def test_authorized_sets_user_and_logs(self, state, clock):
        outcome = authenticate('ADM-HUB', 'ADMIN-ACCESS-777', state, clock)
        emitted = actions_for(outcome, 'ADM-HUB')
        assert [a.type for a in emitted] == [ActionType.SET_USER, ActionType.ADD_LOG]
        assert emitted[1].payload['action'] == 'Access Granted'
        assert emitted[1].payload['type'] == LogType.SUCCESS

    def test_denied_records_failure(self, state, clock):
        emitted = actions_for(Denied(), 'X')
        assert [a.type for a in emitted] == [ActionType.LOGIN_FAILURE]
        assert emitted[0].payload == 'X'

    def test_locked_and_banned_emit_nothing(self):
        assert actions_for(Locked(seconds_remaining=5), 'X') == []
        assert actions_for(Banned(), 'X') == []

    def test_messages(self, state, clock):
        assert 'Retry in 12s' in describe(Locked(seconds_remaining=12))
        assert 'banned' in describe(Banned())
        assert 'denied' in describe(Denied())


class TestBuildAccount:
    """Tests for sign-up account construction."""

    def test_manager_gets_roster_permission(self):
        account = build_account('MGR-1234-ABC', 'KEY-ABCDEF-123', 'Abc', Role.TEAM_MANAGER, '9100')
        assert account.permissions == (Permission.MANAGE_ROSTERS,)
        assert verify_key(account.password_hash, 'KEY-ABCDEF-123')

    def test_player_has_no_permissions(self):
        account = build_account('PLR-1234-ABC', 'KEY-ABCDEF-123', 'Abc', Role.PLAYER)
        assert account.permissions == ()
