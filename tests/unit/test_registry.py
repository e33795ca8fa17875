"""
Unit tests for CircuitRegistry.
Tests validation, compound action sequences and their audit entries.
"""
import re

import pytest

from arena_core.auth import Authorized, Denied
from arena_core.models import (
    IncidentType, LogType, MatchStatus, RegistrationStatus, Role,
)
from conftest import ADMIN, HOST, MANAGER, SUPER_ADMIN


def roster(count, prefix='P'):
    return [{'name': f'{prefix} {i}', 'ign': f'{prefix}_{i}'} for i in range(count)]


@pytest.fixture
def scheduled(registry, sign_in):
    """A fresh scheduled match in Bermuda Challengers."""
    sign_in(HOST)
    ok, _, match = registry.schedule_match({'tournamentId': 't-2', 'map': 'Bermuda', 'roundNumber': 1})
    assert ok
    return match


@pytest.fixture
def registration_data():
    return {
        'tournamentId': 't-2',
        'teamName': 'Night Owls',
        'teamTag': 'OWL',
        'players': roster(4, 'Owl'),
        'transactionId': 'TXN-42',
        'screenshotUrl': 'data:image/png;base64,AAA',
    }


class TestSessions:
    """Tests for sign-in, sign-out and sign-up."""

    def test_sign_in_sets_user_and_logs(self, registry):
        outcome = registry.sign_in(*ADMIN)
        assert isinstance(outcome, Authorized)
        assert registry.state.current_user.role == Role.ADMIN
        assert registry.state.logs[0].action == 'Access Granted'
        assert registry.state.logs[0].type == LogType.SUCCESS

    def test_failed_sign_in_counts(self, registry):
        assert isinstance(registry.sign_in('ADM-HUB', 'wrong'), Denied)
        assert registry.state.login_attempts['ADM-HUB'] == 1
        assert registry.state.current_user is None

    def test_sign_out(self, registry, sign_in):
        sign_in(HOST)
        ok, _ = registry.sign_out()
        assert ok
        assert registry.state.current_user is None
        assert registry.state.logs[0].action == 'Session Closed'

    def test_sign_out_without_session(self, registry):
        ok, message = registry.sign_out()
        assert not ok

    def test_sign_up_issues_working_credentials(self, registry):
        ok, _, credentials = registry.sign_up('Karan', Role.TEAM_MANAGER, '919999999999')
        assert ok
        assert re.fullmatch(r'MGR-\d{4}-KAR', credentials['secureId'])
        assert re.fullmatch(r'KEY-[A-Z0-9]{6}-\d{3}', credentials['accessKey'])

        stored = registry.state.find_account(credentials['secureId'])
        assert stored.password_hash != credentials['accessKey']
        assert registry.sign_in(credentials['secureId'], credentials['accessKey']).authorized

    def test_sign_up_accepts_role_strings(self, registry):
        ok, _, credentials = registry.sign_up('Priya', 'player', '91')
        assert ok
        assert credentials['secureId'].startswith('PLR-')

    @pytest.mark.parametrize('role', [Role.HOST, Role.ADMIN, Role.SUPER_ADMIN])
    def test_privileged_roles_cannot_self_register(self, registry, role):
        ok, _, credentials = registry.sign_up('Eve', role, '91')
        assert not ok
        assert credentials is None

    def test_sign_up_requires_name_and_mobile(self, registry):
        assert registry.sign_up('', Role.PLAYER, '91')[0] is False
        assert registry.sign_up('Eve', Role.PLAYER, '')[0] is False
        assert registry.sign_up('Eve', 'wizard', '91')[0] is False


class TestTournaments:
    """Tests for tournament management."""

    def test_create(self, registry, sign_in):
        sign_in(ADMIN)
        ok, _, tournament = registry.create_tournament({
            'name': 'Kalahari Cup', 'type': 'DUO', 'teamIds': ['team-1', 'team-2'],
            'startDate': '2025-06-01', 'endDate': '2025-06-30',
        })
        assert ok
        stored = registry.state.find_tournament(tournament.id)
        assert stored.team_ids == ('team-1', 'team-2')
        assert stored.type.value == 'DUO'
        assert registry.state.logs[0].action == 'Tournament Created'

    def test_create_requires_name(self, registry):
        ok, message, tournament = registry.create_tournament({'name': '  '})
        assert not ok
        assert tournament is None

    def test_create_rejects_reversed_dates(self, registry):
        ok, message, _ = registry.create_tournament({
            'name': 'Cup', 'startDate': '2025-06-30', 'endDate': '2025-06-01',
        })
        assert not ok
        assert 'End date' in message

    def test_create_rejects_unknown_teams(self, registry):
        ok, message, _ = registry.create_tournament({'name': 'Cup', 'teamIds': ['ghost']})
        assert not ok
        assert 'ghost' in message

    def test_update_keeps_announcements(self, registry):
        ok, _ = registry.update_tournament('t-1', {'name': 'League S2', 'announcements': []})
        assert ok
        tournament = registry.state.find_tournament('t-1')
        assert tournament.name == 'League S2'
        assert len(tournament.announcements) == 1

    def test_update_missing(self, registry):
        assert registry.update_tournament('missing', {'name': 'x'}) == (False, 'Tournament not found')

    def test_delete(self, registry):
        ok, _ = registry.delete_tournament('t-2')
        assert ok
        assert registry.state.find_tournament('t-2') is None
        assert registry.state.logs[0].type == LogType.WARNING

    def test_toggle_participation(self, registry):
        ok, _ = registry.toggle_participation('t-2', 'team-12')
        assert ok
        assert 'team-12' in registry.state.find_tournament('t-2').team_ids
        registry.toggle_participation('t-2', 'team-12')
        assert 'team-12' not in registry.state.find_tournament('t-2').team_ids

    def test_toggle_participation_unknown_team(self, registry):
        assert registry.toggle_participation('t-2', 'ghost') == (False, 'Team not found')

    def test_post_announcement(self, registry, sign_in):
        sign_in(ADMIN)
        ok, _ = registry.post_announcement('t-2', 'Lobby', 'Opens 7pm', ['player'], 'MATCH')
        assert ok
        announcement = registry.state.find_tournament('t-2').announcements[0]
        assert announcement.author == 'Admin Hub'
        assert announcement.target_roles == (Role.PLAYER,)

    def test_post_announcement_validation(self, registry):
        assert registry.post_announcement('t-2', '', 'x')[0] is False
        assert registry.post_announcement('t-2', 'x', 'y', ['wizard'])[0] is False
        assert registry.post_announcement('missing', 'x', 'y')[0] is False


class TestTeams:
    """Tests for team management and roster locks."""

    def test_create_owned_by_manager(self, registry, sign_in):
        sign_in(MANAGER)
        ok, _, team = registry.create_team({'name': 'Owls', 'tag': 'OWL', 'players': roster(4)})
        assert ok
        assert team.manager_id == 'MGR-7080-SAH'
        assert team.roster_locked is False
        assert all(p.id for p in team.players)

    def test_create_validation(self, registry):
        assert registry.create_team({'name': 'Owls'})[0] is False
        assert registry.create_team({'name': 'Owls', 'tag': 'O', 'players': [{'name': 'x', 'ign': ''}]})[0] is False

    def test_locked_roster_blocks_manager(self, registry, sign_in):
        sign_in(MANAGER)
        _, _, team = registry.create_team({'name': 'Owls', 'tag': 'OWL', 'players': roster(4)})
        registry.toggle_roster_lock(team.id)

        assert registry.update_team(team.id, {'players': roster(5)}) == (False, 'Roster is locked')
        # Cosmetic edits are still allowed
        assert registry.update_team(team.id, {'name': 'Night Owls'})[0] is True

    def test_locked_roster_editable_by_admin(self, registry, sign_in):
        sign_in(ADMIN)
        ok, _ = registry.update_team('team-1', {'players': roster(5)})
        assert ok
        assert len(registry.state.find_team('team-1').players) == 5

    def test_manager_cannot_edit_other_team(self, registry, sign_in):
        sign_in(MANAGER)
        ok, message = registry.update_team('team-1', {'name': 'Mine now'})
        assert not ok
        assert 'own team' in message

    def test_toggle_lock_and_delete(self, registry):
        assert registry.toggle_roster_lock('team-1') == (True, 'Roster unlocked')
        assert registry.delete_team('team-1')[0] is True
        assert registry.delete_team('team-1') == (False, 'Team not found')


class TestMatchStatus:
    """Tests for status changes and their paired incidents."""

    def test_go_live(self, registry, scheduled):
        ok, _ = registry.change_match_status(scheduled.id, 'LIVE')
        assert ok
        match = registry.state.find_match(scheduled.id)
        assert match.status == MatchStatus.LIVE
        assert match.incidents == ()
        assert registry.state.logs[0].action == 'Match State Change'

    def test_pause_records_incident(self, registry, scheduled):
        registry.change_match_status(scheduled.id, 'LIVE')
        ok, _ = registry.change_match_status(scheduled.id, 'PAUSED')
        assert ok
        match = registry.state.find_match(scheduled.id)
        assert match.status == MatchStatus.PAUSED
        assert match.modification_reason == 'Tactical Pause Issued'
        assert match.modified_by == 'Lobby Host'
        assert [i.type for i in match.incidents] == [IncidentType.PAUSE]

    def test_invalid_move(self, registry, scheduled):
        ok, message = registry.change_match_status(scheduled.id, 'PAUSED')
        assert not ok
        assert registry.state.find_match(scheduled.id).status == MatchStatus.SCHEDULED

    def test_completion_needs_results(self, registry, scheduled):
        assert registry.change_match_status(scheduled.id, 'COMPLETED')[0] is False

    def test_unknown_status(self, registry, scheduled):
        assert registry.change_match_status(scheduled.id, 'EXPLODED')[0] is False

    def test_batch_is_published_once(self, registry, scheduled, container, mocker):
        listener = mocker.Mock()
        container.subscribe(listener)
        registry.change_match_status(scheduled.id, 'LIVE')
        registry.change_match_status(scheduled.id, 'PAUSED')
        assert listener.call_count == 2


class TestScheduling:
    """Tests for scheduling matches."""

    def test_unknown_tournament(self, registry):
        ok, message, match = registry.schedule_match({'tournamentId': 'missing'})
        assert not ok
        assert match is None

    def test_map_must_be_in_pool(self, registry):
        ok, message, _ = registry.schedule_match({'tournamentId': 't-2', 'map': 'Atlantis'})
        assert not ok

    def test_defaults(self, registry, scheduled):
        assert scheduled.status == MatchStatus.SCHEDULED
        assert scheduled.results == ()
        assert scheduled.duration_minutes == 20

    def test_delete(self, registry, scheduled):
        assert registry.delete_match(scheduled.id)[0] is True
        assert registry.state.find_match(scheduled.id) is None


class TestResults:
    """Tests for result submission and overrides."""

    def test_initial_submission(self, registry, scheduled):
        ok, _ = registry.submit_results(scheduled.id, [
            {'teamId': 'team-1', 'placement': 1, 'kills': 8},
            {'teamId': 'team-2', 'placement': 2, 'kills': 3},
        ])
        assert ok
        match = registry.state.find_match(scheduled.id)
        assert match.status == MatchStatus.COMPLETED
        assert match.modification_reason == 'Initial Score Submission'
        assert match.incidents == ()
        assert registry.state.logs[0].action == 'Results Submitted'

    def test_anomaly_flagged_and_logged(self, registry, scheduled):
        registry.submit_results(scheduled.id, [
            {'teamId': 'team-1', 'placement': 1, 'kills': 30},
            {'teamId': 'team-2', 'placement': 2, 'kills': 25},
        ])
        match = registry.state.find_match(scheduled.id)
        assert match.result_for('team-1').anomaly_flag is True
        assert match.result_for('team-2').anomaly_flag is False
        assert registry.state.logs[0].action == 'Kill Anomaly'
        assert registry.state.logs[0].type == LogType.DANGER

    def test_override_requires_reason(self, registry, scheduled):
        registry.submit_results(scheduled.id, [{'teamId': 'team-1', 'placement': 1, 'kills': 2}])
        ok, message = registry.submit_results(scheduled.id, [{'teamId': 'team-1', 'placement': 2}])
        assert not ok
        assert 'reason' in message

    def test_override_records_incident(self, registry, scheduled):
        registry.submit_results(scheduled.id, [{'teamId': 'team-1', 'placement': 1, 'kills': 30}])
        ok, _ = registry.submit_results(
            scheduled.id, [{'teamId': 'team-1', 'placement': 2, 'kills': 12}], reason='Wrong team'
        )
        assert ok
        match = registry.state.find_match(scheduled.id)
        assert match.modification_reason == 'Wrong team'
        assert [i.type for i in match.incidents] == [IncidentType.OVERRIDE]
        # A corrected kill count keeps the earlier flag
        assert match.result_for('team-1').anomaly_flag is True

    def test_team_must_be_registered(self, registry, scheduled):
        ok, message = registry.submit_results(scheduled.id, [{'teamId': 'team-12', 'placement': 1}])
        assert not ok
        assert registry.state.find_match(scheduled.id).status == MatchStatus.SCHEDULED

    def test_duplicate_team_rejected(self, registry, scheduled):
        ok, _ = registry.submit_results(scheduled.id, [
            {'teamId': 'team-1', 'placement': 1}, {'teamId': 'team-1', 'placement': 2},
        ])
        assert not ok

    def test_voided_match_rejected(self, registry, scheduled):
        registry.change_match_status(scheduled.id, 'VOIDED')
        ok, _ = registry.submit_results(scheduled.id, [{'teamId': 'team-1', 'placement': 1}])
        assert not ok

    def test_results_feed_standings(self, registry, scheduled):
        from arena_core.scoring import tournament_standings
        registry.submit_results(scheduled.id, [{'teamId': 'team-3', 'placement': 1, 'kills': 4}])
        top = tournament_standings(registry.state, 't-2')[0]
        assert top.team.id == 'team-3'
        assert top.total_points == 16

    def test_report_incident(self, registry, scheduled):
        ok, _ = registry.report_incident(scheduled.id, 'Suspected teaming')
        assert ok
        incident = registry.state.find_match(scheduled.id).incidents[-1]
        assert incident.type == IncidentType.DISPUTE
        assert registry.report_incident(scheduled.id, ' ')[0] is False


class TestRegistrations:
    """Tests for the registration workflow."""

    def test_submit(self, registry, sign_in, registration_data):
        sign_in(MANAGER)
        ok, _, registration = registry.submit_registration(registration_data)
        assert ok
        assert registration.status == RegistrationStatus.PENDING
        assert registration.submitted_by == 'MGR-7080-SAH'
        assert registry.state.logs[0].action == 'Reg Submitted'

    @pytest.mark.parametrize('field,value', [
        ('tournamentId', 'missing'),
        ('teamName', ''),
        ('transactionId', ''),
        ('screenshotUrl', ''),
        ('players', roster(3)),
    ])
    def test_submit_validation(self, registry, registration_data, field, value):
        registration_data[field] = value
        ok, _, registration = registry.submit_registration(registration_data)
        assert not ok
        assert registration is None
        assert registry.state.registrations == ()

    def test_roster_minimum_is_configurable(self, container, clock, registration_data):
        from arena_hub.registry import CircuitRegistry
        registry = CircuitRegistry(container, min_roster_size=2, clock=clock)
        registration_data['players'] = roster(2)
        assert registry.submit_registration(registration_data)[0] is True

    def test_approve(self, registry, sign_in, registration_data):
        sign_in(MANAGER)
        _, _, registration = registry.submit_registration(registration_data)
        sign_in(ADMIN)
        ok, _, team_id = registry.approve_registration(registration.id)
        assert ok

        team = registry.state.find_team(team_id)
        assert team.name == 'Night Owls'
        assert team.roster_locked is True
        assert team.manager_id == 'MGR-7080-SAH'
        assert team_id in registry.state.find_tournament('t-2').team_ids
        assert registry.state.find_registration(registration.id).status == RegistrationStatus.APPROVED

    def test_approve_only_pending(self, registry, registration_data):
        _, _, registration = registry.submit_registration(registration_data)
        registry.approve_registration(registration.id)
        ok, message, _ = registry.approve_registration(registration.id)
        assert not ok
        assert 'approved' in message
        assert registry.reject_registration(registration.id)[0] is False

    def test_approve_after_tournament_deleted(self, registry, registration_data):
        _, _, registration = registry.submit_registration(registration_data)
        registry.delete_tournament('t-2')
        ok, _, _ = registry.approve_registration(registration.id)
        assert not ok
        assert len(registry.state.teams) == 12

    def test_reject(self, registry, registration_data):
        _, _, registration = registry.submit_registration(registration_data)
        assert registry.reject_registration(registration.id)[0] is True
        assert registry.state.find_registration(registration.id).status == RegistrationStatus.REJECTED
        assert len(registry.state.teams) == 12


class TestSettings:
    """Tests for settings operations."""

    def test_update_scoring(self, registry):
        ok, _ = registry.update_scoring({'1': 15, '2': 10}, points_per_kill=2, max_kill_threshold=30)
        assert ok
        scoring = registry.state.settings.scoring
        assert scoring.placement_points == {1: 15, 2: 10}
        assert scoring.points_per_kill == 2
        assert scoring.max_kill_threshold == 30

    def test_partial_scoring_update(self, registry):
        registry.update_scoring(points_per_kill=3)
        scoring = registry.state.settings.scoring
        assert scoring.points_per_kill == 3
        assert scoring.placement_points[1] == 12

    @pytest.mark.parametrize('kwargs', [
        {'placement_points': {'0': 5}},
        {'placement_points': {'1': -1}},
        {'points_per_kill': -1},
        {'max_kill_threshold': 'lots'},
        {'points_per_kill': float('inf')},
        {'placement_points': {'1': float('inf')}},
    ])
    def test_scoring_validation(self, registry, kwargs):
        assert registry.update_scoring(**kwargs)[0] is False

    def test_maps(self, registry):
        assert registry.add_map('Solara')[0] is True
        assert registry.add_map('solara')[0] is False
        assert registry.remove_map('Solara')[0] is True
        assert registry.remove_map('Solara')[0] is False
        assert 'Solara' not in registry.state.settings.maps

    def test_general_settings(self, registry):
        assert registry.update_general_settings({'appName': 'Circuit', 'entryFee': '₹200'})[0] is True
        assert registry.state.settings.app_name == 'Circuit'
        assert registry.update_general_settings({'appName': ''})[0] is False

    def test_rotate_system_ids(self, registry, sign_in):
        sign_in(SUPER_ADMIN)
        ok, _ = registry.rotate_system_ids({'host': {'key': 'NEW-HOST-KEY'}})
        assert ok
        assert registry.state.logs[0].type == LogType.DANGER
        assert registry.sign_in('HST-LOBBY', 'NEW-HOST-KEY').authorized

    def test_rotate_validation(self, registry):
        assert registry.rotate_system_ids({'admin': {'key': ''}})[0] is False
        assert registry.rotate_system_ids({'admin': {'id': 'SA-ROOT'}})[0] is False


class TestAccountsAndState:
    """Tests for bans and whole-state operations."""

    def test_toggle_ban(self, registry, sign_in):
        sign_in(ADMIN)
        assert registry.toggle_ban('PLR-5678-ROH') == (True, 'Account banned')
        assert registry.state.find_account('PLR-5678-ROH').is_banned
        assert registry.toggle_ban('missing')[0] is False

    def test_cannot_ban_self(self, registry, sign_in):
        sign_in(MANAGER)
        assert registry.toggle_ban('MGR-7080-SAH')[0] is False

    def test_import(self, registry, state):
        data = state.to_dict()
        data['teams'] = data['teams'][:3]
        assert registry.import_state(data)[0] is True
        assert len(registry.state.teams) == 3
        assert registry.state.logs[0].action == 'State Imported'

    def test_import_rejects_garbage(self, registry):
        assert registry.import_state(['nope'])[0] is False
        assert registry.import_state({'teams': []})[0] is False

    def test_reset(self, registry, sign_in):
        registry.sign_up('Karan', Role.PLAYER, '91')
        registry.delete_team('team-1')
        ok, _ = registry.reset_data()
        assert ok
        assert registry.state.find_team('team-1') is not None
        assert len(registry.state.accounts) == 4
        assert registry.state.logs[0].action == 'Factory Reset'
