import os
import time
import logging
from flask import Flask, request, jsonify, Response, session
import redis

from arena_core.auth import Authorized, Banned, Locked, describe
from arena_core.models import Role, RegistrationStatus
from arena_core.scoring import tournament_standings, match_breakdown
from .config import config
from .export import standings_rows, to_csv
from .registry import CircuitRegistry
from .security import roles_required, current_user
from .store import StateStore, THEMES, connect
from .views import dashboard

logger = logging.getLogger(__name__)

STAFF = (Role.HOST, Role.ADMIN, Role.SUPER_ADMIN)
OFFICERS = (Role.ADMIN, Role.SUPER_ADMIN)
ROOT = (Role.SUPER_ADMIN,)


def create_app(config_name: str = None, redis_client: redis.Redis = None, clock=time.time) -> Flask:
    """Application factory for the ArenaSync hub."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    logging.basicConfig(level=app.config['LOG_LEVEL'])

    # Initialize services
    app.redis = connect(app.config['REDIS_URL'], redis_client)
    store = StateStore(app.redis, app.config['STATE_KEY'], app.config['THEME_KEY'])
    container = store.open_container(clock=clock)

    # Store services on app for access in routes
    app.store = store
    app.container = container
    app.registry = CircuitRegistry(
        container,
        min_roster_size=app.config['MIN_ROSTER_SIZE'],
        clock=clock
    )

    register_api_routes(app)

    return app


def _failure(message: str, code: int = 400):
    if message.lower().endswith('not found'):
        code = 404
    return jsonify({'error': message}), code


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def register_api_routes(app: Flask):
    """Register API routes."""

    def state():
        return app.container.state

    # ==================== Auth ====================

    @app.route('/api/v1/auth/login', methods=['POST'])
    def api_login():
        """Sign in with a secure id and access key."""
        data = _payload()
        secure_id = str(data.get('secureId') or '').strip()
        key = str(data.get('accessKey') or '')
        if not secure_id or not key:
            return jsonify({'error': 'secureId and accessKey are required'}), 400

        outcome = app.registry.sign_in(secure_id, key)
        if isinstance(outcome, Authorized):
            session['secure_id'] = outcome.account.secure_id
            return jsonify({
                'message': describe(outcome),
                'user': outcome.account.to_dict(include_secret=False)
            })
        if isinstance(outcome, Locked):
            return jsonify({
                'error': describe(outcome),
                'retry_after': outcome.seconds_remaining
            }), 423
        if isinstance(outcome, Banned):
            return jsonify({'error': describe(outcome)}), 403
        return jsonify({'error': describe(outcome)}), 401

    @app.route('/api/v1/auth/logout', methods=['POST'])
    @roles_required()
    def api_logout():
        success, message = app.registry.sign_out()
        if not success:
            return _failure(message)
        session.pop('secure_id', None)
        return jsonify({'message': message})

    @app.route('/api/v1/auth/signup', methods=['POST'])
    def api_signup():
        """Issue a new player or manager identity."""
        data = _payload()
        success, message, credentials = app.registry.sign_up(
            name=data.get('name'),
            role=data.get('role', Role.PLAYER.value),
            mobile=data.get('mobile', ''),
            insta=data.get('insta', ''),
            discord=data.get('discord', '')
        )
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'credentials': credentials}), 201

    @app.route('/api/v1/auth/me', methods=['GET'])
    @roles_required()
    def api_me():
        return jsonify({'user': current_user().to_dict(include_secret=False)})

    # ==================== Tournaments ====================

    @app.route('/api/v1/tournaments', methods=['GET'])
    @roles_required()
    def api_list_tournaments():
        """List tournaments with optional status filtering."""
        status = request.args.get('status')
        tournaments = [
            t for t in state().tournaments
            if not status or t.status.value == status.upper()
        ]
        return jsonify({
            'tournaments': [t.to_dict() for t in tournaments],
            'count': len(tournaments)
        })

    @app.route('/api/v1/tournaments', methods=['POST'])
    @roles_required(*OFFICERS)
    def api_create_tournament():
        success, message, tournament = app.registry.create_tournament(_payload())
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'tournament': tournament.to_dict()}), 201

    @app.route('/api/v1/tournaments/<tournament_id>', methods=['GET'])
    @roles_required()
    def api_get_tournament(tournament_id: str):
        tournament = state().find_tournament(tournament_id)
        if not tournament:
            return jsonify({'error': 'Tournament not found'}), 404
        return jsonify(tournament.to_dict())

    @app.route('/api/v1/tournaments/<tournament_id>', methods=['PUT'])
    @roles_required(*OFFICERS)
    def api_update_tournament(tournament_id: str):
        success, message = app.registry.update_tournament(tournament_id, _payload())
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'tournament': state().find_tournament(tournament_id).to_dict()})

    @app.route('/api/v1/tournaments/<tournament_id>', methods=['DELETE'])
    @roles_required(*OFFICERS)
    def api_delete_tournament(tournament_id: str):
        success, message = app.registry.delete_tournament(tournament_id)
        if not success:
            return _failure(message)
        return jsonify({'message': message})

    @app.route('/api/v1/tournaments/<tournament_id>/teams/<team_id>', methods=['POST'])
    @roles_required(*OFFICERS)
    def api_toggle_participation(tournament_id: str, team_id: str):
        """Enter a team into a tournament, or withdraw it."""
        success, message = app.registry.toggle_participation(tournament_id, team_id)
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'teamIds': list(state().find_tournament(tournament_id).team_ids)})

    @app.route('/api/v1/tournaments/<tournament_id>/announcements', methods=['POST'])
    @roles_required(*OFFICERS)
    def api_post_announcement(tournament_id: str):
        data = _payload()
        success, message = app.registry.post_announcement(
            tournament_id,
            title=data.get('title', ''),
            content=data.get('content', ''),
            target_roles=data.get('targetRoles'),
            announcement_type=data.get('type', 'INFO')
        )
        if not success:
            return _failure(message)
        return jsonify({'message': message}), 201

    @app.route('/api/v1/tournaments/<tournament_id>/standings', methods=['GET'])
    @roles_required()
    def api_standings(tournament_id: str):
        if not state().find_tournament(tournament_id):
            return jsonify({'error': 'Tournament not found'}), 404
        entries = tournament_standings(state(), tournament_id)
        return jsonify({
            'tournamentId': tournament_id,
            'standings': [
                dict(entry.to_dict(), rank=rank) for rank, entry in enumerate(entries, start=1)
            ]
        })

    @app.route('/api/v1/tournaments/<tournament_id>/standings.csv', methods=['GET'])
    @roles_required()
    def api_standings_csv(tournament_id: str):
        """Export standings as a downloadable CSV file."""
        if not state().find_tournament(tournament_id):
            return jsonify({'error': 'Tournament not found'}), 404
        content = to_csv(standings_rows(tournament_standings(state(), tournament_id)))
        return Response(
            content,
            mimetype='text/csv',
            headers={'Content-Disposition': f'attachment; filename=standings-{tournament_id}.csv'}
        )

    # ==================== Teams ====================

    @app.route('/api/v1/teams', methods=['GET'])
    @roles_required()
    def api_list_teams():
        teams = state().teams
        return jsonify({'teams': [t.to_dict() for t in teams], 'count': len(teams)})

    @app.route('/api/v1/teams/<team_id>', methods=['GET'])
    @roles_required()
    def api_get_team(team_id: str):
        team = state().find_team(team_id)
        if not team:
            return jsonify({'error': 'Team not found'}), 404
        return jsonify(team.to_dict())

    @app.route('/api/v1/teams', methods=['POST'])
    @roles_required(Role.TEAM_MANAGER, *OFFICERS)
    def api_create_team():
        success, message, team = app.registry.create_team(_payload())
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'team': team.to_dict()}), 201

    @app.route('/api/v1/teams/<team_id>', methods=['PUT'])
    @roles_required(Role.TEAM_MANAGER, *OFFICERS)
    def api_update_team(team_id: str):
        success, message = app.registry.update_team(team_id, _payload())
        if not success:
            code = 403 if message in ('Roster is locked', 'Managers can only edit their own team') else 400
            return _failure(message, code)
        return jsonify({'message': message, 'team': state().find_team(team_id).to_dict()})

    @app.route('/api/v1/teams/<team_id>/lock', methods=['POST'])
    @roles_required(*OFFICERS)
    def api_toggle_lock(team_id: str):
        success, message = app.registry.toggle_roster_lock(team_id)
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'rosterLocked': state().find_team(team_id).roster_locked})

    @app.route('/api/v1/teams/<team_id>', methods=['DELETE'])
    @roles_required(*OFFICERS)
    def api_delete_team(team_id: str):
        success, message = app.registry.delete_team(team_id)
        if not success:
            return _failure(message)
        return jsonify({'message': message})

    # ==================== Matches ====================

    @app.route('/api/v1/matches', methods=['GET'])
    @roles_required()
    def api_list_matches():
        tournament_id = request.args.get('tournament_id')
        matches = [
            m for m in state().matches
            if not tournament_id or m.tournament_id == tournament_id
        ]
        return jsonify({'matches': [m.to_dict() for m in matches], 'count': len(matches)})

    @app.route('/api/v1/matches/<match_id>', methods=['GET'])
    @roles_required()
    def api_get_match(match_id: str):
        match = state().find_match(match_id)
        if not match:
            return jsonify({'error': 'Match not found'}), 404
        return jsonify(match.to_dict())

    @app.route('/api/v1/matches', methods=['POST'])
    @roles_required(*STAFF)
    def api_schedule_match():
        success, message, match = app.registry.schedule_match(_payload())
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'match': match.to_dict()}), 201

    @app.route('/api/v1/matches/<match_id>', methods=['DELETE'])
    @roles_required(*OFFICERS)
    def api_delete_match(match_id: str):
        success, message = app.registry.delete_match(match_id)
        if not success:
            return _failure(message)
        return jsonify({'message': message})

    @app.route('/api/v1/matches/<match_id>/status', methods=['POST'])
    @roles_required(*STAFF)
    def api_match_status(match_id: str):
        """Move a match through its lifecycle (go live, pause, resume, void...)."""
        status = str(_payload().get('status') or '').upper()
        success, message = app.registry.change_match_status(match_id, status)
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'match': state().find_match(match_id).to_dict()})

    @app.route('/api/v1/matches/<match_id>/results', methods=['POST'])
    @roles_required(*STAFF)
    def api_submit_results(match_id: str):
        data = _payload()
        results = data.get('results') or []
        if not isinstance(results, list):
            return jsonify({'error': 'results must be a list'}), 400
        success, message = app.registry.submit_results(match_id, results, data.get('reason'))
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'match': state().find_match(match_id).to_dict()})

    @app.route('/api/v1/matches/<match_id>/incidents', methods=['POST'])
    @roles_required(Role.TEAM_MANAGER, *STAFF)
    def api_report_incident(match_id: str):
        success, message = app.registry.report_incident(match_id, _payload().get('message', ''))
        if not success:
            return _failure(message)
        return jsonify({'message': message}), 201

    @app.route('/api/v1/matches/<match_id>/breakdown', methods=['GET'])
    @roles_required()
    def api_match_breakdown(match_id: str):
        """Per-team points for a single match."""
        match = state().find_match(match_id)
        if not match:
            return jsonify({'error': 'Match not found'}), 404
        lines = match_breakdown(match, state().teams, state().settings.scoring)
        return jsonify({'matchId': match_id, 'lines': [line.to_dict() for line in lines]})

    # ==================== Registrations ====================

    @app.route('/api/v1/registrations', methods=['GET'])
    @roles_required(Role.TEAM_MANAGER, *OFFICERS)
    def api_list_registrations():
        user = current_user()
        status = (request.args.get('status') or '').upper()
        if status and status not in RegistrationStatus.__members__:
            return jsonify({'error': f"Unknown registration status '{status}'"}), 400

        # Managers only see what they submitted
        registrations = [
            r for r in state().registrations
            if (user.role != Role.TEAM_MANAGER or r.submitted_by == user.secure_id)
            and (not status or r.status.value == status)
        ]
        return jsonify({
            'registrations': [r.to_dict() for r in registrations],
            'count': len(registrations)
        })

    @app.route('/api/v1/registrations', methods=['POST'])
    @roles_required(Role.TEAM_MANAGER)
    def api_submit_registration():
        success, message, registration = app.registry.submit_registration(_payload())
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'registration': registration.to_dict()}), 201

    @app.route('/api/v1/registrations/<registration_id>/approve', methods=['POST'])
    @roles_required(*OFFICERS)
    def api_approve_registration(registration_id: str):
        success, message, team_id = app.registry.approve_registration(registration_id)
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'team': state().find_team(team_id).to_dict()})

    @app.route('/api/v1/registrations/<registration_id>/reject', methods=['POST'])
    @roles_required(*OFFICERS)
    def api_reject_registration(registration_id: str):
        success, message = app.registry.reject_registration(registration_id)
        if not success:
            return _failure(message)
        return jsonify({'message': message})

    # ==================== Settings ====================

    @app.route('/api/v1/settings', methods=['GET'])
    @roles_required()
    def api_get_settings():
        data = state().settings.to_dict()
        # System credentials are only visible to the super admin
        if current_user().role != Role.SUPER_ADMIN:
            data.pop('systemIds', None)
        return jsonify(data)

    @app.route('/api/v1/settings', methods=['PUT'])
    @roles_required(*OFFICERS)
    def api_update_settings():
        success, message = app.registry.update_general_settings(_payload())
        if not success:
            return _failure(message)
        return jsonify({'message': message})

    @app.route('/api/v1/settings/scoring', methods=['PUT'])
    @roles_required(*OFFICERS)
    def api_update_scoring():
        data = _payload()
        success, message = app.registry.update_scoring(
            placement_points=data.get('placementPoints'),
            points_per_kill=data.get('pointsPerKill'),
            max_kill_threshold=data.get('maxKillThreshold')
        )
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'scoring': state().settings.scoring.to_dict()})

    @app.route('/api/v1/settings/maps', methods=['POST'])
    @roles_required(*OFFICERS)
    def api_add_map():
        success, message = app.registry.add_map(_payload().get('name', ''))
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'maps': list(state().settings.maps)}), 201

    @app.route('/api/v1/settings/maps/<name>', methods=['DELETE'])
    @roles_required(*OFFICERS)
    def api_remove_map(name: str):
        success, message = app.registry.remove_map(name)
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'maps': list(state().settings.maps)})

    @app.route('/api/v1/settings/system-ids', methods=['PUT'])
    @roles_required(*ROOT)
    def api_rotate_system_ids():
        success, message = app.registry.rotate_system_ids(_payload())
        if not success:
            return _failure(message)
        return jsonify({'message': message})

    # ==================== Accounts & audit ====================

    @app.route('/api/v1/accounts', methods=['GET'])
    @roles_required(*OFFICERS)
    def api_list_accounts():
        accounts = state().accounts
        return jsonify({
            'accounts': [a.to_dict(include_secret=False) for a in accounts],
            'count': len(accounts)
        })

    @app.route('/api/v1/accounts/<secure_id>/ban', methods=['POST'])
    @roles_required(*OFFICERS)
    def api_toggle_ban(secure_id: str):
        success, message = app.registry.toggle_ban(secure_id)
        if not success:
            return _failure(message)
        return jsonify({'message': message, 'isBanned': state().find_account(secure_id).is_banned})

    @app.route('/api/v1/logs', methods=['GET'])
    @roles_required(*OFFICERS)
    def api_logs():
        limit = request.args.get('limit', 100, type=int)
        logs = state().logs[:max(0, limit)]
        return jsonify({'logs': [entry.to_dict() for entry in logs], 'count': len(logs)})

    # ==================== Whole state ====================

    @app.route('/api/v1/state/export', methods=['GET'])
    @roles_required(*ROOT)
    def api_export_state():
        return jsonify(state().to_dict())

    @app.route('/api/v1/state/import', methods=['POST'])
    @roles_required(*ROOT)
    def api_import_state():
        success, message = app.registry.import_state(request.get_json(silent=True))
        if not success:
            return _failure(message)
        return jsonify({'message': message})

    @app.route('/api/v1/state/reset', methods=['POST'])
    @roles_required(*ROOT)
    def api_reset_state():
        _, message = app.registry.reset_data()
        session.pop('secure_id', None)
        return jsonify({'message': message})

    # ==================== Presentation ====================

    @app.route('/api/v1/theme', methods=['GET'])
    def api_get_theme():
        return jsonify({'theme': app.store.load_theme(), 'themes': list(THEMES)})

    @app.route('/api/v1/theme', methods=['PUT'])
    @roles_required()
    def api_set_theme():
        theme = str(_payload().get('theme') or '')
        try:
            app.store.save_theme(theme)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify({'theme': theme})

    @app.route('/api/v1/dashboard', methods=['GET'])
    @roles_required()
    def api_dashboard():
        return jsonify(dashboard(state(), current_user().role))

    # ==================== Health Check ====================

    @app.route('/health')
    def health_check():
        """Health check endpoint."""
        try:
            app.redis.ping()
            redis_ok = True
        except redis.RedisError:
            redis_ok = False

        status = 'healthy' if redis_ok else 'unhealthy'
        code = 200 if redis_ok else 503

        return jsonify({
            'status': status,
            'redis': 'connected' if redis_ok else 'disconnected',
            'tournaments': len(state().tournaments)
        }), code
