import logging
import time
from dataclasses import replace
from typing import Optional, Tuple, List, Dict, Any

from arena_core import actions
from arena_core.auth import AuthOutcome, Denied, authenticate, actions_for, build_account
from arena_core.container import StateContainer
from arena_core.match_flow import MatchStateMachine, MatchTransitionError
from arena_core.models import (
    Announcement, AnnouncementType, AppState, IncidentType, LogType, Match, MatchIncident,
    MatchResult, MatchStatus, Player, RegistrationStatus, Role, SystemCredential,
    SystemIds, Team, TeamRegistration, Tournament, iso_timestamp, parse_payload,
)
from arena_core.scoring import flag_anomalies
from .identity import generate_secure_id, generate_access_key, generate_short_id

logger = logging.getLogger(__name__)

SELF_SERVICE_ROLES = (Role.PLAYER, Role.TEAM_MANAGER)
ROSTER_OFFICERS = (Role.ADMIN, Role.SUPER_ADMIN)

STATUS_REASONS = {
    MatchStatus.PAUSED: "Tactical Pause Issued",
    MatchStatus.VOIDED: "Admin Void Order",
}

INITIAL_SUBMISSION = "Initial Score Submission"


def _players(items, prefix: str = "p-") -> Tuple[Player, ...]:
    """Build players from request data, minting ids where missing."""
    players = []
    for item in items or []:
        player = parse_payload(Player, item)
        if not player.ign.strip():
            raise ValueError("Every player needs an in-game name")
        if not player.id:
            player = replace(player, id=generate_short_id(prefix))
        players.append(player)
    return tuple(players)


class CircuitRegistry:
    """
    Orchestrates the circuit on top of the state container:
    - Authentication and self-service sign-up
    - Tournament, team and match management
    - Registration review
    - Settings, credentials and whole-state operations

    Every operation validates first and then dispatches its whole action
    sequence as one batch.
    """

    def __init__(self, container: StateContainer, min_roster_size: int = 4, clock=time.time):
        self.container = container
        self.min_roster_size = min_roster_size
        self.clock = clock

    @property
    def state(self) -> AppState:
        return self.container.state

    def _actor(self) -> Tuple[str, Role]:
        user = self.state.current_user
        if user is None:
            return "System", Role.SUPER_ADMIN
        return user.username, user.role

    def _log(self, action: str, details: str, log_type: LogType = LogType.INFO) -> actions.Action:
        user, role = self._actor()
        return actions.add_log(user, role, action, details, log_type)

    def _now(self) -> str:
        return iso_timestamp(self.clock())

    def _commit(self, *batch: actions.Action) -> List[bool]:
        return self.container.dispatch_all(batch)

    # ------------------------------------------------------------ sessions

    def sign_in(self, secure_id: str, key: str) -> AuthOutcome:
        outcome = authenticate(secure_id, key, self.state, self.clock)
        self._commit(*actions_for(outcome, secure_id))
        if isinstance(outcome, Denied):
            attempts = self.state.login_attempts.get(secure_id, 0)
            logger.info(f"Failed sign-in for {secure_id} (attempt {attempts})")
        return outcome

    def sign_out(self) -> Tuple[bool, str]:
        user = self.state.current_user
        if user is None:
            return False, "No active session"
        self._commit(
            self._log("Session Closed", f"{user.secure_id} signed out"),
            actions.set_user(None),
        )
        return True, "Signed out"

    def sign_up(
        self,
        name: str,
        role: Role,
        mobile: str = "",
        insta: str = "",
        discord: str = ""
    ) -> Tuple[bool, str, Optional[Dict[str, str]]]:
        """Issue a new identity. Returns the credentials once; only the hash is kept."""
        name = (name or "").strip()
        if not name:
            return False, "Name is required", None
        if not (mobile or "").strip():
            return False, "Mobile number is required", None
        try:
            role = Role(role)
        except ValueError:
            return False, f"Unknown role '{role}'", None
        if role not in SELF_SERVICE_ROLES:
            return False, "Only players and team managers can self-register", None

        system_ids = self.state.settings.system_ids
        taken = [a.secure_id for a in self.state.accounts] + [
            system_ids.super_admin.id, system_ids.admin.id, system_ids.host.id
        ]
        secure_id = generate_secure_id(name, role, taken)
        key = generate_access_key()
        account = build_account(secure_id, key, name, role, mobile.strip(), insta, discord)

        self._commit(
            actions.sign_up(account),
            actions.add_log(name, role, "Identity Created", f"New secure ID issued: {secure_id}"),
        )
        return True, "Identity created", {"secureId": secure_id, "accessKey": key}

    # ------------------------------------------------------------ tournaments

    def create_tournament(self, data: Dict[str, Any]) -> Tuple[bool, str, Optional[Tournament]]:
        name = str(data.get("name") or "").strip()
        if not name:
            return False, "Tournament name is required", None

        tournament = Tournament.from_dict({
            **data,
            "id": generate_short_id("t-"),
            "name": name,
            "announcements": [],
        })
        ok, message = self._check_tournament(tournament)
        if not ok:
            return False, message, None

        self._commit(
            actions.add_tournament(tournament),
            self._log("Tournament Created", f"{tournament.name} ({tournament.id}) created"),
        )
        return True, "Tournament created", tournament

    def _check_tournament(self, tournament: Tournament) -> Tuple[bool, str]:
        if tournament.start_date and tournament.end_date and tournament.end_date < tournament.start_date:
            return False, "End date cannot be before start date"
        unknown = [tid for tid in tournament.team_ids if self.state.find_team(tid) is None]
        if unknown:
            return False, f"Unknown teams: {', '.join(unknown)}"
        return True, ""

    def update_tournament(self, tournament_id: str, changes: Dict[str, Any]) -> Tuple[bool, str]:
        existing = self.state.find_tournament(tournament_id)
        if not existing:
            return False, "Tournament not found"

        data = existing.to_dict()
        data.update({k: v for k, v in changes.items() if k not in ("id", "announcements")})
        updated = Tournament.from_dict(data)
        if not updated.name.strip():
            return False, "Tournament name is required"
        ok, message = self._check_tournament(updated)
        if not ok:
            return False, message

        self._commit(
            actions.update_tournament(updated),
            self._log("Tournament Updated", f"{updated.name} ({updated.id}) updated"),
        )
        return True, "Tournament updated"

    def delete_tournament(self, tournament_id: str) -> Tuple[bool, str]:
        tournament = self.state.find_tournament(tournament_id)
        if not tournament:
            return False, "Tournament not found"
        self._commit(
            actions.delete_tournament(tournament_id),
            self._log("Tournament Deleted", f"{tournament.name} ({tournament_id}) removed", LogType.WARNING),
        )
        return True, "Tournament deleted"

    def toggle_participation(self, tournament_id: str, team_id: str) -> Tuple[bool, str]:
        tournament = self.state.find_tournament(tournament_id)
        if not tournament:
            return False, "Tournament not found"
        team = self.state.find_team(team_id)
        if not team:
            return False, "Team not found"

        if team_id in tournament.team_ids:
            team_ids = tuple(t for t in tournament.team_ids if t != team_id)
            verb = "withdrawn from"
        else:
            team_ids = tournament.team_ids + (team_id,)
            verb = "entered into"

        self._commit(
            actions.update_tournament(replace(tournament, team_ids=team_ids)),
            self._log("Participation Changed", f"{team.name} {verb} {tournament.name}"),
        )
        return True, f"{team.name} {verb} {tournament.name}"

    def post_announcement(
        self,
        tournament_id: str,
        title: str,
        content: str,
        target_roles=None,
        announcement_type: str = AnnouncementType.INFO.value
    ) -> Tuple[bool, str]:
        tournament = self.state.find_tournament(tournament_id)
        if not tournament:
            return False, "Tournament not found"
        if not (title or "").strip() or not (content or "").strip():
            return False, "Title and content are required"
        try:
            roles = tuple(Role(r) for r in (target_roles or [r.value for r in Role]))
            kind = AnnouncementType(announcement_type)
        except ValueError as e:
            return False, str(e)

        author, _ = self._actor()
        announcement = Announcement(
            id=generate_short_id("a-"),
            title=title.strip(),
            content=content.strip(),
            target_roles=roles,
            author=author,
            timestamp=self._now(),
            type=kind,
        )
        self._commit(
            actions.add_announcement(tournament_id, announcement),
            self._log("Broadcast Issued", f"{announcement.title} posted to {tournament.name}"),
        )
        return True, "Announcement posted"

    # ------------------------------------------------------------ teams

    def create_team(self, data: Dict[str, Any]) -> Tuple[bool, str, Optional[Team]]:
        name = str(data.get("name") or "").strip()
        tag = str(data.get("tag") or "").strip()
        if not name or not tag:
            return False, "Team name and tag are required", None

        try:
            players = _players(data.get("players"))
            substitutes = _players(data.get("substitutes"))
        except (TypeError, ValueError) as e:
            return False, str(e), None

        user = self.state.current_user
        manager_id = str(data.get("managerId") or (user.secure_id if user else ""))
        team = Team(
            id=generate_short_id("team-"),
            name=name,
            tag=tag,
            players=players,
            substitutes=substitutes,
            roster_locked=False,
            manager_id=manager_id,
            logo_url=str(data.get("logoUrl") or ""),
        )
        self._commit(
            actions.add_team(team),
            self._log("Team Created", f"{team.name} [{team.tag}] created"),
        )
        return True, "Team created", team

    def update_team(self, team_id: str, changes: Dict[str, Any]) -> Tuple[bool, str]:
        team = self.state.find_team(team_id)
        if not team:
            return False, "Team not found"

        user = self.state.current_user
        role = user.role if user else None
        if role == Role.TEAM_MANAGER and team.manager_id != user.secure_id:
            return False, "Managers can only edit their own team"

        try:
            players = _players(changes["players"]) if "players" in changes else team.players
            substitutes = _players(changes["substitutes"]) if "substitutes" in changes else team.substitutes
        except (TypeError, ValueError) as e:
            return False, str(e)

        roster_changed = players != team.players or substitutes != team.substitutes
        if team.roster_locked and roster_changed and role not in ROSTER_OFFICERS:
            return False, "Roster is locked"

        updated = replace(
            team,
            name=str(changes.get("name", team.name)).strip(),
            tag=str(changes.get("tag", team.tag)).strip(),
            logo_url=str(changes.get("logoUrl", team.logo_url)),
            players=players,
            substitutes=substitutes,
        )
        if not updated.name or not updated.tag:
            return False, "Team name and tag are required"

        self._commit(
            actions.update_team(updated),
            self._log("Team Updated", f"{updated.name} [{updated.tag}] updated"),
        )
        return True, "Team updated"

    def toggle_roster_lock(self, team_id: str) -> Tuple[bool, str]:
        team = self.state.find_team(team_id)
        if not team:
            return False, "Team not found"
        state = "unlocked" if team.roster_locked else "locked"
        self._commit(
            actions.toggle_team_lock(team_id),
            self._log("Roster Lock", f"{team.name} roster {state}", LogType.WARNING),
        )
        return True, f"Roster {state}"

    def delete_team(self, team_id: str) -> Tuple[bool, str]:
        team = self.state.find_team(team_id)
        if not team:
            return False, "Team not found"
        self._commit(
            actions.delete_team(team_id),
            self._log("Team Deleted", f"{team.name} [{team.tag}] removed", LogType.WARNING),
        )
        return True, "Team deleted"

    # ------------------------------------------------------------ matches

    def schedule_match(self, data: Dict[str, Any]) -> Tuple[bool, str, Optional[Match]]:
        tournament = self.state.find_tournament(str(data.get("tournamentId") or ""))
        if not tournament:
            return False, "Tournament not found", None

        maps = self.state.settings.maps
        map_name = str(data.get("map") or (maps[0] if maps else ""))
        if maps and map_name not in maps:
            return False, f"Map '{map_name}' is not in the map pool", None

        match = Match.from_dict({
            "roundNumber": data.get("roundNumber", 1),
            "scheduledTime": data.get("scheduledTime") or self._now(),
            "durationMinutes": data.get("durationMinutes", 20),
            "id": generate_short_id("m-"),
            "tournamentId": tournament.id,
            "map": map_name,
            "status": MatchStatus.SCHEDULED.value,
        })
        if match.round_number < 1 or match.duration_minutes < 1:
            return False, "Round number and duration must be positive", None

        self._commit(
            actions.add_match(match),
            self._log("Match Scheduled", f"Round {match.round_number} on {match.map} for {tournament.name}"),
        )
        return True, "Match scheduled", match

    def delete_match(self, match_id: str) -> Tuple[bool, str]:
        match = self.state.find_match(match_id)
        if not match:
            return False, "Match not found"
        self._commit(
            actions.delete_match(match_id),
            self._log("Match Deleted", f"Match {match_id} removed", LogType.WARNING),
        )
        return True, "Match deleted"

    def _incident(self, incident_type, message: str) -> MatchIncident:
        author, _ = self._actor()
        return MatchIncident(
            id=generate_short_id("inc-"),
            type=incident_type,
            message=message,
            author=author,
            timestamp=self._now(),
        )

    def change_match_status(self, match_id: str, status: str) -> Tuple[bool, str]:
        match = self.state.find_match(match_id)
        if not match:
            return False, "Match not found"
        try:
            target = MatchStatus(status)
        except ValueError:
            return False, f"Unknown match status '{status}'"
        if target == MatchStatus.COMPLETED:
            return False, "Submit results to complete a match"

        sm = MatchStateMachine(match.status)
        try:
            action = sm.move_to(target)
        except MatchTransitionError as e:
            return False, str(e)

        author, _ = self._actor()
        batch = [actions.update_match(
            replace(match, status=sm.status),
            author,
            STATUS_REASONS.get(target, "State Transition"),
        )]
        incident_type = MatchStateMachine.incident_type_for(action)
        if incident_type:
            batch.append(actions.add_incident(
                match_id, self._incident(incident_type, f"{target.value} state triggered.")
            ))
        batch.append(self._log(
            "Match State Change", f"Match {match_id} set to {target.value}", LogType.WARNING
        ))

        self._commit(*batch)
        return True, f"Match moved to {target.value}"

    def submit_results(
        self,
        match_id: str,
        results: List[Any],
        reason: Optional[str] = None
    ) -> Tuple[bool, str]:
        """
        Record results and complete the match.

        Resubmitting a completed match is an override: it needs a reason and
        leaves an OVERRIDE incident behind. Kill counts above the configured
        threshold are flagged; existing flags are kept.
        """
        match = self.state.find_match(match_id)
        if not match:
            return False, "Match not found"

        overriding = match.status == MatchStatus.COMPLETED
        reason = (reason or "").strip()
        if overriding and not reason:
            return False, "Justification reason mandatory for score override"

        sm = MatchStateMachine(match.status)
        try:
            action = sm.move_to(MatchStatus.COMPLETED)
        except MatchTransitionError as e:
            return False, str(e)

        tournament = self.state.find_tournament(match.tournament_id)
        parsed = []
        seen = set()
        try:
            for item in results or []:
                result = parse_payload(MatchResult, item)
                if result.team_id in seen:
                    return False, f"Duplicate result for team {result.team_id}"
                if tournament and result.team_id not in tournament.team_ids:
                    return False, f"Team {result.team_id} is not in this tournament"
                previous = match.result_for(result.team_id)
                if previous is not None and previous.anomaly_flag:
                    result = replace(result, anomaly_flag=True)
                seen.add(result.team_id)
                parsed.append(result)
        except TypeError as e:
            return False, str(e)

        threshold = self.state.settings.scoring.max_kill_threshold
        flagged = flag_anomalies(parsed, threshold)
        author, _ = self._actor()

        batch = [actions.update_match(
            replace(match, status=sm.status, results=flagged),
            author,
            reason or INITIAL_SUBMISSION,
        )]
        incident_type = MatchStateMachine.incident_type_for(action, overriding=overriding)
        if incident_type:
            batch.append(actions.add_incident(
                match_id, self._incident(incident_type, f"Score override: {reason}")
            ))
        if overriding:
            batch.append(self._log("Score Override", f"Match {match_id}: {reason}", LogType.WARNING))
        else:
            batch.append(self._log("Results Submitted", f"Match {match_id} completed", LogType.SUCCESS))

        anomalies = [r.team_id for r in flagged if r.anomaly_flag]
        if anomalies:
            batch.append(self._log(
                "Kill Anomaly", f"Match {match_id}: check {', '.join(anomalies)}", LogType.DANGER
            ))

        self._commit(*batch)
        return True, "Score override recorded" if overriding else "Results submitted"

    def report_incident(self, match_id: str, message: str) -> Tuple[bool, str]:
        match = self.state.find_match(match_id)
        if not match:
            return False, "Match not found"
        if not (message or "").strip():
            return False, "Incident message is required"

        self._commit(
            actions.add_incident(match_id, self._incident(IncidentType.DISPUTE, message.strip())),
            self._log("Dispute Filed", f"Match {match_id}: {message.strip()}", LogType.WARNING),
        )
        return True, "Incident recorded"

    # ------------------------------------------------------------ registrations

    def submit_registration(self, data: Dict[str, Any]) -> Tuple[bool, str, Optional[TeamRegistration]]:
        tournament = self.state.find_tournament(str(data.get("tournamentId") or ""))
        if not tournament:
            return False, "Tournament not found", None

        team_name = str(data.get("teamName") or "").strip()
        if not team_name:
            return False, "Team name is required", None
        if not str(data.get("transactionId") or "").strip() or not data.get("screenshotUrl"):
            return False, "Payment proof is mandatory", None

        try:
            players = _players(data.get("players"))
            substitutes = _players(data.get("substitutes"))
        except (TypeError, ValueError) as e:
            return False, str(e), None
        if len(players) < self.min_roster_size:
            return False, f"Roster must have at least {self.min_roster_size} players", None

        user = self.state.current_user
        registration = TeamRegistration(
            id=generate_short_id("reg-"),
            tournament_id=tournament.id,
            team_name=team_name,
            team_tag=str(data.get("teamTag") or "").strip(),
            players=players,
            substitutes=substitutes,
            transaction_id=str(data["transactionId"]).strip(),
            screenshot_url=str(data["screenshotUrl"]),
            status=RegistrationStatus.PENDING,
            submitted_by=user.secure_id if user else "Manager",
            timestamp=self._now(),
        )
        self._commit(
            actions.add_registration(registration),
            self._log("Reg Submitted", f"Team {team_name} registration queued."),
        )
        return True, "Registration submitted for verification", registration

    def approve_registration(self, registration_id: str) -> Tuple[bool, str, Optional[str]]:
        registration = self.state.find_registration(registration_id)
        if not registration:
            return False, "Registration not found", None
        if registration.status != RegistrationStatus.PENDING:
            return False, f"Registration already {registration.status.value.lower()}", None
        if not self.state.find_tournament(registration.tournament_id):
            return False, "Tournament no longer exists", None

        team_id = generate_short_id("team-")
        while self.state.find_team(team_id):
            team_id = generate_short_id("team-")

        self._commit(
            actions.approve_registration(registration_id, team_id),
            self._log("Reg Approved", f"{registration.team_name} admitted as {team_id}", LogType.SUCCESS),
        )
        return True, "Registration approved", team_id

    def reject_registration(self, registration_id: str) -> Tuple[bool, str]:
        registration = self.state.find_registration(registration_id)
        if not registration:
            return False, "Registration not found"
        if registration.status != RegistrationStatus.PENDING:
            return False, f"Registration already {registration.status.value.lower()}"
        self._commit(
            actions.reject_registration(registration_id),
            self._log("Reg Rejected", f"{registration.team_name} registration rejected", LogType.WARNING),
        )
        return True, "Registration rejected"

    # ------------------------------------------------------------ settings

    def update_general_settings(self, changes: Dict[str, Any]) -> Tuple[bool, str]:
        settings = self.state.settings
        app_name = str(changes.get("appName", settings.app_name)).strip()
        if not app_name:
            return False, "App name is required"
        updated = replace(
            settings,
            app_name=app_name,
            upi_handle=str(changes.get("upiHandle", settings.upi_handle)),
            entry_fee=str(changes.get("entryFee", settings.entry_fee)),
            payment_qr_url=str(changes.get("paymentQrUrl", settings.payment_qr_url)),
        )
        self._commit(
            actions.update_settings(updated),
            self._log("Settings Updated", "General settings changed"),
        )
        return True, "Settings updated"

    def update_scoring(
        self,
        placement_points: Optional[Dict[Any, Any]] = None,
        points_per_kill: Optional[int] = None,
        max_kill_threshold: Optional[int] = None
    ) -> Tuple[bool, str]:
        scoring = self.state.settings.scoring
        try:
            table = dict(scoring.placement_points)
            if placement_points is not None:
                table = {int(rank): int(points) for rank, points in placement_points.items()}
            per_kill = scoring.points_per_kill if points_per_kill is None else int(points_per_kill)
            threshold = scoring.max_kill_threshold if max_kill_threshold is None else int(max_kill_threshold)
        except (TypeError, ValueError, AttributeError, OverflowError):
            return False, "Scoring values must be whole numbers"

        if any(rank < 1 for rank in table) or any(points < 0 for points in table.values()):
            return False, "Placements start at 1 and points cannot be negative"
        if per_kill < 0 or threshold < 0:
            return False, "Kill points and threshold cannot be negative"

        updated = replace(
            scoring,
            placement_points=table,
            points_per_kill=per_kill,
            max_kill_threshold=threshold,
        )
        self._commit(
            actions.update_settings(replace(self.state.settings, scoring=updated)),
            self._log("Scoring Updated", f"{len(table)} placements, {per_kill} per kill, threshold {threshold}"),
        )
        return True, "Scoring updated"

    def add_map(self, name: str) -> Tuple[bool, str]:
        name = (name or "").strip()
        if not name:
            return False, "Map name is required"
        maps = self.state.settings.maps
        if name.lower() in (m.lower() for m in maps):
            return False, f"Map '{name}' already exists"
        self._commit(
            actions.update_settings(replace(self.state.settings, maps=maps + (name,))),
            self._log("Map Added", f"{name} added to the pool"),
        )
        return True, f"Map '{name}' added"

    def remove_map(self, name: str) -> Tuple[bool, str]:
        maps = self.state.settings.maps
        if name not in maps:
            return False, f"Map '{name}' not found"
        self._commit(
            actions.update_settings(replace(self.state.settings, maps=tuple(m for m in maps if m != name))),
            self._log("Map Removed", f"{name} removed from the pool"),
        )
        return True, f"Map '{name}' removed"

    def rotate_system_ids(self, data: Dict[str, Any]) -> Tuple[bool, str]:
        current = self.state.settings.system_ids.to_dict()
        for slot in ("superAdmin", "admin", "host"):
            if slot in (data or {}):
                current[slot] = {**current[slot], **(data[slot] or {})}

        system_ids = SystemIds(
            super_admin=SystemCredential.from_dict(current["superAdmin"]),
            admin=SystemCredential.from_dict(current["admin"]),
            host=SystemCredential.from_dict(current["host"]),
        )
        credentials = (system_ids.super_admin, system_ids.admin, system_ids.host)
        if any(not c.id.strip() or not c.key.strip() for c in credentials):
            return False, "Every system credential needs an id and a key"
        if len({c.id for c in credentials}) != len(credentials):
            return False, "System ids must be distinct"

        self._commit(
            actions.update_settings(replace(self.state.settings, system_ids=system_ids)),
            self._log("Security Protocol Change", "System access keys updated.", LogType.DANGER),
        )
        logger.info("System credentials rotated")
        return True, "System access keys updated"

    # ------------------------------------------------------------ accounts

    def toggle_ban(self, secure_id: str) -> Tuple[bool, str]:
        account = self.state.find_account(secure_id)
        if not account:
            return False, "Account not found"
        user = self.state.current_user
        if user and user.secure_id == secure_id:
            return False, "You cannot ban your own identity"

        verb = "reinstated" if account.is_banned else "banned"
        self._commit(
            actions.toggle_ban_user(secure_id),
            self._log("Identity Status", f"{secure_id} {verb}", LogType.DANGER),
        )
        logger.info(f"Account {secure_id} {verb}")
        return True, f"Account {verb}"

    # ------------------------------------------------------------ whole state

    def import_state(self, data: Any) -> Tuple[bool, str]:
        if not isinstance(data, dict) or "settings" not in data:
            return False, "Not an ArenaSync state document"
        try:
            imported = AppState.from_dict(data)
        except (AttributeError, TypeError, ValueError, OverflowError) as e:
            return False, f"Unreadable state document: {e}"

        self._commit(
            actions.import_state(imported),
            self._log("State Imported", "Full state replaced from backup", LogType.WARNING),
        )
        logger.info("State replaced from import")
        return True, "State imported"

    def reset_data(self) -> Tuple[bool, str]:
        log = self._log("Factory Reset", "All data restored to defaults", LogType.DANGER)
        self._commit(actions.reset_data(), log)
        logger.info("State reset to factory defaults")
        return True, "Data reset to factory defaults"
