import math
from enum import Enum
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Optional, Dict, Tuple, Any


class Role(str, Enum):
    PLAYER = "player"
    TEAM_MANAGER = "team_manager"
    HOST = "host"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Permission(str, Enum):
    MANAGE_ROSTERS = "MANAGE_ROSTERS"
    MANAGE_FINANCES = "MANAGE_FINANCES"
    OVERRIDE_SCORES = "OVERRIDE_SCORES"
    ROTATE_KEYS = "ROTATE_KEYS"
    ISSUE_BROADCASTS = "ISSUE_BROADCASTS"
    VIEW_AUDIT_LOGS = "VIEW_AUDIT_LOGS"


class TournamentType(str, Enum):
    SOLO = "SOLO"
    DUO = "DUO"
    SQUAD = "SQUAD"


class TournamentStatus(str, Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    FINISHED = "FINISHED"


class ScoringSystem(str, Enum):
    STANDARD_GARENA = "STANDARD_GARENA"
    CUSTOM = "CUSTOM"


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    PAUSED = "PAUSED"
    UNDER_REVIEW = "UNDER_REVIEW"
    COMPLETED = "COMPLETED"
    VOIDED = "VOIDED"


class RegistrationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class IncidentType(str, Enum):
    PAUSE = "PAUSE"
    RESUME = "RESUME"
    OVERRIDE = "OVERRIDE"
    DISPUTE = "DISPUTE"


class AnnouncementType(str, Enum):
    INFO = "INFO"
    URGENT = "URGENT"
    MATCH = "MATCH"


class LogType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"
    SUCCESS = "success"


def _enum(enum_cls, value, default):
    """Parse an enum value, falling back to default for unknown input."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _int(value, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _str(value, default: str = "") -> str:
    return default if value is None else str(value)


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    ign: str
    role: Optional[str] = None
    is_substitute: bool = False

    def to_dict(self) -> dict:
        data = {"id": self.id, "name": self.name, "ign": self.ign}
        if self.role is not None:
            data["role"] = self.role
        if self.is_substitute:
            data["isSubstitute"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            ign=_str(data.get("ign")),
            role=data.get("role"),
            is_substitute=bool(data.get("isSubstitute", False)),
        )


def _players(items) -> Tuple[Player, ...]:
    return tuple(Player.from_dict(p) for p in (items or []))


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    tag: str
    players: Tuple[Player, ...] = ()
    substitutes: Tuple[Player, ...] = ()
    roster_locked: bool = False
    manager_id: str = ""
    logo_url: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tag": self.tag,
            "logoUrl": self.logo_url,
            "players": [p.to_dict() for p in self.players],
            "substitutes": [p.to_dict() for p in self.substitutes],
            "rosterLocked": self.roster_locked,
            "managerId": self.manager_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Team":
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            tag=_str(data.get("tag")),
            players=_players(data.get("players")),
            substitutes=_players(data.get("substitutes")),
            roster_locked=bool(data.get("rosterLocked", False)),
            manager_id=_str(data.get("managerId")),
            logo_url=_str(data.get("logoUrl")),
        )


@dataclass(frozen=True)
class TeamRegistration:
    id: str
    tournament_id: str
    team_name: str
    team_tag: str
    players: Tuple[Player, ...] = ()
    substitutes: Tuple[Player, ...] = ()
    transaction_id: str = ""
    screenshot_url: str = ""
    status: RegistrationStatus = RegistrationStatus.PENDING
    submitted_by: str = ""
    timestamp: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tournamentId": self.tournament_id,
            "teamName": self.team_name,
            "teamTag": self.team_tag,
            "players": [p.to_dict() for p in self.players],
            "substitutes": [p.to_dict() for p in self.substitutes],
            "transactionId": self.transaction_id,
            "screenshotUrl": self.screenshot_url,
            "status": self.status.value,
            "submittedBy": self.submitted_by,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TeamRegistration":
        return cls(
            id=_str(data.get("id")),
            tournament_id=_str(data.get("tournamentId")),
            team_name=_str(data.get("teamName")),
            team_tag=_str(data.get("teamTag")),
            players=_players(data.get("players")),
            substitutes=_players(data.get("substitutes")),
            transaction_id=_str(data.get("transactionId")),
            screenshot_url=_str(data.get("screenshotUrl")),
            status=_enum(RegistrationStatus, data.get("status"), RegistrationStatus.PENDING),
            submitted_by=_str(data.get("submittedBy")),
            timestamp=_str(data.get("timestamp")),
        )


@dataclass(frozen=True)
class MatchIncident:
    id: str
    type: IncidentType
    message: str
    author: str
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "message": self.message,
            "author": self.author,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchIncident":
        return cls(
            id=_str(data.get("id")),
            type=_enum(IncidentType, data.get("type"), IncidentType.DISPUTE),
            message=_str(data.get("message")),
            author=_str(data.get("author")),
            timestamp=_str(data.get("timestamp")),
        )


@dataclass(frozen=True)
class MatchResult:
    """One team's line in a match. Placement is 1-based."""
    team_id: str
    placement: int = 1
    kills: int = 0
    penalty: int = 0
    players_present: Tuple[str, ...] = ()
    anomaly_flag: bool = False

    def to_dict(self) -> dict:
        return {
            "teamId": self.team_id,
            "placement": self.placement,
            "kills": self.kills,
            "penalty": self.penalty,
            "playersPresent": list(self.players_present),
            "anomalyFlag": self.anomaly_flag,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchResult":
        # Out-of-range numbers are clamped rather than rejected
        return cls(
            team_id=_str(data.get("teamId")),
            placement=max(1, _int(data.get("placement"), 1)),
            kills=max(0, _int(data.get("kills"), 0)),
            penalty=max(0, _int(data.get("penalty"), 0)),
            players_present=tuple(_str(p) for p in (data.get("playersPresent") or [])),
            anomaly_flag=bool(data.get("anomalyFlag", False)),
        )


@dataclass(frozen=True)
class Match:
    id: str
    tournament_id: str
    round_number: int = 1
    map: str = ""
    scheduled_time: str = ""
    duration_minutes: int = 20
    status: MatchStatus = MatchStatus.SCHEDULED
    results: Tuple[MatchResult, ...] = ()
    incidents: Tuple[MatchIncident, ...] = ()
    modified_by: Optional[str] = None
    modification_reason: Optional[str] = None

    def result_for(self, team_id: str) -> Optional[MatchResult]:
        for result in self.results:
            if result.team_id == team_id:
                return result
        return None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "tournamentId": self.tournament_id,
            "roundNumber": self.round_number,
            "map": self.map,
            "scheduledTime": self.scheduled_time,
            "durationMinutes": self.duration_minutes,
            "status": self.status.value,
            "results": [r.to_dict() for r in self.results],
            "incidents": [i.to_dict() for i in self.incidents],
        }
        if self.modified_by is not None:
            data["modifiedBy"] = self.modified_by
        if self.modification_reason is not None:
            data["modificationReason"] = self.modification_reason
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Match":
        # teamId is unique within a match; later duplicates are dropped
        results = []
        seen = set()
        for item in data.get("results") or []:
            result = MatchResult.from_dict(item)
            if result.team_id not in seen:
                seen.add(result.team_id)
                results.append(result)
        return cls(
            id=_str(data.get("id")),
            tournament_id=_str(data.get("tournamentId")),
            round_number=_int(data.get("roundNumber"), 1),
            map=_str(data.get("map")),
            scheduled_time=_str(data.get("scheduledTime")),
            duration_minutes=_int(data.get("durationMinutes"), 20),
            status=_enum(MatchStatus, data.get("status"), MatchStatus.SCHEDULED),
            results=tuple(results),
            incidents=tuple(MatchIncident.from_dict(i) for i in (data.get("incidents") or [])),
            modified_by=data.get("modifiedBy"),
            modification_reason=data.get("modificationReason"),
        )


@dataclass(frozen=True)
class Announcement:
    id: str
    title: str
    content: str
    target_roles: Tuple[Role, ...] = ()
    author: str = ""
    timestamp: str = ""
    type: AnnouncementType = AnnouncementType.INFO

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "targetRoles": [r.value for r in self.target_roles],
            "author": self.author,
            "timestamp": self.timestamp,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Announcement":
        roles = tuple(
            r for r in (_enum(Role, v, None) for v in (data.get("targetRoles") or []))
            if r is not None
        )
        return cls(
            id=_str(data.get("id")),
            title=_str(data.get("title")),
            content=_str(data.get("content")),
            target_roles=roles,
            author=_str(data.get("author")),
            timestamp=_str(data.get("timestamp")),
            type=_enum(AnnouncementType, data.get("type"), AnnouncementType.INFO),
        )


@dataclass(frozen=True)
class ActivityLog:
    id: str
    timestamp: str
    user: str
    role: Role
    action: str
    details: str
    type: LogType = LogType.INFO

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "user": self.user,
            "role": self.role.value,
            "action": self.action,
            "details": self.details,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ActivityLog":
        return cls(
            id=_str(data.get("id")),
            timestamp=_str(data.get("timestamp")),
            user=_str(data.get("user")),
            role=_enum(Role, data.get("role"), Role.PLAYER),
            action=_str(data.get("action")),
            details=_str(data.get("details")),
            type=_enum(LogType, data.get("type"), LogType.INFO),
        )


@dataclass(frozen=True)
class Tournament:
    id: str
    name: str
    type: TournamentType = TournamentType.SQUAD
    start_date: str = ""
    end_date: str = ""
    team_ids: Tuple[str, ...] = ()
    scoring_system: ScoringSystem = ScoringSystem.STANDARD_GARENA
    status: TournamentStatus = TournamentStatus.UPCOMING
    announcements: Tuple[Announcement, ...] = ()
    logo_url: str = ""
    tagline: str = ""
    organizer: str = ""
    venue: str = ""
    discord: str = ""
    instagram: str = ""
    youtube: str = ""

    BRANDING_FIELDS = ("logo_url", "tagline", "organizer", "venue", "discord", "instagram", "youtube")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "teamIds": list(self.team_ids),
            "scoringSystem": self.scoring_system.value,
            "status": self.status.value,
            "announcements": [a.to_dict() for a in self.announcements],
            "logoUrl": self.logo_url,
            "tagline": self.tagline,
            "organizer": self.organizer,
            "venue": self.venue,
            "discord": self.discord,
            "instagram": self.instagram,
            "youtube": self.youtube,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Tournament":
        # Team ids keep their first occurrence only
        team_ids = tuple(dict.fromkeys(_str(t) for t in (data.get("teamIds") or [])))
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            type=_enum(TournamentType, data.get("type"), TournamentType.SQUAD),
            start_date=_str(data.get("startDate")),
            end_date=_str(data.get("endDate")),
            team_ids=team_ids,
            scoring_system=_enum(ScoringSystem, data.get("scoringSystem"), ScoringSystem.STANDARD_GARENA),
            status=_enum(TournamentStatus, data.get("status"), TournamentStatus.UPCOMING),
            announcements=tuple(Announcement.from_dict(a) for a in (data.get("announcements") or [])),
            logo_url=_str(data.get("logoUrl")),
            tagline=_str(data.get("tagline")),
            organizer=_str(data.get("organizer")),
            venue=_str(data.get("venue")),
            discord=_str(data.get("discord")),
            instagram=_str(data.get("instagram")),
            youtube=_str(data.get("youtube")),
        )


@dataclass(frozen=True)
class UserAccount:
    secure_id: str
    username: str
    role: Role
    mobile: str = ""
    password_hash: str = ""
    permissions: Tuple[Permission, ...] = ()
    insta: str = ""
    discord: str = ""
    is_banned: bool = False
    last_login: Optional[str] = None

    def to_dict(self, include_secret: bool = True) -> dict:
        data = {
            "secureId": self.secure_id,
            "username": self.username,
            "role": self.role.value,
            "mobile": self.mobile,
            "insta": self.insta,
            "discord": self.discord,
            "isBanned": self.is_banned,
            "permissions": [p.value for p in self.permissions],
            "lastLogin": self.last_login,
        }
        if include_secret:
            data["passwordHash"] = self.password_hash
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "UserAccount":
        permissions = tuple(
            p for p in (_enum(Permission, v, None) for v in (data.get("permissions") or []))
            if p is not None
        )
        return cls(
            secure_id=_str(data.get("secureId")),
            username=_str(data.get("username")),
            role=_enum(Role, data.get("role"), Role.PLAYER),
            mobile=_str(data.get("mobile")),
            password_hash=_str(data.get("passwordHash")),
            permissions=permissions,
            insta=_str(data.get("insta")),
            discord=_str(data.get("discord")),
            is_banned=bool(data.get("isBanned", False)),
            last_login=data.get("lastLogin"),
        )


@dataclass(frozen=True)
class ScoringConfig:
    placement_points: Dict[int, int] = field(default_factory=dict)
    points_per_kill: int = 1
    max_kill_threshold: int = 25

    def points_for(self, placement: int) -> int:
        return self.placement_points.get(placement, 0)

    def to_dict(self) -> dict:
        return {
            # JSON object keys are strings
            "placementPoints": {str(k): v for k, v in sorted(self.placement_points.items())},
            "pointsPerKill": self.points_per_kill,
            "maxKillThreshold": self.max_kill_threshold,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScoringConfig":
        table = {}
        for rank, points in (data.get("placementPoints") or {}).items():
            rank = _int(rank, 0)
            if rank >= 1:
                table[rank] = _int(points, 0)
        return cls(
            placement_points=table,
            points_per_kill=_int(data.get("pointsPerKill"), 1),
            max_kill_threshold=_int(data.get("maxKillThreshold"), 25),
        )


@dataclass(frozen=True)
class SystemCredential:
    id: str
    key: str

    def matches(self, secure_id: str, key: str) -> bool:
        return bool(self.id) and self.id == secure_id and self.key == key

    def to_dict(self) -> dict:
        return {"id": self.id, "key": self.key}

    @classmethod
    def from_dict(cls, data: dict) -> "SystemCredential":
        data = data or {}
        return cls(id=_str(data.get("id")), key=_str(data.get("key")))


@dataclass(frozen=True)
class SystemIds:
    super_admin: SystemCredential
    admin: SystemCredential
    host: SystemCredential

    def to_dict(self) -> dict:
        return {
            "superAdmin": self.super_admin.to_dict(),
            "admin": self.admin.to_dict(),
            "host": self.host.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SystemIds":
        data = data or {}
        return cls(
            super_admin=SystemCredential.from_dict(data.get("superAdmin")),
            admin=SystemCredential.from_dict(data.get("admin")),
            host=SystemCredential.from_dict(data.get("host")),
        )


@dataclass(frozen=True)
class AppSettings:
    app_name: str
    scoring: ScoringConfig
    system_ids: SystemIds
    maps: Tuple[str, ...] = ()
    upi_handle: str = ""
    entry_fee: str = ""
    payment_qr_url: str = ""

    def to_dict(self) -> dict:
        return {
            "appName": self.app_name,
            "upiHandle": self.upi_handle,
            "entryFee": self.entry_fee,
            "paymentQrUrl": self.payment_qr_url,
            "scoring": self.scoring.to_dict(),
            "maps": list(self.maps),
            "systemIds": self.system_ids.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        return cls(
            app_name=_str(data.get("appName")),
            scoring=ScoringConfig.from_dict(data.get("scoring") or {}),
            system_ids=SystemIds.from_dict(data.get("systemIds")),
            maps=tuple(_str(m) for m in (data.get("maps") or [])),
            upi_handle=_str(data.get("upiHandle")),
            entry_fee=_str(data.get("entryFee")),
            payment_qr_url=_str(data.get("paymentQrUrl")),
        )


@dataclass(frozen=True)
class AppState:
    """Aggregate root. Every transition produces a new instance."""
    settings: AppSettings
    tournaments: Tuple[Tournament, ...] = ()
    teams: Tuple[Team, ...] = ()
    matches: Tuple[Match, ...] = ()
    registrations: Tuple[TeamRegistration, ...] = ()
    logs: Tuple[ActivityLog, ...] = ()
    accounts: Tuple[UserAccount, ...] = ()
    current_user: Optional[UserAccount] = None
    login_attempts: Dict[str, int] = field(default_factory=dict)
    lockout_until: Dict[str, float] = field(default_factory=dict)

    def find_tournament(self, tournament_id: str) -> Optional[Tournament]:
        return next((t for t in self.tournaments if t.id == tournament_id), None)

    def find_team(self, team_id: str) -> Optional[Team]:
        return next((t for t in self.teams if t.id == team_id), None)

    def find_match(self, match_id: str) -> Optional[Match]:
        return next((m for m in self.matches if m.id == match_id), None)

    def find_registration(self, registration_id: str) -> Optional[TeamRegistration]:
        return next((r for r in self.registrations if r.id == registration_id), None)

    def find_account(self, secure_id: str) -> Optional[UserAccount]:
        return next((a for a in self.accounts if a.secure_id == secure_id), None)

    def to_dict(self) -> dict:
        return {
            "tournaments": [t.to_dict() for t in self.tournaments],
            "teams": [t.to_dict() for t in self.teams],
            "matches": [m.to_dict() for m in self.matches],
            "registrations": [r.to_dict() for r in self.registrations],
            "logs": [entry.to_dict() for entry in self.logs],
            "accounts": [a.to_dict() for a in self.accounts],
            "currentUser": self.current_user.to_dict() if self.current_user else None,
            "settings": self.settings.to_dict(),
            "loginAttempts": dict(self.login_attempts),
            "lockoutUntil": dict(self.lockout_until),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppState":
        current = data.get("currentUser")
        lockout = {}
        for key, value in (data.get("lockoutUntil") or {}).items():
            try:
                until = float(value)
            except (TypeError, ValueError):
                continue
            if math.isfinite(until):
                lockout[str(key)] = until
        return cls(
            settings=AppSettings.from_dict(data.get("settings") or {}),
            tournaments=tuple(Tournament.from_dict(t) for t in (data.get("tournaments") or [])),
            teams=tuple(Team.from_dict(t) for t in (data.get("teams") or [])),
            matches=tuple(Match.from_dict(m) for m in (data.get("matches") or [])),
            registrations=tuple(TeamRegistration.from_dict(r) for r in (data.get("registrations") or [])),
            logs=tuple(ActivityLog.from_dict(entry) for entry in (data.get("logs") or [])),
            accounts=tuple(UserAccount.from_dict(a) for a in (data.get("accounts") or [])),
            current_user=UserAccount.from_dict(current) if current else None,
            login_attempts={str(k): _int(v, 0) for k, v in (data.get("loginAttempts") or {}).items()},
            lockout_until=lockout,
        )


def parse_payload(model_cls, payload: Any):
    """Accept either a model instance or its dict form."""
    if isinstance(payload, model_cls):
        return payload
    if isinstance(payload, dict):
        return model_cls.from_dict(payload)
    raise TypeError(f"Expected {model_cls.__name__} or dict, got {type(payload).__name__}")


def iso_timestamp(epoch: float) -> str:
    return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat().replace("+00:00", "Z")
