"""
Factory dataset used when no stored state exists and by RESET_DATA.
"""
import time
from functools import lru_cache
from typing import Optional, Tuple

from .auth import hash_key
from .models import (
    ActivityLog, Announcement, AnnouncementType, AppSettings, AppState, LogType,
    Match, MatchResult, MatchStatus, Permission, Player, Role, ScoringConfig,
    SystemCredential, SystemIds, Team, Tournament, TournamentStatus,
    TournamentType, UserAccount, iso_timestamp,
)

OFFICIAL_MAPS = ("Bermuda", "Purgatory", "Kalahari", "Alpine", "Nexterra")

STANDARD_PLACEMENT_POINTS = {
    1: 12, 2: 9, 3: 8, 4: 7, 5: 6, 6: 5, 7: 4, 8: 3, 9: 2, 10: 1, 11: 0, 12: 0,
}

SEED_TEAM_COUNT = 12
SEED_MATCH_COUNT = 5
DAY = 86400


def default_scoring() -> ScoringConfig:
    return ScoringConfig(
        placement_points=dict(STANDARD_PLACEMENT_POINTS),
        points_per_kill=1,
        max_kill_threshold=25,
    )


def default_settings() -> AppSettings:
    return AppSettings(
        app_name="ArenaSync Pro",
        upi_handle="arenasync@upi",
        entry_fee="₹100",
        payment_qr_url="",
        scoring=default_scoring(),
        maps=OFFICIAL_MAPS,
        system_ids=SystemIds(
            super_admin=SystemCredential(id="SA-ROOT", key="SUPER-SECURE-2025"),
            admin=SystemCredential(id="ADM-HUB", key="ADMIN-ACCESS-777"),
            host=SystemCredential(id="HST-LOBBY", key="HOST-ENTRY-888"),
        ),
    )


def _seed_teams() -> Tuple[Team, ...]:
    teams = []
    for i in range(SEED_TEAM_COUNT):
        players = tuple(
            Player(id=f"p-{i}-{j}", name=f"Player {i * 4 + j + 1}", ign=f"PRO_X_{i * 4 + j + 1}")
            for j in range(4)
        )
        teams.append(Team(
            id=f"team-{i + 1}",
            name=f"ELITE SQUAD {i + 1}",
            tag=f"SQD{i + 1}",
            players=players,
            roster_locked=True,
            manager_id=f"mgr-{i + 1}",
        ))
    return tuple(teams)


def _seed_matches(teams: Tuple[Team, ...], now: float) -> Tuple[Match, ...]:
    matches = []
    for i in range(SEED_MATCH_COUNT):
        results = tuple(
            MatchResult(
                team_id=team.id,
                placement=(idx + i) % SEED_TEAM_COUNT + 1,
                kills=(idx * 7 + i * 3) % 15,
                penalty=0,
                players_present=tuple(p.id for p in team.players),
            )
            for idx, team in enumerate(teams)
        )
        matches.append(Match(
            id=f"m-{i + 1}",
            tournament_id="t-1",
            round_number=i + 1,
            map=OFFICIAL_MAPS[i % len(OFFICIAL_MAPS)],
            scheduled_time=iso_timestamp(now - (SEED_MATCH_COUNT - i) * DAY),
            duration_minutes=20,
            status=MatchStatus.COMPLETED,
            results=results,
        ))
    return tuple(matches)


def _seed_tournaments(teams: Tuple[Team, ...], now: float) -> Tuple[Tournament, ...]:
    notice = Announcement(
        id="a-1",
        title="Fair Play Notice",
        content="All third-party tools are strictly prohibited.",
        target_roles=(Role.PLAYER, Role.TEAM_MANAGER),
        author="Root",
        timestamp=iso_timestamp(now),
        type=AnnouncementType.URGENT,
    )
    return (
        Tournament(
            id="t-1",
            name="Garena Pro League S1",
            type=TournamentType.SQUAD,
            start_date="2025-01-01",
            end_date="2025-03-31",
            team_ids=tuple(t.id for t in teams),
            status=TournamentStatus.ONGOING,
            announcements=(notice,),
        ),
        Tournament(
            id="t-2",
            name="Bermuda Challengers",
            type=TournamentType.SQUAD,
            start_date="2025-04-10",
            end_date="2025-05-10",
            team_ids=tuple(t.id for t in teams[:8]),
            status=TournamentStatus.UPCOMING,
        ),
    )


@lru_cache(maxsize=1)
def seed_accounts() -> Tuple[UserAccount, ...]:
    # Seeded accounts never change, hash them once
    return (
        UserAccount(
            secure_id="MGR-7080-SAH", username="Sahil", role=Role.TEAM_MANAGER,
            mobile="918888888888", password_hash=hash_key("password"),
            permissions=(Permission.MANAGE_ROSTERS,),
        ),
        UserAccount(
            secure_id="PLR-5678-ROH", username="Rohit", role=Role.PLAYER,
            mobile="917777777777", password_hash=hash_key("password"),
        ),
        UserAccount(
            secure_id="HST-DESK", username="Default Host", role=Role.HOST,
            mobile="SYSTEM", password_hash=hash_key("hostpass"),
            permissions=(Permission.OVERRIDE_SCORES,),
        ),
    )


def default_state(now: Optional[float] = None, accounts: Optional[Tuple[UserAccount, ...]] = None) -> AppState:
    """Build the factory dataset; pass accounts to keep an existing list."""
    now = time.time() if now is None else now
    teams = _seed_teams()
    return AppState(
        settings=default_settings(),
        tournaments=_seed_tournaments(teams, now),
        teams=teams,
        matches=_seed_matches(teams, now),
        logs=(ActivityLog(
            id="l1",
            timestamp=iso_timestamp(now),
            user="System",
            role=Role.SUPER_ADMIN,
            action="Initialize",
            details="Forensic integrity module active.",
            type=LogType.INFO,
        ),),
        accounts=seed_accounts() if accounts is None else tuple(accounts),
    )
