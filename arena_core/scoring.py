from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence, Tuple

from .models import AppState, Match, MatchResult, MatchStatus, ScoringConfig, Team


@dataclass(frozen=True)
class StandingEntry:
    """Accumulated tournament line for one team."""
    team: Team
    matches_played: int = 0
    placement_points: int = 0
    kill_points: int = 0
    penalty: int = 0
    booyahs: int = 0

    @property
    def total_points(self) -> int:
        return self.placement_points + self.kill_points - self.penalty

    def sort_key(self) -> Tuple[int, int, int, int]:
        return (self.total_points, self.placement_points, self.kill_points, self.booyahs)

    def to_dict(self) -> dict:
        return {
            "teamId": self.team.id,
            "teamName": self.team.name,
            "tag": self.team.tag,
            "matchesPlayed": self.matches_played,
            "placementPoints": self.placement_points,
            "killPoints": self.kill_points,
            "penalty": self.penalty,
            "totalPoints": self.total_points,
            "booyahs": self.booyahs,
        }


@dataclass(frozen=True)
class MatchLine:
    """One team's points in a single match."""
    team_id: str
    team_name: str
    placement: int
    kills: int
    placement_points: int
    kill_points: int
    penalty: int
    total_points: int
    anomaly_flag: bool

    def to_dict(self) -> dict:
        return {
            "teamId": self.team_id,
            "teamName": self.team_name,
            "placement": self.placement,
            "kills": self.kills,
            "placementPoints": self.placement_points,
            "killPoints": self.kill_points,
            "penalty": self.penalty,
            "totalPoints": self.total_points,
            "anomalyFlag": self.anomaly_flag,
        }


def compute_match_points(result: MatchResult, scoring: ScoringConfig) -> int:
    """
    Points earned by a single result.

    placement points (0 when the rank is not in the table)
    + kills * points per kill - penalty. May be negative.
    """
    return (
        scoring.points_for(result.placement)
        + result.kills * scoring.points_per_kill
        - result.penalty
    )


def qualifying_matches(tournament_id: str, matches: Iterable[Match]) -> Tuple[Match, ...]:
    """Completed matches of a tournament; every other status is ignored."""
    return tuple(
        m for m in matches
        if m.tournament_id == tournament_id and m.status == MatchStatus.COMPLETED
    )


def compute_standings(
    tournament_id: str,
    matches: Sequence[Match],
    teams: Sequence[Team],
    scoring: ScoringConfig,
    team_ids: Optional[Iterable[str]] = None
) -> Tuple[StandingEntry, ...]:
    """
    Rank teams by accumulated points over the tournament's completed matches.

    Every team in `teams` gets a line unless `team_ids` narrows the set.
    Ordering is descending by total, placement points, kill points and
    booyah count; full ties keep input order.
    """
    counted = qualifying_matches(tournament_id, matches)
    allowed = set(team_ids) if team_ids is not None else None

    standings = []
    for team in teams:
        if allowed is not None and team.id not in allowed:
            continue

        played = placement_points = kill_points = penalty = booyahs = 0
        for match in counted:
            result = match.result_for(team.id)
            if result is None:
                continue
            played += 1
            placement_points += scoring.points_for(result.placement)
            kill_points += result.kills * scoring.points_per_kill
            penalty += result.penalty
            if result.placement == 1:
                booyahs += 1

        standings.append(StandingEntry(
            team=team,
            matches_played=played,
            placement_points=placement_points,
            kill_points=kill_points,
            penalty=penalty,
            booyahs=booyahs,
        ))

    # sorted() is stable, so equal keys keep the roster order
    return tuple(sorted(standings, key=StandingEntry.sort_key, reverse=True))


def tournament_standings(state: AppState, tournament_id: str) -> Tuple[StandingEntry, ...]:
    """Standings restricted to the teams registered in the tournament."""
    tournament = state.find_tournament(tournament_id)
    if tournament is None:
        return ()
    return compute_standings(
        tournament_id,
        state.matches,
        state.teams,
        state.settings.scoring,
        team_ids=tournament.team_ids,
    )


def flag_anomalies(results: Iterable[MatchResult], threshold: int) -> Tuple[MatchResult, ...]:
    return tuple(
        replace(r, anomaly_flag=True) if r.kills > threshold and not r.anomaly_flag else r
        for r in results
    )


def match_breakdown(match: Match, teams: Sequence[Team], scoring: ScoringConfig) -> Tuple[MatchLine, ...]:
    """Per-team points for one match, ordered by placement."""
    names = {t.id: t.name for t in teams}
    lines = [
        MatchLine(
            team_id=r.team_id,
            team_name=names.get(r.team_id, r.team_id),
            placement=r.placement,
            kills=r.kills,
            placement_points=scoring.points_for(r.placement),
            kill_points=r.kills * scoring.points_per_kill,
            penalty=r.penalty,
            total_points=compute_match_points(r, scoring),
            anomaly_flag=r.anomaly_flag,
        )
        for r in match.results
    ]
    return tuple(sorted(lines, key=lambda line: line.placement))
