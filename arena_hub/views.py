from typing import Optional

from arena_core.models import AppState, MatchStatus, RegistrationStatus, Role, TournamentStatus
from arena_core.scoring import tournament_standings

TOP_STANDINGS = 5
RECENT_ANNOUNCEMENTS = 3


def featured_tournament(state: AppState):
    """First ongoing tournament, falling back to the first one listed."""
    for tournament in state.tournaments:
        if tournament.status == TournamentStatus.ONGOING:
            return tournament
    return state.tournaments[0] if state.tournaments else None


def dashboard(state: AppState, role: Optional[Role]) -> dict:
    featured = featured_tournament(state)
    standings = tournament_standings(state, featured.id)[:TOP_STANDINGS] if featured else ()

    announcements = [
        a for t in state.tournaments for a in t.announcements
        if role is not None and role in a.target_roles
    ]
    # ISO-8601 UTC timestamps order lexically
    announcements.sort(key=lambda a: a.timestamp, reverse=True)

    return {
        'stats': {
            'tournaments': len(state.tournaments),
            'ongoing': sum(1 for t in state.tournaments if t.status == TournamentStatus.ONGOING),
            'teams': len(state.teams),
            'matches': sum(1 for m in state.matches if m.status == MatchStatus.COMPLETED),
            'pendingRegistrations': sum(
                1 for r in state.registrations if r.status == RegistrationStatus.PENDING
            ),
        },
        'featuredTournament': featured.to_dict() if featured else None,
        'standings': [entry.to_dict() for entry in standings],
        'announcements': [a.to_dict() for a in announcements[:RECENT_ANNOUNCEMENTS]],
    }
