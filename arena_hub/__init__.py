"""
ArenaSync Hub - HTTP service for the tournament circuit

Responsibilities:
- Persist the state aggregate in redis
- Authentication, sign-up and role-gated access
- Tournament, team, match and registration management
- Standings, CSV export and the dashboard view
"""
