"""
ArenaSync engine.

Pure building blocks shared by the hub service:
- Domain model and the closed action set
- State reducer and the state container that drives it
- Scoring, standings and anomaly detection
- Authentication gate with lockout
- Match status flow
"""
