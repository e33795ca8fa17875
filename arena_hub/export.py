import csv
import io
from typing import Dict, Iterable, List, Any

from arena_core.scoring import StandingEntry

STANDINGS_HEADER = [
    'Rank', 'Team', 'Tag', 'Played', 'Booyahs',
    'Placement Points', 'Kill Points', 'Penalty', 'Total Points',
]


def standings_rows(entries: Iterable[StandingEntry]) -> List[Dict[str, Any]]:
    """Flatten standings into export records, ranked from 1."""
    return [
        {
            'Rank': rank,
            'Team': entry.team.name,
            'Tag': entry.team.tag,
            'Played': entry.matches_played,
            'Booyahs': entry.booyahs,
            'Placement Points': entry.placement_points,
            'Kill Points': entry.kill_points,
            'Penalty': entry.penalty,
            'Total Points': entry.total_points,
        }
        for rank, entry in enumerate(entries, start=1)
    ]


def to_csv(rows: List[Dict[str, Any]]) -> str:
    """Serialize records to CSV; the header comes from the first record."""
    if not rows:
        return ''

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=list(rows[0].keys()), extrasaction='ignore')
    writer.writeheader()
    writer.writerows(rows)

    content = output.getvalue()
    output.close()
    return content
