"""Score aggregation for members and teams.

Values that are missing or cannot be parsed are left out of every aggregate.
Rounding to 2 decimals happens only in the functions meant for display
(``total_scores``, ``discipline_delta`` and ``score_table``).
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .models import DisciplineInfo, Member, SortOrder, Team

DISPLAY_PRECISION = 2


def _values(members: Iterable[Member], discipline: DisciplineInfo) -> List[float]:
    values = (member.get_value(discipline) for member in members)
    return [value for value in values if value is not None]


def total(members: Iterable[Member], discipline: DisciplineInfo) -> float:
    """Sum of the available values for a discipline."""
    return float(sum(_values(members, discipline)))


def average(members: Iterable[Member], discipline: DisciplineInfo) -> float:
    """Mean over the members that have a value, 0.0 if none do."""
    values = _values(members, discipline)
    if not values:
        return 0.0
    return sum(values) / len(values)


def team_totals(teams: Iterable[Team], discipline: DisciplineInfo) -> Dict[str, float]:
    return {team.name: total(team.members, discipline) for team in teams}


def team_averages(teams: Iterable[Team], discipline: DisciplineInfo) -> Dict[str, float]:
    return {team.name: average(team.members, discipline) for team in teams}


def total_scores(members: Iterable[Member], disciplines: Iterable[DisciplineInfo]) -> Dict[str, float]:
    """Per-discipline totals keyed by discipline name, rounded for display."""
    members = list(members)
    return {
        discipline.name: round(total(members, discipline), DISPLAY_PRECISION)
        for discipline in disciplines
    }


def discipline_range(members: Iterable[Member], discipline: DisciplineInfo) -> Tuple[float, float]:
    """Observed (min, max) of a discipline, (0, 0) when nothing is scored."""
    values = _values(members, discipline)
    if not values:
        return 0.0, 0.0
    return min(values), max(values)


def normalized_score(
    value: Optional[float],
    discipline: DisciplineInfo,
    value_range: Tuple[float, float],
) -> float:
    """Map a value onto 0-100 where a higher score means a worse result.

    Ascending disciplines (lower is better) map the observed minimum to 0 and
    the maximum to 100; descending disciplines map it the other way round.
    Missing values and a degenerate range map to 0.
    """
    low, high = value_range
    if value is None or high == low:
        return 0.0
    fraction = (value - low) / (high - low)
    if discipline.sort_order is SortOrder.DESC:
        fraction = 1.0 - fraction
    return fraction * 100.0


def discipline_delta(teams: Sequence[Team], disciplines: Iterable[DisciplineInfo]) -> Dict[str, float]:
    """Spread (max - min) of team averages per discipline, rounded for display.

    Teams without any scored member for a discipline are left out; with fewer
    than two scored teams the delta is 0.0.
    """
    deltas = {}
    for discipline in disciplines:
        averages = [
            average(team.members, discipline)
            for team in teams
            if _values(team.members, discipline)
        ]
        if len(averages) < 2:
            deltas[discipline.name] = 0.0
        else:
            deltas[discipline.name] = round(max(averages) - min(averages), DISPLAY_PRECISION)
    return deltas


def score_table(
    teams: Sequence[Team],
    disciplines: Sequence[DisciplineInfo],
    statistic: str = "average",
) -> pd.DataFrame:
    """Build a team-by-discipline table for reporting.

    Args:
        teams: Teams to report on
        disciplines: Disciplines to include as columns
        statistic: "average" or "total"

    Returns:
        DataFrame indexed by team name with a "Members" column followed by one
        column per discipline, values rounded to 2 decimals

    Raises:
        ValueError: If the statistic is not supported
    """
    aggregators = {"average": average, "total": total}
    if statistic not in aggregators:
        raise ValueError(f"Unknown statistic '{statistic}'; expected one of: {sorted(aggregators)}")
    aggregate = aggregators[statistic]

    rows = []
    for team in teams:
        row = {"Members": len(team.members)}
        for discipline in disciplines:
            row[discipline.name] = aggregate(team.members, discipline)
        rows.append(row)

    columns = ["Members"] + [discipline.name for discipline in disciplines]
    df = pd.DataFrame(rows, index=[team.name for team in teams], columns=columns)
    df.index.name = "Team"
    return df.round(DISPLAY_PRECISION)
