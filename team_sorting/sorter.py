"""High-level entry point: group members, then balance them into teams."""

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .balancer import TeamBalancer
from .config import Config
from .errors import ConflictReport
from .grouping import group_members
from .models import AssignmentResult, DisciplineInfo, Member, Team
from .validators import validate_member_names, validate_team_count

logger = logging.getLogger(__name__)


@dataclass
class SortReport:
    """Outcome of a sort: either a result, or the findings that blocked it.

    Non-blocking findings (e.g. unknown not-with names) are kept in
    ``conflicts`` next to a successful result.
    """

    result: Optional[AssignmentResult] = None
    conflicts: List[ConflictReport] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.result is not None


class TeamSorter:
    """Runs the grouper and the balancing engine as one unit of work."""

    def __init__(self, config: Config):
        self.config = config
        self.balancer = TeamBalancer(config)

    def sort(
        self,
        members: Sequence[Member],
        disciplines: Sequence[DisciplineInfo],
        team_count: Optional[int] = None,
        seed: Optional[str] = None,
        teams: Optional[Sequence[Team]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SortReport:
        """Sort members into balanced teams.

        Blocking findings from the grouper are returned instead of raised;
        balancing only runs when there are none.

        Args:
            members: Members in input order
            disciplines: Disciplines to balance on
            team_count: Number of teams; defaults to len(teams) or the config
            seed: Seed to replay an earlier run
            teams: Optional empty team shells to reuse names from
            cancel_event: Set from another thread to abort the run

        Returns:
            SortReport with the result or the blocking conflicts

        Raises:
            ValueError: If member names are invalid
            InvalidTeamCount: If the team count is not a positive integer
        """
        members = list(members)
        validate_member_names(members)
        if team_count is not None or not teams:
            validate_team_count(team_count if team_count is not None else self.config.team_count)

        grouping = group_members(members)
        if not grouping.ok:
            logger.warning("Refusing to sort: %d blocking conflicts", len(grouping.blocking))
            return SortReport(conflicts=grouping.conflicts)

        result = self.balancer.assign(
            grouping.groups,
            disciplines,
            team_count=team_count,
            seed=seed,
            teams=teams,
            cancel_event=cancel_event,
        )
        return SortReport(result=result, conflicts=grouping.conflicts)
