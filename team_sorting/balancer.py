"""Balancing engine: distributes locked groups across teams."""

import logging
import random
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

import yaml

from .config import Config
from .errors import AssignmentCancelled, ConstraintConflictError, InvalidTeamCount, UnsatisfiableConstraints
from .models import AssignmentResult, DisciplineInfo, LockedGroup, SortOrder, Team
from .rng import new_generator
from .scores import discipline_delta, discipline_range, total
from .validators import validate_team_count

logger = logging.getLogger(__name__)

# Swaps must beat the current spread by more than float noise
IMPROVEMENT_TOLERANCE = 1e-9


@dataclass
class _Placement:
    """Working state of one run: group positions, loads and sizes per team."""

    team_groups: List[List[int]]
    loads: List[List[float]]
    sizes: List[int]


def _worst_spread(loads: List[List[float]]) -> float:
    """Largest (max - min) team load over all disciplines."""
    if not loads or not loads[0]:
        return 0.0
    return max(
        max(team[d] for team in loads) - min(team[d] for team in loads)
        for d in range(len(loads[0]))
    )


def _empty_placement(team_count: int, weights: List[List[float]]) -> _Placement:
    num_disciplines = len(weights[0]) if weights else 0
    return _Placement(
        team_groups=[[] for _ in range(team_count)],
        loads=[[0.0] * num_disciplines for _ in range(team_count)],
        sizes=[0] * team_count,
    )


def _add_group(placement: _Placement, team: int, position: int,
               group_sizes: List[int], weights: List[List[float]]) -> None:
    placement.team_groups[team].append(position)
    placement.loads[team] = [load + w for load, w in zip(placement.loads[team], weights[position])]
    placement.sizes[team] += group_sizes[position]


def _remove_group(placement: _Placement, team: int, position: int,
                  group_sizes: List[int], weights: List[List[float]]) -> None:
    placement.team_groups[team].remove(position)
    placement.loads[team] = [load - w for load, w in zip(placement.loads[team], weights[position])]
    placement.sizes[team] -= group_sizes[position]


class TeamBalancer:
    """Assigns locked groups to teams, keeping discipline scores even."""

    def __init__(self, config: Config):
        """Initialize the team balancer.

        Args:
            config: Configuration object with team and search settings
        """
        self.config = config

    def assign(
        self,
        groups: Sequence[LockedGroup],
        disciplines: Sequence[DisciplineInfo],
        team_count: Optional[int] = None,
        seed: Optional[str] = None,
        teams: Optional[Sequence[Team]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AssignmentResult:
        """Distribute locked groups across teams.

        Groups are shuffled with a seeded generator, placed greedily on the
        team that keeps the worst discipline spread lowest, then improved by
        pairwise swaps between the heaviest and lightest team.

        Args:
            groups: Disjoint, conflict-free locked groups
            disciplines: Disciplines to balance on
            team_count: Number of teams; defaults to len(teams) or the config
            seed: Seed to replay a run; defaults to the config seed, else a new one
            teams: Optional empty team shells whose names and order are reused
            cancel_event: Set from another thread to abort the run

        Returns:
            AssignmentResult with new Team objects and the seed used

        Raises:
            InvalidTeamCount: If team_count is below 1 or does not match teams
            ConstraintConflictError: If groups overlap or contain a not-with pair
            UnsatisfiableConstraints: If not-with relations leave a group without a team
            AssignmentCancelled: If cancel_event is set before the run finishes
        """
        groups = list(groups)
        disciplines = list(disciplines)
        team_names = self._team_names(team_count, teams)
        self._check_groups(groups)

        rng, seed_used = new_generator(seed if seed is not None else self.config.seed)
        logger.debug("Balancing %d groups into %d teams with seed %s", len(groups), len(team_names), seed_used)

        group_sizes = [group.size for group in groups]
        weights = self._group_weights(groups, disciplines)
        exclusions = self._group_exclusions(groups)

        placement = self._place_groups(len(team_names), group_sizes, weights, exclusions, rng, cancel_event)
        if self.config.improve:
            self._improve(placement, group_sizes, weights, exclusions, cancel_event)
        self._check_cancelled(cancel_event)

        result = AssignmentResult(self._build_teams(team_names, groups, placement), seed_used)
        logger.info(
            "Sorted %d members into %d teams (seed %s, worst spread %.2f)",
            sum(group.size for group in groups), len(team_names), seed_used,
            _worst_spread(placement.loads),
        )
        return result

    def _team_names(self, team_count: Optional[int], teams: Optional[Sequence[Team]]) -> List[str]:
        if teams:
            if team_count is None:
                team_count = len(teams)
            validate_team_count(team_count)
            if team_count != len(teams):
                raise InvalidTeamCount(
                    f"Team count {team_count} does not match the {len(teams)} teams provided"
                )
            return [team.name for team in teams]

        if team_count is None:
            team_count = self.config.team_count
        validate_team_count(team_count)
        return [self.config.team_name(i) for i in range(team_count)]

    def _check_groups(self, groups: List[LockedGroup]) -> None:
        """Refuse groups the grouper would have reported."""
        seen: Set[int] = set()
        for group in groups:
            for member in group.members:
                if id(member) in seen:
                    raise ConstraintConflictError(
                        f"{member.name} appears in more than one locked group"
                    )
                seen.add(id(member))

            names = set(group.names)
            clashes = [name for name in group.not_with_names if name in names]
            if clashes:
                raise ConstraintConflictError(
                    f"Locked group {group.names} contains not-with members {clashes}; "
                    f"resolve grouping conflicts before balancing"
                )

    def _group_weights(
        self,
        groups: List[LockedGroup],
        disciplines: List[DisciplineInfo],
    ) -> List[List[float]]:
        """Per group and discipline, the group total oriented by sort order.

        Totals are divided by the discipline's observed range so spreads of
        different disciplines are comparable; ascending disciplines are negated.
        """
        members = [member for group in groups for member in group.members]
        factors = []
        for discipline in disciplines:
            low, high = discipline_range(members, discipline)
            scale = (high - low) or 1.0
            sign = -1.0 if discipline.sort_order is SortOrder.ASC else 1.0
            factors.append(sign / scale)

        return [
            [total(group.members, discipline) * factor for discipline, factor in zip(disciplines, factors)]
            for group in groups
        ]

    def _group_exclusions(self, groups: List[LockedGroup]) -> List[Set[int]]:
        """For each group position, the positions of groups it may not share a team with."""
        position_by_name: Dict[str, int] = {}
        for position, group in enumerate(groups):
            for name in group.names:
                position_by_name.setdefault(name, position)

        exclusions: List[Set[int]] = [set() for _ in groups]
        for position, group in enumerate(groups):
            for name in group.not_with_names:
                other = position_by_name.get(name)
                if other is None or other == position:
                    continue
                exclusions[position].add(other)
                exclusions[other].add(position)
        return exclusions

    def _place_groups(
        self,
        team_count: int,
        group_sizes: List[int],
        weights: List[List[float]],
        exclusions: List[Set[int]],
        rng: random.Random,
        cancel_event: Optional[threading.Event],
    ) -> _Placement:
        order = list(range(len(weights)))
        for attempt in range(1, self.config.max_placement_attempts + 1):
            rng.shuffle(order)
            placement = self._place_greedy(order, team_count, group_sizes, weights, exclusions, cancel_event)
            if placement is not None:
                return placement
            logger.debug("Placement attempt %d left a group without a team; reshuffling", attempt)

        logger.debug("Greedy placement failed %d times; searching exhaustively",
                     self.config.max_placement_attempts)
        placement = self._place_backtracking(team_count, group_sizes, weights, exclusions, cancel_event)
        if placement is not None:
            return placement

        raise UnsatisfiableConstraints(
            f"No placement of every group into {team_count} teams keeps all "
            f"not-with relations apart"
        )

    def _place_greedy(
        self,
        order: List[int],
        team_count: int,
        group_sizes: List[int],
        weights: List[List[float]],
        exclusions: List[Set[int]],
        cancel_event: Optional[threading.Event],
    ) -> Optional[_Placement]:
        """Place groups one by one on the team that keeps the worst spread lowest.

        Ties go to the team with fewer members, then to the lower team index.
        Returns None if some group cannot join any team.
        """
        placement = _empty_placement(team_count, weights)

        for position in order:
            self._check_cancelled(cancel_event)
            candidates = self._ranked_teams(position, placement, weights, exclusions)
            if not candidates:
                return None
            _add_group(placement, candidates[0], position, group_sizes, weights)

        return placement

    def _place_backtracking(
        self,
        team_count: int,
        group_sizes: List[int],
        weights: List[List[float]],
        exclusions: List[Set[int]],
        cancel_event: Optional[threading.Event],
    ) -> Optional[_Placement]:
        """Depth-first search over every placement that keeps not-with pairs apart.

        Groups with the most exclusions go first, and teams are tried in the
        greedy order. Empty teams are interchangeable, so only the first empty
        team is tried for a group. Returns None once every branch is exhausted.
        """
        order = sorted(range(len(weights)), key=lambda position: (-len(exclusions[position]), position))
        placement = _empty_placement(team_count, weights)
        chosen: List[Optional[int]] = [None] * len(weights)
        pending: List[List[int]] = []

        depth = 0
        while depth < len(order):
            self._check_cancelled(cancel_event)
            position = order[depth]

            if len(pending) == depth:
                candidates = self._ranked_teams(position, placement, weights, exclusions)
                first_empty = next((team for team in candidates if not placement.team_groups[team]), None)
                pending.append([
                    team for team in candidates
                    if placement.team_groups[team] or team == first_empty
                ])
            elif chosen[position] is not None:
                _remove_group(placement, chosen[position], position, group_sizes, weights)
                chosen[position] = None

            if not pending[depth]:
                pending.pop()
                depth -= 1
                if depth < 0:
                    return None
                continue

            team = pending[depth].pop(0)
            _add_group(placement, team, position, group_sizes, weights)
            chosen[position] = team
            depth += 1

        return placement

    def _ranked_teams(
        self,
        position: int,
        placement: _Placement,
        weights: List[List[float]],
        exclusions: List[Set[int]],
    ) -> List[int]:
        """Teams the group may join, best first by (worst spread, member count, index)."""
        keyed = []
        for team in range(len(placement.team_groups)):
            if not self._can_join_team(position, placement.team_groups[team], exclusions):
                continue
            trial = [
                [load + w for load, w in zip(loads, weights[position])] if index == team else loads
                for index, loads in enumerate(placement.loads)
            ]
            keyed.append((_worst_spread(trial), placement.sizes[team], team))
        return [team for _, _, team in sorted(keyed)]

    def _can_join_team(self, position: int, team_groups: List[int], exclusions: List[Set[int]]) -> bool:
        """Check if a group can join a team (no not-with relations)."""
        for other in team_groups:
            if other in exclusions[position]:
                return False
        return True

    def _improve(
        self,
        placement: _Placement,
        group_sizes: List[int],
        weights: List[List[float]],
        exclusions: List[Set[int]],
        cancel_event: Optional[threading.Event],
    ) -> None:
        """Swap groups between the heaviest and lightest team while it helps.

        Each round applies the valid swap with the lowest resulting worst
        spread, provided it is strictly lower than the current one. Stops
        when no swap improves or after max_swap_iterations rounds.
        """
        for iteration in range(self.config.max_swap_iterations):
            self._check_cancelled(cancel_event)

            totals = [sum(loads) for loads in placement.loads]
            heavy = max(range(len(totals)), key=lambda team: totals[team])
            light = min(range(len(totals)), key=lambda team: totals[team])
            if heavy == light:
                return

            current = _worst_spread(placement.loads)
            best = None
            for heavy_group in placement.team_groups[heavy]:
                for light_group in placement.team_groups[light]:
                    if not self._can_swap(placement, heavy, heavy_group, light, light_group, exclusions):
                        continue
                    trial = list(placement.loads)
                    trial[heavy] = [
                        load - out + into
                        for load, out, into in zip(trial[heavy], weights[heavy_group], weights[light_group])
                    ]
                    trial[light] = [
                        load - out + into
                        for load, out, into in zip(trial[light], weights[light_group], weights[heavy_group])
                    ]
                    spread = _worst_spread(trial)
                    if spread < current - IMPROVEMENT_TOLERANCE and (best is None or spread < best[0]):
                        best = (spread, heavy_group, light_group, trial)

            if best is None:
                logger.debug("No improving swap after %d rounds", iteration)
                return

            spread, heavy_group, light_group, trial = best
            heavy_groups = placement.team_groups[heavy]
            light_groups = placement.team_groups[light]
            heavy_groups[heavy_groups.index(heavy_group)] = light_group
            light_groups[light_groups.index(light_group)] = heavy_group
            placement.loads = trial
            delta = group_sizes[light_group] - group_sizes[heavy_group]
            placement.sizes[heavy] += delta
            placement.sizes[light] -= delta
            logger.debug("Swapped groups %d and %d; worst spread %.4f -> %.4f",
                         heavy_group, light_group, current, spread)

        logger.debug("Stopped improving after %d rounds", self.config.max_swap_iterations)

    def _can_swap(
        self,
        placement: _Placement,
        heavy: int,
        heavy_group: int,
        light: int,
        light_group: int,
        exclusions: List[Set[int]],
    ) -> bool:
        heavy_rest = [group for group in placement.team_groups[heavy] if group != heavy_group]
        light_rest = [group for group in placement.team_groups[light] if group != light_group]
        return (self._can_join_team(light_group, heavy_rest, exclusions)
                and self._can_join_team(heavy_group, light_rest, exclusions))

    def _build_teams(self, team_names: List[str], groups: List[LockedGroup], placement: _Placement) -> List[Team]:
        teams = []
        for name, positions in zip(team_names, placement.team_groups):
            ordered = sorted(positions, key=lambda position: (groups[position].index, position))
            teams.append(Team(name, [member for position in ordered for member in groups[position].members]))
        return teams

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise AssignmentCancelled("Team assignment was cancelled")

    def save_assignment_yaml(self, result: AssignmentResult, output_path: Path) -> None:
        """Save teams to YAML together with the seed that reproduces them.

        Args:
            result: Result of a balancing run
            output_path: Path where to save the assignment YAML
        """
        yaml_data = {
            'seed': result.seed,
            'teams': {team.name: team.member_names for team in result.teams},
        }

        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def get_assignment_summary(
        self,
        result: AssignmentResult,
        disciplines: Sequence[DisciplineInfo],
    ) -> Dict[str, Any]:
        """Get a summary of the assignment results.

        Args:
            result: Result of a balancing run
            disciplines: Disciplines to report deltas for

        Returns:
            Dictionary with assignment statistics
        """
        if not result.teams:
            return {
                'seed': result.seed,
                'total_members': 0,
                'teams': {},
                'team_sizes': {},
                'average_team_size': 0.0,
                'discipline_delta': {},
            }

        team_sizes = {team.name: len(team.members) for team in result.teams}
        average_size = sum(team_sizes.values()) / len(team_sizes)

        return {
            'seed': result.seed,
            'total_members': sum(team_sizes.values()),
            'teams': result.as_dict(),
            'team_sizes': team_sizes,
            'average_team_size': round(average_size, 2),
            'discipline_delta': discipline_delta(result.teams, disciplines),
        }
