"""Constraint grouping: turns with/not-with relations into locked groups."""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .errors import ConflictReport, ConstraintConflict, Relation, UnresolvedRelation
from .models import LockedGroup, Member

logger = logging.getLogger(__name__)


@dataclass
class GroupingResult:
    """Locked groups plus every data-quality finding made while building them."""

    groups: List[LockedGroup] = field(default_factory=list)
    conflicts: List[ConflictReport] = field(default_factory=list)

    @property
    def blocking(self) -> List[ConflictReport]:
        return [conflict for conflict in self.conflicts if conflict.blocking]

    @property
    def ok(self) -> bool:
        return not self.blocking


def _index_by_name(members: Sequence[Member]) -> Dict[str, int]:
    index: Dict[str, int] = {}
    for position, member in enumerate(members):
        # First occurrence wins; duplicates are rejected by validate_member_names
        index.setdefault(member.name, position)
    return index


def _with_adjacency(members: Sequence[Member], index: Dict[str, int]) -> List[List[int]]:
    """Undirected "with" edges: A-B exists if either lists the other."""
    adjacency: List[List[int]] = [[] for _ in members]
    for position, member in enumerate(members):
        for name in member.with_names:
            other = index.get(name)
            if other is None or other == position:
                continue
            if other not in adjacency[position]:
                adjacency[position].append(other)
            if position not in adjacency[other]:
                adjacency[other].append(position)
    return adjacency


def _components(members: Sequence[Member]) -> List[List[int]]:
    index = _index_by_name(members)
    adjacency = _with_adjacency(members, index)
    seen = [False] * len(members)
    components = []

    for start in range(len(members)):
        if seen[start]:
            continue
        seen[start] = True
        component = [start]
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbour in adjacency[current]:
                if not seen[neighbour]:
                    seen[neighbour] = True
                    component.append(neighbour)
                    queue.append(neighbour)
        components.append(component)

    return components


def _unresolved(members: Sequence[Member], index: Dict[str, int]) -> List[UnresolvedRelation]:
    reports = []
    for member in members:
        for name in member.with_names:
            if name not in index:
                reports.append(UnresolvedRelation(member.name, name, Relation.WITH))
        for name in member.not_with_names:
            if name not in index:
                reports.append(UnresolvedRelation(member.name, name, Relation.NOT_WITH))
    return reports


def _group_conflict(group: LockedGroup) -> Optional[ConstraintConflict]:
    names = set(group.names)
    pairs = []
    for member in group.members:
        for name in member.not_with_names:
            if name in names:
                pairs.append((member.name, name))
    if not pairs:
        return None
    return ConstraintConflict(tuple(group.names), tuple(pairs))


def group_members(members: Sequence[Member]) -> GroupingResult:
    """Split members into locked groups and report contradictions.

    Groups come out in the order of their first member in ``members``; within
    a group members follow breadth-first discovery from that first member.

    Args:
        members: Members in input order

    Returns:
        GroupingResult with one group per connected "with" component and a
        report for every unresolved name and every self-contradicting group
    """
    members = list(members)
    index = _index_by_name(members)
    result = GroupingResult(conflicts=list(_unresolved(members, index)))

    for component in _components(members):
        group = LockedGroup(len(result.groups), tuple(members[i] for i in component))
        result.groups.append(group)
        conflict = _group_conflict(group)
        if conflict is not None:
            result.conflicts.append(conflict)

    logger.debug(
        "Grouped %d members into %d locked groups (%d findings)",
        len(members), len(result.groups), len(result.conflicts),
    )
    return result


def get_with_members(members: Sequence[Member], member: Member) -> List[Member]:
    """Every member transitively tied to ``member`` by "with", excluding itself."""
    for group in group_members(members).groups:
        if any(other is member for other in group.members):
            return [other for other in group.members if other is not member]
    return []


def get_not_with_members(members: Sequence[Member], member: Member) -> List[Member]:
    """Every member that ``member`` may not share a team with.

    A not-with target drags its whole locked group along, since those members
    always follow it.
    """
    members = list(members)
    by_name = {}
    for other in members:
        by_name.setdefault(other.name, other)

    result: List[Member] = []
    for name in member.not_with_names:
        target = by_name.get(name)
        if target is None:
            continue
        for other in [target] + get_with_members(members, target):
            if not any(other is seen for seen in result):
                result.append(other)
    return result


def invalid_members(members: Sequence[Member]) -> List[Member]:
    """Members of every locked group that contradicts itself."""
    invalid = []
    for group in group_members(members).groups:
        if _group_conflict(group) is not None:
            invalid.extend(group.members)
    return invalid
