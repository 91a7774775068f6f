"""Errors and conflict reports for Team Sorting."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class TeamSortingError(Exception):
    """Base class for all Team Sorting errors."""


class InvalidTeamCount(TeamSortingError, ValueError):
    """Raised when the requested number of teams is not a positive integer."""


class UnsatisfiableConstraints(TeamSortingError, ValueError):
    """Raised when the not-with relations leave some group without a team."""


class InternalInvariantViolation(TeamSortingError, RuntimeError):
    """Raised when the engine is handed input the grouper should have rejected."""


class ConstraintConflictError(InternalInvariantViolation):
    """Raised when a locked group still contains a not-with pair."""


class AssignmentCancelled(TeamSortingError):
    """Raised when a running assignment is cancelled before it completes."""


class Relation(str, Enum):
    WITH = "with"
    NOT_WITH = "not_with"


@dataclass(frozen=True)
class ConflictReport:
    """Base class for data-quality findings returned by the grouper."""

    @property
    def blocking(self) -> bool:
        return True

    @property
    def message(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class UnresolvedRelation(ConflictReport):
    """A with/not-with name that matches no known member."""

    member: str
    name: str
    relation: Relation

    @property
    def blocking(self) -> bool:
        # A missing not-with target can never end up as a teammate.
        return self.relation is Relation.WITH

    @property
    def message(self) -> str:
        label = "with" if self.relation is Relation.WITH else "not-with"
        return f"{self.member}: unknown {label} member '{self.name}'"


@dataclass(frozen=True)
class ConstraintConflict(ConflictReport):
    """A locked group whose members are required both together and apart.

    Attributes:
        members: Names of every member of the conflicting group
        pairs: (member, forbidden teammate) pairs found inside the group
    """

    members: Tuple[str, ...]
    pairs: Tuple[Tuple[str, str], ...]

    @property
    def message(self) -> str:
        details = ", ".join(f"{a} not with {b}" for a, b in self.pairs)
        return f"Group [{', '.join(self.members)}] cannot stay together: {details}"
