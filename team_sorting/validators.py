"""Validation utilities for Team Sorting."""

from typing import Iterable, List, Sequence, Tuple

from .errors import InvalidTeamCount
from .models import DisciplineInfo, Member

MAX_NAME_LENGTH = 100


def validate_member_names(members: Sequence[Member]) -> None:
    """Validate member names before sorting.

    Args:
        members: Members to validate

    Raises:
        ValueError: If there are no members or a name is blank, too long or repeated
    """
    if not members:
        raise ValueError("No members to sort")

    # Check for empty or whitespace-only names
    for member in members:
        if not member.name or not member.name.strip():
            raise ValueError("Member names cannot be empty or whitespace-only")

    # Check for very long names (likely data issue)
    for member in members:
        if len(member.name) > MAX_NAME_LENGTH:
            raise ValueError(
                f"Member name too long (max {MAX_NAME_LENGTH} chars): '{member.name[:50]}...'"
            )

    seen = set()
    duplicates = []
    for member in members:
        if member.name in seen and member.name not in duplicates:
            duplicates.append(member.name)
        seen.add(member.name)
    if duplicates:
        raise ValueError(f"Member names must be unique; duplicated: {duplicates}")


def validate_team_count(team_count: int) -> None:
    """Validate the requested number of teams.

    Raises:
        InvalidTeamCount: If team_count is not an integer of at least 1
    """
    if not isinstance(team_count, int) or isinstance(team_count, bool) or team_count < 1:
        raise InvalidTeamCount(f"Team count must be a positive integer, got {team_count!r}")


def validate_key_parity(members: Iterable[Member], disciplines: Iterable[DisciplineInfo]) -> None:
    """Check that every member holds exactly one record per known discipline.

    Raises:
        ValueError: If any member's record keys differ from the discipline ids
    """
    expected = {discipline.id for discipline in disciplines}
    for member in members:
        actual = set(member.records)
        if actual != expected:
            missing = len(expected - actual)
            extra = len(actual - expected)
            raise ValueError(
                f"{member.name}: records out of sync with disciplines "
                f"({missing} missing, {extra} unknown)"
            )


def get_invalid_members(members: Iterable[Member]) -> Tuple[List[str], List[str]]:
    """Find relation problems inside one set of members, e.g. a team.

    Returns:
        Tuple of (with names missing from the set, set members named in
        someone's not-with list)
    """
    members = list(members)
    names = [member.name for member in members]
    with_names = [name for member in members for name in member.with_names]
    not_with_names = {name for member in members for name in member.not_with_names}

    missing_with = list(dict.fromkeys(name for name in with_names if name not in names))
    present_not_with = [name for name in dict.fromkeys(names) if name in not_with_names]
    return missing_with, present_not_with


def is_valid_team(members: Iterable[Member]) -> bool:
    """True if every with-partner is present and no not-with pair is."""
    missing_with, present_not_with = get_invalid_members(members)
    return not missing_with and not present_not_with
