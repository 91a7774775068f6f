"""Data model for Team Sorting."""

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class SortOrder(str, Enum):
    """Which end of a discipline's scale is better."""

    ASC = "asc"    # lower is better
    DESC = "desc"  # higher is better

    @classmethod
    def parse(cls, text: str) -> "SortOrder":
        try:
            return cls(str(text).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown sort order '{text}'; expected one of: "
                f"{', '.join(order.value for order in cls)}"
            )


class DisciplineDataType(str, Enum):
    """How the raw text of a discipline record is read."""

    NUMBER = "number"
    TEXT = "text"

    @classmethod
    def parse(cls, text: str) -> "DisciplineDataType":
        try:
            return cls(str(text).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown discipline type '{text}'; expected one of: "
                f"{', '.join(kind.value for kind in cls)}"
            )


def _parse_number(raw: str) -> Optional[float]:
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


@dataclass(eq=False)
class DisciplineInfo:
    """A scored attribute tracked for every member.

    Text disciplines are ordinal: ``levels`` lists the accepted values from
    the first (1) to the last (``len(levels)``).
    """

    name: str
    data_type: DisciplineDataType = DisciplineDataType.NUMBER
    sort_order: SortOrder = SortOrder.ASC
    levels: Tuple[str, ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Discipline names cannot be empty or whitespace-only")
        self.levels = tuple(str(level).strip() for level in self.levels)

    def parse(self, raw: Optional[str]) -> Optional[float]:
        """Convert raw record text to a number, or None if it cannot be read."""
        if raw is None:
            return None
        text = str(raw).strip()
        if not text:
            return None

        if self.data_type is DisciplineDataType.TEXT:
            lowered = [level.lower() for level in self.levels]
            if text.lower() in lowered:
                return float(lowered.index(text.lower()) + 1)

        return _parse_number(text)


@dataclass(eq=False)
class DisciplineRecord:
    """The value a member holds for one discipline."""

    discipline: DisciplineInfo
    raw_value: str = ""

    @property
    def value(self) -> Optional[float]:
        return self.discipline.parse(self.raw_value)

    @property
    def is_valid(self) -> bool:
        """Blank values are allowed; anything else must parse."""
        if not str(self.raw_value).strip():
            return True
        return self.value is not None


def _unique(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(name.strip() for name in names if name and name.strip()))


@dataclass(eq=False)
class Member:
    """A person to be sorted into a team.

    Relations are stored as names and resolved by lookup, so members never
    hold references to each other.
    """

    name: str
    records: Dict[str, DisciplineRecord] = field(default_factory=dict)
    with_names: List[str] = field(default_factory=list)
    not_with_names: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Member names cannot be empty or whitespace-only")
        self.name = self.name.strip()
        with_names, self.with_names = self.with_names, []
        not_with_names, self.not_with_names = self.not_with_names, []
        self.add_with_members(with_names)
        self.add_not_with_members(not_with_names)

    def _check_not_self(self, names: List[str]) -> None:
        if self.name in names:
            raise ValueError(f"{self.name} cannot reference themselves")

    def add_with_members(self, names: Iterable[str]) -> None:
        """Add names this member must share a team with.

        Args:
            names: Member names; blanks and repeats are ignored

        Raises:
            ValueError: If the member names itself
        """
        names = _unique(names)
        self._check_not_self(names)
        self.with_names = _unique(self.with_names + names)

    def add_not_with_members(self, names: Iterable[str]) -> None:
        """Add names this member may not share a team with.

        Args:
            names: Member names; blanks and repeats are ignored

        Raises:
            ValueError: If the member names itself
        """
        names = _unique(names)
        self._check_not_self(names)
        self.not_with_names = _unique(self.not_with_names + names)

    def remove_with_member(self, name: str) -> bool:
        """Drop a with relation; False if it was not there."""
        if name not in self.with_names:
            return False
        self.with_names.remove(name)
        return True

    def remove_not_with_member(self, name: str) -> bool:
        """Drop a not-with relation; False if it was not there."""
        if name not in self.not_with_names:
            return False
        self.not_with_names.remove(name)
        return True

    def add_discipline_record(self, discipline: DisciplineInfo, value: str = "") -> DisciplineRecord:
        """Set the record for a discipline, replacing any previous one.

        Args:
            discipline: Discipline the value belongs to
            value: Raw text of the value; None is stored as blank

        Returns:
            The new record
        """
        record = DisciplineRecord(discipline, "" if value is None else str(value))
        self.records[discipline.id] = record
        return record

    def remove_discipline_record(self, discipline_id: str) -> bool:
        """Drop the record for a discipline id; False if there was none."""
        return self.records.pop(discipline_id, None) is not None

    def get_record(self, discipline: DisciplineInfo) -> Optional[DisciplineRecord]:
        return self.records.get(discipline.id)

    def get_value(self, discipline: DisciplineInfo) -> Optional[float]:
        """Numeric value for a discipline; None when missing or unparsable."""
        record = self.get_record(discipline)
        if record is None:
            return None
        return record.value

    def __repr__(self) -> str:
        return f"Member({self.name!r})"


@dataclass(frozen=True)
class LockedGroup:
    """Members that must always share a team."""

    index: int
    members: Tuple[Member, ...]

    @property
    def names(self) -> List[str]:
        return [member.name for member in self.members]

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def not_with_names(self) -> List[str]:
        return _unique(name for member in self.members for name in member.not_with_names)


@dataclass(eq=False)
class Team:
    """A named, ordered list of members."""

    name: str
    members: List[Member] = field(default_factory=list)

    @property
    def member_names(self) -> List[str]:
        return [member.name for member in self.members]


@dataclass
class AssignmentResult:
    """Teams produced by one balancing run and the seed that reproduces them."""

    teams: List[Team]
    seed: str

    def as_dict(self) -> Dict[str, List[str]]:
        return {team.name: team.member_names for team in self.teams}
