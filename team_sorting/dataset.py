"""In-memory dataset of disciplines and members, with YAML persistence."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import yaml

from .grouping import invalid_members
from .models import DisciplineDataType, DisciplineInfo, DisciplineRecord, Member, SortOrder, Team
from .scores import average, discipline_range, normalized_score
from .validators import is_valid_team


class Dataset:
    """Disciplines and members kept in sync.

    Every member holds exactly one record per discipline: adding or removing
    a discipline adds or removes the matching record on every member.
    """

    def __init__(self):
        self.disciplines: List[DisciplineInfo] = []
        self.members: List[Member] = []
        self.seed: str = ""

    @property
    def sorted_member_names(self) -> List[str]:
        return sorted(member.name for member in self.members)

    def add_discipline(self, discipline: DisciplineInfo) -> bool:
        """Add a discipline with a blank record on every member.

        Args:
            discipline: Discipline to add

        Returns:
            False if a discipline with the same name already exists
        """
        if self.get_discipline_by_name(discipline.name) is not None:
            return False
        for member in self.members:
            member.add_discipline_record(discipline, "")
        self.disciplines.append(discipline)
        return True

    def remove_discipline(self, discipline: DisciplineInfo) -> bool:
        """Remove a discipline and its record from every member.

        Args:
            discipline: Discipline to remove

        Returns:
            False if the discipline is not part of the dataset
        """
        if discipline not in self.disciplines:
            return False
        self.disciplines.remove(discipline)
        for member in self.members:
            member.remove_discipline_record(discipline.id)
        return True

    def get_discipline_by_name(self, name: str) -> Optional[DisciplineInfo]:
        return next((d for d in self.disciplines if d.name == name), None)

    def get_discipline_by_id(self, discipline_id: str) -> Optional[DisciplineInfo]:
        return next((d for d in self.disciplines if d.id == discipline_id), None)

    def add_member(self, member: Member) -> bool:
        """Add a member with a record for every discipline it is missing.

        Records for disciplines the dataset does not know are dropped.

        Args:
            member: Member to add

        Returns:
            False if a member with the same name already exists
        """
        if self.get_member_by_name(member.name) is not None:
            return False
        for discipline in self.disciplines:
            if member.get_record(discipline) is None:
                member.add_discipline_record(discipline, "")
        for discipline_id in list(member.records):
            if self.get_discipline_by_id(discipline_id) is None:
                member.remove_discipline_record(discipline_id)
        self.members.append(member)
        return True

    def remove_member(self, member: Member) -> bool:
        """Remove a member from the dataset.

        Args:
            member: Member to remove

        Returns:
            False if the member is not part of the dataset
        """
        if member not in self.members:
            return False
        self.members.remove(member)
        return True

    def get_member_by_name(self, name: str) -> Optional[Member]:
        return next((m for m in self.members if m.name == name), None)

    def get_members_by_name(self, names: List[str]) -> List[Member]:
        """Members whose name is in ``names``, in dataset order."""
        return [member for member in self.members if member.name in names]

    def set_value(self, member: Member, discipline: DisciplineInfo, raw_value: str) -> bool:
        """Store the raw text of a member's value for a discipline.

        Args:
            member: Member of this dataset
            discipline: Discipline of this dataset
            raw_value: Text as entered; parsed on read

        Returns:
            False if the member or the discipline is not part of the dataset
        """
        if member not in self.members or discipline not in self.disciplines:
            return False
        member.add_discipline_record(discipline, raw_value)
        return True

    def discipline_range(self, discipline: DisciplineInfo) -> Tuple[float, float]:
        return discipline_range(self.members, discipline)

    def member_discipline_score(self, member: Member, discipline: DisciplineInfo) -> float:
        """Member's value on a 0-100 scale relative to the whole dataset."""
        return normalized_score(member.get_value(discipline), discipline, self.discipline_range(discipline))

    def sorted_records(self, discipline: DisciplineInfo) -> List[DisciplineRecord]:
        """Records for a discipline, best first; unavailable values last."""
        records = [m.get_record(discipline) for m in self.members if m.get_record(discipline) is not None]
        scored = [record for record in records if record.value is not None]
        unscored = [record for record in records if record.value is None]
        scored.sort(key=lambda record: record.value, reverse=discipline.sort_order is SortOrder.DESC)
        return scored + unscored

    def invalid_members(self) -> List[Member]:
        return invalid_members(self.members)

    def invalid_records(self) -> List[Tuple[Member, DisciplineRecord]]:
        """Records whose raw text does not parse for their discipline."""
        return [
            (member, member.get_record(discipline))
            for member in self.members
            for discipline in self.disciplines
            if member.get_record(discipline) is not None and not member.get_record(discipline).is_valid
        ]

    def create_teams(self, count: int, template: str = "Team {number}") -> List[Team]:
        """Empty team shells named from a template."""
        return [Team(template.format(number=i + 1)) for i in range(count)]

    def move_member(self, member: Member, team: Team, teams: Sequence[Team]) -> bool:
        """Move a member into ``team``, taking it out of whichever team holds it.

        Args:
            member: Member of this dataset
            team: Destination team, one of ``teams``
            teams: Every team of the current assignment

        Returns:
            True if the destination team is still valid: every with-partner
            present and no not-with pair

        Raises:
            ValueError: If the member is not in the dataset or the team is not in teams
        """
        if member not in self.members:
            raise ValueError(f"{member.name} is not part of the dataset")
        if not any(other is team for other in teams):
            raise ValueError(f"{team.name} is not one of the given teams")

        for other in teams:
            other.members[:] = [m for m in other.members if m is not member]
        team.members.append(member)
        return is_valid_team(team.members)


def sorted_teams(teams: Iterable[Team], discipline: DisciplineInfo) -> List[Tuple[Team, float]]:
    """Teams with their average for a discipline, lowest average first.

    Args:
        teams: Teams to rank
        discipline: Discipline to average

    Returns:
        List of (team, average) pairs; teams without scored members average 0.0
    """
    ranked = [(team, average(team.members, discipline)) for team in teams]
    ranked.sort(key=lambda pair: pair[1])
    return ranked


def sort_members(
    members: Iterable[Member],
    discipline: Optional[DisciplineInfo] = None,
    sort_order: SortOrder = SortOrder.ASC,
) -> List[Member]:
    """Order members for display.

    Without a discipline members are ordered by name. With one they are
    ordered by value in ``sort_order``; members without a value come last,
    by name.
    """
    members = sorted(members, key=lambda member: member.name)
    if discipline is None:
        return members if sort_order is SortOrder.ASC else members[::-1]

    scored = [member for member in members if member.get_value(discipline) is not None]
    unscored = [member for member in members if member.get_value(discipline) is None]
    scored.sort(key=lambda member: member.get_value(discipline), reverse=sort_order is SortOrder.DESC)
    return scored + unscored


def _discipline_from_dict(data: Dict) -> DisciplineInfo:
    if not isinstance(data, dict) or 'name' not in data:
        raise ValueError("Each discipline must be a mapping with a 'name'")
    return DisciplineInfo(
        name=str(data['name']),
        data_type=DisciplineDataType.parse(data.get('type', 'number')),
        sort_order=SortOrder.parse(data.get('sort', 'asc')),
        levels=tuple(data.get('levels') or ()),
    )


def _names(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [name.strip() for name in value.split(',') if name.strip()]
    if isinstance(value, list):
        return [str(name).strip() for name in value]
    raise ValueError("with/not_with must be a comma-separated string or a list")


def load_dataset(dataset_path: Path) -> Dataset:
    """Load disciplines and members from a YAML file.

    Args:
        dataset_path: Path to the YAML dataset

    Returns:
        Dataset with key parity between members and disciplines

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the YAML is invalid
        ValueError: If the structure is invalid or names are repeated
    """
    if not dataset_path.exists():
        raise FileNotFoundError(f"Dataset file not found: {dataset_path}")

    with open(dataset_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError("Dataset file must contain a YAML dictionary")

    dataset = Dataset()
    dataset.seed = str(data.get('seed') or '')

    for entry in data.get('disciplines') or []:
        discipline = _discipline_from_dict(entry)
        if not dataset.add_discipline(discipline):
            raise ValueError(f"Duplicate discipline name: {discipline.name}")

    for entry in data.get('members') or []:
        if not isinstance(entry, dict) or 'name' not in entry:
            raise ValueError("Each member must be a mapping with a 'name'")
        member = Member(
            name=str(entry['name']),
            with_names=_names(entry.get('with')),
            not_with_names=_names(entry.get('not_with')),
        )
        if not dataset.add_member(member):
            raise ValueError(f"Duplicate member name: {member.name}")

        scores = entry.get('scores') or {}
        if not isinstance(scores, dict):
            raise ValueError(f"{member.name}: scores must be a mapping of discipline to value")
        for discipline_name, raw_value in scores.items():
            discipline = dataset.get_discipline_by_name(str(discipline_name))
            if discipline is None:
                raise ValueError(f"{member.name}: unknown discipline '{discipline_name}'")
            dataset.set_value(member, discipline, '' if raw_value is None else str(raw_value))

    return dataset


def dump_dataset(dataset: Dataset, dataset_path: Path) -> None:
    """Save a dataset in the format read by load_dataset."""
    data = {
        'disciplines': [
            {
                'name': discipline.name,
                'type': discipline.data_type.value,
                'sort': discipline.sort_order.value,
                **({'levels': list(discipline.levels)} if discipline.levels else {}),
            }
            for discipline in dataset.disciplines
        ],
        'members': [
            {
                'name': member.name,
                'with': list(member.with_names),
                'not_with': list(member.not_with_names),
                'scores': {
                    discipline.name: member.get_record(discipline).raw_value
                    for discipline in dataset.disciplines
                },
            }
            for member in dataset.members
        ],
    }
    if dataset.seed:
        data['seed'] = dataset.seed

    with open(dataset_path, 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
