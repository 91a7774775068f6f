"""Tests for the scores module."""

import pytest

from team_sorting.models import DisciplineInfo, Member, SortOrder, Team
from team_sorting import scores


def member(name, discipline, value):
    m = Member(name)
    m.add_discipline_record(discipline, value)
    return m


class TestAggregates:
    """Test cases for member and team aggregates."""

    def setup_method(self):
        self.speed = DisciplineInfo("Speed")
        self.members = [
            member('A', self.speed, '10'),
            member('B', self.speed, '20.5'),
            member('C', self.speed, ''),
            member('D', self.speed, 'fast'),
        ]

    def test_total_skips_missing(self):
        assert scores.total(self.members, self.speed) == 30.5

    def test_average_over_scored_members(self):
        assert scores.average(self.members, self.speed) == 15.25

    def test_average_of_nothing(self):
        assert scores.average([], self.speed) == 0.0
        assert scores.average(self.members[2:], self.speed) == 0.0

    def test_scoring_is_idempotent(self):
        """Computing a total twice gives the same value."""
        team = Team('Red', self.members)
        assert scores.total(team.members, self.speed) == scores.total(team.members, self.speed)

    def test_team_totals_and_averages(self):
        teams = [Team('Red', self.members[:1]), Team('Blue', self.members[1:])]

        assert scores.team_totals(teams, self.speed) == {'Red': 10.0, 'Blue': 20.5}
        assert scores.team_averages(teams, self.speed) == {'Red': 10.0, 'Blue': 20.5}

    def test_total_scores_rounded(self):
        third = DisciplineInfo("Third")
        members = [member('A', third, '0.333'), member('B', third, '0.333')]

        assert scores.total_scores(members, [third]) == {'Third': 0.67}

    def test_discipline_range(self):
        assert scores.discipline_range(self.members, self.speed) == (10.0, 20.5)
        assert scores.discipline_range([], self.speed) == (0.0, 0.0)


class TestNormalizedScore:
    """Test cases for the 0-100 scale."""

    def test_ascending(self):
        speed = DisciplineInfo("Speed", sort_order=SortOrder.ASC)
        assert scores.normalized_score(5, speed, (5, 25)) == 0.0
        assert scores.normalized_score(25, speed, (5, 25)) == 100.0
        assert scores.normalized_score(10, speed, (5, 25)) == 25.0

    def test_descending(self):
        skill = DisciplineInfo("Skill", sort_order=SortOrder.DESC)
        assert scores.normalized_score(5, skill, (5, 25)) == 100.0
        assert scores.normalized_score(25, skill, (5, 25)) == 0.0

    def test_degenerate(self):
        skill = DisciplineInfo("Skill")
        assert scores.normalized_score(3, skill, (3, 3)) == 0.0
        assert scores.normalized_score(None, skill, (0, 10)) == 0.0


class TestDisciplineDelta:
    """Test cases for cross-team deltas."""

    def test_delta_of_averages(self):
        speed = DisciplineInfo("Speed")
        teams = [
            Team('Red', [member('A', speed, '10'), member('B', speed, '20')]),
            Team('Blue', [member('C', speed, '5'), member('D', speed, '6.666')]),
        ]

        assert scores.discipline_delta(teams, [speed]) == {'Speed': pytest.approx(9.17)}

    def test_unscored_teams_left_out(self):
        speed = DisciplineInfo("Speed")
        teams = [Team('Red', [member('A', speed, '10')]), Team('Blue', []), Team('Green', [member('B', speed, '')])]

        assert scores.discipline_delta(teams, [speed]) == {'Speed': 0.0}


class TestScoreTable:
    """Test cases for the reporting table."""

    def test_average_table(self):
        speed = DisciplineInfo("Speed")
        teams = [
            Team('Red', [member('A', speed, '10'), member('B', speed, '15')]),
            Team('Blue', [member('C', speed, '1')]),
        ]

        table = scores.score_table(teams, [speed])

        assert list(table.columns) == ['Members', 'Speed']
        assert list(table.index) == ['Red', 'Blue']
        assert table.loc['Red', 'Speed'] == 12.5
        assert table.loc['Blue', 'Members'] == 1

    def test_total_table(self):
        speed = DisciplineInfo("Speed")
        teams = [Team('Red', [member('A', speed, '10'), member('B', speed, '15')])]

        assert scores.score_table(teams, [speed], statistic='total').loc['Red', 'Speed'] == 25.0

    def test_unknown_statistic(self):
        with pytest.raises(ValueError, match="Unknown statistic"):
            scores.score_table([], [], statistic='median')
