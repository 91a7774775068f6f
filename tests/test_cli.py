"""Tests for the cli module."""

import tempfile
from pathlib import Path

import yaml
from click.testing import CliRunner

from team_sorting.cli import cli

DATASET = {
    'disciplines': [{'name': 'Speed', 'type': 'number', 'sort': 'asc'}],
    'members': [
        {'name': 'A', 'with': ['B'], 'scores': {'Speed': 10}},
        {'name': 'B', 'scores': {'Speed': 20}},
        {'name': 'C', 'scores': {'Speed': 5}},
        {'name': 'D', 'scores': {'Speed': 25}},
    ],
}

CONFLICTING = {
    'members': [
        {'name': 'A', 'with': ['B']},
        {'name': 'B', 'not_with': ['A']},
    ],
}


def write_yaml(data) -> Path:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(data, f)
        return Path(f.name)


class TestCli:
    """Test cases for the command line interface."""

    def test_groups(self):
        path = write_yaml(DATASET)
        try:
            result = CliRunner().invoke(cli, ['groups', str(path)])
        finally:
            path.unlink()

        assert result.exit_code == 0
        assert 'Group 1: A, B' in result.output
        assert 'Group 2: C' in result.output

    def test_groups_with_conflict(self):
        path = write_yaml(CONFLICTING)
        try:
            result = CliRunner().invoke(cli, ['groups', str(path)])
        finally:
            path.unlink()

        assert result.exit_code == 1
        assert 'B not with A' in result.output

    def test_validate(self):
        path = write_yaml(DATASET)
        try:
            result = CliRunner().invoke(cli, ['validate', str(path)])
        finally:
            path.unlink()

        assert result.exit_code == 0
        assert 'Dataset is valid' in result.output

    def test_validate_bad_value(self):
        data = {
            'disciplines': [{'name': 'Speed'}],
            'members': [{'name': 'A', 'scores': {'Speed': 'quick'}}],
        }
        path = write_yaml(data)
        try:
            result = CliRunner().invoke(cli, ['validate', str(path)])
        finally:
            path.unlink()

        assert result.exit_code == 1
        assert "'quick' is not a valid Speed value" in result.output

    def test_assign_with_seed_is_reproducible(self):
        path = write_yaml(DATASET)
        try:
            runner = CliRunner()
            first = runner.invoke(cli, ['assign', str(path), '--teams', '2', '--seed', 'seed123'])
            second = runner.invoke(cli, ['assign', str(path), '--teams', '2', '--seed', 'seed123'])
        finally:
            path.unlink()

        assert first.exit_code == 0
        assert first.output == second.output
        assert 'Seed: seed123' in first.output
        assert 'Δ Speed: 0.0' in first.output

    def test_assign_writes_output(self):
        path = write_yaml(DATASET)
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            output_path = Path(f.name)

        try:
            result = CliRunner().invoke(
                cli, ['assign', str(path), '--teams', '2', '--seed', 'out', '--output', str(output_path)]
            )
            with open(output_path, 'r', encoding='utf-8') as f:
                saved = yaml.safe_load(f)
        finally:
            path.unlink()
            output_path.unlink()

        assert result.exit_code == 0
        assert saved['seed'] == 'out'
        assert sorted(sorted(names) for names in saved['teams'].values()) == [['A', 'B'], ['C', 'D']]

    def test_assign_refuses_conflicts(self):
        path = write_yaml(CONFLICTING)
        try:
            result = CliRunner().invoke(cli, ['assign', str(path), '--teams', '2'])
        finally:
            path.unlink()

        assert result.exit_code == 1
        assert 'Resolve the conflicts' in result.output

    def test_assign_invalid_team_count(self):
        path = write_yaml(DATASET)
        try:
            result = CliRunner().invoke(cli, ['assign', str(path), '--teams', '0'])
        finally:
            path.unlink()

        assert result.exit_code == 1
        assert 'positive integer' in result.output

    def test_assign_uses_config(self):
        path = write_yaml(DATASET)
        config_path = write_yaml({'teams': {'count': 3, 'name_template': 'Squad {number}'}})
        try:
            result = CliRunner().invoke(cli, ['assign', str(path), '--config', str(config_path)])
        finally:
            path.unlink()
            config_path.unlink()

        assert result.exit_code == 0
        assert 'Squad 3:' in result.output

    def test_malformed_scores_reported(self):
        path = write_yaml({'members': [{'name': 'A', 'scores': 'fast'}]})
        try:
            result = CliRunner().invoke(cli, ['validate', str(path)])
        finally:
            path.unlink()

        assert result.exit_code == 1
        assert 'scores must be a mapping' in result.output
