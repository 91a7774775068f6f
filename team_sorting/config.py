"""Configuration management for Team Sorting."""

from pathlib import Path
from typing import Optional

import yaml


class Config:
    """Configuration class for team sorting settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        self.team_count: int = 2
        self.seed: Optional[str] = None
        self.team_name_template: str = "Team {number}"
        self.improve: bool = True
        self.max_swap_iterations: int = 100
        self.max_placement_attempts: int = 25

    def load_from_file(self, config_path: Path) -> None:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Raises:
            FileNotFoundError: If the config file doesn't exist
            yaml.YAMLError: If the YAML file is invalid
            ValueError: If the configuration structure is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a YAML dictionary")

        teams_config = config_data.get('teams', {}) or {}
        balancing_config = config_data.get('balancing', {}) or {}

        if 'count' in teams_config:
            self.team_count = _positive_int(teams_config['count'], 'teams.count')

        if 'seed' in teams_config:
            seed = teams_config['seed']
            self.seed = None if seed is None or str(seed).strip() == '' else str(seed).strip()

        if 'name_template' in teams_config:
            template = teams_config['name_template']
            if not isinstance(template, str) or '{number}' not in template:
                raise ValueError("teams.name_template must be a string containing '{number}'")
            self.team_name_template = template

        if 'improve' in balancing_config:
            improve = balancing_config['improve']
            if not isinstance(improve, bool):
                raise ValueError("balancing.improve must be true or false")
            self.improve = improve

        if 'max_swap_iterations' in balancing_config:
            iterations = balancing_config['max_swap_iterations']
            if not isinstance(iterations, int) or isinstance(iterations, bool) or iterations < 0:
                raise ValueError("balancing.max_swap_iterations must be a non-negative integer")
            self.max_swap_iterations = iterations

        if 'max_placement_attempts' in balancing_config:
            self.max_placement_attempts = _positive_int(
                balancing_config['max_placement_attempts'], 'balancing.max_placement_attempts'
            )

    def team_name(self, index: int) -> str:
        """Name of the synthetic team at a zero-based index."""
        return self.team_name_template.format(number=index + 1)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary representation of the configuration
        """
        config_dict = {
            'teams': {
                'count': self.team_count,
                'name_template': self.team_name_template,
            },
            'balancing': {
                'improve': self.improve,
                'max_swap_iterations': self.max_swap_iterations,
                'max_placement_attempts': self.max_placement_attempts,
            },
        }

        if self.seed:
            config_dict['teams']['seed'] = self.seed

        return config_dict

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to a YAML file.

        Args:
            config_path: Path where to save the configuration
        """
        config_dict = self.to_dict()

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=True)


def _positive_int(value, key: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError(f"{key} must be a positive integer")
    return value
