"""Command line interface for Team Sorting."""

import logging
import sys
from pathlib import Path

import click
import yaml

from team_sorting.balancer import TeamBalancer
from team_sorting.config import Config
from team_sorting.dataset import load_dataset
from team_sorting.errors import TeamSortingError
from team_sorting.grouping import group_members
from team_sorting.scores import score_table
from team_sorting.sorter import TeamSorter


def load_or_exit(dataset_file: Path):
  """Load a dataset, printing the error and exiting on failure."""
  try:
    return load_dataset(dataset_file)
  except (ValueError, yaml.YAMLError) as e:
    click.secho(f"Error: could not load {dataset_file}: {e}", fg="red")
    sys.exit(1)

def print_conflicts(conflicts) -> None:
  for conflict in conflicts:
    colour = "red" if conflict.blocking else "yellow"
    click.secho(f"  • {conflict.message}", fg=colour)

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log search progress.")
def cli(verbose: bool):
  """Team Sorting CLI for splitting members into balanced teams."""
  if verbose:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

@cli.command()
@click.argument("dataset_file", type=click.Path(exists=True, path_type=Path))
def groups(dataset_file: Path):
  """Show the locked groups derived from with/not-with relations."""
  dataset = load_or_exit(dataset_file)
  grouping = group_members(dataset.members)

  for group in grouping.groups:
    click.secho(f"Group {group.index + 1}: {', '.join(group.names)}", fg="blue")

  if grouping.conflicts:
    click.secho("\nFindings:", fg="yellow")
    print_conflicts(grouping.conflicts)

  if not grouping.ok:
    sys.exit(1)

@cli.command()
@click.argument("dataset_file", type=click.Path(exists=True, path_type=Path))
def validate(dataset_file: Path):
  """Validate relations and discipline values."""
  dataset = load_or_exit(dataset_file)
  grouping = group_members(dataset.members)
  invalid_records = dataset.invalid_records()

  if grouping.conflicts:
    click.secho("\nRelations:", fg="red")
    print_conflicts(grouping.conflicts)

  if invalid_records:
    click.secho("\nValues:", fg="red")
    for member, record in invalid_records:
      click.secho(
        f"  • {member.name}: '{record.raw_value}' is not a valid {record.discipline.name} value",
        fg="red",
      )

  if grouping.ok and not invalid_records:
    click.secho("✅ Dataset is valid!", fg="green")
  else:
    click.secho(f"\n❌ Found validation errors in {dataset_file}", fg="red")
    sys.exit(1)

@cli.command()
@click.argument("dataset_file", type=click.Path(exists=True, path_type=Path))
@click.option("--config", "config_file", type=click.Path(exists=True, path_type=Path),
              help="YAML configuration file")
@click.option("--teams", "team_count", type=int, help="Number of teams")
@click.option("--seed", help="Seed of an earlier run to reproduce")
@click.option("--output", "output_file", type=click.Path(path_type=Path),
              help="Write the teams and seed to this YAML file")
def assign(dataset_file: Path, config_file: Path, team_count: int, seed: str, output_file: Path):
  """Sort members into balanced teams."""
  config = Config()
  if config_file:
    try:
      config.load_from_file(config_file)
    except (ValueError, yaml.YAMLError) as e:
      click.secho(f"Error: invalid config {config_file}: {e}", fg="red")
      sys.exit(1)

  dataset = load_or_exit(dataset_file)
  if seed is None and dataset.seed:
    seed = dataset.seed

  try:
    report = TeamSorter(config).sort(dataset.members, dataset.disciplines, team_count=team_count, seed=seed)
  except (TeamSortingError, ValueError) as e:
    click.secho(f"Error: {e}", fg="red")
    sys.exit(1)

  if report.conflicts:
    click.secho("Findings:", fg="yellow")
    print_conflicts(report.conflicts)

  if not report.ok:
    click.secho("\n❌ Resolve the conflicts above before sorting", fg="red")
    sys.exit(1)

  result = report.result
  for team in result.teams:
    click.secho(f"{team.name}: {', '.join(team.member_names) or '-'}", fg="green")

  if dataset.disciplines:
    click.echo()
    click.echo(score_table(result.teams, dataset.disciplines).to_string())

  balancer = TeamBalancer(config)
  summary = balancer.get_assignment_summary(result, dataset.disciplines)
  for name, delta in summary["discipline_delta"].items():
    click.secho(f"Δ {name}: {delta}", fg="blue")

  click.secho(f"Seed: {result.seed}", fg="blue")

  if output_file:
    balancer.save_assignment_yaml(result, output_file)
    click.secho(f"Saved teams to {output_file}", fg="green")

if __name__ == "__main__":
  cli()
