"""Team Sorting - split members into balanced teams that honour with/not-with wishes."""

__version__ = "0.1.0"

from .balancer import TeamBalancer
from .config import Config
from .grouping import group_members
from .sorter import SortReport, TeamSorter

__all__ = ["TeamBalancer", "TeamSorter", "SortReport", "Config", "group_members"]
