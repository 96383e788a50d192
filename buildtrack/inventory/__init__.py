"""Building inventory: structure generation, level editing and project files."""

from buildtrack.inventory.loader import ProjectSnapshot, load_project, parse_project, save_project
from buildtrack.inventory.structure import (
    duplicate_level,
    generate_structure,
    insert_level,
    move_level,
    remove_level,
)

__all__ = [
    "ProjectSnapshot",
    "duplicate_level",
    "generate_structure",
    "insert_level",
    "load_project",
    "move_level",
    "parse_project",
    "remove_level",
    "save_project",
]
