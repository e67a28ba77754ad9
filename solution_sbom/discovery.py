"""Expand solution files and directories into project file paths."""

import os
import re
from typing import Iterable, List

from .exceptions import ConfigurationError
from .logging_config import logger

PROJECT_EXTENSIONS = (".csproj", ".fsproj", ".vbproj")
SOLUTION_EXTENSION = ".sln"

# Build output and VCS directories never hold source projects
SKIP_DIRECTORIES = {"bin", "obj", ".git", "node_modules"}

# Project("{type-guid}") = "Name", "relative\path\Name.csproj", "{project-guid}"
_SOLUTION_PROJECT_LINE = re.compile(r'^Project\("\{[^}]+\}"\)\s*=\s*"[^"]*",\s*"([^"]+)"', re.MULTILINE)


def is_project_file(path: str) -> bool:
    return path.lower().endswith(PROJECT_EXTENSIONS)


def parse_solution_file(solution_path: str) -> List[str]:
    """
    List the project files referenced by a .sln file.

    Solution folders and non-project entries are skipped. Referenced
    projects that do not exist are still returned so their failure is
    reported against the project rather than hidden.

    Raises:
        ConfigurationError: If the solution file cannot be read
    """
    try:
        with open(solution_path, encoding="utf-8-sig") as f:
            content = f.read()
    except OSError as e:
        raise ConfigurationError(f"Cannot read solution file {solution_path}: {e}") from e

    base = os.path.dirname(os.path.abspath(solution_path))
    projects = []
    for match in _SOLUTION_PROJECT_LINE.finditer(content):
        relative = match.group(1).replace("\\", os.sep)
        if not is_project_file(relative):
            continue
        projects.append(os.path.normpath(os.path.join(base, relative)))

    logger.debug(f"Found {len(projects)} project(s) in {solution_path}")
    return sorted(projects)


def find_project_files(directory: str) -> List[str]:
    """Recursively find project files below a directory."""
    found = []
    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRECTORIES)
        for name in files:
            if is_project_file(name):
                found.append(os.path.normpath(os.path.join(root, name)))
    return sorted(found)


def expand_project_paths(paths: Iterable[str]) -> List[str]:
    """
    Expand solution files and directories into a sorted, de-duplicated list of project files.

    A directory containing solution files is expanded through them;
    otherwise it is searched for project files.

    Raises:
        ConfigurationError: If a path has an unsupported type or nothing was found
    """
    projects = set()
    for path in paths:
        if os.path.isdir(path):
            solutions = sorted(
                os.path.join(path, name) for name in os.listdir(path) if name.lower().endswith(SOLUTION_EXTENSION)
            )
            if solutions:
                for solution in solutions:
                    projects.update(parse_solution_file(solution))
            else:
                projects.update(find_project_files(path))
        elif path.lower().endswith(SOLUTION_EXTENSION):
            projects.update(parse_solution_file(path))
        elif is_project_file(path):
            projects.add(os.path.normpath(path))
        else:
            raise ConfigurationError(f"Unsupported project file type: {path}")

    if not projects:
        raise ConfigurationError("No project files found")
    return sorted(projects)
