"""Reader for NuGet restore output (obj/project.assets.json)."""

import json
import re
from pathlib import Path
from typing import Any, Dict, List

from ..exceptions import RestoreMissingError
from ..logging_config import logger
from .models import PACKAGE_TYPE, PROJECT_TYPE, AssetsFile, AssetsTarget, DirectReference, RawPackage

ASSETS_FILE_NAME = "project.assets.json"

# First version inside a range such as "[1.0.0, )", "(, 2.0]" or "1.0.0"
_RANGE_VERSION_PATTERN = re.compile(r"[\[\(]?\s*([^,\s\[\]\(\)]+)")


def lower_bound(version_range: str) -> str:
    """
    Extract the version a range was written against.

    Restore writes dependency ranges as either a bare minimum version
    ("1.0.0") or interval notation ("[1.0.0, )", "[1.0.0]"). The first
    version in the range is returned; an open lower bound yields "".

    Args:
        version_range: Range as written by restore

    Returns:
        The lower-bound version string, or "" when there is none
    """
    if not version_range:
        return ""
    stripped = version_range.strip()
    if stripped.startswith(("(,", "[,")):
        return ""
    match = _RANGE_VERSION_PATTERN.match(stripped)
    return match.group(1) if match else ""


def parse_assets(data: Dict[str, Any], assets_path: str) -> AssetsFile:
    """
    Parse an already-loaded assets document.

    Args:
        data: Decoded JSON content
        assets_path: Path the document came from, for error messages

    Returns:
        Parsed AssetsFile

    Raises:
        RestoreMissingError: If the document has no usable targets section
    """
    if not isinstance(data, dict):
        raise RestoreMissingError(f"Restore output {assets_path} is not a JSON object")

    targets_data = data.get("targets")
    if not isinstance(targets_data, dict):
        raise RestoreMissingError(f"Restore output {assets_path} has no targets section")

    libraries = data.get("libraries") or {}
    targets: List[AssetsTarget] = []
    for target_key in sorted(targets_data):
        framework, _, runtime = target_key.partition("/")
        packages: List[RawPackage] = []
        for library_key, entry in sorted((targets_data[target_key] or {}).items()):
            name, _, version = library_key.partition("/")
            if not name or not version:
                logger.debug(f"Skipping malformed library key '{library_key}' in {assets_path}")
                continue
            entry = entry or {}
            library_type = entry.get("type", PACKAGE_TYPE)
            path = None
            if library_type == PROJECT_TYPE:
                library = libraries.get(library_key) or {}
                path = library.get("msbuildProject") or library.get("path")
            packages.append(
                RawPackage(
                    name=name,
                    version=version,
                    type=library_type,
                    dependencies=dict(entry.get("dependencies") or {}),
                    path=path,
                )
            )
        targets.append(AssetsTarget(framework=framework, runtime=runtime or None, packages=packages))

    project = data.get("project") or {}
    direct_references: Dict[str, Dict[str, DirectReference]] = {}
    for framework, framework_data in (project.get("frameworks") or {}).items():
        references: Dict[str, DirectReference] = {}
        for name, spec in ((framework_data or {}).get("dependencies") or {}).items():
            if isinstance(spec, str):
                references[name] = DirectReference(name=name, version_range=spec)
                continue
            suppress_parent = str(spec.get("suppressParent", ""))
            references[name] = DirectReference(
                name=name,
                version_range=spec.get("version", ""),
                development=suppress_parent.replace(" ", "").lower() == "all",
            )
        direct_references[framework] = references

    return AssetsFile(
        path=assets_path,
        targets=targets,
        direct_references=direct_references,
        project_path=(project.get("restore") or {}).get("projectPath"),
    )


def read_assets_file(assets_path: str) -> AssetsFile:
    """
    Load and parse a restore output file.

    Args:
        assets_path: Path to project.assets.json

    Returns:
        Parsed AssetsFile

    Raises:
        RestoreMissingError: If the file is absent or not valid JSON
    """
    path = Path(assets_path)
    if not path.is_file():
        raise RestoreMissingError(f"Restore output not found: {assets_path}")
    try:
        with path.open("r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RestoreMissingError(f"Restore output {assets_path} is not valid JSON: {e}")
    except OSError as e:
        raise RestoreMissingError(f"Cannot read restore output {assets_path}: {e}")
    return parse_assets(data, assets_path)
