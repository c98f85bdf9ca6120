"""
Wage file discovery and reading.

Wage files are laid out as <data_dir>/<location>/wages_<year>.json.
"""

import re
from pathlib import Path
from typing import Any, NamedTuple

from wage_pipeline.core.errors import MalformedPayload
from wage_pipeline.core.models import Partition

from .record_normalizer import parse_payload

WAGE_FILE_PATTERN = re.compile(r"^wages_(\d{4})\.json$")


class WageFile(NamedTuple):
    """A wage file and the partition implied by its path."""

    path: Path
    partition: Partition


def partition_from_path(path: str | Path) -> Partition | None:
    """
    Derive the partition from a wage file path.

    Args:
        path: Path such as data/ucla/wages_2023.json

    Returns:
        Partition, or None when the path does not follow the layout
    """
    path = Path(path)
    match = WAGE_FILE_PATTERN.match(path.name)
    if not match or not path.parent.name:
        return None
    return Partition(location=path.parent.name, year=int(match.group(1)))


def discover_wage_files(data_dir: str | Path) -> list[WageFile]:
    """
    Find every wage file under a data directory.

    Args:
        data_dir: Root directory containing one subdirectory per location

    Returns:
        Wage files sorted by location, then year

    Raises:
        FileNotFoundError: If data_dir does not exist
    """
    root = Path(data_dir)
    if not root.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    files = []
    for path in root.rglob("wages_*.json"):
        partition = partition_from_path(path)
        if partition is not None:
            files.append(WageFile(path=path, partition=partition))

    return sorted(files, key=lambda f: (f.partition.location, f.partition.year))


def read_wage_file(path: str | Path) -> dict[str, Any]:
    """
    Read and decode a wage file.

    Args:
        path: Path to the JSON wage file

    Returns:
        Decoded payload

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedPayload: If the file is not a JSON object
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Wage file not found: {path}")

    try:
        raw = path.read_bytes()
    except OSError as e:
        raise MalformedPayload(f"cannot read file: {e}", source=str(path)) from e

    return parse_payload(raw, source=str(path))
