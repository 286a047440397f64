"""Project version for BitFleet.

A source checkout reads the repository ``VERSION`` file; an installed copy
falls back to the distribution metadata written from that same file.
"""

from __future__ import annotations

from importlib import metadata
from pathlib import Path

DISTRIBUTION = "bitfleet"
_ROOT = Path(__file__).resolve().parent.parent
_VERSION_FILE = _ROOT / "VERSION"


def read_version(version_file: Path = _VERSION_FILE) -> str:
    try:
        return version_file.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return metadata.version(DISTRIBUTION)


__version__ = read_version()


__all__ = ["DISTRIBUTION", "__version__", "read_version"]
