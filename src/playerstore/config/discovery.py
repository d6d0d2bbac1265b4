"""Locate and read ``playerstore.toml``.

``PLAYERSTORE_CONFIG`` names the file outright; otherwise the search walks
from the starting directory toward the filesystem root, the way git looks
for ``.git/``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "playerstore.toml"
CONFIG_ENV_VAR = "PLAYERSTORE_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Path of the config file in effect, or None when there is none.

    A ``PLAYERSTORE_CONFIG`` pointing at a missing file yields None rather
    than falling back to the walk.
    """
    if override := os.environ.get(CONFIG_ENV_VAR):
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        if (directory / CONFIG_FILENAME).is_file():
            return directory / CONFIG_FILENAME
    return None


def read_config(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        ValueError: The file is not valid TOML.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ValueError(msg) from exc
