from __future__ import annotations

import platform
import subprocess
from importlib import metadata
from pathlib import Path
from typing import Any

_TRACKED_PACKAGES = ("pandas", "numpy", "pydantic", "typer", "PyYAML")


def git_commit_or_none(workdir: Path) -> str | None:
    try:
        out = subprocess.check_output(
            ["git", "rev-parse", "HEAD"], cwd=workdir, stderr=subprocess.DEVNULL
        )
        return out.decode("utf-8").strip()
    except (OSError, subprocess.CalledProcessError):
        return None


def environment_summary() -> dict[str, Any]:
    packages: dict[str, str | None] = {}
    for name in _TRACKED_PACKAGES:
        try:
            packages[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            packages[name] = None
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "packages": packages,
    }
