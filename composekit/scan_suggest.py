"""Suggesting the image scanning plugin after a build."""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

SCAN_SUGGEST_MSG = (
    "Use 'docker scan' to run Snyk tests against images to find vulnerabilities "
    "and learn how to fix them"
)

_WINDOWS = sys.platform == "win32"
_SCAN_PLUGIN = "docker-scan" + (".exe" if _WINDOWS else "")


def _system_plugin_dirs() -> list[str]:
    if _WINDOWS:
        return [
            os.path.join(os.environ.get("ProgramData", r"C:\ProgramData"), "Docker", "cli-plugins"),
            os.path.join(
                os.environ.get("ProgramFiles", r"C:\Program Files"), "Docker", "cli-plugins"
            ),
        ]
    return [
        "/usr/local/lib/docker/cli-plugins",
        "/usr/local/libexec/docker/cli-plugins",
        "/usr/lib/docker/cli-plugins",
        "/usr/libexec/docker/cli-plugins",
    ]


def docker_config_dir() -> str:
    """Return the Docker configuration directory."""
    return os.environ.get("DOCKER_CONFIG") or os.path.join(os.path.expanduser("~"), ".docker")


def display_scan_suggest_msg(stream: TextIO | None = None) -> bool:
    """Write the scan suggestion unless disabled, unavailable or already used.

    Returns True when the message was written.
    """
    if os.environ.get("DOCKER_SCAN_SUGGEST") == "false":
        return False
    if not scan_available():
        return False
    if scan_already_invoked():
        return False
    target = stream if stream is not None else sys.stderr
    target.write("\n" + SCAN_SUGGEST_MSG + "\n")
    return True


def scan_already_invoked(config_dir: str | os.PathLike[str] | None = None) -> bool:
    """Tell whether the scan plugin has been used, judging by its config file.

    Anything unexpected about the file counts as already used, so the user
    is not bothered.
    """
    path = Path(config_dir if config_dir is not None else docker_config_dir())
    filename = path / "scan" / "config.json"
    if not filename.exists():
        return False
    if filename.is_dir():
        return True
    try:
        data = json.loads(filename.read_bytes())
    except (OSError, ValueError):
        return True
    if data is None:
        return False
    if not isinstance(data, dict):
        return True
    optin = False
    for key, value in data.items():
        if key.lower() != "optin" or value is None:
            continue
        if not isinstance(value, bool):
            return True
        optin = value
    return optin


def scan_available(plugin_dirs: Iterable[str | os.PathLike[str]] | None = None) -> bool:
    """Tell whether an executable scan plugin is installed in any plugin directory."""
    if plugin_dirs is None:
        plugin_dirs = [os.path.join(docker_config_dir(), "cli-plugins"), *_system_plugin_dirs()]
    for directory in plugin_dirs:
        candidate = os.path.join(directory, _SCAN_PLUGIN)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return True
    return False