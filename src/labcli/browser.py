"""Open project pages in the user's web browser."""

from __future__ import annotations

import shlex
import shutil
import subprocess  # nosec B404 - launching the platform browser
import sys
from collections.abc import Callable

from .errors import LabError

LINUX_CANDIDATES = (
    "xdg-open",
    "cygstart",
    "x-www-browser",
    "firefox",
    "opera",
    "mozilla",
    "netscape",
)


def search_browser_launcher(
    platform: str | None = None, which: Callable[[str], str | None] = shutil.which
) -> str | None:
    platform = platform or sys.platform
    if platform == "darwin":
        return "open"
    if platform in ("win32", "windows"):
        return "cmd /c start"
    for candidate in LINUX_CANDIDATES:
        path = which(candidate)
        if path:
            return path
    return None


def open_url(url: str, launcher: str | None = None) -> None:
    launcher = launcher or search_browser_launcher()
    if not launcher:
        raise LabError("No web browser launcher found")
    cmd = [*shlex.split(launcher), url]
    try:
        subprocess.run(cmd, check=True, capture_output=True)  # nosec B603
    except (OSError, subprocess.CalledProcessError) as exc:
        raise LabError(f"Failed to open {url} with {launcher}: {exc}") from exc


__all__ = ["LINUX_CANDIDATES", "open_url", "search_browser_launcher"]
