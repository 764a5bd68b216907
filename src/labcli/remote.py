"""Git remote discovery.

Turns the remotes configured in the current working copy into a
:class:`~labcli.models.RemoteIdentity` for the GitLab project the user is
working on. Two URL shapes are understood::

    ssh://git@gitlab.com/lighttiger2505/lab.git
    https://gitlab.com/lighttiger2505/lab

Parsing is all-or-nothing: a URL either yields host, owner and project or
raises. Discovery fails fast on the first URL it cannot parse so that a
broken remote never silently resolves to the wrong project.
"""

from __future__ import annotations

import shutil
import subprocess  # nosec B404 - required for git invocation
from collections.abc import Callable, Sequence

from .errors import (
    GitCommandError,
    MalformedUrlError,
    NoMatchingRemoteError,
    NoRemotesError,
    UnsupportedSchemeError,
)
from .logging import get_logger
from .models import RemoteIdentity

DEFAULT_HOST_PATTERN = "gitlab"
_GIT_SUFFIX = ".git"
_MIN_SEGMENTS = 3


def _strip_git_suffix(value: str) -> str:
    if value.endswith(_GIT_SUFFIX):
        return value[: -len(_GIT_SUFFIX)]
    return value


def parse_remote_url(url: str) -> RemoteIdentity:
    raw = url
    url = url.strip()
    if url.startswith("ssh"):
        _, sep, rest = url.partition("@")
        if not sep:
            raise MalformedUrlError(raw, "missing user@ prefix")
        rest = _strip_git_suffix(rest)
    elif url.startswith("https"):
        _, sep, rest = url.partition("//")
        if not sep:
            raise MalformedUrlError(raw, "missing //")
    else:
        raise UnsupportedSchemeError(raw)

    segments = rest.split("/")
    if len(segments) < _MIN_SEGMENTS:
        raise MalformedUrlError(raw)
    host, owner, project = segments[0], segments[1], _strip_git_suffix(segments[2])
    if not (host and owner and project):
        raise MalformedUrlError(raw, "empty path segment")
    return RemoteIdentity(raw_url=url, host=host, owner=owner, project=project)


def discover_remote(
    list_remote_names: Callable[[], Sequence[str]],
    resolve_url: Callable[[str], str],
    host_pattern: str = DEFAULT_HOST_PATTERN,
) -> RemoteIdentity:
    """Return the first remote whose host starts with ``host_pattern``."""
    logger = get_logger()
    names = list(list_remote_names())
    if not names:
        raise NoRemotesError()

    identities: list[RemoteIdentity] = []
    for name in names:
        identity = parse_remote_url(resolve_url(name))
        logger.debug("parsed remote", remote=name, host=identity.host)
        identities.append(identity)

    for identity in identities:
        if identity.host.startswith(host_pattern):
            logger.log_remote(identity)
            return identity
    raise NoMatchingRemoteError(host_pattern)


class GitClient:
    """Minimal ``git`` wrapper for the queries discovery needs."""

    def __init__(self, cwd: str | None = None, git: str | None = None):
        self.cwd = cwd
        self._git = git or shutil.which("git") or "git"

    def _lines(self, *args: str) -> list[str]:
        cmd = [self._git, *args]
        try:
            out = subprocess.check_output(  # nosec B603 - fixed argument vector
                cmd, cwd=self.cwd, text=True, stderr=subprocess.STDOUT
            )
        except FileNotFoundError as exc:
            raise GitCommandError(f"git executable not found: {self._git}") from exc
        except subprocess.CalledProcessError as exc:
            raise GitCommandError(
                f"Command failed: {' '.join(cmd)}: {(exc.output or '').strip()}"
            ) from exc
        return [line.strip() for line in out.splitlines() if line.strip()]

    def list_remote_names(self) -> list[str]:
        return self._lines("remote")

    def resolve_url(self, name: str) -> str:
        lines = self._lines("remote", "get-url", name)
        if not lines:
            raise GitCommandError(f"Remote {name} has no url")
        return lines[0]

    def current_branch(self) -> str:
        lines = self._lines("rev-parse", "--abbrev-ref", "HEAD")
        if not lines:
            raise GitCommandError("Unable to determine current branch")
        return lines[0]

    def git_dir(self) -> str | None:
        try:
            lines = self._lines("rev-parse", "--git-dir")
        except GitCommandError:
            return None
        return lines[0] if lines else None


__all__ = [
    "DEFAULT_HOST_PATTERN",
    "GitClient",
    "discover_remote",
    "parse_remote_url",
]
