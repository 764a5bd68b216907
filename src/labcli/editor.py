"""Editor round-trip for titles and descriptions.

The template handed to the user looks like a commit message::

    <title>

    <description>
    # ------------------------ >8 ------------------------
    # help text

Everything from the scissors line down is discarded when the file is read
back. The first non-blank line is the title; the rest is the description.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess  # nosec B404 - required for launching the user's editor
import tempfile
from collections.abc import Callable
from pathlib import Path

from .errors import EditorError
from .logging import get_logger

SCISSORS = "# ------------------------ >8 ------------------------"

Launcher = Callable[[str, str], int]


def editor_program() -> str:
    for name in ("GIT_EDITOR", "VISUAL", "EDITOR"):
        value = os.environ.get(name)
        if value and value.strip():
            return value.strip()
    return "vi"


def _launch(program: str, path: str) -> int:
    # program may carry its own arguments, e.g. "code --wait"
    cmd = [*shlex.split(program), path]
    try:
        return subprocess.call(cmd)  # nosec B603 - user configured editor
    except FileNotFoundError as exc:
        raise EditorError(f"Editor not found: {program}") from exc


def render_template(title: str, description: str, topic: str) -> str:
    return (
        f"{title}\n\n{description}\n"
        f"{SCISSORS}\n"
        f"# Write the {topic} title on the first line and the description below it.\n"
        "# Everything from the scissors line down is ignored.\n"
        "# An empty title aborts the operation.\n"
    )


def parse_title_and_description(text: str) -> tuple[str, str]:
    body = text.split(SCISSORS, 1)[0]
    lines = body.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    if not lines:
        return "", ""
    title = lines[0].strip()
    description = "\n".join(lines[1:]).strip()
    return title, description


class Editor:
    """One editing session backed by a file on disk."""

    def __init__(
        self,
        prefix: str,
        topic: str,
        template: str,
        *,
        git_dir: str | None = None,
        program: str | None = None,
        launcher: Launcher | None = None,
    ) -> None:
        self.topic = topic
        self.program = program or editor_program()
        self._launcher = launcher or _launch
        filename = f"{prefix.upper()}_EDITMSG"
        self._temp_dir: Path | None = None
        if git_dir and Path(git_dir).is_dir():
            self.path = Path(git_dir) / filename
        else:
            self._temp_dir = Path(tempfile.mkdtemp(prefix="labcli-"))
            self.path = self._temp_dir / filename
        try:
            self.path.write_text(template, encoding="utf-8")
        except OSError as exc:
            if self._temp_dir is not None:
                shutil.rmtree(self._temp_dir, ignore_errors=True)
            raise EditorError(f"Failed to write template {self.path}: {exc}") from exc

    def edit_title_and_description(self) -> tuple[str, str]:
        code = self._launcher(self.program, str(self.path))
        if code != 0:
            raise EditorError(f"Editor {self.program} exited with status {code}")
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise EditorError(f"Failed to read {self.path}: {exc}") from exc
        title, description = parse_title_and_description(text)
        if not title:
            raise EditorError("Aborting due to empty title")
        return title, description

    def delete_file(self) -> None:
        self.path.unlink(missing_ok=True)
        if self._temp_dir is not None:
            self._temp_dir.rmdir()
            self._temp_dir = None


EditorFactory = Callable[[str, str, str], Editor]


def edit_title_and_description(editor: Editor) -> tuple[str, str]:
    """Run ``editor`` and always remove its backing file afterwards.

    Cleanup failures are logged; they never mask the editing outcome.
    """
    try:
        return editor.edit_title_and_description()
    finally:
        try:
            editor.delete_file()
        except OSError as exc:
            get_logger().warning("failed to remove editor file", path=str(editor.path), error=str(exc))


__all__ = [
    "SCISSORS",
    "Editor",
    "EditorFactory",
    "edit_title_and_description",
    "editor_program",
    "parse_title_and_description",
    "render_template",
]
