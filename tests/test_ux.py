"""Tests for UX helpers module."""

from __future__ import annotations

import io

import pytest

from labcli.ux import Colors, colorize, print_error, print_message


def test_colorize_with_tty_support(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "xterm-256color")

    stream = io.StringIO()
    stream.isatty = lambda: True  # type: ignore[method-assign]

    result = colorize("test", Colors.RED, bold=True, stream=stream)
    assert Colors.RED in result
    assert Colors.BOLD in result
    assert result.endswith(Colors.RESET)


def test_colorize_respects_no_color(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NO_COLOR", "1")
    assert colorize("test", Colors.RED, bold=True) == "test"


def test_colorize_dumb_terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "dumb")
    stream = io.StringIO()
    stream.isatty = lambda: True  # type: ignore[method-assign]
    assert colorize("test", Colors.RED, stream=stream) == "test"


def test_print_error_and_message() -> None:
    err = io.StringIO()
    out = io.StringIO()
    print_error("boom", stream=err)
    print_message("!1  Listed", stream=out)
    assert err.getvalue() == "✗ boom\n"
    assert out.getvalue() == "!1  Listed\n"
