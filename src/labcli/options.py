"""Flag resolution shared by the merge-request and issue commands.

Shorthand flags (``--opened``, ``--created-me`` ...) are sugar for the
explicit ``--state`` / ``--scope`` options. Their precedence lives in the
ordered rule tables below: the first flag that is set wins and every later
flag, including the explicit option, is ignored.
"""

from __future__ import annotations

from collections.abc import Sequence

from .errors import InvalidIdentifierError
from .models import CreateUpdateOptions, ListOptions

DEFAULT_STATE = "all"
DEFAULT_SCOPE = "all"

# (ListOptions attribute, resolved value); order is precedence
STATE_RULES: tuple[tuple[str, str], ...] = (
    ("opened", "opened"),
    ("closed", "closed"),
    ("merged", "merged"),
)

SCOPE_RULES: tuple[tuple[str, str], ...] = (
    ("created_me", "created-by-me"),
    ("assigned_me", "assigned-to-me"),
)


def _apply_rules(
    opts: ListOptions, rules: Sequence[tuple[str, str]], explicit: str, default: str
) -> str:
    for flag, value in rules:
        if getattr(opts, flag):
            return value
    return explicit or default


def resolve_state(opts: ListOptions) -> str:
    return _apply_rules(opts, STATE_RULES, opts.state, DEFAULT_STATE)


def resolve_scope(opts: ListOptions) -> str:
    return _apply_rules(opts, SCOPE_RULES, opts.scope, DEFAULT_SCOPE)


def parse_identifier(positional: Sequence[str]) -> int | None:
    """Return the IID named by the first positional argument, if any."""
    if not positional:
        return None
    token = positional[0]
    stripped = token.strip()
    if not (stripped.isascii() and stripped.isdigit()):
        raise InvalidIdentifierError(token)
    return int(stripped)


def has_create_update_content(opts: CreateUpdateOptions) -> bool:
    return bool(opts.title or opts.message or opts.state_event or opts.assignee_id != 0)


__all__ = [
    "STATE_RULES",
    "SCOPE_RULES",
    "resolve_state",
    "resolve_scope",
    "parse_identifier",
    "has_create_update_content",
]
