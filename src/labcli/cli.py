"""labcli command line interface.

Subcommands:
  merge-request (mr) -> list / show / create / update merge requests
  issue (i)          -> list / show / create / update issues
  browse             -> open the project page in a web browser

The target project is inferred from the git remotes of the working copy.
Exit codes: 0 success, 1 error, 2 configuration file error.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from typing import Any, NoReturn

from .browser import open_url
from .config import LabConfig
from .editor import Editor
from .errors import EXIT_ERROR
from .gitlab_rest import GitLabRestClient, RepositoryClient, ResourceClient
from .logging import get_logger
from .models import ISSUE, MERGE_REQUEST, CreateUpdateOptions, ListOptions, RemoteIdentity
from .operations import OperationContext, select_operation
from .remote import DEFAULT_HOST_PATTERN, GitClient, discover_remote
from .runtime import execute_command, prepare_config, run_guarded
from .ux import print_message

_MAX_HELP_WIDTH = 100

MR_USAGE = """\
  # List merge request
  lab merge-request [-n <num>] [--state <state>] [--scope <scope>]
                    [--orderby <orderby>] [--sort <sort>] [-o] [-c] [-g] [-r] [-a] [-A]

  # Create merge request
  lab merge-request [-e] [-i <title>] [-m <message>] [-s <source>] [-t <target>]

  # Update merge request
  lab merge-request <IID> [-i <title>] [-m <message>] [--state-event <event>]

  # Show merge request
  lab merge-request <IID>"""

ISSUE_USAGE = """\
  # List issue
  lab issue [-n <num>] [--state <state>] [--scope <scope>]
            [--orderby <orderby>] [--sort <sort>] [-o] [-c] [-r] [-a] [-A]

  # Create issue
  lab issue [-e] [-i <title>] [-m <message>] [-p <template>]

  # Update issue
  lab issue <IID> [-i <title>] [-m <message>] [--state-event <event>]

  # Show issue
  lab issue <IID>"""


class _HelpFormatter(argparse.RawDescriptionHelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)

    def error(self, message: str) -> NoReturn:
        # usage errors share the generic exit code; 2 is reserved for config files
        self.print_usage(sys.stderr)
        self.exit(EXIT_ERROR, f"{self.prog}: error: {message}\n")


def _add_list_options(parser: argparse.ArgumentParser, topic: str, *, merged: bool) -> None:
    grp = parser.add_argument_group("List Options")
    grp.add_argument(
        "-n",
        "--num",
        type=int,
        default=20,
        metavar="<num>",
        help=f"Limit the number of {topic}s to output (default 20)",
    )
    states = '"opened", "closed", "merged" or "all"' if merged else '"opened", "closed" or "all"'
    grp.add_argument(
        "--state",
        default="all",
        metavar="<state>",
        help=f"Print only {topic}s in the given state: {states}",
    )
    grp.add_argument(
        "--scope",
        default="all",
        metavar="<scope>",
        help='Print only given scope: "created-by-me", "assigned-to-me" or "all"',
    )
    grp.add_argument(
        "--orderby",
        dest="order_by",
        default="updated_at",
        metavar="<orderby>",
        help='Order by "created_at" or "updated_at" (default updated_at)',
    )
    grp.add_argument(
        "--sort", default="desc", metavar="<sort>", help='Sort in "asc" or "desc" order'
    )
    grp.add_argument("-o", "--opened", action="store_true", help='Shorthand for "--state=opened"')
    grp.add_argument("-c", "--closed", action="store_true", help='Shorthand for "--state=closed"')
    if merged:
        grp.add_argument(
            "-g", "--merged", action="store_true", help='Shorthand for "--state=merged"'
        )
    grp.add_argument(
        "-r",
        "--created-me",
        dest="created_me",
        action="store_true",
        help='Shorthand for "--scope=created-by-me"',
    )
    grp.add_argument(
        "-a",
        "--assigned-me",
        dest="assigned_me",
        action="store_true",
        help='Shorthand for "--scope=assigned-to-me"',
    )
    grp.add_argument(
        "-A",
        "--all-project",
        dest="all_project",
        action="store_true",
        help=f"Print the {topic}s of all projects",
    )


def _add_create_update_options(
    parser: argparse.ArgumentParser, topic: str, *, branches: bool
) -> None:
    grp = parser.add_argument_group("Create, Update Options")
    grp.add_argument(
        "-e",
        "--edit",
        action="store_true",
        help=f"Edit the {topic} in an editor, pre-filled with --title and --message",
    )
    grp.add_argument("-i", "--title", default="", metavar="<title>", help=f"The title of the {topic}")
    grp.add_argument(
        "-m", "--message", default="", metavar="<message>", help=f"The description of the {topic}"
    )
    grp.add_argument(
        "-p",
        "--template",
        default="",
        metavar="<template>",
        help=f"Name of a repository {topic} template to start the editor from",
    )
    if branches:
        grp.add_argument(
            "-s",
            "--source",
            dest="source_branch",
            default="",
            help="The source branch (default: current branch)",
        )
        grp.add_argument(
            "-t",
            "--target",
            dest="target_branch",
            default="master",
            help="The target branch (default master)",
        )
    grp.add_argument(
        "--state-event",
        dest="state_event",
        default="",
        help='Change the state: "close" or "reopen"',
    )
    grp.add_argument(
        "--assignee-id", dest="assignee_id", type=int, default=0, help="The ID of the assignee"
    )


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(prog="lab", description="Operate GitLab from a git working copy")
    p.add_argument("--verbose", action="store_true", help="Run in debug mode")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    mr = sub.add_parser(
        "merge-request",
        aliases=["mr"],
        help="Create and edit, list a merge request",
        description=MR_USAGE,
    )
    mr.set_defaults(cmd="merge-request", kind=MERGE_REQUEST)
    mr.add_argument("iid", nargs="*", metavar="IID", help="Merge request IID")
    _add_list_options(mr, "merge request", merged=True)
    _add_create_update_options(mr, "merge request", branches=True)

    iss = sub.add_parser(
        "issue",
        aliases=["i"],
        help="Create and edit, list an issue",
        description=ISSUE_USAGE,
    )
    iss.set_defaults(cmd="issue", kind=ISSUE)
    iss.add_argument("iid", nargs="*", metavar="IID", help="Issue IID")
    _add_list_options(iss, "issue", merged=False)
    _add_create_update_options(iss, "issue", branches=False)

    br = sub.add_parser("browse", help="Browse repository")
    br.add_argument(
        "--verbose", action="store_true", default=argparse.SUPPRESS, help="Run in debug mode"
    )
    return p


def list_options_from_args(args: argparse.Namespace) -> ListOptions:
    return ListOptions(
        num=args.num,
        state=args.state,
        scope=args.scope,
        order_by=args.order_by,
        sort=args.sort,
        opened=args.opened,
        closed=args.closed,
        merged=getattr(args, "merged", False),
        created_me=args.created_me,
        assigned_me=args.assigned_me,
        all_project=args.all_project,
    )


def create_update_options_from_args(args: argparse.Namespace) -> CreateUpdateOptions:
    return CreateUpdateOptions(
        edit=args.edit,
        title=args.title,
        message=args.message,
        template=args.template,
        source_branch=getattr(args, "source_branch", ""),
        target_branch=getattr(args, "target_branch", "master"),
        state_event=args.state_event,
        assignee_id=args.assignee_id,
    )


def _current_identity(git: GitClient, host_pattern: str) -> RemoteIdentity:
    return discover_remote(git.list_remote_names, git.resolve_url, host_pattern)


def _editor_factory(git: GitClient) -> Callable[[str, str, str], Editor]:
    def factory(prefix: str, topic: str, template: str) -> Editor:
        return Editor(prefix, topic, template, git_dir=git.git_dir())

    return factory


def _cmd_resource(cfg: LabConfig, args: argparse.Namespace) -> int:
    git = GitClient()
    identity = _current_identity(git, cfg.host_pattern)
    rest = GitLabRestClient(token=cfg.private_token, base_url=identity.api_url)
    context = OperationContext(
        client=ResourceClient(rest, args.kind),
        repository=RepositoryClient(rest),
        editor_factory=_editor_factory(git),
        current_branch=git.current_branch,
    )
    operation = select_operation(
        args.kind,
        list_options_from_args(args),
        create_update_options_from_args(args),
        args.iid,
        identity,
        context,
    )
    get_logger().log_operation(type(operation).__name__, project=identity.full_name)
    output = operation.execute()
    if output:
        print_message(output)
    return 0


def _cmd_browse(args: argparse.Namespace) -> int:
    identity = _current_identity(GitClient(), DEFAULT_HOST_PATTERN)
    get_logger().debug("opening browser", url=identity.web_url)
    open_url(identity.web_url)
    return 0


def _require_cfg(cfg: LabConfig | None) -> LabConfig:
    if cfg is None:  # pragma: no cover - defensive guard
        raise RuntimeError("Configuration not loaded")
    return cfg


def _build_handlers(args: argparse.Namespace, cfg: LabConfig | None) -> dict[str, Any]:
    return {
        "merge-request": lambda: _cmd_resource(_require_cfg(cfg), args),
        "issue": lambda: _cmd_resource(_require_cfg(cfg), args),
        "browse": lambda: _cmd_browse(args),
    }


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # --help exits 0, usage errors exit EXIT_ERROR via _FormatterArgumentParser.error
        return exc.code if isinstance(exc.code, int) else EXIT_ERROR
    cfg, failure = run_guarded(lambda: prepare_config(args))
    if failure is not None:
        return failure
    handlers = _build_handlers(args, cfg)
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    return execute_command(handler, args.cmd)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
