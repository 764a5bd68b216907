from __future__ import annotations

from typing import Any

import pytest

from labcli import cli
from labcli.config import LabConfig
from labcli.models import ISSUE, MERGE_REQUEST


class _FakeGit:
    remotes = {"origin": "https://gitlab.example.com/acme/widgets"}

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        pass

    def list_remote_names(self) -> list[str]:
        return list(self.remotes)

    def resolve_url(self, name: str) -> str:
        return self.remotes[name]

    def current_branch(self) -> str:
        return "topic"

    def git_dir(self) -> str | None:
        return None


class _FakeResourceClient:
    instances: list[_FakeResourceClient] = []

    def __init__(self, rest: Any, kind: str) -> None:
        self.rest = rest
        self.kind = kind
        self.calls: list[tuple[str, Any]] = []
        _FakeResourceClient.instances.append(self)

    def get(self, project: str, iid: int) -> dict[str, Any]:
        self.calls.append(("get", (project, iid)))
        return {"iid": iid, "title": "Shown", "state": "opened"}

    def list(self, project: str | None, **kwargs: Any) -> list[dict[str, Any]]:
        self.calls.append(("list", (project, kwargs)))
        return [{"iid": 1, "title": "Listed"}]

    def create(self, project: str, fields: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", (project, fields)))
        return {"iid": 2, "web_url": "https://gitlab.example.com/acme/widgets/-/issues/2"}

    def update(self, project: str, iid: int, fields: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update", (project, iid, fields)))
        return {"iid": iid, "web_url": "https://gitlab.example.com/acme/widgets/-/issues/3"}


@pytest.fixture
def wired(monkeypatch: pytest.MonkeyPatch) -> list[_FakeResourceClient]:
    from labcli import runtime

    _FakeResourceClient.instances = []
    monkeypatch.setattr(_FakeGit, "remotes", {"origin": "https://gitlab.example.com/acme/widgets"})
    monkeypatch.setattr(cli, "GitClient", _FakeGit)
    monkeypatch.setattr(cli, "ResourceClient", _FakeResourceClient)
    monkeypatch.setattr(runtime, "load_config", lambda: LabConfig(private_token="glpat-test"))
    return _FakeResourceClient.instances


def test_create_merge_request_end_to_end(wired, capsys):
    assert cli.main(["merge-request", "--title", "Fix bug"]) == 0

    client = wired[0]
    assert client.kind == MERGE_REQUEST
    assert client.rest.base_url == "https://gitlab.example.com/api/v4"
    name, (project, fields) = client.calls[0]
    assert name == "create"
    assert project == "acme/widgets"
    assert fields["title"] == "Fix bug"
    assert fields["source_branch"] == "topic"
    assert fields["target_branch"] == "master"
    assert capsys.readouterr().out.strip().endswith("/issues/2")


def test_mr_alias_lists_with_shorthand_flags(wired, capsys):
    assert cli.main(["mr", "-o", "--state", "closed", "-r", "-n", "5"]) == 0
    name, (project, kwargs) = wired[0].calls[0]
    assert name == "list"
    assert project == "acme/widgets"
    assert kwargs["state"] == "opened"
    assert kwargs["scope"] == "created-by-me"
    assert kwargs["limit"] == 5
    assert capsys.readouterr().out == "!1  Listed\n"


def test_issue_all_projects(wired, capsys):
    assert cli.main(["issue", "-A"]) == 0
    assert wired[0].kind == ISSUE
    assert wired[0].calls[0][1][0] is None


def test_issue_show_and_update(wired, capsys):
    assert cli.main(["i", "3"]) == 0
    assert wired[0].calls[0] == ("get", ("acme/widgets", 3))
    assert "#3 Shown" in capsys.readouterr().out

    assert cli.main(["issue", "3", "--state-event", "close"]) == 0
    assert wired[1].calls[0] == ("update", ("acme/widgets", 3, {"state_event": "close"}))


def test_invalid_identifier_exits_with_error(wired, capsys):
    assert cli.main(["issue", "abc"]) == 1
    assert "Invalid IID. IID: abc" in capsys.readouterr().err
    assert wired[0].calls == []


def test_missing_gitlab_remote_exits_with_error(wired, capsys):
    _FakeGit.remotes = {"origin": "https://github.com/acme/widgets"}
    assert cli.main(["issue"]) == 1
    assert "Not a cloned repository from gitlab" in capsys.readouterr().err
    assert wired == []


def test_config_file_error_exits_with_two(monkeypatch, capsys):
    from labcli import runtime
    from labcli.errors import ConfigFileError

    def broken() -> LabConfig:
        raise ConfigFileError("Failed create config file: read-only home")

    monkeypatch.setattr(runtime, "load_config", broken)
    assert cli.main(["issue"]) == 2
    assert "read-only home" in capsys.readouterr().err


def test_browse_opens_web_url(monkeypatch):
    opened: list[str] = []
    monkeypatch.setattr(cli, "GitClient", _FakeGit)
    monkeypatch.setattr(cli, "open_url", opened.append)
    assert cli.main(["--verbose", "browse"]) == 0
    assert opened == ["https://gitlab.example.com/acme/widgets"]


def test_parser_defaults():
    args = cli._build_parser().parse_args(["merge-request"])
    assert args.cmd == "merge-request"
    assert args.iid == []
    assert args.num == 20
    assert args.target_branch == "master"
    assert args.order_by == "updated_at"
    assert cli.list_options_from_args(args).state == "all"


def test_issue_parser_has_no_merged_flag():
    with pytest.raises(SystemExit):
        cli._build_parser().parse_args(["issue", "--merged"])


@pytest.mark.parametrize(
    "argv",
    [["issue", "--bogus"], ["merge-request", "--num", "abc"], []],
)
def test_usage_errors_exit_with_one(argv, capsys):
    assert cli.main(argv) == 1
    assert "usage: lab" in capsys.readouterr().err


def test_help_exits_with_zero(capsys):
    assert cli.main(["issue", "--help"]) == 0
    assert "List Options" in capsys.readouterr().out


def test_closed_stdin_during_bootstrap_exits_with_two(tmp_path, monkeypatch, capsys):
    from labcli import runtime
    from labcli.config import load_config

    def closed_stdin(message: str) -> str:
        raise EOFError()

    monkeypatch.setattr(
        runtime,
        "load_config",
        lambda: load_config(tmp_path, prompt=closed_stdin, dotenv_path=tmp_path / ".env"),
    )
    assert cli.main(["issue"]) == 2
    assert "no token entered" in capsys.readouterr().err
