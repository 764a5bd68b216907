from __future__ import annotations

import pytest

from labcli.errors import (
    MalformedUrlError,
    NoMatchingRemoteError,
    NoRemotesError,
    UnsupportedSchemeError,
)
from labcli.models import RemoteIdentity
from labcli.remote import discover_remote, parse_remote_url


def test_parse_ssh_url_strips_git_extension():
    identity = parse_remote_url("ssh://git@gitlab.com/lighttiger2505/lab.git")
    assert identity.host == "gitlab.com"
    assert identity.owner == "lighttiger2505"
    assert identity.project == "lab"
    assert identity.raw_url == "ssh://git@gitlab.com/lighttiger2505/lab.git"


def test_parse_https_url():
    identity = parse_remote_url("https://gitlab.example.com/acme/widgets")
    assert (identity.host, identity.owner, identity.project) == (
        "gitlab.example.com",
        "acme",
        "widgets",
    )


def test_parse_https_url_with_git_extension():
    identity = parse_remote_url("https://gitlab.example.com/acme/widgets.git")
    assert identity.project == "widgets"


def test_parse_ignores_segments_after_project():
    identity = parse_remote_url("https://gitlab.com/acme/widgets/tree/main")
    assert identity.full_name == "acme/widgets"


def test_parse_tolerates_trailing_whitespace():
    identity = parse_remote_url("https://gitlab.com/acme/widgets\n")
    assert identity.project == "widgets"
    assert identity.raw_url == "https://gitlab.com/acme/widgets"


@pytest.mark.parametrize(
    "url",
    [
        "git@gitlab.com:acme/widgets.git",
        "http://gitlab.com/acme/widgets",
        "file:///srv/git/widgets",
        "",
    ],
)
def test_parse_rejects_unsupported_scheme(url):
    with pytest.raises(UnsupportedSchemeError) as excinfo:
        parse_remote_url(url)
    assert excinfo.value.url == url


@pytest.mark.parametrize(
    "url",
    [
        "https://gitlab.com",
        "https://gitlab.com/acme",
        "ssh://git@gitlab.com/acme.git",
        "https://gitlab.com//widgets",
        "ssh://gitlab.com/acme/widgets.git",
    ],
)
def test_parse_rejects_short_or_empty_paths(url):
    with pytest.raises(MalformedUrlError):
        parse_remote_url(url)


def test_identity_helpers():
    identity = RemoteIdentity("raw", "gitlab.com", "acme", "widgets")
    assert identity.full_name == "acme/widgets"
    assert identity.web_url == "https://gitlab.com/acme/widgets"
    assert identity.api_url == "https://gitlab.com/api/v4"


def _resolver(urls):
    return lambda name: urls[name]


def test_discover_without_remotes_fails():
    with pytest.raises(NoRemotesError):
        discover_remote(lambda: [], _resolver({}))


def test_discover_without_matching_host_fails():
    urls = {"origin": "https://github.com/acme/widgets"}
    with pytest.raises(NoMatchingRemoteError):
        discover_remote(lambda: ["origin"], _resolver(urls))


def test_discover_returns_first_match_in_enumeration_order():
    urls = {
        "upstream": "https://github.com/acme/widgets",
        "origin": "ssh://git@gitlab.com/me/widgets.git",
        "mirror": "https://gitlab.example.com/acme/widgets",
    }
    identity = discover_remote(lambda: ["upstream", "origin", "mirror"], _resolver(urls))
    assert identity.host == "gitlab.com"
    assert identity.owner == "me"


def test_discover_fails_fast_on_unparsable_remote():
    urls = {
        "origin": "https://gitlab.com/acme/widgets",
        "broken": "git@gitlab.com:acme/widgets.git",
    }
    with pytest.raises(UnsupportedSchemeError):
        discover_remote(lambda: ["origin", "broken"], _resolver(urls))


def test_discover_honours_custom_host_pattern():
    urls = {
        "origin": "https://gitlab.com/acme/widgets",
        "work": "https://git.corp.example/team/widgets",
    }
    identity = discover_remote(lambda: ["origin", "work"], _resolver(urls), host_pattern="git.corp")
    assert identity.owner == "team"


class _FakeCheckOutput:
    def __init__(self, outputs):
        self.outputs = outputs
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        return self.outputs[tuple(cmd[1:])]


def test_git_client_lists_and_resolves_remotes(monkeypatch):
    from labcli import remote

    fake = _FakeCheckOutput(
        {
            ("remote",): "origin\nupstream\n\n",
            ("remote", "get-url", "origin"): "https://gitlab.com/acme/widgets\n",
        }
    )
    monkeypatch.setattr(remote.subprocess, "check_output", fake)
    client = remote.GitClient(git="git")

    assert client.list_remote_names() == ["origin", "upstream"]
    assert client.resolve_url("origin") == "https://gitlab.com/acme/widgets"
    assert fake.calls[1] == ["git", "remote", "get-url", "origin"]


def test_git_client_wraps_command_failures(monkeypatch):
    from labcli import remote
    from labcli.errors import GitCommandError

    def boom(cmd, **kwargs):
        raise remote.subprocess.CalledProcessError(128, cmd, output="fatal: not a git repository")

    monkeypatch.setattr(remote.subprocess, "check_output", boom)
    with pytest.raises(GitCommandError, match="not a git repository"):
        remote.GitClient(git="git").list_remote_names()
