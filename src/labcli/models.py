from __future__ import annotations

from dataclasses import dataclass

MERGE_REQUEST = "merge_request"
ISSUE = "issue"


@dataclass(frozen=True)
class RemoteIdentity:
    """Project coordinates parsed from one configured git remote."""

    raw_url: str
    host: str
    owner: str
    project: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.project}"

    @property
    def web_url(self) -> str:
        return f"https://{self.host}/{self.owner}/{self.project}"

    @property
    def api_url(self) -> str:
        return f"https://{self.host}/api/v4"


@dataclass(frozen=True)
class ListOptions:
    num: int = 20
    state: str = "all"
    scope: str = "all"
    order_by: str = "updated_at"
    sort: str = "desc"
    opened: bool = False
    closed: bool = False
    merged: bool = False
    created_me: bool = False
    assigned_me: bool = False
    all_project: bool = False


@dataclass(frozen=True)
class CreateUpdateOptions:
    edit: bool = False
    title: str = ""
    message: str = ""
    template: str = ""
    source_branch: str = ""
    target_branch: str = "master"
    state_event: str = ""
    assignee_id: int = 0  # 0 means "leave unchanged"


__all__ = [
    "MERGE_REQUEST",
    "ISSUE",
    "RemoteIdentity",
    "ListOptions",
    "CreateUpdateOptions",
]
