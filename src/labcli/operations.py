"""Operation selection and the handlers it chooses between.

``select_operation`` is a pure decision over the parsed flags, the optional
IID and the discovered project; it builds exactly one handler. Handlers are
plain dataclasses that satisfy the :class:`Operation` protocol and are the
only code that calls the GitLab API.

Selection order (first match wins)::

    IID given:    --edit -> UpdateViaEditor
                  any create/update content -> Update
                  otherwise -> Show
    no IID:       --edit -> CreateViaEditor
                  --title -> Create
                  --all-project -> ListAll
                  otherwise -> ListForProject

``--edit`` beats every content flag: the title/message are pre-filled into
the editor template instead of being committed directly.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from .editor import EditorFactory, edit_title_and_description, render_template
from .errors import LabError
from .logging import get_logger
from .models import ISSUE, MERGE_REQUEST, CreateUpdateOptions, ListOptions, RemoteIdentity
from .options import has_create_update_content, parse_identifier, resolve_scope, resolve_state

_TEMPLATE_DIRS = {
    MERGE_REQUEST: ".gitlab/merge_request_templates",
    ISSUE: ".gitlab/issue_templates",
}


class ResourceApi(Protocol):
    def get(self, project: str, iid: int) -> dict[str, Any]: ...

    def list(
        self,
        project: str | None,
        *,
        state: str = ...,
        scope: str = ...,
        order_by: str = ...,
        sort: str = ...,
        limit: int = ...,
    ) -> list[dict[str, Any]]: ...

    def create(self, project: str, fields: dict[str, Any]) -> dict[str, Any]: ...

    def update(self, project: str, iid: int, fields: dict[str, Any]) -> dict[str, Any]: ...


class RepositoryApi(Protocol):
    def default_branch(self, project: str) -> str: ...

    def get_file(self, project: str, path: str, ref: str) -> str: ...


class Operation(Protocol):
    def execute(self) -> str: ...


@dataclass
class OperationContext:
    client: ResourceApi
    repository: RepositoryApi | None = None
    editor_factory: EditorFactory | None = None
    current_branch: Callable[[], str] | None = None


# ---- rendering ------------------------------------------------------------


def _sigil(kind: str) -> str:
    return "!" if kind == MERGE_REQUEST else "#"


def _topic(kind: str) -> str:
    return "merge request" if kind == MERGE_REQUEST else "issue"


def _username(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get("username") or entry.get("name") or "-")
    return "-"


def format_list(kind: str, entries: Sequence[dict[str, Any]], *, with_project: bool) -> str:
    sigil = _sigil(kind)
    lines: list[str] = []
    for entry in entries:
        iid = entry.get("iid")
        title = entry.get("title", "")
        if with_project:
            refs = entry.get("references")
            ref = refs.get("full") if isinstance(refs, dict) else None
            prefix = ref or f"{entry.get('project_id', '?')}{sigil}{iid}"
        else:
            prefix = f"{sigil}{iid}"
        lines.append(f"{prefix}  {title}")
    return "\n".join(lines)


def format_detail(kind: str, entry: dict[str, Any]) -> str:
    lines = [
        f"{_sigil(kind)}{entry.get('iid')} {entry.get('title', '')}",
        f"State: {entry.get('state', '-')}    "
        f"Author: {_username(entry.get('author'))}    "
        f"Assignee: {_username(entry.get('assignee'))}",
    ]
    if kind == MERGE_REQUEST:
        lines.append(f"Branch: {entry.get('source_branch', '-')} -> {entry.get('target_branch', '-')}")
    lines.append(f"Created: {entry.get('created_at', '-')}    Updated: {entry.get('updated_at', '-')}")
    if entry.get("web_url"):
        lines.append(f"URL: {entry['web_url']}")
    description = entry.get("description") or ""
    if description:
        lines.extend(["", description])
    return "\n".join(lines)


# ---- field builders -------------------------------------------------------


def create_fields(
    kind: str,
    opts: CreateUpdateOptions,
    title: str,
    description: str,
    current_branch: Callable[[], str] | None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {"title": title, "description": description}
    if opts.assignee_id:
        fields["assignee_id"] = opts.assignee_id
    if kind == MERGE_REQUEST:
        source = opts.source_branch
        if not source:
            if current_branch is None:
                raise LabError("Source branch is required (--source)")
            source = current_branch()
        fields["source_branch"] = source
        fields["target_branch"] = opts.target_branch
    return fields


def update_fields(
    opts: CreateUpdateOptions, *, title: str | None = None, description: str | None = None
) -> dict[str, Any]:
    """Fields for a PUT; an explicit ``description`` is sent even when empty."""
    fields: dict[str, Any] = {}
    title = title if title is not None else opts.title
    if title:
        fields["title"] = title
    if description is not None:
        fields["description"] = description
    elif opts.message:
        fields["description"] = opts.message
    if opts.state_event:
        fields["state_event"] = opts.state_event
    if opts.assignee_id:
        fields["assignee_id"] = opts.assignee_id
    return fields


def _require_editor(factory: EditorFactory | None) -> EditorFactory:
    if factory is None:  # pragma: no cover - wiring guard
        raise LabError("No editor available")
    return factory


# ---- handlers -------------------------------------------------------------


@dataclass
class ListForProject:
    client: ResourceApi
    kind: str
    project: str
    opts: ListOptions

    def execute(self) -> str:
        entries = self.client.list(
            self.project,
            state=resolve_state(self.opts),
            scope=resolve_scope(self.opts),
            order_by=self.opts.order_by,
            sort=self.opts.sort,
            limit=self.opts.num,
        )
        return format_list(self.kind, entries, with_project=False)


@dataclass
class ListAll:
    client: ResourceApi
    kind: str
    opts: ListOptions

    def execute(self) -> str:
        entries = self.client.list(
            None,
            state=resolve_state(self.opts),
            scope=resolve_scope(self.opts),
            order_by=self.opts.order_by,
            sort=self.opts.sort,
            limit=self.opts.num,
        )
        return format_list(self.kind, entries, with_project=True)


@dataclass
class Show:
    client: ResourceApi
    kind: str
    project: str
    iid: int

    def execute(self) -> str:
        return format_detail(self.kind, self.client.get(self.project, self.iid))


@dataclass
class Create:
    client: ResourceApi
    kind: str
    project: str
    opts: CreateUpdateOptions
    current_branch: Callable[[], str] | None = None

    def execute(self) -> str:
        fields = create_fields(
            self.kind, self.opts, self.opts.title, self.opts.message, self.current_branch
        )
        created = self.client.create(self.project, fields)
        return str(created.get("web_url", ""))


@dataclass
class CreateViaEditor:
    client: ResourceApi
    kind: str
    project: str
    opts: CreateUpdateOptions
    editor_factory: EditorFactory
    repository: RepositoryApi | None = None
    current_branch: Callable[[], str] | None = None

    def _initial_description(self) -> str:
        if self.opts.message or not self.opts.template:
            return self.opts.message
        if self.repository is None:
            raise LabError("Templates need repository access")
        name = self.opts.template
        if not name.endswith(".md"):
            name = f"{name}.md"
        ref = self.repository.default_branch(self.project)
        return self.repository.get_file(self.project, f"{_TEMPLATE_DIRS[self.kind]}/{name}", ref)

    def execute(self) -> str:
        template = render_template(self.opts.title, self._initial_description(), _topic(self.kind))
        editor = self.editor_factory(self.kind.upper(), _topic(self.kind), template)
        title, description = edit_title_and_description(editor)
        fields = create_fields(self.kind, self.opts, title, description, self.current_branch)
        created = self.client.create(self.project, fields)
        return str(created.get("web_url", ""))


@dataclass
class Update:
    client: ResourceApi
    kind: str
    project: str
    iid: int
    opts: CreateUpdateOptions

    def execute(self) -> str:
        updated = self.client.update(self.project, self.iid, update_fields(self.opts))
        return str(updated.get("web_url", ""))


@dataclass
class UpdateViaEditor:
    client: ResourceApi
    kind: str
    project: str
    iid: int
    opts: CreateUpdateOptions
    editor_factory: EditorFactory

    def execute(self) -> str:
        current = self.client.get(self.project, self.iid)
        template = render_template(
            self.opts.title or str(current.get("title") or ""),
            self.opts.message or str(current.get("description") or ""),
            _topic(self.kind),
        )
        editor = self.editor_factory(self.kind.upper(), _topic(self.kind), template)
        title, description = edit_title_and_description(editor)
        fields = update_fields(self.opts, title=title, description=description)
        if description == str(current.get("description") or ""):
            del fields["description"]
        updated = self.client.update(self.project, self.iid, fields)
        return str(updated.get("web_url", ""))


def select_operation(
    kind: str,
    list_opts: ListOptions,
    cu_opts: CreateUpdateOptions,
    positional: Sequence[str],
    identity: RemoteIdentity,
    context: OperationContext,
) -> Operation:
    """Pick the single operation this invocation runs."""
    iid = parse_identifier(positional)
    project = identity.full_name
    client = context.client
    operation: Operation

    if iid is not None:
        if cu_opts.edit:
            operation = UpdateViaEditor(
                client, kind, project, iid, cu_opts, _require_editor(context.editor_factory)
            )
        elif has_create_update_content(cu_opts):
            operation = Update(client, kind, project, iid, cu_opts)
        else:
            operation = Show(client, kind, project, iid)
    elif cu_opts.edit:
        operation = CreateViaEditor(
            client,
            kind,
            project,
            cu_opts,
            _require_editor(context.editor_factory),
            repository=context.repository,
            current_branch=context.current_branch,
        )
    elif cu_opts.title:
        operation = Create(client, kind, project, cu_opts, current_branch=context.current_branch)
    elif list_opts.all_project:
        operation = ListAll(client, kind, list_opts)
    else:
        operation = ListForProject(client, kind, project, list_opts)

    get_logger().debug("selected operation", operation=type(operation).__name__, kind=kind)
    return operation


__all__ = [
    "Operation",
    "OperationContext",
    "ResourceApi",
    "RepositoryApi",
    "ListAll",
    "ListForProject",
    "Show",
    "Create",
    "CreateViaEditor",
    "Update",
    "UpdateViaEditor",
    "create_fields",
    "update_fields",
    "format_list",
    "format_detail",
    "select_operation",
]
