"""GitLab REST v4 client.

``GitLabRestClient`` owns the HTTP session and error mapping. The two thin
facades built on it are what the operation handlers talk to:

- ``ResourceClient`` exposes get / list / create / update for one resource
  kind (merge requests or issues)
- ``RepositoryClient`` reads project metadata and repository files

Every call is single shot; failures surface as ``NotFoundError`` (404) or
``ApiError`` (any other failure, including transport errors).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import requests

from . import __version__
from .errors import ApiError, NotFoundError
from .models import ISSUE, MERGE_REQUEST

USER_AGENT = f"labcli/{__version__}"
HTTP_ERROR_STATUS = 400
HTTP_NOT_FOUND = 404
MAX_PER_PAGE = 100
REQUEST_TIMEOUT = 30

_COLLECTIONS = {
    MERGE_REQUEST: "merge_requests",
    ISSUE: "issues",
}


def encode_project(project: str) -> str:
    """URL-encode an ``owner/project`` path for use as a project id."""
    return quote(project, safe="")


@dataclass
class GitLabRestClient:
    """Lightweight REST client for one GitLab host."""

    token: str
    base_url: str
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:  # pragma: no cover - simple wiring
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("PRIVATE-TOKEN", self.token)
        self._session.headers.setdefault("Accept", "application/json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        url = self._url(path)
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._session.headers,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise ApiError(f"GitLab API {method} {url} failed: {exc}") from exc
        if response.status_code == HTTP_NOT_FOUND:
            raise NotFoundError(
                f"GitLab API {method} {url}: 404 Not Found",
                status=response.status_code,
                response_text=response.text,
            )
        if response.status_code >= HTTP_ERROR_STATUS:
            raise ApiError(
                f"GitLab API {method} {url} failed with {response.status_code}",
                status=response.status_code,
                response_text=response.text,
            )
        return response

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        response = self._send(method, path, params=params, json_body=json_body)
        if not response.text:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"GitLab API {method} {path} returned invalid JSON",
                status=response.status_code,
                response_text=response.text,
            ) from exc

    def request_text(self, path: str, *, params: dict[str, Any] | None = None) -> str:
        return str(self._send("GET", path, params=params).text)

    def paginate(self, path: str, *, params: dict[str, Any] | None = None, limit: int) -> list[Any]:
        """Collect up to ``limit`` items, following page numbers."""
        params = dict(params or {})
        per_page = max(1, min(limit, MAX_PER_PAGE))
        params["per_page"] = per_page
        params.setdefault("page", 1)
        results: list[Any] = []
        while len(results) < limit:
            data = self.request("GET", path, params=params)
            if not isinstance(data, list):
                break
            results.extend(data)
            if len(data) < per_page:
                break
            params["page"] = params.get("page", 1) + 1
        return results[:limit]


def _api_scope(scope: str) -> str:
    return scope.replace("-", "_")


@dataclass
class ResourceClient:
    """get / list / create / update for merge requests or issues."""

    rest: GitLabRestClient
    kind: str = MERGE_REQUEST

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self.kind]

    def _project_path(self, project: str) -> str:
        return f"/projects/{encode_project(project)}/{self.collection}"

    def get(self, project: str, iid: int) -> dict[str, Any]:
        return self.request_entity("GET", f"{self._project_path(project)}/{iid}")

    def list(
        self,
        project: str | None,
        *,
        state: str = "all",
        scope: str = "all",
        order_by: str = "updated_at",
        sort: str = "desc",
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "scope": _api_scope(scope),
            "order_by": order_by,
            "sort": sort,
        }
        if state != "all":
            params["state"] = state
        path = self._project_path(project) if project else f"/{self.collection}"
        data = self.rest.paginate(path, params=params, limit=limit)
        return [entry for entry in data if isinstance(entry, dict)]

    def create(self, project: str, fields: dict[str, Any]) -> dict[str, Any]:
        return self.request_entity(
            "POST", self._project_path(project), json_body=self._payload(fields)
        )

    def update(self, project: str, iid: int, fields: dict[str, Any]) -> dict[str, Any]:
        return self.request_entity(
            "PUT", f"{self._project_path(project)}/{iid}", json_body=self._payload(fields)
        )

    def _payload(self, fields: dict[str, Any]) -> dict[str, Any]:
        payload = dict(fields)
        # the issues API only takes a list of assignees
        if self.kind == ISSUE and "assignee_id" in payload:
            payload["assignee_ids"] = [payload.pop("assignee_id")]
        return payload

    def request_entity(self, method: str, path: str, *, json_body: Any | None = None) -> dict[str, Any]:
        data = self.rest.request(method, path, json_body=json_body)
        if not isinstance(data, dict):
            raise ApiError(f"GitLab API {method} {path} returned an unexpected payload")
        return data


@dataclass
class RepositoryClient:
    rest: GitLabRestClient

    def default_branch(self, project: str) -> str:
        data = self.rest.request("GET", f"/projects/{encode_project(project)}")
        branch = data.get("default_branch") if isinstance(data, dict) else None
        return branch if isinstance(branch, str) and branch else "master"

    def get_file(self, project: str, path: str, ref: str) -> str:
        return self.rest.request_text(
            f"/projects/{encode_project(project)}/repository/files/{quote(path, safe='')}/raw",
            params={"ref": ref},
        )


__all__ = [
    "GitLabRestClient",
    "ResourceClient",
    "RepositoryClient",
    "encode_project",
]
