"""Todoist REST v2 client."""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

import requests

from day_planner.config import ConfigError

logger = logging.getLogger(__name__)

BASE_URL = "https://api.todoist.com/rest/v2"


class TodoistAPIError(Exception):
    """Raised when Todoist answers with a non-2xx status."""

    def __init__(self, status: int | None, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Todoist API error {status}: {body}" if status else body)


class TodoistRequestError(TodoistAPIError):
    """Raised when the request never produced a response."""

    def __init__(self, message: str):
        super().__init__(None, f"Todoist API request failed: {message}")


# ── Models ────────────────────────────────────────────────────────────────────


@dataclass
class Due:
    date: str
    string: str = ""
    recurring: bool = False
    datetime: str | None = None
    timezone: str | None = None


@dataclass
class TodoistTask:
    id: str
    project_id: str
    content: str
    description: str = ""
    is_completed: bool = False
    labels: list[str] = field(default_factory=list)
    priority: int = 1
    due: Due | None = None
    section_id: str | None = None
    parent_id: str | None = None
    order: int = 0
    url: str = ""
    comment_count: int = 0
    created_at: str | None = None

    def with_labels(self, labels: list[str]) -> "TodoistTask":
        """Copy of this task carrying a different label list."""
        data = asdict(self)
        data["labels"] = list(labels)
        data["due"] = self.due
        return TodoistTask(**data)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TodoistProject:
    id: str
    name: str
    color: str = "charcoal"
    parent_id: str | None = None
    is_favorite: bool = False
    is_inbox_project: bool = False
    order: int = 0
    view_style: str = "list"
    url: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TodoistSection:
    id: str
    project_id: str
    name: str
    order: int = 0


@dataclass
class TodoistLabel:
    id: str
    name: str
    color: str = "charcoal"
    order: int = 0
    is_favorite: bool = False


@dataclass
class TodoistComment:
    id: str
    content: str
    task_id: str | None = None
    project_id: str | None = None
    posted_at: str | None = None


def _pick(cls, data: dict) -> dict:
    """Keep only the keys a dataclass knows about; the API adds fields freely."""
    names = cls.__dataclass_fields__.keys()
    return {k: v for k, v in data.items() if k in names}


def parse_task(data: dict) -> TodoistTask:
    fields = _pick(TodoistTask, data)
    if fields.get("due"):
        fields["due"] = Due(**_pick(Due, fields["due"]))
    fields["labels"] = list(dict.fromkeys(fields.get("labels") or []))
    return TodoistTask(**fields)


def parse_project(data: dict) -> TodoistProject:
    return TodoistProject(**_pick(TodoistProject, data))


def parse_section(data: dict) -> TodoistSection:
    return TodoistSection(**_pick(TodoistSection, data))


def parse_label(data: dict) -> TodoistLabel:
    return TodoistLabel(**_pick(TodoistLabel, data))


def parse_comment(data: dict) -> TodoistComment:
    return TodoistComment(**_pick(TodoistComment, data))


# ── Client ────────────────────────────────────────────────────────────────────


TASK_WRITE_FIELDS = (
    "content",
    "description",
    "project_id",
    "section_id",
    "parent_id",
    "order",
    "labels",
    "priority",
    "due_string",
    "due_date",
    "due_datetime",
    "due_lang",
    "assignee_id",
)


class TodoistClient:
    """Thin typed wrapper around the Todoist REST API.

    Failed calls propagate immediately; there is no retry or backoff.
    """

    def __init__(
        self,
        token: str | None,
        base_url: str = BASE_URL,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ):
        if not token:
            raise ConfigError("Todoist access token is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        })

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        if params:
            params = {k: v for k, v in params.items() if v}
        logger.debug("%s %s params=%s", method, url, params)
        try:
            response = self.session.request(
                method, url, params=params or None, json=json, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning("Todoist request %s %s failed: %s", method, endpoint, e)
            raise TodoistRequestError(str(e)) from e

        if not response.ok:
            body = response.text or response.reason or ""
            logger.warning("Todoist %s %s -> %s: %s", method, endpoint, response.status_code, body)
            raise TodoistAPIError(response.status_code, body)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ── Tasks ──

    def get_tasks(
        self,
        project_id: str | None = None,
        section_id: str | None = None,
        label: str | None = None,
        filter: str | None = None,
        lang: str | None = None,
    ) -> list[TodoistTask]:
        """List active tasks."""
        data = self._request("GET", "/tasks", params={
            "project_id": project_id,
            "section_id": section_id,
            "label": label,
            "filter": filter,
            "lang": lang,
        })
        return [parse_task(t) for t in data or []]

    def get_task(self, task_id: str) -> TodoistTask:
        return parse_task(self._request("GET", f"/tasks/{task_id}"))

    def create_task(self, content: str, **fields) -> TodoistTask:
        payload = {"content": content, **_task_fields(fields)}
        return parse_task(self._request("POST", "/tasks", json=payload))

    def update_task(self, task_id: str, **fields) -> TodoistTask:
        """Partial update: only the supplied fields are sent."""
        payload = _task_fields(fields)
        return parse_task(self._request("POST", f"/tasks/{task_id}", json=payload))

    def close_task(self, task_id: str) -> None:
        self._request("POST", f"/tasks/{task_id}/close")

    def reopen_task(self, task_id: str) -> None:
        self._request("POST", f"/tasks/{task_id}/reopen")

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    # ── Projects ──

    def get_projects(self) -> list[TodoistProject]:
        return [parse_project(p) for p in self._request("GET", "/projects") or []]

    def get_project(self, project_id: str) -> TodoistProject:
        return parse_project(self._request("GET", f"/projects/{project_id}"))

    def create_project(self, name: str, **fields) -> TodoistProject:
        payload = {"name": name, **{k: v for k, v in fields.items() if v is not None}}
        return parse_project(self._request("POST", "/projects", json=payload))

    def update_project(self, project_id: str, **fields) -> TodoistProject:
        payload = {k: v for k, v in fields.items() if v is not None}
        return parse_project(self._request("POST", f"/projects/{project_id}", json=payload))

    def delete_project(self, project_id: str) -> None:
        self._request("DELETE", f"/projects/{project_id}")

    # ── Sections ──

    def get_sections(self, project_id: str | None = None) -> list[TodoistSection]:
        data = self._request("GET", "/sections", params={"project_id": project_id})
        return [parse_section(s) for s in data or []]

    def get_section(self, section_id: str) -> TodoistSection:
        return parse_section(self._request("GET", f"/sections/{section_id}"))

    # ── Labels ──

    def get_labels(self) -> list[TodoistLabel]:
        return [parse_label(lb) for lb in self._request("GET", "/labels") or []]

    def get_label(self, label_id: str) -> TodoistLabel:
        return parse_label(self._request("GET", f"/labels/{label_id}"))

    # ── Comments ──

    def get_task_comments(self, task_id: str) -> list[TodoistComment]:
        data = self._request("GET", "/comments", params={"task_id": task_id})
        return [parse_comment(c) for c in data or []]

    def get_project_comments(self, project_id: str) -> list[TodoistComment]:
        data = self._request("GET", "/comments", params={"project_id": project_id})
        return [parse_comment(c) for c in data or []]

    def create_comment(
        self,
        content: str,
        task_id: str | None = None,
        project_id: str | None = None,
    ) -> TodoistComment:
        if not task_id and not project_id:
            raise ValueError("A comment needs a task_id or a project_id")
        payload = {"content": content}
        if task_id:
            payload["task_id"] = task_id
        if project_id:
            payload["project_id"] = project_id
        return parse_comment(self._request("POST", "/comments", json=payload))


def _task_fields(fields: dict) -> dict:
    unknown = set(fields) - set(TASK_WRITE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")
    return {k: v for k, v in fields.items() if v is not None}


def get_client(token: str | None, timeout: float | None = None) -> TodoistClient:
    """Build a client, raising ConfigError when no token is configured."""
    return TodoistClient(token, timeout=timeout)
