"""HTTP API and pages for the day planner."""

import json
import logging
import sqlite3

import uvicorn
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.routing import Route

from day_planner.config import ConfigError, get_config
from day_planner.core import allocations as allocations_mod
from day_planner.core import colors as colors_mod
from day_planner.core import completion as completion_mod
from day_planner.core import time_entries as entries_mod
from day_planner.core.categories import categorize
from day_planner.core.kanban import TaskCache
from day_planner.core.session import SESSION_COOKIE, InvalidCredential, SessionGuard
from day_planner.core.timer import TimerCoordinator
from day_planner.db.engine import init_db
from day_planner.integrations import todoist as todoist_mod
from day_planner.web.pages import get_dashboard_html, get_login_html

logger = logging.getLogger(__name__)

PUBLIC_PATHS = {"/login", "/auth/login"}


def _get_db():
    config = get_config()
    return init_db(config.db_path)


def _default_gateway(config):
    return todoist_mod.get_client(config.require_todoist_token(), timeout=config.todoist_timeout)


def _gateway(request: Request):
    return request.app.state.gateway_factory(get_config())


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValueError("Invalid JSON body") from None
    if not isinstance(body, dict):
        raise ValueError("JSON body must be an object")
    return body


def _error(message: str, status_code: int, details: str | None = None) -> JSONResponse:
    payload = {"error": message}
    if details is not None:
        payload["details"] = details
    return JSONResponse(payload, status_code=status_code)


# ── Session gate ──────────────────────────────────────────────────────────────


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Send every request without a valid session cookie to /login."""

    async def dispatch(self, request: Request, call_next):
        guard = SessionGuard(get_config().app_password)
        authenticated = guard.verify(request.cookies.get(SESSION_COOKIE))
        path = request.url.path

        if path in PUBLIC_PATHS:
            if authenticated and path == "/login":
                return RedirectResponse("/", status_code=307)
            return await call_next(request)

        if not authenticated:
            return RedirectResponse("/login", status_code=307)
        return await call_next(request)


# ── Pages and auth ────────────────────────────────────────────────────────────


async def index(request: Request):
    return HTMLResponse(get_dashboard_html())


async def login_page(request: Request):
    return HTMLResponse(get_login_html())


async def auth_login(request: Request):
    body = await _json_body(request)
    config = get_config()
    guard = SessionGuard(config.app_password)
    try:
        token = guard.login(body.get("password"))
    except InvalidCredential:
        logger.info("Rejected login attempt")
        return _error("Invalid password", 401)

    response = JSONResponse({"success": True})
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=guard.max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=config.cookie_secure,
    )
    return response


async def auth_logout(request: Request):
    response = JSONResponse({"success": True})
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response


# ── Allocations and time entries ──────────────────────────────────────────────


async def api_get_allocation(request: Request):
    date = request.query_params.get("date")
    if not date:
        return _error("Date parameter required", 400)
    db = _get_db()
    try:
        allocation = allocations_mod.get_allocation(db, date)
        data = allocations_mod.allocation_to_dict(allocation) if allocation else None
        return JSONResponse({"data": data})
    finally:
        db.close()


async def api_save_allocation(request: Request):
    body = await _json_body(request)
    date = body.get("date")
    total = body.get("total_work_hours")
    items = body.get("project_allocations")
    if not date or not total or not items:
        return _error("Missing required fields: date, total_work_hours, project_allocations", 400)
    if not isinstance(items, list):
        return _error("project_allocations must be a list", 400)
    db = _get_db()
    try:
        allocation = allocations_mod.save_allocation(db, date, total, items)
        return JSONResponse({"success": True, "data": allocations_mod.allocation_to_dict(allocation)})
    finally:
        db.close()


async def api_list_time_entries(request: Request):
    date = request.query_params.get("date")
    db = _get_db()
    try:
        entries = entries_mod.list_time_entries(db, date)
        return JSONResponse({"entries": [entries_mod.entry_to_dict(e) for e in entries]})
    finally:
        db.close()


async def api_create_time_entry(request: Request):
    body = await _json_body(request)
    missing = [f for f in entries_mod.REQUIRED_FIELDS if not body.get(f)]
    if missing:
        return _error(
            "Missing required fields: date, todoist_task_id, task_name, duration_minutes", 400
        )
    db = _get_db()
    try:
        entry = entries_mod.record_time_entry(
            db,
            date=body["date"],
            todoist_task_id=str(body["todoist_task_id"]),
            task_name=body["task_name"],
            duration_minutes=body["duration_minutes"],
            todoist_project_id=body.get("todoist_project_id"),
            project_name=body.get("project_name"),
            category=body.get("category"),
            notes=body.get("notes"),
        )
        return JSONResponse({"success": True, "data": entries_mod.entry_to_dict(entry)})
    finally:
        db.close()


async def api_planned_vs_actual(request: Request):
    date = request.query_params.get("date")
    if not date:
        return _error("Date parameter required", 400)
    db = _get_db()
    try:
        return JSONResponse(entries_mod.planned_vs_actual(db, date))
    finally:
        db.close()


# ── Todoist proxy ─────────────────────────────────────────────────────────────


async def api_todoist_projects(request: Request):
    gateway = _gateway(request)
    projects = await run_in_threadpool(gateway.get_projects)
    db = _get_db()
    try:
        overrides = colors_mod.list_overrides(db)
    finally:
        db.close()
    return JSONResponse({"projects": [_project_dict(p, overrides) for p in projects]})


async def api_todoist_tasks(request: Request):
    project_id = request.query_params.get("project_id") or None
    filter_ = request.query_params.get("filter") or None
    gateway = _gateway(request)
    tasks = await run_in_threadpool(
        request.app.state.task_cache.fetch, gateway, project_id=project_id, filter=filter_
    )
    return JSONResponse({"tasks": [_task_dict(t) for t in tasks]})


async def api_todoist_labels(request: Request):
    gateway = _gateway(request)
    labels = await run_in_threadpool(gateway.get_labels)
    return JSONResponse({"labels": [vars(lb) for lb in labels]})


async def api_todoist_create_task(request: Request):
    body = await _json_body(request)
    if not body.get("content"):
        return _error("Task content is required", 400)
    fields = {
        k: body.get(k)
        for k in ("description", "project_id", "labels", "priority", "due_string", "due_date", "due_datetime")
    }
    gateway = _gateway(request)
    task = await run_in_threadpool(gateway.create_task, body["content"], **fields)
    request.app.state.task_cache.invalidate()
    return JSONResponse({"success": True, "task": _task_dict(task)})


async def api_todoist_update_task(request: Request):
    body = await _json_body(request)
    task_id = body.get("taskId")
    if not task_id:
        return _error("Task ID is required", 400)
    fields = {
        k: body[k]
        for k in ("content", "description", "labels", "priority", "due_string")
        if body.get(k) is not None
    }
    gateway = _gateway(request)
    task = await run_in_threadpool(gateway.update_task, task_id, **fields)
    request.app.state.task_cache.invalidate()
    return JSONResponse(_task_dict(task))


async def api_todoist_update_labels(request: Request):
    body = await _json_body(request)
    task_id = body.get("taskId")
    labels = body.get("labels")
    if not task_id or not isinstance(labels, list):
        return _error("Missing required fields: taskId, labels (array)", 400)
    gateway = _gateway(request)
    try:
        task = await run_in_threadpool(gateway.update_task, task_id, labels=[str(lb) for lb in labels])
    except todoist_mod.TodoistAPIError as e:
        return _error(f"Todoist API error: {e.status}", e.status or 502, e.body)
    request.app.state.task_cache.invalidate()
    return JSONResponse({"success": True, "task": _task_dict(task)})


async def api_todoist_complete(request: Request):
    body = await _json_body(request)
    task_id = body.get("taskId")
    if not task_id:
        return _error("Task ID is required", 400)
    gateway = _gateway(request)
    await run_in_threadpool(gateway.close_task, task_id)
    request.app.state.task_cache.invalidate()
    return JSONResponse({"success": True})


# ── Timer and completion ──────────────────────────────────────────────────────


async def api_timer(request: Request):
    return JSONResponse(request.app.state.timer.to_dict())


async def api_timer_start(request: Request):
    body = await _json_body(request)
    task_id = body.get("taskId")
    if not task_id:
        return _error("Task ID is required", 400)
    timer: TimerCoordinator = request.app.state.timer
    timer.start(str(task_id))
    return JSONResponse(timer.to_dict())


async def api_timer_stop(request: Request):
    timer: TimerCoordinator = request.app.state.timer
    timer.stop()
    return JSONResponse(timer.to_dict())


async def api_complete_task(request: Request):
    body = await _json_body(request)
    task_id = str(body.get("taskId") or "")
    if not task_id:
        return _error("Task ID is required", 400)
    timer: TimerCoordinator = request.app.state.timer
    elapsed = timer.elapsed_seconds() if timer.is_active(task_id) else 0
    duration = completion_mod.resolve_duration(body.get("duration_minutes"), elapsed)

    gateway = _gateway(request)

    def complete():
        # Runs in a worker thread; the connection must be opened there too.
        task = gateway.get_task(task_id)
        db = _get_db()
        try:
            return completion_mod.complete_task(
                db,
                gateway,
                timer,
                task,
                duration,
                notes=body.get("notes"),
                date=body.get("date"),
                project_name=body.get("project_name"),
                cache=request.app.state.task_cache,
            )
        finally:
            db.close()

    result = await run_in_threadpool(complete)
    return JSONResponse({
        "success": True,
        "timer_stopped": result.timer_stopped,
        "entry": entries_mod.entry_to_dict(result.entry),
    })


# ── Serialization ─────────────────────────────────────────────────────────────


def _project_dict(p, overrides: dict[str, str] | None = None) -> dict:
    d = p.to_dict()
    d["hex_color"] = colors_mod.resolve_color(p.color, overrides)
    return d


def _task_dict(t) -> dict:
    d = t.to_dict()
    d["category"] = categorize(t.labels).value
    return d


# ── Error handlers ────────────────────────────────────────────────────────────


async def _config_error(request: Request, exc: ConfigError):
    logger.error("Configuration error: %s", exc)
    return _error(str(exc), 500)


async def _upstream_error(request: Request, exc: todoist_mod.TodoistAPIError):
    return _error("Todoist request failed", 502, exc.body)


async def _validation_error(request: Request, exc: ValueError):
    return _error(str(exc), 400)


async def _database_error(request: Request, exc: sqlite3.OperationalError):
    logger.warning("Database error: %s", exc)
    return _error("Database unavailable", 503, str(exc))


# ── App ───────────────────────────────────────────────────────────────────────


def create_app(gateway_factory=None, timer: TimerCoordinator | None = None) -> Starlette:
    routes = [
        Route("/", index),
        Route("/login", login_page),
        Route("/auth/login", auth_login, methods=["POST"]),
        Route("/auth/logout", auth_logout, methods=["POST"]),
        Route("/allocations", api_get_allocation, methods=["GET"]),
        Route("/allocations", api_save_allocation, methods=["POST"]),
        Route("/time-entries", api_list_time_entries, methods=["GET"]),
        Route("/time-entries", api_create_time_entry, methods=["POST"]),
        Route("/reports/planned-vs-actual", api_planned_vs_actual),
        Route("/todoist/projects", api_todoist_projects),
        Route("/todoist/tasks", api_todoist_tasks),
        Route("/todoist/labels", api_todoist_labels),
        Route("/todoist/create-task", api_todoist_create_task, methods=["POST"]),
        Route("/todoist/update-task", api_todoist_update_task, methods=["POST"]),
        Route("/todoist/update-labels", api_todoist_update_labels, methods=["POST"]),
        Route("/todoist/complete", api_todoist_complete, methods=["POST"]),
        Route("/timer", api_timer),
        Route("/timer/start", api_timer_start, methods=["POST"]),
        Route("/timer/stop", api_timer_stop, methods=["POST"]),
        Route("/tasks/complete", api_complete_task, methods=["POST"]),
    ]
    app = Starlette(
        routes=routes,
        middleware=[Middleware(SessionGateMiddleware)],
        exception_handlers={
            ConfigError: _config_error,
            todoist_mod.TodoistAPIError: _upstream_error,
            ValueError: _validation_error,
            sqlite3.OperationalError: _database_error,
        },
    )
    app.state.gateway_factory = gateway_factory or _default_gateway
    app.state.timer = timer or TimerCoordinator()
    app.state.task_cache = TaskCache()
    return app


def run_server(host: str = "127.0.0.1", port: int = 8787):
    app = create_app()
    uvicorn.run(app, host=host, port=port)
