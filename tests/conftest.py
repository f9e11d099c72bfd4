"""Shared fixtures: canned Todoist payloads and a recording fake upstream."""

import json

import httpx
import pytest

from todoist_relay.client import TodoistClient
from todoist_relay.config import Settings
from todoist_relay.operations import TodoistOperations

API_KEY = "0123456789abcdef0123456789abcdef01234567"
BASE_URL = "https://api.todoist.test/rest/v2"
BASE_PATH = "/rest/v2"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


def task_payload(**overrides) -> dict:
    task = {
        "id": "2995104339",
        "content": "Buy milk",
        "description": "",
        "is_completed": False,
        "labels": ["errands"],
        "order": 1,
        "priority": 1,
        "project_id": "2203306141",
        "section_id": None,
        "parent_id": None,
        "creator_id": "2671355",
        "created_at": "2019-12-11T22:36:50.000000Z",
        "assignee_id": None,
        "assigner_id": None,
        "comment_count": 0,
        "url": "https://todoist.com/showTask?id=2995104339",
        "due": {
            "date": "2016-09-01",
            "string": "tomorrow",
            "lang": "en",
            "is_recurring": False,
        },
        "duration": None,
        "deadline": None,
    }
    task.update(overrides)
    return task


def project_payload(**overrides) -> dict:
    project = {
        "id": "2203306141",
        "name": "Shopping List",
        "comment_count": 0,
        "order": 1,
        "color": "charcoal",
        "is_shared": False,
        "is_favorite": False,
        "is_inbox_project": False,
        "is_team_inbox": False,
        "view_style": "list",
        "url": "https://todoist.com/showProject?id=2203306141",
        "parent_id": None,
        "description": "",
    }
    project.update(overrides)
    return project


def label_payload(**overrides) -> dict:
    label = {
        "id": "2156154810",
        "name": "errands",
        "color": "charcoal",
        "order": 1,
        "is_favorite": False,
    }
    label.update(overrides)
    return label


# ---------------------------------------------------------------------------
# Fake upstream
# ---------------------------------------------------------------------------


class Upstream:
    """Canned responses keyed by (method, path), with every request recorded.

    A route's response may be JSON data, an httpx.Response, or an exception
    to raise (e.g. httpx.ConnectError).
    """

    def __init__(self):
        self.routes = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, path: str, data=None, status: int = 200):
        if isinstance(data, (httpx.Response, Exception)):
            self.routes[(method, path)] = data
        elif data is None and status == 204:
            self.routes[(method, path)] = httpx.Response(204)
        else:
            self.routes[(method, path)] = httpx.Response(status, json=data)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path[len(BASE_PATH):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, text="Not found")
        if isinstance(route, Exception):
            raise route
        return route

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path[len(BASE_PATH):]) for r in self.calls]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def client(upstream):
    return TodoistClient(API_KEY, base_url=BASE_URL, transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def operations(client):
    return TodoistOperations(client)


@pytest.fixture
def settings():
    return Settings(environment="test", todoist_api_key=API_KEY, base_url=BASE_URL)
