from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

import main
from db import database as database_module
from db import get_database
from conftest import sqlite_url


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", sqlite_url(tmp_path / "api.db"))
    monkeypatch.setattr(database_module, "_database", None)
    with TestClient(main.app) as test_client:
        yield test_client


class _BrokenStore:
    async def list(self, **_filters):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    async def get_by_id(self, _record_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))


class _BrokenDatabase:
    memos = _BrokenStore()
    todos = _BrokenStore()
    schedules = _BrokenStore()
    bookmarks = _BrokenStore()

    async def ping(self):
        raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))


def test_memo_crud_round_trip(client: TestClient) -> None:
    created = client.post(
        "/api/memos", json={"title": "Ideas", "content": "write more tests", "tags": ["work"]}
    )
    assert created.status_code == 201
    memo = created.json()
    assert memo["title"] == "Ideas"
    assert memo["tags"] == ["work"]

    fetched = client.get(f"/api/memos/{memo['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == memo

    updated = client.put(f"/api/memos/{memo['id']}", json={"content": "done"})
    assert updated.status_code == 200
    assert updated.json()["title"] == "Ideas"
    assert updated.json()["content"] == "done"

    deleted = client.delete(f"/api/memos/{memo['id']}")
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True}

    assert client.get(f"/api/memos/{memo['id']}").status_code == 404
    assert client.delete(f"/api/memos/{memo['id']}").status_code == 404


@pytest.mark.parametrize("resource", ["memos", "todos", "schedules", "bookmarks"])
def test_missing_id_is_404(client: TestClient, resource: str) -> None:
    assert client.get(f"/api/{resource}/999").status_code == 404
    response = client.put(f"/api/{resource}/999", json={"title": "x"})
    assert response.status_code == 404
    assert response.json()["detail"].endswith("999 not found")
    assert client.delete(f"/api/{resource}/999").status_code == 404


def test_missing_required_field_is_422(client: TestClient) -> None:
    assert client.post("/api/memos", json={"content": "no title"}).status_code == 422
    assert client.post("/api/schedules", json={"title": "no start"}).status_code == 422
    assert client.post("/api/todos", json={"title": "x", "priority": "asap"}).status_code == 422
    assert client.get("/api/memos").json() == []


def test_domain_validation_errors_are_400(client: TestClient) -> None:
    bad_url = client.post("/api/bookmarks", json={"url": "ftp://x", "title": "x"})
    bad_date = client.post("/api/todos", json={"title": "x", "due_date": "next week"})
    bad_filter = client.get("/api/schedules", params={"from_date": "yesterday"})

    assert bad_url.status_code == 400
    assert "http(s) URL" in bad_url.json()["error"]
    assert bad_date.status_code == 400
    assert bad_filter.status_code == 400


def test_todo_update_null_clears_due_date_but_omission_keeps_it(client: TestClient) -> None:
    todo = client.post("/api/todos", json={"title": "Taxes", "due_date": "2024-04-15"}).json()

    kept = client.put(f"/api/todos/{todo['id']}", json={"completed": True}).json()
    assert kept["due_date"] == "2024-04-15"
    assert kept["completed"] is True

    cleared = client.put(f"/api/todos/{todo['id']}", json={"due_date": None}).json()
    assert cleared["due_date"] is None


def test_todo_list_filters_and_order(client: TestClient) -> None:
    client.post("/api/todos", json={"title": "medium", "due_date": "2024-01-05"})
    client.post("/api/todos", json={"title": "high undated", "priority": "high"})
    client.post(
        "/api/todos", json={"title": "high dated", "priority": "high", "due_date": "2024-01-01"}
    )

    titles = [todo["title"] for todo in client.get("/api/todos").json()]
    high = client.get("/api/todos", params={"priority": "high"}).json()
    open_todos = client.get("/api/todos", params={"completed": "false"}).json()

    assert titles == ["high dated", "high undated", "medium"]
    assert {todo["title"] for todo in high} == {"high dated", "high undated"}
    assert len(open_todos) == 3


def test_schedule_filters(client: TestClient) -> None:
    client.post("/api/schedules", json={"title": "Jan", "start_time": "2024-01-15 10:00"})
    client.post("/api/schedules", json={"title": "Feb", "start_time": "2024-02-01 10:00"})

    in_january = client.get(
        "/api/schedules", params={"from_date": "2024-01-01", "to_date": "2024-01-31"}
    ).json()
    on_day = client.get("/api/schedules", params={"date": "2024-02-01"}).json()

    assert [item["title"] for item in in_january] == ["Jan"]
    assert [item["title"] for item in on_day] == ["Feb"]


def test_bookmark_tag_and_query_filters(client: TestClient) -> None:
    client.post(
        "/api/bookmarks",
        json={"url": "https://example.com", "title": "Example", "tags": ["work", "urgent"]},
    )

    assert len(client.get("/api/bookmarks", params={"tag": "work"}).json()) == 1
    assert client.get("/api/bookmarks", params={"tag": "personal"}).json() == []
    assert len(client.get("/api/bookmarks", params={"query": "EXAMPLE"}).json()) == 1


def test_today_routes_are_not_shadowed_by_id_routes(client: TestClient) -> None:
    today = date.today()
    client.post("/api/todos", json={"title": "today", "due_date": today.isoformat()})
    client.post(
        "/api/todos",
        json={"title": "tomorrow", "due_date": (today + timedelta(days=1)).isoformat()},
    )
    client.post("/api/schedules", json={"title": "now", "start_time": f"{today} 12:00"})

    todos = client.get("/api/todos/today")
    schedules_today = client.get("/api/schedules/today")
    schedules_week = client.get("/api/schedules/week")

    assert todos.status_code == 200
    assert [todo["title"] for todo in todos.json()] == ["today"]
    assert [item["title"] for item in schedules_today.json()] == ["now"]
    assert [item["title"] for item in schedules_week.json()] == ["now"]


def test_today_summary_and_overview(client: TestClient) -> None:
    today = date.today().isoformat()
    client.post("/api/todos", json={"title": "due", "due_date": today})
    client.post("/api/memos", json={"title": "m", "content": "c"})
    client.post("/api/bookmarks", json={"url": "https://a.example", "title": "a"})

    summary = client.get("/api/today").json()
    stats = client.get("/api/summary").json()

    assert summary["date"] == today
    assert [todo["title"] for todo in summary["dueTodos"]] == ["due"]
    assert summary["incompleteTodoCount"] == 1
    assert summary["bookmarkCount"] == 1
    assert len(summary["recentMemos"]) == 1
    assert stats["memos"]["total"] == 1
    assert stats["todos"] == {"incomplete": 1, "completed": 0, "dueToday": 1}
    assert stats["bookmarks"]["total"] == 1


def test_search_endpoint(client: TestClient) -> None:
    client.post("/api/memos", json={"title": "Garden", "content": "plant tomatoes"})
    client.post("/api/todos", json={"title": "Buy TOMATO seeds"})

    results = client.get("/api/search", params={"query": "tomato"}).json()

    assert [memo["title"] for memo in results["memos"]] == ["Garden"]
    assert [todo["title"] for todo in results["todos"]] == ["Buy TOMATO seeds"]
    assert results["schedules"] == []
    assert results["bookmarks"] == []
    assert client.get("/api/search").status_code == 422


def test_health_reports_database_ok(client: TestClient) -> None:
    payload = client.get("/health").json()

    assert payload["status"] == "ok"
    assert payload["database"] == "ok"


def test_storage_failure_is_500_with_error_body() -> None:
    main.app.dependency_overrides[get_database] = lambda: _BrokenDatabase()
    try:
        client = TestClient(main.app)
        listed = client.get("/api/memos")
        fetched = client.get("/api/todos/1")
        health = client.get("/health").json()
    finally:
        main.app.dependency_overrides.clear()

    assert listed.status_code == 500
    assert "database is locked" in listed.json()["error"]
    assert fetched.status_code == 500
    assert health["status"] == "degraded"
