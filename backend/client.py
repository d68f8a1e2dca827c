"""
Async HTTP client for the Personal Assistant REST API.

Thin wrapper over httpx: list/get/create/update/delete per resource plus the
summary, today and search endpoints. A 404 on get/update comes back as None
and on delete as False; every other non-2xx status raises
httpx.HTTPStatusError.

Update methods send exactly the keyword arguments given, so
``update_todo(3, due_date=None)`` clears the due date while
``update_todo(3, title="x")`` leaves it alone.
"""

from typing import Any, Dict, List, Optional

import httpx

DEFAULT_BASE_URL = "http://localhost:3001"


class AssistantClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "AssistantClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        if params:
            params = {key: value for key, value in params.items() if value is not None}
        return await self._client.request(method, path, params=params or None, json=json)

    async def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._request(method, path, **kwargs)
        response.raise_for_status()
        return response.json()

    async def _json_or_none(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._request(method, path, **kwargs)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    async def _delete(self, path: str) -> bool:
        response = await self._request("DELETE", path)
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return bool(response.json().get("success"))

    # Cross-entity

    async def get_summary(self) -> Dict[str, Any]:
        return await self._json("GET", "/api/summary")

    async def get_today(self) -> Dict[str, Any]:
        return await self._json("GET", "/api/today")

    async def search(self, query: str) -> Dict[str, List[Dict[str, Any]]]:
        return await self._json("GET", "/api/search", params={"query": query})

    # Memos

    async def list_memos(
        self, query: Optional[str] = None, tag: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self._json("GET", "/api/memos", params={"query": query, "tag": tag})

    async def get_memo(self, memo_id: int) -> Optional[Dict[str, Any]]:
        return await self._json_or_none("GET", f"/api/memos/{memo_id}")

    async def create_memo(self, **fields: Any) -> Dict[str, Any]:
        return await self._json("POST", "/api/memos", json=fields)

    async def update_memo(self, memo_id: int, **changes: Any) -> Optional[Dict[str, Any]]:
        return await self._json_or_none("PUT", f"/api/memos/{memo_id}", json=changes)

    async def delete_memo(self, memo_id: int) -> bool:
        return await self._delete(f"/api/memos/{memo_id}")

    # Todos

    async def list_todos(
        self,
        completed: Optional[bool] = None,
        priority: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {"completed": completed, "priority": priority, "tag": tag}
        return await self._json("GET", "/api/todos", params=params)

    async def get_todo(self, todo_id: int) -> Optional[Dict[str, Any]]:
        return await self._json_or_none("GET", f"/api/todos/{todo_id}")

    async def create_todo(self, **fields: Any) -> Dict[str, Any]:
        return await self._json("POST", "/api/todos", json=fields)

    async def update_todo(self, todo_id: int, **changes: Any) -> Optional[Dict[str, Any]]:
        return await self._json_or_none("PUT", f"/api/todos/{todo_id}", json=changes)

    async def delete_todo(self, todo_id: int) -> bool:
        return await self._delete(f"/api/todos/{todo_id}")

    # Schedules

    async def list_schedules(
        self,
        date: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params = {"date": date, "from_date": from_date, "to_date": to_date, "tag": tag}
        return await self._json("GET", "/api/schedules", params=params)

    async def get_schedule(self, schedule_id: int) -> Optional[Dict[str, Any]]:
        return await self._json_or_none("GET", f"/api/schedules/{schedule_id}")

    async def create_schedule(self, **fields: Any) -> Dict[str, Any]:
        return await self._json("POST", "/api/schedules", json=fields)

    async def update_schedule(
        self, schedule_id: int, **changes: Any
    ) -> Optional[Dict[str, Any]]:
        return await self._json_or_none(
            "PUT", f"/api/schedules/{schedule_id}", json=changes
        )

    async def delete_schedule(self, schedule_id: int) -> bool:
        return await self._delete(f"/api/schedules/{schedule_id}")

    # Bookmarks

    async def list_bookmarks(
        self, query: Optional[str] = None, tag: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        return await self._json(
            "GET", "/api/bookmarks", params={"query": query, "tag": tag}
        )

    async def get_bookmark(self, bookmark_id: int) -> Optional[Dict[str, Any]]:
        return await self._json_or_none("GET", f"/api/bookmarks/{bookmark_id}")

    async def create_bookmark(self, **fields: Any) -> Dict[str, Any]:
        return await self._json("POST", "/api/bookmarks", json=fields)

    async def update_bookmark(
        self, bookmark_id: int, **changes: Any
    ) -> Optional[Dict[str, Any]]:
        return await self._json_or_none(
            "PUT", f"/api/bookmarks/{bookmark_id}", json=changes
        )

    async def delete_bookmark(self, bookmark_id: int) -> bool:
        return await self._delete(f"/api/bookmarks/{bookmark_id}")
