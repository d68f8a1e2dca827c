"""
Request bodies for the REST API.

Create models declare required fields so FastAPI rejects incomplete bodies
with 422. Update models are all-optional; routers pass
``model_dump(exclude_unset=True)`` to the stores so a field left out of the
JSON body stays untouched while an explicit ``null`` clears ``due_date`` and
``end_time``.
"""

from typing import Literal

from pydantic import BaseModel, Field

Priority = Literal["low", "medium", "high"]


class MemoCreate(BaseModel):
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)


class MemoUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None


class TodoCreate(BaseModel):
    title: str
    description: str = ""
    priority: Priority = "medium"
    due_date: str | None = Field(default=None, description="YYYY-MM-DD")
    tags: list[str] = Field(default_factory=list)


class TodoUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    completed: bool | None = None
    priority: Priority | None = None
    due_date: str | None = Field(default=None, description="YYYY-MM-DD, null clears")
    tags: list[str] | None = None


class ScheduleCreate(BaseModel):
    title: str
    start_time: str = Field(description="YYYY-MM-DD HH:MM")
    description: str = ""
    end_time: str | None = Field(default=None, description="YYYY-MM-DD HH:MM")
    location: str = ""
    tags: list[str] = Field(default_factory=list)


class ScheduleUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    start_time: str | None = None
    end_time: str | None = Field(default=None, description="null clears")
    location: str | None = None
    tags: list[str] | None = None


class BookmarkCreate(BaseModel):
    url: str
    title: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)


class BookmarkUpdate(BaseModel):
    url: str | None = None
    title: str | None = None
    description: str | None = None
    tags: list[str] | None = None
