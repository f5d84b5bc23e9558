"""Blog/content schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from portal.schemas.common import BackendModel, Page

BlogStatus = Literal["draft", "published"]


class Blog(BackendModel):
    id: str = Field(alias="_id")
    title: str = ""
    thumbnail: str | None = None
    content: str | None = None
    category: str | None = None
    status: str = "draft"


class BlogForm(BackendModel):
    title: str = Field(..., min_length=1, max_length=255)
    thumbnail: str | None = Field(None, max_length=2000)
    content: str = Field(..., min_length=1)
    category: str = Field("general", min_length=1, max_length=100)
    status: BlogStatus = "draft"


class BlogPage(Page[Blog]):
    status_counts: dict[str, int] = {}
