"""Public blog listing and detail."""

from fastapi import APIRouter, Depends, HTTPException, Query

from portal.core.dependencies import get_backend
from portal.schemas.blog import Blog, BlogPage
from portal.services.backend_client import BackendClient
from portal.services.listing import filter_items, page_of

router = APIRouter()

BLOG_PAGE_SIZE = 8


@router.get("", response_model=BlogPage)
async def list_published_blogs(
    search: str = Query("", max_length=100),
    category: str = Query("all", max_length=100),
    page: int = Query(1, ge=1),
    backend: BackendClient = Depends(get_backend),
) -> BlogPage:
    blogs = [Blog.model_validate(b) for b in await backend.list_published_blogs()]
    filtered = filter_items(
        blogs,
        search=search,
        search_fields=("title", "content"),
        equals={"category": category},
    )
    return BlogPage(**page_of(filtered, page, BLOG_PAGE_SIZE))


@router.get("/{blog_id}", response_model=Blog)
async def get_blog(
    blog_id: str,
    backend: BackendClient = Depends(get_backend),
) -> Blog:
    data = await backend.get_blog(blog_id)
    if not data:
        raise HTTPException(status_code=404, detail="Blog not found")
    return Blog.model_validate(data)
