"""Content management for blogs (admin/volunteer).

GET    /content/blogs              all blogs + draft/published counts
POST   /content/blogs              create
PUT    /content/blogs/{id}         replace
PATCH  /content/blogs/{id}/status  toggle draft <-> published (admin only)
DELETE /content/blogs/{id}         delete (requires confirm=true)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from portal.core.dependencies import get_backend, get_guard, require_privileged
from portal.core.exceptions import ProblemDetailError
from portal.schemas.blog import Blog, BlogForm, BlogPage
from portal.schemas.common import MutationResult
from portal.services.backend_client import BackendClient
from portal.services.inflight import InFlightGuard, hold
from portal.services.listing import count_by, filter_items, page_of
from portal.services.session import PortalSession

logger = logging.getLogger(__name__)

router = APIRouter()

CONTENT_PAGE_SIZE = 10
BLOG_STATUSES = ("draft", "published")


def _require_publisher(session: PortalSession, status: str) -> None:
    if status == "published" and not session.is_admin:
        raise HTTPException(status_code=403, detail="Only admins can publish blogs")


@router.get("/blogs", response_model=BlogPage)
async def list_blogs(
    status: str = Query("all", pattern="^(all|draft|published)$"),
    search: str = Query("", max_length=100),
    page: int = Query(1, ge=1),
    session: PortalSession = Depends(require_privileged),
    backend: BackendClient = Depends(get_backend),
) -> BlogPage:
    blogs = [Blog.model_validate(b) for b in await backend.list_blogs(session.token)]
    filtered = filter_items(blogs, status=status, search=search, search_fields=("title",))
    return BlogPage(
        **page_of(filtered, page, CONTENT_PAGE_SIZE),
        status_counts=count_by(blogs, "status", BLOG_STATUSES),
    )


@router.post("/blogs", status_code=201)
async def create_blog(
    body: BlogForm,
    session: PortalSession = Depends(require_privileged),
    backend: BackendClient = Depends(get_backend),
) -> dict:
    _require_publisher(session, body.status)
    data = await backend.create_blog(session.token, body.model_dump(by_alias=True))
    inserted_id = (data or {}).get("insertedId")
    logger.info("Blog %s created by %s", inserted_id, session.email)
    return {"inserted_id": inserted_id, "message": "Created!"}


@router.put("/blogs/{blog_id}", response_model=MutationResult)
async def replace_blog(
    blog_id: str,
    body: BlogForm,
    session: PortalSession = Depends(require_privileged),
    backend: BackendClient = Depends(get_backend),
    guard: InFlightGuard = Depends(get_guard),
) -> MutationResult:
    _require_publisher(session, body.status)
    async with hold(guard, f"blog:{blog_id}"):
        data = await backend.replace_blog(session.token, blog_id, body.model_dump(by_alias=True))
    if not (data or {}).get("modifiedCount"):
        return MutationResult(modified=False)
    return MutationResult(modified=True, message="Updated!")


@router.patch("/blogs/{blog_id}/status", response_model=MutationResult)
async def toggle_blog_status(
    blog_id: str,
    session: PortalSession = Depends(require_privileged),
    backend: BackendClient = Depends(get_backend),
    guard: InFlightGuard = Depends(get_guard),
) -> MutationResult:
    async with hold(guard, f"blog:{blog_id}"):
        current = await backend.get_blog(blog_id)
        if not current:
            raise HTTPException(status_code=404, detail="Blog not found")
        blog = Blog.model_validate(current)
        new_status = "published" if blog.status == "draft" else "draft"
        _require_publisher(session, new_status)
        data = await backend.set_blog_status(session.token, blog_id, new_status)
    if not (data or {}).get("modifiedCount"):
        return MutationResult(modified=False)
    return MutationResult(modified=True, message=f"Blog {new_status}")


@router.delete("/blogs/{blog_id}", response_model=MutationResult)
async def delete_blog(
    blog_id: str,
    confirm: bool = Query(False),
    session: PortalSession = Depends(require_privileged),
    backend: BackendClient = Depends(get_backend),
    guard: InFlightGuard = Depends(get_guard),
) -> MutationResult:
    if not confirm:
        raise ProblemDetailError(
            status=428,
            title="Confirmation Required",
            detail="Deleting a blog cannot be undone; resend with confirm=true",
        )
    async with hold(guard, f"blog:{blog_id}"):
        data = await backend.delete_blog(session.token, blog_id)
    if not (data or {}).get("deletedCount"):
        return MutationResult(modified=False)
    logger.info("Blog %s deleted by %s", blog_id, session.email)
    return MutationResult(modified=True, message="Deleted!")
