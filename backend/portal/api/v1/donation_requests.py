"""Donation request screens and mutations.

GET    /donation-requests               public pending list (fetched per call)
GET    /donation-requests/mine          requester's own requests (cached view)
GET    /donation-requests/all           every request, admin/volunteer (cached view)
GET    /donation-requests/{id}          detail + related pending requests
POST   /donation-requests               create (status pending)
PATCH  /donation-requests/{id}          edit form fields
PATCH  /donation-requests/{id}/status   status workflow
POST   /donation-requests/{id}/claim    donor takes a pending request
DELETE /donation-requests/{id}          delete (requires confirm=true)

List screens share one policy: the full collection is filtered and paged
in memory, and any filter change restarts at page 1.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from portal.core.dependencies import (
    get_backend,
    get_session,
    get_workflow,
    require_privileged,
)
from portal.schemas.common import MutationResult
from portal.schemas.donation_request import (
    CreateRequestResponse,
    DonationRequestCreate,
    DonationRequestForm,
    RequestDetail,
    RequestPage,
    StatusFilter,
    StatusUpdateRequest,
)
from portal.services.backend_client import BackendClient
from portal.services.listing import sort_items
from portal.services.request_list import (
    ALL_REQUESTS,
    MY_REQUESTS,
    PUBLIC_REQUESTS,
    SORT_FIELDS,
    FilterCriteria,
    SortField,
    build_page,
    fetch_collection,
    filter_requests,
)
from portal.services.request_workflow import RequestWorkflow, request_detail
from portal.services.session import PortalSession

router = APIRouter()


@router.get("", response_model=RequestPage)
async def list_public_requests(
    blood_group: str | None = Query(None),
    district: str | None = Query(None),
    search: str = Query("", max_length=100),
    sort_by: SortField = Query("donationDate"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
    page: int = Query(1, ge=1),
    backend: BackendClient = Depends(get_backend),
) -> RequestPage:
    items = await fetch_collection(lambda: backend.list_requests(status="pending"), "public")
    stale = items is None
    criteria = FilterCriteria(search=search, blood_group=blood_group, district=district)
    filtered = filter_requests(items or [], criteria, PUBLIC_REQUESTS.search_fields)
    ordered = sort_items(filtered, SORT_FIELDS[sort_by], descending=sort_order == "desc")
    return build_page(ordered, page, PUBLIC_REQUESTS.page_size, counted=items or [], stale=stale)


@router.get("/mine", response_model=RequestPage)
async def list_my_requests(
    status: StatusFilter = Query("all"),
    search: str = Query("", max_length=100),
    page: int = Query(1, ge=1),
    refresh: bool = Query(False),
    session: PortalSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend),
) -> RequestPage:
    view = session.view(MY_REQUESTS)
    await view.load(
        lambda: backend.list_requests(session.token, email=session.email), refresh=refresh
    )
    view.apply(FilterCriteria(status=status, search=search), page)
    return view.snapshot()


@router.get("/all", response_model=RequestPage)
async def list_all_requests(
    status: StatusFilter = Query("all"),
    search: str = Query("", max_length=100),
    page: int = Query(1, ge=1),
    refresh: bool = Query(False),
    session: PortalSession = Depends(require_privileged),
    backend: BackendClient = Depends(get_backend),
) -> RequestPage:
    view = session.view(ALL_REQUESTS)
    await view.load(lambda: backend.list_all_requests(session.token), refresh=refresh)
    view.apply(FilterCriteria(status=status, search=search), page)
    return view.snapshot()


@router.get("/{request_id}", response_model=RequestDetail)
async def get_request_detail(
    request_id: str,
    backend: BackendClient = Depends(get_backend),
) -> RequestDetail:
    record, related = await request_detail(backend, request_id)
    return RequestDetail(request=record, related=related)


@router.post("", response_model=CreateRequestResponse, status_code=201)
async def create_request(
    body: DonationRequestCreate,
    workflow: RequestWorkflow = Depends(get_workflow),
) -> CreateRequestResponse:
    inserted_id = await workflow.create(body)
    return CreateRequestResponse(
        inserted_id=inserted_id,
        message="Your donation request has been successfully submitted.",
    )


@router.patch("/{request_id}", response_model=MutationResult)
async def edit_request(
    request_id: str,
    body: DonationRequestForm,
    workflow: RequestWorkflow = Depends(get_workflow),
) -> MutationResult:
    return await workflow.edit(request_id, body)


@router.patch("/{request_id}/status", response_model=MutationResult)
async def update_request_status(
    request_id: str,
    body: StatusUpdateRequest,
    workflow: RequestWorkflow = Depends(get_workflow),
) -> MutationResult:
    return await workflow.update_status(request_id, body.status)


@router.post("/{request_id}/claim", response_model=MutationResult)
async def claim_request(
    request_id: str,
    workflow: RequestWorkflow = Depends(get_workflow),
) -> MutationResult:
    return await workflow.claim(request_id)


@router.delete("/{request_id}", response_model=MutationResult)
async def delete_request(
    request_id: str,
    confirm: bool = Query(False),
    workflow: RequestWorkflow = Depends(get_workflow),
) -> MutationResult:
    return await workflow.delete(request_id, confirm=confirm)
