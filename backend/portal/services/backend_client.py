"""HTTP client for the Blood Bond backend REST API.

One shared ``httpx.AsyncClient`` per process; the caller's bearer token is
passed per call so the client itself holds no session state.
"""

import logging
from typing import Any

import httpx

from portal.core.config import settings
from portal.core.exceptions import BackendError, BackendUnavailable
from portal.core.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


def _error_detail(resp: httpx.Response) -> Any:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict) and "message" in body:
        return body["message"]
    return body


class BackendClient:
    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    @classmethod
    def from_settings(cls) -> "BackendClient":
        return cls(
            httpx.AsyncClient(
                base_url=settings.BACKEND_API_URL,
                timeout=settings.BACKEND_TIMEOUT,
            )
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict | None = None,
        json: Any = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        request_id = request_id_var.get()
        if request_id:
            headers["X-Request-Id"] = request_id
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}
        try:
            resp = await self._http.request(
                method, path, headers=headers, params=params or None, json=json
            )
        except httpx.HTTPError as exc:
            raise BackendUnavailable(f"{method} {path}: {exc!r}") from exc

        if resp.is_error:
            logger.debug("%s %s -> %s", method, path, resp.status_code)
            raise BackendError(resp.status_code, _error_detail(resp))
        if not resp.content:
            return None
        return resp.json()

    async def ping(self) -> bool:
        try:
            resp = await self._http.get("/")
        except httpx.HTTPError:
            return False
        return resp.status_code < 500

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def issue_token(self, email: str) -> str:
        data = await self._request("POST", "/jwt", json={"email": email})
        token = (data or {}).get("token")
        if not token:
            raise BackendError(502, "Backend did not issue a token")
        return token

    async def get_user_role(self, token: str, email: str) -> dict:
        return await self._request("GET", f"/users/role/{email}", token=token) or {}

    # ------------------------------------------------------------------
    # Donation requests
    # ------------------------------------------------------------------

    async def list_requests(
        self,
        token: str | None = None,
        *,
        email: str | None = None,
        status: str | None = None,
    ) -> list[dict]:
        return await self._request(
            "GET",
            "/donation-requests",
            token=token,
            params={"email": email, "status": status},
        ) or []

    async def list_all_requests(self, token: str) -> list[dict]:
        return await self._request("GET", "/donation-requests/all", token=token) or []

    async def get_request(self, request_id: str, token: str | None = None) -> dict:
        return await self._request("GET", f"/donation-requests/{request_id}", token=token)

    async def create_request(self, token: str, payload: dict) -> dict:
        return await self._request("POST", "/donation-requests", token=token, json=payload)

    async def update_request(self, token: str | None, request_id: str, changes: dict) -> dict:
        return await self._request(
            "PATCH", f"/donation-requests/{request_id}", token=token, json=changes
        )

    async def delete_request(self, token: str, request_id: str) -> dict:
        return await self._request("DELETE", f"/donation-requests/{request_id}", token=token)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def list_users(self, token: str) -> list[dict]:
        return await self._request("GET", "/users", token=token) or []

    async def get_user(self, token: str, email: str) -> dict:
        return await self._request("GET", f"/users/{email}", token=token)

    async def create_user(self, token: str | None, payload: dict) -> dict:
        return await self._request("POST", "/users", token=token, json=payload)

    async def update_user(self, token: str, user_id: str, changes: dict) -> dict:
        return await self._request("PATCH", f"/users/{user_id}", token=token, json=changes)

    async def make_admin(self, token: str, user_id: str) -> dict:
        return await self._request("PATCH", f"/users/admin/{user_id}", token=token)

    async def make_volunteer(self, token: str, user_id: str) -> dict:
        return await self._request("PATCH", f"/users/volunteer/{user_id}", token=token)

    async def set_user_status(self, token: str, user_id: str, status: str) -> dict:
        return await self._request(
            "PATCH", f"/users/status/{user_id}", token=token, json={"status": status}
        )

    async def search_donors(
        self,
        *,
        blood_group: str | None = None,
        division: str | None = None,
        district: str | None = None,
        upazila: str | None = None,
    ) -> list[dict]:
        return await self._request(
            "GET",
            "/search-donors",
            params={
                "bloodGroup": blood_group,
                "division": division,
                "district": district,
                "upazila": upazila,
            },
        ) or []

    # ------------------------------------------------------------------
    # Blogs
    # ------------------------------------------------------------------

    async def list_published_blogs(self) -> list[dict]:
        return await self._request("GET", "/blogs/published") or []

    async def list_blogs(self, token: str) -> list[dict]:
        return await self._request("GET", "/blogs", token=token) or []

    async def get_blog(self, blog_id: str) -> dict:
        return await self._request("GET", f"/blogs/{blog_id}")

    async def create_blog(self, token: str, payload: dict) -> dict:
        return await self._request("POST", "/blogs", token=token, json=payload)

    async def replace_blog(self, token: str, blog_id: str, payload: dict) -> dict:
        return await self._request("PUT", f"/blogs/{blog_id}", token=token, json=payload)

    async def set_blog_status(self, token: str, blog_id: str, status: str) -> dict:
        return await self._request(
            "PATCH", f"/blogs/{blog_id}/status", token=token, json={"status": status}
        )

    async def delete_blog(self, token: str, blog_id: str) -> dict:
        return await self._request("DELETE", f"/blogs/{blog_id}", token=token)

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    async def list_funding(self, token: str) -> list[dict]:
        return await self._request("GET", "/funding", token=token) or []

    async def create_payment_intent(self, token: str, price: float) -> dict:
        return await self._request(
            "POST", "/create-payment-intent", token=token, json={"price": price}
        )

    async def record_funding(self, token: str, payload: dict) -> dict:
        return await self._request("POST", "/funding", token=token, json=payload)
