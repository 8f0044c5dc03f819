# Overview: httpx adapter over the wholesale /api surface with typed errors.

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .session_context import ClientSessionContext

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Non-2xx answer (or transport failure) from the wholesale API.

    status is 0 when no response arrived; kind/retryable mirror the
    server's error body so callers can branch without parsing messages.
    """

    def __init__(
        self,
        status: int,
        kind: str,
        message: str,
        retryable: bool = False,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.status = status
        self.kind = kind
        self.message = message
        self.retryable = retryable
        self.details = details or {}

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, kind={self.kind!r}, message={self.message!r})"


class WholesaleClient:
    """
    HTTP client wrapper with authentication and convenience methods.

    The bearer token lives in the ClientSessionContext; login() and
    logout() keep it (and the saved file) in sync.
    """

    def __init__(
        self,
        base_url: str,
        context: Optional[ClientSessionContext] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.context = context or ClientSessionContext()
        self.client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "WholesaleClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.context.token:
            headers["Authorization"] = f"Bearer {self.context.token}"
        return headers

    def request(self, method: str, path: str, *, json: Any = None, params: Optional[Dict] = None) -> Any:
        try:
            response = self.client.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(),
                json=json,
                params=params,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(0, "dependency", f"Request failed: {exc}", retryable=True) from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            if not isinstance(body, dict):
                body = {}
            raise ApiError(
                response.status_code,
                body.get("kind") or "http",
                body.get("error") or response.reason_phrase,
                retryable=bool(body.get("retryable", response.status_code >= 500)),
                details=body.get("details"),
            )
        return body

    # -- auth ----------------------------------------------------------------

    def login(self, email: str, password: str) -> dict:
        """Authenticate and remember the token in the session context."""
        data = self.request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.context.set_login(data["token"], data.get("user") or {})
        self.context.save()
        return data

    def logout(self) -> None:
        """Delete the server session; local state is cleared even if that fails."""
        if not self.context.token:
            return
        try:
            self.request("POST", "/api/auth/logout")
        finally:
            self.context.clear_login()
            self.context.save()

    def me(self) -> dict:
        return self.request("GET", "/api/auth/me")["user"]

    # -- membership ----------------------------------------------------------

    def apply(self, application: dict) -> dict:
        return self.request("POST", "/api/members/apply", json=application)

    def list_members(self, status: Optional[str] = None, search: Optional[str] = None) -> List[dict]:
        params = {k: v for k, v in (("status", status), ("search", search)) if v}
        return self.request("GET", "/api/members", params=params)

    def get_member(self, member_id: int) -> dict:
        return self.request("GET", f"/api/members/{member_id}")

    def update_member_status(self, member_id: int, status: str, reason: Optional[str] = None) -> dict:
        payload = {"status": status}
        if reason is not None:
            payload["reason"] = reason
        return self.request("PATCH", f"/api/members/{member_id}/status", json=payload)["member"]

    def delete_member(self, member_id: int) -> None:
        self.request("DELETE", f"/api/members/{member_id}")

    # -- invites -------------------------------------------------------------

    def validate_invite(self, code: str) -> dict:
        return self.request("GET", f"/api/invites/validate/{code}")

    def generate_invites(self, quantity: int = 1) -> List[str]:
        return self.request("POST", "/api/invites/generate", json={"quantity": quantity})["codes"]

    def generate_member_invite(self) -> str:
        return self.request("POST", "/api/invites/member-generate")["code"]

    def list_invites(self) -> List[dict]:
        return self.request("GET", "/api/invites")

    # -- catalog -------------------------------------------------------------

    def list_products(self) -> List[dict]:
        return self.request("GET", "/api/products")

    def list_public_products(self) -> List[dict]:
        return self.request("GET", "/api/products/public")

    def get_product(self, product_id: int) -> dict:
        return self.request("GET", f"/api/products/{product_id}")

    def create_product(self, fields: dict) -> dict:
        return self.request("POST", "/api/products", json=fields)

    def update_product(self, product_id: int, fields: dict) -> dict:
        return self.request("PUT", f"/api/products/{product_id}", json=fields)

    def delete_product(self, product_id: int) -> dict:
        return self.request("DELETE", f"/api/products/{product_id}")["product"]

    # -- orders --------------------------------------------------------------

    def place_order(
        self,
        items: List[dict],
        *,
        payment_method: Optional[str] = None,
        ship_state: Optional[str] = None,
        notes: Optional[str] = None,
        member_id: Optional[int] = None,
    ) -> dict:
        payload: Dict[str, Any] = {"items": items}
        for key, value in (
            ("payment_method", payment_method),
            ("ship_state", ship_state),
            ("notes", notes),
            ("member_id", member_id),
        ):
            if value is not None:
                payload[key] = value
        return self.request("POST", "/api/orders", json=payload)["order"]

    def list_orders(self, status: Optional[str] = None, search: Optional[str] = None) -> List[dict]:
        params = {k: v for k, v in (("status", status), ("search", search)) if v}
        return self.request("GET", "/api/orders", params=params)

    def get_order(self, order_id: int) -> dict:
        return self.request("GET", f"/api/orders/{order_id}")

    def update_order_status(self, order_id: int, status: str) -> dict:
        return self.request("PATCH", f"/api/orders/{order_id}/status", json={"status": status})["order"]

    def cancel_order(self, order_id: int) -> dict:
        return self.request("PATCH", f"/api/orders/{order_id}/cancel")["order"]

    # -- reference -----------------------------------------------------------

    def restricted_states(self) -> List[dict]:
        return self.request("GET", "/api/restricted-states")

    def health(self) -> dict:
        """Health body; a 503 still returns the body with status "degraded"."""
        try:
            return self.request("GET", "/api/health")
        except ApiError as exc:
            if exc.status == 503:
                return {"status": "degraded"}
            raise
