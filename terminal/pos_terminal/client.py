"""
HTTP client for the TokoPOS backend.

Every call is bounded by the configured timeout; a timeout raises
RequestTimeout and any non-success response raises ApiError, so callers
only ever see data from successful responses.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import ApiError, RequestTimeout

logger = logging.getLogger(__name__)

CATALOGUE_PAGE_SIZE = 5000


class PosApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.current_user: Optional[Dict] = None
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> "PosApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def _headers(self) -> Dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TimeoutException:
            logger.warning("%s %s timed out", method, path)
            raise RequestTimeout()
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"Cannot reach server: {exc}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if not response.is_success or body.get("success") is False:
            raise ApiError(
                body.get("message") or f"HTTP {response.status_code}",
                status_code=response.status_code,
                error=body.get("error"),
                details=body.get("details"),
            )
        return body

    def _params(self, **params) -> Dict[str, Any]:
        return {k: v for k, v in params.items() if v is not None and v != ""}

    # -- auth ---------------------------------------------------------------

    def login(self, email: str, password: str) -> Dict:
        """Authenticate and keep the token for later calls. Returns the user."""
        body = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        data = body.get("data") or {}
        self.token = data.get("token")
        self.current_user = data.get("user")
        return self.current_user

    def logout(self) -> None:
        if not self.token:
            return
        try:
            self._request("POST", "/api/auth/logout")
        finally:
            self.token = None
            self.current_user = None

    def health(self) -> Dict:
        return self._request("GET", "/health")

    # -- catalogue and settings ---------------------------------------------

    def get_products(self, search: str | None = None, category: str | None = None, page: int = 1, limit: int = 20) -> Dict:
        body = self._request(
            "GET", "/api/pos/products",
            params=self._params(search=search, category=category, page=page, limit=limit),
        )
        return body.get("data") or {}

    def get_all_products(self) -> list[Dict]:
        """The whole in-stock catalogue, for local lookup by SKU."""
        return self.get_products(limit=CATALOGUE_PAGE_SIZE).get("products", [])

    def get_settings(self, category: str | None = "pos") -> Dict:
        body = self._request("GET", "/api/settings", params=self._params(category=category))
        return body.get("data") or {}

    # -- sales --------------------------------------------------------------

    def create_sale(self, sale: Dict) -> Dict:
        return self._request("POST", "/api/pos/sales", json=sale)

    def get_sales(self, **filters) -> Dict:
        """Filters: page, limit, startDate, endDate, status, search, cashier."""
        body = self._request("GET", "/api/pos/sales", params=self._params(**filters))
        return body.get("data") or {}

    def get_sale(self, sale_id: int) -> Dict:
        return self._request("GET", f"/api/pos/sales/{sale_id}").get("data") or {}

    def cancel_sale(self, sale_id: int, reason: str | None = None) -> Dict:
        body = self._request("PUT", f"/api/pos/sales/{sale_id}/cancel", json={"reason": reason})
        return body.get("data") or {}

    def get_sales_summary(self, period: str = "today") -> Dict:
        body = self._request("GET", "/api/pos/sales/summary", params={"period": period})
        return body.get("data") or {}
