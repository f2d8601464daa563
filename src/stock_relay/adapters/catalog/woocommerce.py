from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from stock_relay.engine.canonical.models import CatalogRecord
from stock_relay.util.errors import CatalogError, CatalogRequestError, CatalogUnavailableError
from stock_relay.util.logging import get_logger, log_event

API_PATH = "/wp-json/wc/v3"
AUTH_STATUSES = {401, 403}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


def _json_body(response: httpx.Response, *, action: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise CatalogRequestError(
            f"Failed to {action}: store returned a non-JSON response",
            status_code=response.status_code,
        ) from exc


def _record(payload: Any, *, action: str, parent_id: Optional[int] = None) -> CatalogRecord:
    try:
        return CatalogRecord.from_woocommerce(payload, parent_id=parent_id)
    except (KeyError, TypeError, ValidationError) as exc:
        raise CatalogRequestError(f"Failed to {action}: unexpected record in store response") from exc


class WooCommerceGateway:
    def __init__(
        self,
        *,
        store_url: str,
        consumer_key: str,
        consumer_secret: str,
        timeout_seconds: float = 30.0,
        per_page: int = 100,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = f"{store_url.rstrip('/')}{API_PATH}"
        self.per_page = per_page
        self.client = httpx.Client(
            base_url=self.base_url,
            auth=(consumer_key, consumer_secret),
            headers={"Content-Type": "application/json"},
            timeout=timeout_seconds,
            transport=transport,
        )
        self.logger = get_logger(self.__class__.__name__)

    def __enter__(self) -> "WooCommerceGateway":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, *, action: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            log_event(self.logger, "catalog_transport_error", method=method, path=path, error=str(exc))
            raise CatalogUnavailableError(f"Failed to {action}: {exc}") from exc
        if response.status_code in AUTH_STATUSES:
            raise CatalogUnavailableError(
                f"Failed to {action}: {_error_message(response)}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise CatalogRequestError(
                f"Failed to {action}: {response.status_code} {_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    def _list(self, path: str, *, action: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = self._request(
                "GET",
                path,
                action=action,
                params={"per_page": self.per_page, "page": page},
            )
            batch = _json_body(response, action=action)
            if not isinstance(batch, list):
                raise CatalogRequestError(
                    f"Failed to {action}: store returned a non-list response",
                    status_code=response.status_code,
                )
            if not batch:
                break
            items.extend(batch)
            total_pages = int(response.headers.get("X-WP-TotalPages", "1"))
            if page >= total_pages:
                break
            page += 1
        return items

    def list_products(self) -> List[CatalogRecord]:
        items = self._list("/products", action="fetch products")
        return [_record(item, action="fetch products") for item in items]

    def list_variations(self, product_id: int) -> List[CatalogRecord]:
        items = self._list(f"/products/{product_id}/variations", action="fetch variations")
        return [_record(item, action="fetch variations", parent_id=product_id) for item in items]

    def update_product_stock(self, product_id: int, quantity: int) -> CatalogRecord:
        action = "update product stock"
        response = self._request(
            "PUT",
            f"/products/{product_id}",
            action=action,
            json={"stock_quantity": quantity, "manage_stock": True},
        )
        return _record(_json_body(response, action=action), action=action)

    def update_variation_stock(self, product_id: int, variation_id: int, quantity: int) -> CatalogRecord:
        action = "update variation stock"
        response = self._request(
            "PUT",
            f"/products/{product_id}/variations/{variation_id}",
            action=action,
            json={"stock_quantity": quantity, "manage_stock": True},
        )
        return _record(_json_body(response, action=action), action=action, parent_id=product_id)

    def test_connection(self) -> bool:
        try:
            self._request("GET", "/system_status", action="reach store")
        except CatalogError as exc:
            log_event(self.logger, "catalog_connection_failed", error=str(exc))
            return False
        return True
