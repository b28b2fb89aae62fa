from __future__ import annotations

import logging
from typing import Any, Callable

import requests

from app.exchange.coinstore.endpoints import (
    BALANCES,
    CANCEL_ORDER,
    CURRENT_ORDERS,
    LATEST_TRADES,
    PLACE_ORDER,
    Endpoint,
)
from app.exchange.coinstore.signing import (
    Credentials,
    SignRequest,
    build_query,
    compute_signed_headers,
    current_ms,
    serialize_body,
)

log = logging.getLogger("coinstore.client")


class CoinstoreError(RuntimeError):
    pass


class CoinstoreHTTPError(CoinstoreError):
    def __init__(self, status_code: int, path: str, payload: Any):
        self.status_code = status_code
        self.path = path
        self.payload = payload
        super().__init__(f"Coinstore HTTP {status_code} on {path}: {payload}")


class CoinstoreTransportError(CoinstoreError):
    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Coinstore request failed: {path} ({cause})")


def _response_payload(r: requests.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return r.text


class CoinstoreClient:
    def __init__(
        self,
        credentials: Credentials,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.clock = clock or current_ms

    def close(self) -> None:
        self.session.close()

    # ---------------- SIGNED REQUESTS ----------------

    def _send(self, method: str, path: str, query: str, body: str) -> requests.Response:
        # headers are signed per attempt; each candidate path gets its own expires
        headers = compute_signed_headers(
            self.credentials,
            SignRequest(query_string=query, body=body),
            self.clock(),
        ).as_dict()

        url = f"{self.base_url}{path}{'?' + query if query else ''}"
        try:
            return self.session.request(
                method,
                url,
                data=body.encode("utf-8") if body else None,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise CoinstoreTransportError(path, e) from e

    def _signed_request(
        self,
        endpoint: Endpoint,
        params: dict | None = None,
        body: Any = None,
    ) -> Any:
        # build once: the exact strings signed are the exact strings sent
        query = build_query(params)
        body_text = endpoint.empty_body if body is None else serialize_body(body)

        last_path = endpoint.path
        for i, path in enumerate(endpoint.paths):
            last_path = path
            r = self._send(endpoint.method, path, query, body_text)

            has_next = i + 1 < len(endpoint.paths)
            if r.status_code in endpoint.fallback_statuses and has_next:
                log.warning(
                    "%s: HTTP %s on %s, trying %s",
                    endpoint.name,
                    r.status_code,
                    path,
                    endpoint.paths[i + 1],
                )
                continue

            if r.status_code >= 400:
                raise CoinstoreHTTPError(r.status_code, path, _response_payload(r))

            log.debug("%s: HTTP %s on %s", endpoint.name, r.status_code, path)
            return _response_payload(r) if r.content else None

        # unreachable: the last candidate either returns or raises
        raise CoinstoreError(f"{endpoint.name}: no path answered ({last_path})")

    # ---------------- ACCOUNT ----------------

    def balances(self) -> Any:
        return self._signed_request(BALANCES)

    # ---------------- ORDERS / TRADES ----------------

    def current_orders(self, symbol: str | None = None) -> Any:
        params = {}
        if symbol:
            params["symbol"] = symbol.upper()
        return self._signed_request(CURRENT_ORDERS, params)

    def latest_trades(self, symbol: str | None = None, limit: int | None = None) -> Any:
        params: dict = {}
        if symbol:
            params["symbol"] = symbol.upper()
        if limit is not None:
            params["limit"] = int(limit)
        return self._signed_request(LATEST_TRADES, params)

    def place_order(self, order: dict) -> Any:
        """
        order example:
        {"symbol": "PPOUSDT", "side": "SELL", "ordType": "LIMIT",
         "ordPrice": "0.058", "ordQty": "20", "timeInForce": "GTC",
         "clOrdId": "test-order-123", "timestamp": 1759075345680}
        """
        return self._signed_request(PLACE_ORDER, body=order)

    def cancel_order(self, cancel: dict) -> Any:
        """cancel example: {"symbol": "PPOUSDT", "ordId": 1844524655575492}"""
        return self._signed_request(CANCEL_ORDER, body=cancel)
