from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Endpoint:
    """
    One signed REST call.

    paths: candidates tried in order; the next one is used only when the
           previous answered with a status in fallback_statuses.
    empty_body: body text signed (and sent) when the caller has no body.
           Some Coinstore endpoints expect "{}" here, others "".
    """

    name: str
    method: str
    paths: tuple[str, ...]
    empty_body: str = ""
    fallback_statuses: frozenset[int] = frozenset({404})

    @property
    def path(self) -> str:
        return self.paths[0]


BALANCES = Endpoint(
    name="balances",
    method="POST",
    paths=("/spot/accountList",),
    empty_body="{}",
)

CURRENT_ORDERS = Endpoint(
    name="current_orders",
    method="GET",
    paths=(
        "/v2/trade/order/active",
        "/trade/order/current/v2",
        "/trade/order/current",
    ),
)

LATEST_TRADES = Endpoint(
    name="latest_trades",
    method="GET",
    paths=("/trade/match/accountMatches",),
)

PLACE_ORDER = Endpoint(
    name="place_order",
    method="POST",
    paths=("/trade/order/place",),
    empty_body="{}",
)

CANCEL_ORDER = Endpoint(
    name="cancel_order",
    method="POST",
    paths=("/trade/order/cancel",),
    empty_body="{}",
)

ALL_ENDPOINTS = (BALANCES, CURRENT_ORDERS, LATEST_TRADES, PLACE_ORDER, CANCEL_ORDER)
