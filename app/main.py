from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import Settings, settings
from app.core.logs import configure_logging
from app.exchange.coinstore.client import (
    CoinstoreClient,
    CoinstoreError,
    CoinstoreHTTPError,
)
from app.exchange.coinstore.signing import ConfigurationError

VERSION = "1.0.0"

configure_logging(settings.LOG_LEVEL)
log = logging.getLogger("coinstore.api")

app = FastAPI(title="Coinstore API Proxy", version=VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_settings() -> Settings:
    return settings


def get_client(cfg: Settings = Depends(get_settings)) -> Iterator[CoinstoreClient]:
    client = CoinstoreClient(
        credentials=cfg.credentials(),
        base_url=cfg.CS_BASE_URL,
        timeout=cfg.CS_TIMEOUT_SECONDS,
    )
    try:
        yield client
    finally:
        client.close()


def _relay(label: str, call: Callable[[], Any]) -> Any:
    """
    Run one exchange call. Known failures become a 500 with the remote payload
    (or the error message) under "message".
    """
    try:
        return call()
    except CoinstoreHTTPError as e:
        log.error("%s: HTTP %s on %s: %s", label, e.status_code, e.path, e.payload)
        return JSONResponse(
            status_code=500,
            content={"error": label, "message": e.payload},
        )
    except (CoinstoreError, ConfigurationError) as e:
        log.error("%s: %s", label, e)
        return JSONResponse(
            status_code=500,
            content={"error": label, "message": str(e)},
        )


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc)},
    )


@app.on_event("startup")
async def _startup_validate_config():
    """Fail-fast config validation at startup."""
    warnings = settings.validate_runtime()
    for w in warnings:
        log.warning("[CONFIG WARNING] %s", w)
    log.info("Coinstore proxy ready base_url=%s", settings.CS_BASE_URL)


@app.get("/")
def root(cfg: Settings = Depends(get_settings)):
    return {
        "message": "Coinstore API Proxy",
        "version": VERSION,
        "api_key_loaded": bool(cfg.CS_API_KEY),
        "api_secret_loaded": bool(cfg.CS_API_SECRET),
        "endpoints": [
            "GET /api/balances",
            "GET /api/orders?symbol=...",
            "GET /api/trades?symbol=...&limit=...",
            "POST /api/order/place",
            "POST /api/order/cancel",
            "GET /health",
        ],
    }


@app.get("/health")
def health():
    return {"status": "OK", "timestamp": _utc_now_iso()}


@app.get("/api/balances")
def api_balances(client: CoinstoreClient = Depends(get_client)):
    return _relay("Failed to fetch balances", client.balances)


@app.get("/api/orders")
def api_orders(
    symbol: Optional[str] = None,
    client: CoinstoreClient = Depends(get_client),
    cfg: Settings = Depends(get_settings),
):
    sym = symbol or cfg.CS_SYMBOL or None
    return _relay("Failed to fetch orders", lambda: client.current_orders(sym))


@app.get("/api/trades")
def api_trades(
    symbol: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    client: CoinstoreClient = Depends(get_client),
):
    return _relay(
        "Failed to fetch trades",
        lambda: client.latest_trades(symbol=symbol, limit=limit),
    )


@app.post("/api/order/place")
def api_order_place(
    order: Dict[str, Any] = Body(...),
    client: CoinstoreClient = Depends(get_client),
):
    return _relay("Failed to place order", lambda: client.place_order(order))


@app.post("/api/order/cancel")
def api_order_cancel(
    cancel: Dict[str, Any] = Body(...),
    client: CoinstoreClient = Depends(get_client),
):
    return _relay("Failed to cancel order", lambda: client.cancel_order(cancel))


@app.get("/debug/config")
def debug_config(cfg: Settings = Depends(get_settings)):
    return {"config": cfg.public_dict()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
