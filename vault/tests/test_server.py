import asyncio
import gzip
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from vault.errors import (
    InvalidParamsError, MethodNotFoundError, StorageError, UnauthenticatedError,
    UpstreamError
)
from vault.handler.handler import ThetaRPCHandler
from vault.server.app import create_app
from vault.server.middleware import BadBodyError, BodyTooLargeError, gunzip


def make_app(result=None, side_effect=None, max_connections=10):
    handler = MagicMock(spec=ThetaRPCHandler)
    handler.dispatch = AsyncMock(return_value=result, side_effect=side_effect)
    return create_app(handler, max_connections=max_connections), handler


def rpc_body(method="theta.GetAccount", params=None, request_id=1):
    body = {"jsonrpc": "2.0", "method": method, "id": request_id}
    if params is not None:
        body["params"] = params
    return body


@pytest.mark.asyncio
async def test_health():
    app, _ = make_app()
    response = await app.test_client().get("/health")
    assert response.status_code == 200
    assert await response.get_json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_rpc_dispatches_with_caller_identity():
    app, handler = make_app(result={"address": "2674ae64cb5206b2afc6b6fbd0e5a65c025b5016"})

    response = await app.test_client().post(
        "/rpc", json=rpc_body(params=[{}]), headers={"X-Auth-User": "alice"}
    )

    assert response.status_code == 200
    assert await response.get_json() == {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {"address": "2674ae64cb5206b2afc6b6fbd0e5a65c025b5016"},
    }
    handler.dispatch.assert_awaited_once_with("theta.GetAccount", "alice", {})


@pytest.mark.asyncio
async def test_gzip_request_body():
    app, handler = make_app(result={})
    body = gzip.compress(json.dumps(rpc_body("theta.Send", {"to": []})).encode())

    response = await app.test_client().post(
        "/rpc",
        data=body,
        headers={
            "X-Auth-User": "alice",
            "Content-Type": "application/json",
            "Content-Encoding": "gzip",
        },
    )

    assert response.status_code == 200
    handler.dispatch.assert_awaited_once_with("theta.Send", "alice", {"to": []})


@pytest.mark.asyncio
async def test_bad_gzip_body_is_rejected():
    app, handler = make_app()
    response = await app.test_client().post(
        "/rpc",
        data=b"definitely not gzip",
        headers={"Content-Type": "application/json", "Content-Encoding": "gzip"},
    )
    assert response.status_code == 400
    handler.dispatch.assert_not_called()


@pytest.mark.asyncio
async def test_parse_and_request_errors():
    app, handler = make_app()
    client = app.test_client()

    response = await client.post("/rpc", data=b"{not json", headers={"Content-Type": "application/json"})
    assert (await response.get_json())["error"]["code"] == -32700

    response = await client.post("/rpc", json={"jsonrpc": "2.0", "id": 4})
    assert (await response.get_json())["error"]["code"] == -32600

    response = await client.post("/rpc", json=rpc_body(params="alice"))
    body = await response.get_json()
    assert body["error"]["code"] == -32602
    assert body["id"] == 1

    handler.dispatch.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("error, expected", [
    (UpstreamError(3000, "Failed."), {"code": 3000, "message": "Failed."}),
    (UnauthenticatedError("No user ID on request"), {"code": -32001, "message": "unauthenticated"}),
    (MethodNotFoundError("theta.Mine"), {"code": -32601, "message": "Method not found: theta.Mine"}),
    (InvalidParamsError("Missing required parameter: 'to'"),
     {"code": -32602, "message": "Missing required parameter: 'to'"}),
    (StorageError("connection refused at db.internal:5432"), {"code": -32603, "message": "internal error"}),
    (RuntimeError("boom"), {"code": -32603, "message": "internal error"}),
])
async def test_errors_map_to_jsonrpc(error, expected):
    app, _ = make_app(side_effect=error)

    response = await app.test_client().post(
        "/rpc", json=rpc_body(request_id="abc"), headers={"X-Auth-User": "alice"}
    )

    assert response.status_code == 200
    body = await response.get_json()
    assert body == {"jsonrpc": "2.0", "id": "abc", "error": expected}


@pytest.mark.asyncio
async def test_in_flight_requests_are_limited():
    in_flight = 0
    peak = 0

    async def slow_dispatch(method, user_id, params):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.02)
        in_flight -= 1
        return {}

    app, _ = make_app(side_effect=slow_dispatch, max_connections=2)
    client = app.test_client()

    responses = await asyncio.gather(*[
        client.post("/rpc", json=rpc_body(), headers={"X-Auth-User": "alice"})
        for _ in range(6)
    ])

    assert all(r.status_code == 200 for r in responses)
    assert peak == 2


@pytest.mark.asyncio
async def test_gzip_body_is_capped():
    app, handler = make_app(result={})
    app.config["MAX_CONTENT_LENGTH"] = 4096
    # a few hundred compressed bytes that inflate to 1 MiB
    bomb = gzip.compress(b"0" * (1 << 20))
    assert len(bomb) < 4096

    response = await app.test_client().post(
        "/rpc",
        data=bomb,
        headers={"Content-Type": "application/json", "Content-Encoding": "gzip"},
    )

    assert response.status_code == 413
    handler.dispatch.assert_not_called()


def test_gunzip_limits():
    assert gunzip(gzip.compress(b"abc"), limit=3) == b"abc"
    assert gunzip(gzip.compress(b"abc")) == b"abc"
    with pytest.raises(BodyTooLargeError):
        gunzip(gzip.compress(b"a" * 100), limit=10)
    with pytest.raises(BadBodyError):
        gunzip(gzip.compress(b"abc")[:-4])
    with pytest.raises(BadBodyError):
        gunzip(gzip.compress(b"abc") + b"junk")
