import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from vault.errors import UpstreamUnavailableError
from vault.rpc.client import UpstreamClient


def make_node(responder):
    received = []

    async def rpc(request):
        body = await request.json()
        received.append(body)
        return await responder(body)

    app = web.Application()
    app.router.add_post("/rpc", rpc)
    return app, received


@pytest_asyncio.fixture
async def node_server():
    servers = []

    async def start(responder):
        app, received = make_node(responder)
        server = test_utils.TestServer(app)
        await server.start_server()
        servers.append(server)
        return str(server.make_url("/rpc")), received

    yield start
    for server in servers:
        await server.close()


@pytest.mark.asyncio
async def test_get_account_sends_jsonrpc_request(node_server):
    async def responder(body):
        return web.json_response({
            "jsonrpc": "2.0",
            "id": body["id"],
            "result": {"sequence": "3", "coins": {"thetawei": "10"}},
        })

    url, received = await node_server(responder)
    client = UpstreamClient(url)
    try:
        response = await client.get_account("2674ae64cb5206b2afc6b6fbd0e5a65c025b5016")
    finally:
        await client.close()

    assert response.error is None
    assert response.result["sequence"] == "3"
    assert received[0]["jsonrpc"] == "2.0"
    assert received[0]["method"] == "theta.GetAccount"
    assert received[0]["params"] == {"address": "2674ae64cb5206b2afc6b6fbd0e5a65c025b5016"}


@pytest.mark.asyncio
async def test_node_error_is_returned_not_raised(node_server):
    async def responder(body):
        return web.json_response({
            "jsonrpc": "2.0",
            "id": body["id"],
            "error": {"code": 3000, "message": "Failed."},
        })

    url, received = await node_server(responder)
    client = UpstreamClient(url)
    try:
        response = await client.broadcast_raw_transaction("12c701")
    finally:
        await client.close()

    assert response.result is None
    assert response.error.code == 3000
    assert response.error.message == "Failed."
    assert received[0]["params"] == {"tx_bytes": "12c701"}


@pytest.mark.asyncio
async def test_non_json_response_is_unavailable(node_server):
    async def responder(body):
        return web.Response(status=502, text="bad gateway")

    url, _ = await node_server(responder)
    client = UpstreamClient(url)
    try:
        with pytest.raises(UpstreamUnavailableError):
            await client.get_account("00" * 20)
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_unreachable_node_is_unavailable(unused_tcp_port):
    client = UpstreamClient(f"http://127.0.0.1:{unused_tcp_port}/rpc", timeout=2.0)
    try:
        with pytest.raises(UpstreamUnavailableError):
            await client.get_account("00" * 20)
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_request_ids_increase(node_server):
    async def responder(body):
        return web.json_response({"jsonrpc": "2.0", "id": body["id"], "result": None})

    url, received = await node_server(responder)
    client = UpstreamClient(url)
    try:
        await client.call("theta.GetStatus")
        await client.call("theta.GetStatus")
    finally:
        await client.close()

    assert [r["id"] for r in received] == [1, 2]
    assert received[0]["params"] == {}


@pytest.mark.asyncio
async def test_malformed_error_code_is_unavailable(node_server):
    async def responder(body):
        return web.json_response({
            "jsonrpc": "2.0",
            "id": body["id"],
            "error": {"code": "not-a-number", "message": "Failed."},
        })

    url, _ = await node_server(responder)
    client = UpstreamClient(url)
    try:
        with pytest.raises(UpstreamUnavailableError):
            await client.broadcast_raw_transaction("12c701")
    finally:
        await client.close()
