import json

import httpx
import pytest

from pooled_lottery.rpc import RpcClient, load_beacon_from_block_feed_file

BLOCKHASH = "0x9b83c12c69edb74f6c8dd5d052765c1adf940e320bd1291696e6fa07829eee71"


def _node(request):
    body = json.loads(request.content)
    method = body["method"]
    if method == "eth_blockNumber":
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x1f4"})
    if method == "eth_getBlockByNumber":
        tag = body["params"][0]
        if tag == "0x194":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})
        number = "0x1f4" if tag == "finalized" else tag
        return httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "result": {"number": number, "hash": BLOCKHASH, "timestamp": "0x6553f100"},
            },
        )
    return httpx.Response(
        200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "nope"}}
    )


@pytest.fixture
def rpc():
    client = RpcClient("http://node.test", transport=httpx.MockTransport(_node))
    yield client
    client.close()


def test_beacon(rpc):
    assert rpc.get_block_number() == 500
    assert rpc.get_beacon(500) == (500, BLOCKHASH, 1700000000)
    assert rpc.get_beacon() == (500, BLOCKHASH, 1700000000)


def test_missing_block(rpc):
    with pytest.raises(RuntimeError, match="Block 404"):
        rpc.get_block(404)


def test_rpc_error(rpc):
    with pytest.raises(RuntimeError, match="RPC error"):
        rpc._post("eth_nothing", [])


def test_http_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    with RpcClient("http://node.test", transport=transport) as client:
        with pytest.raises(httpx.HTTPStatusError):
            client.get_block_number()


@pytest.mark.parametrize(
    "content",
    [
        BLOCKHASH,
        json.dumps({"hash": BLOCKHASH}),
        json.dumps({"number": "0x7", "hash": BLOCKHASH}),
        json.dumps({"number": 7, "hash": BLOCKHASH}),
        json.dumps({"result": {"hash": BLOCKHASH}}),
        json.dumps({"blocks": {"7": {"hash": BLOCKHASH}}}),
    ],
)
def test_block_feed_formats(tmp_path, content):
    path = tmp_path / "feed"
    path.write_text(content)
    assert load_beacon_from_block_feed_file(str(path), block_hint=7) == BLOCKHASH


def test_block_feed_number_mismatch(tmp_path):
    path = tmp_path / "feed"
    path.write_text(json.dumps({"number": "0x8", "hash": BLOCKHASH}))
    with pytest.raises(RuntimeError, match="mismatch"):
        load_beacon_from_block_feed_file(str(path), block_hint=7)
