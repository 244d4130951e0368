from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple, Union

import httpx

BlockTag = Union[int, str]


def _to_quantity(block: BlockTag) -> str:
    if isinstance(block, int):
        return hex(block)
    return block


class RpcClient:
    """
    Minimal Ethereum JSON-RPC client for reading block metadata.
    Only used to source a genesis beacon for the simulated ledger.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def get_block_number(self) -> int:
        """Returns the latest block number."""
        data = self._post("eth_blockNumber", [])
        return int(data["result"], 16)

    def get_block(self, block: BlockTag = "finalized") -> Dict[str, Any]:
        """Block header by number or tag ("latest", "finalized", ...)."""
        data = self._post("eth_getBlockByNumber", [_to_quantity(block), False])
        result = data.get("result")
        if not result or "hash" not in result:
            raise RuntimeError(f"Block {block}: eth_getBlockByNumber returned no block.")
        return result

    def get_beacon(self, block: BlockTag = "finalized") -> Tuple[int, str, int]:
        """(block number, block hash, block timestamp)."""
        header = self.get_block(block)
        return int(header["number"], 16), header["hash"], int(header["timestamp"], 16)

    def _post(self, method: str, params: list) -> Dict[str, Any]:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        resp = self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RuntimeError(f"RPC error: {data['error']}")
        return data


def _block_number(value: Any) -> int:
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    return int(value)


def load_beacon_from_block_feed_file(path: str, block_hint: Optional[int] = None) -> str:
    """
    Supports:
    1) Raw block hash string in file
    2) JSON object containing:
       - {"hash": "0x..."}
       - {"result": {"hash": "0x..."}}   (eth_getBlockByNumber response)
       - {"number": "0x7b", "hash": "0x..."}   (checked against block_hint)
       - {"blocks": {"123": {"hash": "0x..."}}}  (needs block_hint)
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read().strip()

    if raw and raw[0] != "{":
        return raw

    try:
        j = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Block feed file is not valid JSON or raw string: {e}")

    if isinstance(j, dict):
        if isinstance(j.get("hash"), str):
            if (
                block_hint is not None
                and "number" in j
                and _block_number(j["number"]) != int(block_hint)
            ):
                raise RuntimeError(
                    f"Block feed number mismatch: file block={j['number']} vs expected block={block_hint}"
                )
            return j["hash"]

        result = j.get("result")
        if isinstance(result, dict) and isinstance(result.get("hash"), str):
            return result["hash"]

        blocks = j.get("blocks")
        if block_hint is not None and isinstance(blocks, dict):
            block_obj = blocks.get(str(int(block_hint)))
            if isinstance(block_obj, dict) and isinstance(block_obj.get("hash"), str):
                return block_obj["hash"]

    raise RuntimeError(
        "Could not find a block hash in block feed file. "
        "Expected raw string or JSON with hash/result.hash/(blocks[number].hash)."
    )
