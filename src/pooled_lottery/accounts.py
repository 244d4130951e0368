from __future__ import annotations

import hashlib
from typing import List, Optional

import base58

from .project_constants import ADDRESS_BYTES


def derive_address(seed: str, index: int) -> str:
    """Deterministic account address: base58(sha256(seed:index))."""
    raw = hashlib.sha256(f"{seed}:{index}".encode("utf-8")).digest()
    return base58.b58encode(raw[:ADDRESS_BYTES]).decode("ascii")


def derive_addresses(seed: str, count: int) -> List[str]:
    return [derive_address(seed, i) for i in range(count)]


def parse_address(address: str) -> Optional[bytes]:
    """
    Decoded address bytes, or None if it is not base58 or has the wrong size.
    """
    try:
        raw = base58.b58decode(address)
    except ValueError:
        return None
    if len(raw) != ADDRESS_BYTES:
        return None
    return raw


def is_valid_address(address: str) -> bool:
    return parse_address(address) is not None


def load_addresses(path: str) -> List[str]:
    """
    One address per line. Blank lines and '#' comments are skipped.
    Order is kept, duplicates are dropped.
    """
    out: List[str] = []
    seen = set()
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            w = line.strip()
            if not w or w.startswith("#"):
                continue
            if not is_valid_address(w):
                raise RuntimeError(f"{path}:{lineno}: not a valid address: {w}")
            if w in seen:
                continue
            seen.add(w)
            out.append(w)
    return out
