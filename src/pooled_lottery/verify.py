from __future__ import annotations

import json
from typing import Any, Dict

from .draw import DrawRecord, compute_index


def verify_draw(record: DrawRecord) -> Dict[str, Any]:
    if not record.entrants:
        raise RuntimeError("Draw has no entrants.")

    index, digest_hex, seed_int = compute_index(
        record.timestamp, record.difficulty, record.caller, len(record.entrants)
    )
    if digest_hex != record.digest_hex:
        raise RuntimeError(
            f"Digest mismatch: audit={record.digest_hex} recomputed={digest_hex}"
        )
    if index != record.index:
        raise RuntimeError(
            f"Winning index mismatch: audit={record.index} recomputed={index}"
        )

    winner = record.entrants[index]
    if winner != record.winner:
        raise RuntimeError(
            f"Winner mismatch: audit={record.winner} recomputed={winner}"
        )

    return {
        "ok": True,
        "digest_hex": digest_hex,
        "seed_int": seed_int,
        "winner": winner,
        "index": index,
        "entrants": len(record.entrants),
        "payout": record.payout,
    }


def verify_audit(audit_path: str) -> Dict[str, Any]:
    with open(audit_path, "r", encoding="utf-8") as f:
        audit = json.load(f)
    return verify_draw(DrawRecord.from_json(audit["draw"]))
