"""
Winner selection for the pool.

The winning index is sha256(difficulty:timestamp:caller) read as a big
integer, reduced modulo the number of entrants. Every input is known to
(or chosen by) whoever produces the block, so a block producer can bias the
outcome and anyone can predict it once the block is known. This is not a
secure source of randomness and is kept that way on purpose: the draw is
reproducible from the recorded inputs, see verify.py.
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, List, Sequence, Tuple, Union

from .project_constants import ETHER_DECIMALS, WEI_PER_ETHER


@dataclass(frozen=True)
class DrawRecord:
    block_number: int
    timestamp: int
    difficulty: int
    caller: str
    entrants: Tuple[str, ...]
    digest_hex: str
    seed_int: int
    index: int
    winner: str
    payout: int

    def to_json(self) -> Dict[str, Any]:
        out = asdict(self)
        out["entrants"] = list(self.entrants)
        # big ints; store as strings for safety
        out["difficulty"] = str(self.difficulty)
        out["seed_int"] = str(self.seed_int)
        out["payout"] = str(self.payout)
        return out

    @staticmethod
    def from_json(data: Dict[str, Any]) -> "DrawRecord":
        return DrawRecord(
            block_number=int(data["block_number"]),
            timestamp=int(data["timestamp"]),
            difficulty=int(data["difficulty"]),
            caller=data["caller"],
            entrants=tuple(data["entrants"]),
            digest_hex=data["digest_hex"],
            seed_int=int(data["seed_int"]),
            index=int(data["index"]),
            winner=data["winner"],
            payout=int(data["payout"]),
        )


def to_wei(amount: Union[str, int, Decimal]) -> int:
    """Convert an ether amount ("0.01", Decimal, int) to raw units."""
    value = Decimal(str(amount)) * WEI_PER_ETHER
    if not value.is_finite():
        raise ValueError(f"{amount} is not a finite ether amount")
    if value != value.to_integral_value():
        raise ValueError(f"{amount} ether has more than {ETHER_DECIMALS} decimals")
    return int(value)


def to_ether(raw_amount: int) -> float:
    return round(raw_amount / WEI_PER_ETHER, 6)


def mix_inputs(timestamp: int, difficulty: int, caller: str) -> str:
    return f"{difficulty}:{timestamp}:{caller}"


def compute_index(
    timestamp: int, difficulty: int, caller: str, count: int
) -> Tuple[int, str, int]:
    if count <= 0:
        raise ValueError("Cannot derive an index for an empty pool.")
    digest_hex = hashlib.sha256(
        mix_inputs(timestamp, difficulty, caller).encode("utf-8")
    ).hexdigest()
    seed_int = int(digest_hex, 16)
    return seed_int % count, digest_hex, seed_int


def select_winner(
    block_number: int,
    timestamp: int,
    difficulty: int,
    caller: str,
    entrants: Sequence[str],
    payout: int,
) -> DrawRecord:
    index, digest_hex, seed_int = compute_index(
        timestamp, difficulty, caller, len(entrants)
    )
    return DrawRecord(
        block_number=block_number,
        timestamp=timestamp,
        difficulty=difficulty,
        caller=caller,
        entrants=tuple(entrants),
        digest_hex=digest_hex,
        seed_int=seed_int,
        index=index,
        winner=entrants[index],
        payout=payout,
    )


def tally(entrants: List[str]) -> Dict[str, int]:
    """Number of slots held by each entrant, in first-entry order."""
    slots: Dict[str, int] = {}
    for addr in entrants:
        slots[addr] = slots.get(addr, 0) + 1
    return slots
