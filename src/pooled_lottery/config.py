from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Optional

from dotenv import load_dotenv

from .draw import to_wei
from .project_constants import DEFAULT_GAS_FEE, MIN_CONTRIBUTION


@dataclass(frozen=True)
class Settings:
    rpc_url: Optional[str]
    min_contribution: int
    gas_fee: int

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv()

        # If user provides --rpc-url, trust it.
        rpc_url = rpc_url_override or os.getenv("LOTTERY_RPC_URL", "").strip() or None

        return Settings(
            rpc_url=rpc_url,
            min_contribution=_ether_from_env(
                "LOTTERY_MIN_CONTRIBUTION", MIN_CONTRIBUTION
            ),
            gas_fee=_ether_from_env("LOTTERY_GAS_FEE", DEFAULT_GAS_FEE),
        )

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise RuntimeError(
                "Missing LOTTERY_RPC_URL. Put it in .env, export it, or pass --rpc-url."
            )
        return self.rpc_url


def _ether_from_env(name: str, default_wei: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default_wei
    try:
        value = to_wei(raw)
    except (InvalidOperation, ValueError) as e:
        raise RuntimeError(f"{name}={raw!r} is not an ether amount: {e}")
    if value < 0:
        raise RuntimeError(f"{name} must not be negative (got {raw}).")
    return value
