"""
In-memory host ledger for running pool contracts.

Calls are serialized: each submitted call runs inside one atomic step and is
mined into its own block. A failed call commits nothing, mines nothing and
is not charged a fee.
"""

from __future__ import annotations

import hashlib
import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

import base58

from .errors import (
    ContractCaller,
    InsufficientFunds,
    LedgerError,
    PoolError,
    UnknownAccount,
)
from .project_constants import ADDRESS_BYTES, BLOCK_TIME_S, DEFAULT_GAS_FEE

log = logging.getLogger("ledger")

ReceiveHook = Callable[["Ledger", str, int], None]


@dataclass(frozen=True)
class BlockInfo:
    number: int
    timestamp: int
    difficulty: int  # randomness beacon
    blockhash: str


@dataclass(frozen=True)
class Receipt:
    status: bool
    sender: str
    block_number: Optional[int]
    fee: int
    return_value: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.return_value


def _beacon_for(blockhash: str) -> int:
    return int(hashlib.sha256(f"randao:{blockhash}".encode("utf-8")).hexdigest(), 16)


class Ledger:
    def __init__(
        self,
        gas_fee: int = DEFAULT_GAS_FEE,
        genesis_beacon: str | None = None,
        entropy: bytes | None = None,
        start_time: int | None = None,
    ) -> None:
        self.gas_fee = gas_fee
        self._entropy = (entropy if entropy is not None else os.urandom(32)).hex()
        self._balances: Dict[str, int] = {}
        self._receivers: Dict[str, ReceiveHook] = {}
        self._contracts: Dict[str, Any] = {}
        self._nonces: Dict[str, int] = {}

        genesis_hash = genesis_beacon or hashlib.sha256(
            f"genesis:{self._entropy}".encode("utf-8")
        ).hexdigest()
        self._head = BlockInfo(
            number=0,
            timestamp=int(start_time if start_time is not None else time.time()),
            difficulty=_beacon_for(genesis_hash),
            blockhash=genesis_hash,
        )
        self._pending: Optional[BlockInfo] = None

    # ---- accounts -------------------------------------------------------

    def create_account(self, address: str, balance: int = 0) -> str:
        if address in self._balances:
            raise LedgerError(f"Account already exists: {address}")
        if balance < 0:
            raise ValueError("Initial balance must not be negative.")
        self._balances[address] = balance
        return address

    def accounts(self) -> List[str]:
        return list(self._balances)

    def balance_of(self, address: str) -> int:
        if address not in self._balances:
            raise UnknownAccount(address)
        return self._balances[address]

    def on_receive(self, address: str, hook: ReceiveHook | None) -> None:
        """Register (or clear) a callable run after `address` is credited."""
        if address not in self._balances:
            raise UnknownAccount(address)
        if hook is None:
            self._receivers.pop(address, None)
        else:
            self._receivers[address] = hook

    def transfer(self, src: str, dst: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Transfer amount must not be negative.")
        if dst not in self._balances:
            raise UnknownAccount(dst)
        available = self.balance_of(src)
        if available < amount:
            raise InsufficientFunds(src, available, amount)

        with self.atomic():
            self._balances[src] -= amount
            self._balances[dst] += amount
            hook = self._receivers.get(dst)
            if hook is not None:
                hook(self, src, amount)

    # ---- blocks ---------------------------------------------------------

    def current_block(self) -> BlockInfo:
        return self._pending if self._pending is not None else self._head

    def _next_block(self) -> BlockInfo:
        head = self._head
        number = head.number + 1
        blockhash = hashlib.sha256(
            f"{head.blockhash}:{self._entropy}:{number}".encode("utf-8")
        ).hexdigest()
        return BlockInfo(
            number=number,
            timestamp=head.timestamp + BLOCK_TIME_S,
            difficulty=_beacon_for(blockhash),
            blockhash=blockhash,
        )

    # ---- atomicity ------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Restore balances and contract state if the block raises."""
        balances = dict(self._balances)
        nonces = dict(self._nonces)
        contracts = dict(self._contracts)
        states = {addr: c.snapshot() for addr, c in contracts.items()}
        try:
            yield
        except BaseException:
            self._balances = balances
            self._nonces = nonces
            self._contracts = contracts
            for addr, state in states.items():
                contracts[addr].restore(state)
            raise

    # ---- transactions ---------------------------------------------------

    def submit(self, sender: str, method: Callable[..., Any], *args: Any) -> Receipt:
        """
        Run `method(sender, *args)` as one transaction.

        Contract and ledger rejections come back as a failed Receipt; any
        other exception is a bug and propagates.
        """
        if self._pending is not None:
            raise LedgerError("Nested transactions are not supported.")

        self._pending = self._next_block()
        try:
            if sender in self._contracts:
                raise ContractCaller(sender)
            with self.atomic():
                result = method(sender, *args)
                self._charge_fee(sender)
        except (PoolError, LedgerError) as e:
            log.debug("Reverted call from %s: %s", sender, e)
            return Receipt(status=False, sender=sender, block_number=None, fee=0, error=e)
        else:
            self._head = self._pending
            log.debug("Mined block %d (%s)", self._head.number, self._head.blockhash)
            return Receipt(
                status=True,
                sender=sender,
                block_number=self._head.number,
                fee=self.gas_fee,
                return_value=result,
            )
        finally:
            self._pending = None

    def call(self, method: Callable[..., Any], *args: Any) -> Any:
        """Read-only call: no block, no fee."""
        return method(*args)

    def _charge_fee(self, sender: str) -> None:
        if self.gas_fee <= 0:
            return
        available = self.balance_of(sender)
        if available < self.gas_fee:
            raise InsufficientFunds(sender, available, self.gas_fee)
        self._balances[sender] -= self.gas_fee

    # ---- contracts ------------------------------------------------------

    def deploy(self, deployer: str, factory: Callable[[str], Any]) -> Receipt:
        """
        Create a contract account and build the contract with its address.

        The contract must provide snapshot() and restore(state).
        """

        def _create(sender: str) -> Any:
            nonce = self._nonces.get(sender, 0)
            self._nonces[sender] = nonce + 1
            raw = hashlib.sha256(
                f"contract:{sender}:{nonce}".encode("utf-8")
            ).digest()
            address = base58.b58encode(raw[:ADDRESS_BYTES]).decode("ascii")
            self.balance_of(sender)
            self.create_account(address)
            contract = factory(address)
            self._contracts[address] = contract
            log.info("Deployed contract %s from %s", address, sender)
            return contract

        return self.submit(deployer, _create)

    def contract_at(self, address: str) -> Any:
        if address not in self._contracts:
            raise UnknownAccount(address)
        return self._contracts[address]
