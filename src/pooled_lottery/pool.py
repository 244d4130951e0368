from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .draw import DrawRecord, select_winner, to_ether
from .errors import (
    ContractCaller,
    InsufficientContribution,
    LedgerError,
    NoEntrants,
    Unauthorized,
)
from .ledger import Ledger
from .project_constants import MIN_CONTRIBUTION

log = logging.getLogger("pool")


@dataclass
class PoolState:
    operator: str
    entrants: List[str] = field(default_factory=list)
    balance: int = 0

    def copy(self) -> "PoolState":
        return PoolState(self.operator, list(self.entrants), self.balance)


class Pool:
    """
    Pooled wager: anyone enters with more than `min_contribution`, the
    operator picks one entrant who receives the whole balance, and the pool
    starts a new round.

    Every public call either completes or raises without changing state.
    """

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        operator: str,
        min_contribution: int = MIN_CONTRIBUTION,
    ) -> None:
        self._ledger = ledger
        self.address = address
        self.min_contribution = min_contribution
        self._state = PoolState(operator=operator)

    @classmethod
    def deploy(
        cls,
        ledger: Ledger,
        operator: str,
        min_contribution: int = MIN_CONTRIBUTION,
    ) -> "Pool":
        receipt = ledger.deploy(
            operator, lambda address: cls(ledger, address, operator, min_contribution)
        )
        return receipt.unwrap()

    @property
    def operator(self) -> str:
        return self._state.operator

    @property
    def balance(self) -> int:
        return self._state.balance

    def get_players(self) -> List[str]:
        return list(self._state.entrants)

    def enter(self, caller: str, contribution: int) -> None:
        if caller == self.address:
            raise ContractCaller(caller)
        if contribution <= self.min_contribution:
            raise InsufficientContribution(contribution, self.min_contribution)

        with self._ledger.atomic():
            self._ledger.transfer(caller, self.address, contribution)
            self._state.entrants.append(caller)
            self._state.balance += contribution

        log.info(
            "Entry #%d from %s (%s ether)",
            len(self._state.entrants),
            caller,
            to_ether(contribution),
        )

    def pick_winner(self, caller: str) -> DrawRecord:
        if caller != self._state.operator:
            raise Unauthorized(caller)
        if not self._state.entrants:
            raise NoEntrants()

        block = self._ledger.current_block()
        record = select_winner(
            block_number=block.number,
            timestamp=block.timestamp,
            difficulty=block.difficulty,
            caller=caller,
            entrants=self._state.entrants,
            payout=self._state.balance,
        )

        with self._ledger.atomic():
            # Reset before paying out, the winner may call back into the pool.
            self._state = PoolState(operator=self._state.operator)
            self._ledger.transfer(self.address, record.winner, record.payout)

        log.info(
            "Winner %s (slot %d of %d) paid %s ether",
            record.winner,
            record.index,
            len(record.entrants),
            to_ether(record.payout),
        )
        return record

    def check_custody(self) -> None:
        """The pool account must hold exactly the recorded balance."""
        held = self._ledger.balance_of(self.address)
        if held != self._state.balance:
            raise LedgerError(
                f"Pool {self.address} holds {held} but records {self._state.balance}"
            )

    def snapshot(self) -> PoolState:
        return self._state.copy()

    def restore(self, state: PoolState) -> None:
        self._state = state.copy()
