from __future__ import annotations


class PoolError(RuntimeError):
    """A pool call was rejected. No state was changed."""


class InsufficientContribution(PoolError):
    def __init__(self, contribution: int, minimum: int) -> None:
        super().__init__(
            f"Contribution {contribution} must be greater than {minimum}."
        )
        self.contribution = contribution
        self.minimum = minimum


class Unauthorized(PoolError):
    def __init__(self, caller: str) -> None:
        super().__init__(f"{caller} is not the pool operator.")
        self.caller = caller


class NoEntrants(PoolError):
    def __init__(self) -> None:
        super().__init__("Cannot pick a winner: the pool has no entrants.")


class LedgerError(RuntimeError):
    """A ledger operation failed. No balances were moved."""


class UnknownAccount(LedgerError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Unknown account: {address}")
        self.address = address


class InsufficientFunds(LedgerError):
    def __init__(self, address: str, balance: int, amount: int) -> None:
        super().__init__(
            f"Account {address} has {balance}, cannot move {amount}."
        )
        self.address = address
        self.balance = balance
        self.amount = amount


class ContractCaller(LedgerError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Contract {address} cannot originate transactions.")
        self.address = address
