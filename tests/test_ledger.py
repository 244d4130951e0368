import pytest

from pooled_lottery.errors import InsufficientFunds, LedgerError, UnknownAccount
from pooled_lottery.ledger import Ledger
from pooled_lottery.project_constants import BLOCK_TIME_S


def test_transfer_moves_balance(ledger):
    ledger.create_account("a", 100)
    ledger.create_account("b", 0)

    ledger.transfer("a", "b", 40)

    assert ledger.balance_of("a") == 60
    assert ledger.balance_of("b") == 40


def test_transfer_errors(ledger):
    ledger.create_account("a", 10)

    with pytest.raises(UnknownAccount):
        ledger.transfer("a", "nobody", 1)
    with pytest.raises(UnknownAccount):
        ledger.balance_of("nobody")

    ledger.create_account("b")
    with pytest.raises(InsufficientFunds):
        ledger.transfer("a", "b", 11)
    with pytest.raises(ValueError):
        ledger.transfer("a", "b", -1)
    assert ledger.balance_of("a") == 10


def test_duplicate_account_rejected(ledger):
    ledger.create_account("a")
    with pytest.raises(LedgerError):
        ledger.create_account("a")


def test_atomic_restores_on_error(ledger):
    ledger.create_account("a", 10)
    ledger.create_account("b", 0)

    with pytest.raises(RuntimeError):
        with ledger.atomic():
            ledger.transfer("a", "b", 5)
            raise RuntimeError("boom")

    assert ledger.balance_of("a") == 10
    assert ledger.balance_of("b") == 0


def test_submit_mines_one_block_and_charges_fee():
    ledger = Ledger(gas_fee=3, entropy=b"x", start_time=1000)
    ledger.create_account("a", 10)
    genesis = ledger.current_block()

    seen = []
    receipt = ledger.submit("a", lambda sender: seen.append(ledger.current_block()) or "done")

    assert receipt.ok
    assert receipt.return_value == "done"
    assert receipt.fee == 3
    assert ledger.balance_of("a") == 7
    head = ledger.current_block()
    assert seen == [head]
    assert head.number == genesis.number + 1 == receipt.block_number
    assert head.timestamp == genesis.timestamp + BLOCK_TIME_S
    assert head.blockhash != genesis.blockhash


def test_failed_submit_commits_nothing():
    ledger = Ledger(gas_fee=3, entropy=b"x")
    ledger.create_account("a", 10)
    ledger.create_account("b", 0)
    head = ledger.current_block()

    def pay_then_fail(sender):
        ledger.transfer(sender, "b", 5)
        ledger.transfer(sender, "b", 50)

    receipt = ledger.submit("a", pay_then_fail)

    assert not receipt.ok
    assert isinstance(receipt.error, InsufficientFunds)
    assert receipt.fee == 0
    assert ledger.current_block() == head
    assert ledger.balance_of("a") == 10
    assert ledger.balance_of("b") == 0


def test_fee_must_be_affordable():
    ledger = Ledger(gas_fee=5, entropy=b"x")
    ledger.create_account("a", 4)

    receipt = ledger.submit("a", lambda sender: None)

    assert not receipt.ok
    assert ledger.balance_of("a") == 4


def test_bugs_propagate(ledger):
    ledger.create_account("a", 10)

    def broken(sender):
        raise KeyError("bug")

    with pytest.raises(KeyError):
        ledger.submit("a", broken)
    assert ledger.current_block().number == 0


def test_blocks_are_reproducible_from_entropy():
    a = Ledger(entropy=b"same", start_time=5)
    b = Ledger(entropy=b"same", start_time=5)
    c = Ledger(entropy=b"other", start_time=5)
    for led in (a, b, c):
        led.create_account("x", 10**18)
        led.submit("x", lambda sender: None)

    assert a.current_block() == b.current_block()
    assert a.current_block().difficulty != c.current_block().difficulty


def test_genesis_beacon_is_used():
    ledger = Ledger(genesis_beacon="5eykt4UsFv8P8NJdTREpY1vzqKqZKvdpKuc147dw2N9d")
    assert ledger.current_block().blockhash == "5eykt4UsFv8P8NJdTREpY1vzqKqZKvdpKuc147dw2N9d"


def test_receive_hook_runs_after_credit(ledger):
    ledger.create_account("a", 10)
    ledger.create_account("b", 0)
    calls = []
    ledger.on_receive("b", lambda led, src, amount: calls.append((src, amount, led.balance_of("b"))))

    ledger.transfer("a", "b", 4)

    assert calls == [("a", 4, 4)]
