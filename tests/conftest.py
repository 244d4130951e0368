import pytest

from pooled_lottery.accounts import derive_addresses
from pooled_lottery.ledger import Ledger
from pooled_lottery.pool import Pool
from pooled_lottery.project_constants import DEFAULT_ACCOUNT_BALANCE


@pytest.fixture
def ledger():
    return Ledger(entropy=b"test-entropy", start_time=1_700_000_000)


@pytest.fixture
def accounts(ledger):
    addresses = derive_addresses("test-accounts", 5)
    for addr in addresses:
        ledger.create_account(addr, DEFAULT_ACCOUNT_BALANCE)
    return addresses


@pytest.fixture
def pool(ledger, accounts):
    return Pool.deploy(ledger, accounts[0])
