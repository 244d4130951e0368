import pytest

from pooled_lottery.accounts import derive_address, derive_addresses, is_valid_address, load_addresses


def test_derived_addresses_are_stable_and_valid():
    addrs = derive_addresses("seed", 3)

    assert addrs == derive_addresses("seed", 3)
    assert len(set(addrs)) == 3
    assert addrs[1] == derive_address("seed", 1)
    assert all(is_valid_address(a) for a in addrs)


def test_invalid_addresses():
    assert not is_valid_address("0OIl")  # not base58
    assert not is_valid_address("abc")  # too short
    assert is_valid_address("11111111111111111111111111111111")


def test_load_addresses(tmp_path):
    a, b = derive_addresses("file", 2)
    path = tmp_path / "accounts.txt"
    path.write_text(f"# players\n{a}\n\n{b}\n{a}\n")

    assert load_addresses(str(path)) == [a, b]


def test_load_addresses_rejects_garbage(tmp_path):
    path = tmp_path / "accounts.txt"
    path.write_text("not-an-address\n")

    with pytest.raises(RuntimeError, match=":1:"):
        load_addresses(str(path))
