import pytest

from rpc_player.utils.address import is_empty_address, normalize_address, same_address

ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


@pytest.mark.parametrize(
    "address, expected", [("", True), (None, True), ("0x0", True), (ADDRESS, False)]
)
def test_is_empty_address(address, expected):
    assert is_empty_address(address) is expected


def test_normalize_address():
    assert normalize_address(ADDRESS[2:]) == ADDRESS.lower()


@pytest.mark.parametrize(
    "left, right, expected",
    [
        (ADDRESS, ADDRESS.lower(), True),
        (ADDRESS, ADDRESS[2:], True),
        (ADDRESS, "0x" + "0" * 40, False),
        (ADDRESS, "not an address", False),
    ],
)
def test_same_address(left, right, expected):
    assert same_address(left, right) is expected
