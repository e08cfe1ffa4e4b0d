import pytest

from chainindexer.converters.balance import BalanceConverter
from chainindexer.converters.hashing import Blake2bHasher
from chainindexer.converters.pubkey import HexPubkeyConverter


@pytest.fixture()
def pubkey_converter():
    return HexPubkeyConverter(length=32)


@pytest.fixture()
def hasher():
    return Blake2bHasher()


@pytest.fixture()
def balance_converter():
    return BalanceConverter(denomination=18)
