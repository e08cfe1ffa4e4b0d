"""Tests for BalanceChecker reconciliation against the gateway."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chainindexer.exceptions import ExternalServiceError
from chainindexer.tools.balance_checker import BalanceChecker, group_by_address

USER = "01" * 32
CONTRACT = "00" * 8 + "05" * 24
ONE = str(10**18)
TWO = str(2 * 10**18)


def _hit(address: str, identifier: str, balance: str) -> dict:
    token = identifier.rsplit("-", 1)[0] if identifier.count("-") > 1 else identifier
    return {"_source": {"address": address, "token": token, "identifier": identifier, "balance": balance}}


def _make_store(*pages: list[dict]) -> MagicMock:
    """Each scroll call yields the next list of hits."""
    remaining = list(pages)

    async def scroll(index, query, size=1000):
        for hit in remaining.pop(0) if remaining else []:
            yield hit

    store = MagicMock()
    store.scroll = MagicMock(side_effect=scroll)
    store.update_by_query = AsyncMock(return_value=1)
    store.delete_by_ids = AsyncMock(return_value=1)
    return store


@pytest.fixture()
def gateway():
    return AsyncMock()


def _make_checker(store, gateway, pubkey_converter, balance_converter) -> BalanceChecker:
    return BalanceChecker(store, gateway, pubkey_converter, balance_converter, max_parallel_requests=2)


class TestGroupByAddress:
    def test_groups_rows(self):
        hits = [_hit(USER, "TKN-abcd", "5"), _hit(USER, "NFT-abcd-02", "1"), _hit(CONTRACT, "TKN-abcd", "9")]
        assert group_by_address(hits) == {
            USER: {"TKN-abcd": "5", "NFT-abcd-02": "1"},
            CONTRACT: {"TKN-abcd": "9"},
        }

    def test_falls_back_to_token(self):
        assert group_by_address([{"_source": {"address": USER, "token": "TKN-abcd", "balance": "5"}}]) == {
            USER: {"TKN-abcd": "5"}
        }


class TestUserAccounts:
    async def test_matching_balances(self, gateway, pubkey_converter, balance_converter):
        store = _make_store([_hit(USER, "TKN-abcd", ONE)])
        gateway.get_token_balances.return_value = {"TKN-abcd": ONE}

        stats = await _make_checker(store, gateway, pubkey_converter, balance_converter).check_all()

        assert stats.compared == 1
        assert (stats.fixed, stats.deleted, stats.missing) == (0, 0, 0)
        assert store.scroll.call_count == 1

    async def test_drift_that_survives_second_read_is_fixed(self, gateway, pubkey_converter, balance_converter):
        store = _make_store([_hit(USER, "TKN-abcd", ONE)], [_hit(USER, "TKN-abcd", ONE)])
        gateway.get_token_balances.return_value = {"TKN-abcd": TWO}

        stats = await _make_checker(store, gateway, pubkey_converter, balance_converter).check_all()

        assert stats.fixed == 1
        second_query = store.scroll.call_args_list[1].args[1]
        assert second_query == {"term": {"address": USER}}
        store.update_by_query.assert_awaited_once_with(
            "accountsdcdt",
            {"ids": {"values": [f"{USER}-TKN-abcd-00"]}},
            {
                "source": "ctx._source.balance = params.balance;ctx._source.balanceNum = params.balanceNum",
                "lang": "painless",
                "params": {"balance": TWO, "balanceNum": 2.0},
            },
        )

    async def test_drift_gone_on_second_read(self, gateway, pubkey_converter, balance_converter):
        store = _make_store([_hit(USER, "TKN-abcd", ONE)], [_hit(USER, "TKN-abcd", TWO)])
        gateway.get_token_balances.return_value = {"TKN-abcd": TWO}

        stats = await _make_checker(store, gateway, pubkey_converter, balance_converter).check_all()

        assert stats.fixed == 0
        store.update_by_query.assert_not_awaited()

    async def test_extra_and_missing_balances(self, gateway, pubkey_converter, balance_converter):
        rows = [_hit(USER, "NFT-abcd-0a", "1")]
        store = _make_store(rows, rows)
        gateway.get_token_balances.return_value = {"TKN-abcd": ONE, "WIPED-abcd": "0"}

        stats = await _make_checker(store, gateway, pubkey_converter, balance_converter).check_all()

        store.delete_by_ids.assert_awaited_once_with("accountsdcdt", [f"{USER}-NFT-abcd-0a"])
        assert stats.deleted == 1
        assert stats.missing == 1

    async def test_gateway_error_skips_address(self, gateway, pubkey_converter, balance_converter):
        store = _make_store([_hit(USER, "TKN-abcd", ONE)])
        gateway.get_token_balances.side_effect = ExternalServiceError("gateway down")

        stats = await _make_checker(store, gateway, pubkey_converter, balance_converter).check_all()

        assert stats.compared == 1
        store.delete_by_ids.assert_not_awaited()
        store.update_by_query.assert_not_awaited()

    async def test_undecodable_address(self, gateway, pubkey_converter, balance_converter):
        checker = _make_checker(_make_store(), gateway, pubkey_converter, balance_converter)
        await checker.check_address("not-hex", {"TKN-abcd": "1"})
        gateway.get_token_balances.assert_not_awaited()


class TestContracts:
    async def test_each_token_is_checked(self, gateway, pubkey_converter, balance_converter):
        store = _make_store()
        actual = {"TKN-abcd": ONE, "OLD-abcd": "0", "NEW-abcd": TWO}
        gateway.get_token_balance.side_effect = lambda address, identifier: actual[identifier]
        checker = _make_checker(store, gateway, pubkey_converter, balance_converter)

        await checker.check_contract(CONTRACT, {"TKN-abcd": ONE, "OLD-abcd": "5", "NEW-abcd": ONE})

        assert gateway.get_token_balance.await_count == 3
        gateway.get_token_balances.assert_not_awaited()
        store.delete_by_ids.assert_awaited_once_with("accountsdcdt", [f"{CONTRACT}-OLD-abcd-00"])
        assert store.update_by_query.await_args.args[1] == {"ids": {"values": [f"{CONTRACT}-NEW-abcd-00"]}}
        assert (checker.stats.deleted, checker.stats.fixed) == (1, 1)

    async def test_contract_goes_through_check_address(self, gateway, pubkey_converter, balance_converter):
        gateway.get_token_balance.return_value = "9"
        checker = _make_checker(_make_store(), gateway, pubkey_converter, balance_converter)

        await checker.check_address(CONTRACT, {"TKN-abcd": "9"})

        gateway.get_token_balance.assert_awaited_once_with(CONTRACT, "TKN-abcd")
