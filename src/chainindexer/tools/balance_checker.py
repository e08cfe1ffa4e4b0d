"""Reconcile stored token balances with the chain gateway.

Every address holding tokens in the store is compared with the gateway. A
mismatch is first re-read from the store (the indexer may have caught up in
the meantime); only a mismatch that survives the second read is repaired.
"""

import asyncio
import logging
from dataclasses import dataclass

from chainindexer.converters.balance import BalanceConverter, parse_big_int
from chainindexer.converters.fields import account_token_id
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.domain.enums import IndexName
from chainindexer.exceptions import ExternalServiceError
from chainindexer.infra.gateway.client import GatewayClient, split_identifier
from chainindexer.infra.store.client import DocumentStoreClient
from chainindexer.merge import scripts
from chainindexer.sharding import is_smart_contract_address

logger = logging.getLogger(__name__)

MATCH_ALL = {"match_all": {}}

Balances = dict[str, dict[str, str]]


@dataclass
class CheckStats:
    compared: int = 0
    fixed: int = 0
    deleted: int = 0
    missing: int = 0


def group_by_address(hits: list[dict]) -> Balances:
    balances: Balances = {}
    for hit in hits:
        source = hit.get("_source", {})
        identifier = source.get("identifier") or source.get("token", "")
        balances.setdefault(source.get("address", ""), {})[identifier] = source.get("balance", "0")
    return balances


class BalanceChecker:
    def __init__(
        self,
        store: DocumentStoreClient,
        gateway: GatewayClient,
        pubkey_converter: PubkeyConverter,
        balance_converter: BalanceConverter,
        max_parallel_requests: int = 10,
        log: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._pubkey = pubkey_converter
        self._balance = balance_converter
        self._semaphore = asyncio.Semaphore(max_parallel_requests)
        self._log = log or logger
        self.stats = CheckStats()

    async def load_balances(self, query: dict = MATCH_ALL) -> Balances:
        hits = [hit async for hit in self._store.scroll(IndexName.ACCOUNTS_DCDT.value, query)]
        return group_by_address(hits)

    async def check_all(self) -> CheckStats:
        balances = await self.load_balances()
        self._log.info("total accounts with tokens: %d", len(balances))

        await asyncio.gather(*(self._check_bounded(address, tokens) for address, tokens in balances.items()))

        self._log.info(
            "done: compared=%d fixed=%d deleted=%d missing=%d",
            self.stats.compared, self.stats.fixed, self.stats.deleted, self.stats.missing,
        )
        return self.stats

    async def _check_bounded(self, address: str, tokens: dict[str, str]) -> None:
        async with self._semaphore:
            self.stats.compared += 1
            try:
                await self.check_address(address, tokens)
            except ExternalServiceError as exc:
                self._log.warning("cannot check %s: %s", address, exc)

    async def check_address(self, address: str, from_store: dict[str, str]) -> None:
        try:
            decoded = self._pubkey.decode(address)
        except ValueError as exc:
            self._log.warning("cannot decode address %s: %s", address, exc)
            return

        if is_smart_contract_address(decoded):
            await self.check_contract(address, from_store)
            return

        from_gateway = await self._gateway.get_token_balances(address)
        if not await self.compare(address, from_store, from_gateway, first_compare=True):
            return

        self._log.info("second compare for %s, compared so far %d", address, self.stats.compared)
        fresh = await self.load_balances({"term": {"address": address}})
        await self.compare(address, fresh.get(address, {}), from_gateway, first_compare=False)

    async def check_contract(self, address: str, from_store: dict[str, str]) -> None:
        """Contracts can hold many tokens, so each stored balance is queried on its own."""
        for identifier, stored in from_store.items():
            actual = await self._gateway.get_token_balance(address, identifier)
            if actual == stored:
                continue
            if actual in ("", "0"):
                await self.delete_extra_balance(address, identifier)
            else:
                await self.fix_wrong_balance(address, identifier, actual)

    async def compare(
        self,
        address: str,
        from_store: dict[str, str],
        from_gateway: dict[str, str],
        first_compare: bool,
    ) -> bool:
        """Return True when the first compare found drift that deserves a second read."""
        remaining = dict(from_gateway)
        for identifier, stored in from_store.items():
            actual = remaining.pop(identifier, None)
            if actual is None:
                if first_compare:
                    return True
                self._log.warning("extra balance in store: address=%s identifier=%s", address, identifier)
                await self.delete_extra_balance(address, identifier)
                continue

            if actual != stored:
                if first_compare:
                    return True
                self._log.warning(
                    "different balance: address=%s identifier=%s store=%s gateway=%s",
                    address, identifier, stored, actual,
                )
                await self.fix_wrong_balance(address, identifier, actual)

        if remaining and first_compare:
            return True

        for identifier, balance in remaining.items():
            # frozen then wiped
            if balance == "0":
                continue
            self.stats.missing += 1
            self._log.warning(
                "missing balance in store: address=%s identifier=%s balance=%s", address, identifier, balance
            )
        return False

    async def fix_wrong_balance(self, address: str, identifier: str, balance: str) -> None:
        value = max(parse_big_int(balance) or 0, 0)
        script = scripts.set_fields(
            {"balance": balance, "balanceNum": self._balance.compute_balance_as_float(value)}
        )
        doc_id = self._row_id(address, identifier)
        query = {"ids": {"values": [doc_id]}}
        await self._store.update_by_query(IndexName.ACCOUNTS_DCDT.value, query, script.to_body())
        self.stats.fixed += 1

    async def delete_extra_balance(self, address: str, identifier: str) -> None:
        await self._store.delete_by_ids(IndexName.ACCOUNTS_DCDT.value, [self._row_id(address, identifier)])
        self.stats.deleted += 1

    @staticmethod
    def _row_id(address: str, identifier: str) -> str:
        token, nonce = split_identifier(identifier)
        return account_token_id(address, token, nonce)
