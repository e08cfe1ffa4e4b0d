"""RollbackCoordinator: hard-delete what a reverted block wrote.

Every query is derived from the block's header and body alone. Ids are
combined with the block's timestamp (and shard where the document stores it)
so documents whose latest write came from another block survive.
"""

import logging
from dataclasses import dataclass, field

from chainindexer.domain.enums import IndexName, MiniBlockType
from chainindexer.domain.models.chain import Body, Header
from chainindexer.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    QueryFailuresError,
    RollbackError,
    RollbackFailure,
)
from chainindexer.infra.store.client import DocumentStoreClient

logger = logging.getLogger(__name__)

TX_MINI_BLOCKS = (MiniBlockType.TX_BLOCK, MiniBlockType.INVALID, MiniBlockType.REWARDS)


@dataclass
class BlockHashes:
    transactions: list[str] = field(default_factory=list)
    sc_results: list[str] = field(default_factory=list)
    receipts: list[str] = field(default_factory=list)

    @property
    def with_logs(self) -> list[str]:
        return self.transactions + self.sc_results


@dataclass
class DeletePlan:
    index: str
    query: dict
    doc_ids: list[str] = field(default_factory=list)


def collect_hashes(body: Body) -> BlockHashes:
    hashes = BlockHashes()
    for mini_block in body.mini_blocks:
        encoded = [h.hex() for h in mini_block.tx_hashes]
        if mini_block.type in TX_MINI_BLOCKS:
            hashes.transactions.extend(encoded)
        elif mini_block.type == MiniBlockType.SMART_CONTRACT_RESULT:
            hashes.sc_results.extend(encoded)
        elif mini_block.type == MiniBlockType.RECEIPT:
            hashes.receipts.extend(encoded)
    return hashes


def _ids_at(ids: list[str], timestamp: int) -> dict:
    return {"bool": {"filter": [{"ids": {"values": ids}}, {"term": {"timestamp": timestamp}}]}}


def _block_rows(header: Header) -> dict:
    return {"bool": {"filter": [{"term": {"timestamp": header.timestamp}}, {"term": {"shardID": header.shard_id}}]}}


def _events_of(tx_hashes: list[str], header: Header) -> dict:
    return {
        "bool": {
            "filter": [
                {"terms": {"txHash": tx_hashes}},
                {"term": {"shardID": header.shard_id}},
                {"term": {"timestamp": header.timestamp}},
            ]
        }
    }


class RollbackCoordinator:
    def __init__(
        self,
        store: DocumentStoreClient,
        enabled_indexes: list[str] | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        if store is None:
            raise ConfigurationError("RollbackCoordinator: nil store client")
        self._store = store
        self._enabled = set(enabled_indexes) if enabled_indexes is not None else {i.value for i in IndexName}
        self._log = log or logger

    def plan(self, header: Header, body: Body) -> list[DeletePlan]:
        hashes = collect_hashes(body)
        ts = header.timestamp
        plans: list[DeletePlan] = []

        def by_ids(index: IndexName, ids: list[str]) -> None:
            if ids:
                plans.append(DeletePlan(index.value, _ids_at(ids, ts), ids))

        by_ids(IndexName.TRANSACTIONS, hashes.transactions)
        by_ids(IndexName.OPERATIONS, hashes.with_logs)
        by_ids(IndexName.SC_RESULTS, hashes.sc_results)
        by_ids(IndexName.RECEIPTS, hashes.receipts)
        by_ids(IndexName.LOGS, hashes.with_logs)
        if hashes.with_logs:
            plans.append(DeletePlan(IndexName.EVENTS.value, _events_of(hashes.with_logs, header), hashes.with_logs))

        for index in (
            IndexName.ACCOUNTS,
            IndexName.ACCOUNTS_HISTORY,
            IndexName.ACCOUNTS_DCDT,
            IndexName.ACCOUNTS_DCDT_HISTORY,
        ):
            plans.append(DeletePlan(index.value, _block_rows(header)))

        return [p for p in plans if p.index in self._enabled]

    async def rollback(self, header: Header, body: Body) -> None:
        """Run every deletion; failures are collected and raised together at the end."""
        failures: list[RollbackFailure] = []
        deleted = 0
        for plan in self.plan(header, body):
            try:
                deleted += await self._store.delete_by_query(plan.index, plan.query)
            except ExternalServiceError as exc:
                self._log.error("rollback of %s failed for round %d: %s", plan.index, header.round, exc)
                failed_ids = [f.doc_id for f in exc.failures if f.doc_id] if isinstance(exc, QueryFailuresError) else []
                failures.append(RollbackFailure(index=plan.index, doc_ids=failed_ids or plan.doc_ids, error=exc))

        self._log.info(
            "rolled back round=%d shard=%d: %d documents deleted, %d failures",
            header.round, header.shard_id, deleted, len(failures),
        )
        if failures:
            raise RollbackError(failures)
