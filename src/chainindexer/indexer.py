"""BlockIndexer: drives one block through correlation, classification, merge and the store."""

import asyncio
import logging

from chainindexer.accounts.processor import AccountsProcessor
from chainindexer.domain.enums import IndexName, TokenType
from chainindexer.domain.models import BlockContext
from chainindexer.domain.models.chain import Body, Header, OutportBlock
from chainindexer.events.classifier import EventClassifier
from chainindexer.events.logs import LogsPreparer
from chainindexer.exceptions import ConfigurationError
from chainindexer.infra.store.client import DocumentStoreClient
from chainindexer.merge import scripts
from chainindexer.merge.serializer import MergeProtocolSerializer
from chainindexer.prepared import PreparedResults
from chainindexer.rollback.coordinator import RollbackCoordinator
from chainindexer.transactions.processor import TransactionsProcessor

logger = logging.getLogger(__name__)


class BlockIndexer:
    """Processes one block at a time; no state survives between blocks."""

    def __init__(
        self,
        store: DocumentStoreClient,
        transactions_processor: TransactionsProcessor,
        logs_preparer: LogsPreparer,
        classifier: EventClassifier,
        accounts_processor: AccountsProcessor,
        serializer: MergeProtocolSerializer,
        rollback: RollbackCoordinator,
        num_shards: int = 3,
        log: logging.Logger | None = None,
    ) -> None:
        collaborators = {
            "store": store,
            "transactions_processor": transactions_processor,
            "logs_preparer": logs_preparer,
            "classifier": classifier,
            "accounts_processor": accounts_processor,
            "serializer": serializer,
            "rollback": rollback,
        }
        missing = [name for name, value in collaborators.items() if value is None]
        if missing:
            raise ConfigurationError(f"BlockIndexer: missing {', '.join(missing)}")

        self._store = store
        self._transactions = transactions_processor
        self._logs = logs_preparer
        self._classifier = classifier
        self._accounts = accounts_processor
        self._serializer = serializer
        self._rollback = rollback
        self._num_shards = num_shards
        self._log = log or logger

    def prepare(self, block: OutportBlock) -> tuple[BlockContext, PreparedResults]:
        """Everything that needs no I/O: correlation, log classification, account split."""
        context = BlockContext.from_block(block, self._num_shards)
        results = self._transactions.prepare(block, context)

        logs = block.transaction_pool.logs
        self._logs.prepare(logs, context, results)
        self._classifier.classify(logs, context, results)
        self._accounts.process(block.altered_accounts, context, results)
        return context, results

    async def save_block(self, block: OutportBlock, timeout: float | None = None) -> PreparedResults:
        """Index one block. Bodies are sent in order; the first failure or the timeout stops the rest."""
        context, results = self.prepare(block)

        async with asyncio.timeout(timeout):
            await self._resolve_token_types(results)
            buffer = self._serializer.serialize(results, context)
            bodies = buffer.bodies()
            for body in bodies:
                await self._store.bulk(body)

            await self._backfill_token_types(results)
            await self._reconcile_burned_nfts(results)

        self._log.info(
            "indexed block round=%d shard=%d txs=%d scrs=%d events=%d accounts=%d bulk_bodies=%d",
            context.round, context.shard_id, len(results.transactions), len(results.sc_results),
            len(results.events), len(results.accounts) + len(results.accounts_dcdt), len(bodies),
        )
        return results

    async def remove_block(self, header: Header, body: Body, timeout: float | None = None) -> None:
        async with asyncio.timeout(timeout):
            await self._rollback.rollback(header, body)

    async def _resolve_token_types(self, results: PreparedResults) -> None:
        """Give NFT balance rows and created instances the type of their already-issued collection."""
        untyped = {doc.token for doc in results.accounts_dcdt.values() if doc.type is None and doc.token}
        untyped.update(results.tokens_created.get_all_tokens())
        if not untyped:
            return

        found = await self._store.multi_get(IndexName.TOKENS.value, sorted(untyped))
        for token, source in found.items():
            token_type = source.get("type")
            if not token_type:
                continue
            results.tokens_created.add_type_for_token(token, token_type)
            for doc in results.accounts_dcdt.values():
                if doc.token == token and doc.type is None:
                    doc.type = token_type

    async def _backfill_token_types(self, results: PreparedResults) -> None:
        """Collections issued in this block type the rows written before the issue was indexed."""
        for info in results.tokens_info:
            if info.transfer_ownership or not info.type or info.type == TokenType.FUNGIBLE.value:
                continue
            script = scripts.set_fields({"type": info.type}).to_body()
            query = {"bool": {"filter": [{"term": {"token": info.token}}]}}
            for index in (IndexName.ACCOUNTS_DCDT, IndexName.TOKENS):
                if self._serializer.is_enabled(index):
                    await self._store.update_by_query(index.value, query, script)

    async def _reconcile_burned_nfts(self, results: PreparedResults) -> None:
        """Drop NFT documents that no account holds after a burn or wipe."""
        if not self._serializer.is_enabled(IndexName.TOKENS):
            return
        for info in results.tokens_supply.get_all():
            identifier = info.identifier
            if not identifier:
                continue
            holders = await self._store.count(IndexName.ACCOUNTS_DCDT.value, {"term": {"identifier": identifier}})
            if holders == 0:
                self._log.debug("no holder left for %s, removing token document", identifier)
                await self._store.delete_by_ids(IndexName.TOKENS.value, [identifier])
