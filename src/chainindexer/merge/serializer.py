"""MergeProtocolSerializer: one block's prepared results in, ordered bulk bodies out."""

import logging

from chainindexer.converters.hashing import Hasher
from chainindexer.domain.enums import IndexName
from chainindexer.domain.models import BlockContext
from chainindexer.exceptions import ConfigurationError
from chainindexer.merge import accounts, logs, tokens, transactions
from chainindexer.merge.bulk import DEFAULT_MAX_BULK_SIZE, BulkBuffer
from chainindexer.prepared import PreparedResults

logger = logging.getLogger(__name__)


class MergeProtocolSerializer:
    """Turns every fact of a block into a replay-safe store mutation.

    Only indexes listed in ``enabled_indexes`` are written. Mutations are
    emitted index by index, transactions first and account rows last, so a
    body split never reorders two mutations of the same document.
    """

    def __init__(
        self,
        hasher: Hasher,
        enabled_indexes: list[str] | None = None,
        bulk_max_size: int = DEFAULT_MAX_BULK_SIZE,
        log: logging.Logger | None = None,
    ) -> None:
        if hasher is None:
            raise ConfigurationError("MergeProtocolSerializer: nil hasher")
        self._hasher = hasher
        self._enabled = set(enabled_indexes) if enabled_indexes is not None else {i.value for i in IndexName}
        self._bulk_max_size = bulk_max_size
        self._log = log or logger

    def is_enabled(self, index: IndexName) -> bool:
        return index.value in self._enabled

    def serialize(self, results: PreparedResults, context: BlockContext) -> BulkBuffer:
        buffer = BulkBuffer(self._bulk_max_size)

        self._serialize_transactions(buffer, results, context)
        self._serialize_logs(buffer, results)
        self._serialize_tokens(buffer, results)
        self._serialize_accounts(buffer, results)

        self._log.debug(
            "serialized block round=%d shard=%d into %d actions, %d bodies",
            context.round, context.shard_id, len(buffer), len(buffer.bodies()),
        )
        return buffer

    def _serialize_transactions(self, buffer: BulkBuffer, results: PreparedResults, context: BlockContext) -> None:
        if self.is_enabled(IndexName.TRANSACTIONS):
            index = IndexName.TRANSACTIONS.value
            transactions.serialize_transactions(
                buffer, results.transactions, results.tx_hash_status.get_all(), context.shard_id, index
            )
            transactions.serialize_fee_updates(buffer, results.tx_hash_fee, index)
        if self.is_enabled(IndexName.OPERATIONS):
            transactions.serialize_operations(
                buffer, results.transactions, results.sc_results, context.shard_id, IndexName.OPERATIONS.value
            )
        if self.is_enabled(IndexName.SC_RESULTS):
            transactions.serialize_sc_results(buffer, results.sc_results, IndexName.SC_RESULTS.value)
        if self.is_enabled(IndexName.RECEIPTS):
            transactions.serialize_receipts(buffer, results.receipts, IndexName.RECEIPTS.value)

    def _serialize_logs(self, buffer: BulkBuffer, results: PreparedResults) -> None:
        if self.is_enabled(IndexName.LOGS):
            logs.serialize_logs(buffer, results.logs, IndexName.LOGS.value)
        if self.is_enabled(IndexName.EVENTS):
            logs.serialize_events(buffer, results.events, IndexName.EVENTS.value)
        if self.is_enabled(IndexName.SC_DEPLOYS):
            logs.serialize_sc_deploys(buffer, results.sc_deploys, IndexName.SC_DEPLOYS.value)
            logs.serialize_change_owners(buffer, results.change_owner_operations, IndexName.SC_DEPLOYS.value)
        if self.is_enabled(IndexName.DELEGATORS):
            logs.serialize_delegators(buffer, results.delegators, self._hasher, IndexName.DELEGATORS.value)

    def _serialize_tokens(self, buffer: BulkBuffer, results: PreparedResults) -> None:
        if self.is_enabled(IndexName.TOKENS):
            index = IndexName.TOKENS.value
            tokens.serialize_tokens(buffer, results.tokens_info, index)
            tokens.serialize_tokens(buffer, results.tokens_created.get_all(), index)
            tokens.serialize_roles(buffer, results.token_roles_and_properties.roles, index)
            tokens.serialize_properties(buffer, results.token_roles_and_properties.properties, index)
            tokens.serialize_nft_updates(buffer, results.nft_updates, index, account_rows=False)
        if self.is_enabled(IndexName.TAGS):
            tokens.serialize_tags(buffer, results.tags.items(), IndexName.TAGS.value)

    def _serialize_accounts(self, buffer: BulkBuffer, results: PreparedResults) -> None:
        if self.is_enabled(IndexName.ACCOUNTS):
            accounts.serialize_accounts(buffer, results.accounts, IndexName.ACCOUNTS.value)
        if self.is_enabled(IndexName.ACCOUNTS_DCDT):
            accounts.serialize_token_accounts(buffer, results.accounts_dcdt, IndexName.ACCOUNTS_DCDT.value)
            tokens.serialize_nft_updates(buffer, results.nft_updates, IndexName.ACCOUNTS_DCDT.value, account_rows=True)
        if self.is_enabled(IndexName.ACCOUNTS_HISTORY):
            accounts.serialize_history(buffer, results.accounts_history, IndexName.ACCOUNTS_HISTORY.value)
        if self.is_enabled(IndexName.ACCOUNTS_DCDT_HISTORY):
            accounts.serialize_history(buffer, results.accounts_dcdt_history, IndexName.ACCOUNTS_DCDT_HISTORY.value)
