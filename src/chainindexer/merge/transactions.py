"""Bulk mutations for the transaction, operation, SCR and receipt indexes."""

from chainindexer.converters.fields import AT_SEPARATOR
from chainindexer.domain.enums import EventIdentifier, OperationType
from chainindexer.domain.models import FeeData, ReceiptDocument, ScResultDocument, StatusInfo, TransactionDocument
from chainindexer.merge import scripts
from chainindexer.merge.bulk import BulkBuffer

MIN_ARGS_NFT_TRANSFER = 4

NFT_TRANSFER_FUNCTIONS = (EventIdentifier.NFT_TRANSFER.value, EventIdentifier.MULTI_NFT_TRANSFER.value)


def is_cross_shard_on_source_shard(tx: TransactionDocument, self_shard_id: int) -> bool:
    return tx.sender_shard != tx.receiver_shard and tx.sender_shard == self_shard_id


def is_nft_transfer_or_multi_transfer(tx: TransactionDocument) -> bool:
    if tx.sender_shard != tx.receiver_shard or not tx.data:
        return False
    parts = tx.data.decode("utf-8", errors="replace").split(AT_SEPARATOR)
    if len(parts) < MIN_ARGS_NFT_TRANSFER:
        return False
    return parts[0] in NFT_TRANSFER_FUNCTIONS


def serialize_transaction(
    buffer: BulkBuffer,
    tx: TransactionDocument,
    self_shard_id: int,
    index: str,
    extra: dict | None = None,
) -> None:
    """Pick the merge rule for one transaction document.

    Source-shard copies of cross-shard txs never overwrite anything, intra-shard
    NFT transfers keep outcome fields written by status updates, everything else
    is the final version of the document.
    """
    source = tx.to_source()
    if extra:
        source.update(extra)

    if is_cross_shard_on_source_shard(tx, self_shard_id):
        buffer.update(index, tx.hash, scripts.noop_if_exists(), upsert=source)
        return
    if is_nft_transfer_or_multi_transfer(tx):
        buffer.update(index, tx.hash, scripts.keep_tx_outcome(source), scripted_upsert=True)
        return
    buffer.index(index, tx.hash, source)


def serialize_transactions(
    buffer: BulkBuffer,
    transactions: list[TransactionDocument],
    status_records: dict[str, StatusInfo],
    self_shard_id: int,
    index: str,
) -> None:
    for tx in transactions:
        serialize_transaction(buffer, tx, self_shard_id, index)
    serialize_status_records(buffer, status_records, index)


def serialize_status_records(buffer: BulkBuffer, status_records: dict[str, StatusInfo], index: str) -> None:
    for tx_hash, record in status_records.items():
        upsert = TransactionDocument(
            status=record.status,
            error_event=record.error_event or None,
            completed_event=record.completed_event or None,
        ).to_source()
        buffer.update(index, tx_hash, scripts.apply_status_info(record.to_params()), upsert=upsert)


def serialize_fee_updates(buffer: BulkBuffer, fees: dict[str, FeeData], index: str) -> None:
    for tx_hash, fee in fees.items():
        script = scripts.patch_existing({"fee": fee.fee, "feeNum": fee.fee_num, "gasUsed": fee.gas_used})
        buffer.update(index, tx_hash, script, scripted_upsert=True)


def serialize_sc_results(buffer: BulkBuffer, sc_results: list[ScResultDocument], index: str) -> None:
    for scr in sc_results:
        buffer.index(index, scr.hash, scr.to_source())


def serialize_receipts(buffer: BulkBuffer, receipts: list[ReceiptDocument], index: str) -> None:
    for receipt in receipts:
        buffer.index(index, receipt.hash, receipt.to_source())


def serialize_operations(
    buffer: BulkBuffer,
    transactions: list[TransactionDocument],
    sc_results: list[ScResultDocument],
    self_shard_id: int,
    index: str,
) -> None:
    """The operations index holds transactions and SCRs side by side, told apart by ``type``."""
    for tx in transactions:
        tx_type = tx.type or OperationType.NORMAL.value
        if tx.operation == OperationType.REWARD.value:
            tx_type = OperationType.REWARD.value
        serialize_transaction(buffer, tx, self_shard_id, index, extra={"type": tx_type})
    for scr in sc_results:
        source = scr.to_source()
        source["type"] = OperationType.UNSIGNED.value
        buffer.index(index, scr.hash, source)
