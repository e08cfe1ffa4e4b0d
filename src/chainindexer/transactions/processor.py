"""EntityCorrelator: group a block's pool by mini-block and join txs with their SCRs and receipts."""

import json
import logging

from chainindexer.converters.hashing import Hasher
from chainindexer.domain.enums import MiniBlockType, TxStatus
from chainindexer.domain.models import BlockContext, FeeData, ScResultDocument, TransactionDocument
from chainindexer.domain.models.chain import MiniBlock, OutportBlock
from chainindexer.exceptions import ConfigurationError
from chainindexer.prepared import PreparedResults
from chainindexer.transactions.builder import TransactionBuilder

logger = logging.getLogger(__name__)

GAS_REFUND_FOR_RELAYER_MESSAGE = "gas refund for relayer"
_OK_RETURN_CODE = "6f6b"  # hex("ok")
_TX_MINIBLOCKS = {MiniBlockType.TX_BLOCK, MiniBlockType.INVALID}


def return_code(data: bytes) -> str | None:
    """The hex return code of SCR data shaped like ``@<code>@...``, if any."""
    text = data.decode("utf-8", errors="replace")
    if not text.startswith("@"):
        return None
    parts = text.split("@")
    return parts[1] if len(parts) > 1 else None


def is_error_result(scr: ScResultDocument) -> bool:
    code = return_code(scr.data or b"")
    return code is not None and code not in ("", _OK_RETURN_CODE)


class TransactionsProcessor:
    def __init__(self, builder: TransactionBuilder, hasher: Hasher, log: logging.Logger | None = None) -> None:
        if builder is None or hasher is None:
            raise ConfigurationError("TransactionsProcessor needs a builder and a hasher")
        self._builder = builder
        self._hasher = hasher
        self._log = log or logger

    def prepare(self, block: OutportBlock, context: BlockContext) -> PreparedResults:
        pool = block.transaction_pool
        results = PreparedResults()
        scr_miniblocks: dict[str, str] = {}

        for mini_block in block.body.mini_blocks:
            mb_hash = self.mini_block_hash(mini_block)
            for raw_hash in mini_block.tx_hashes:
                tx_hash = raw_hash.hex()
                if mini_block.type in _TX_MINIBLOCKS:
                    info = pool.transactions.get(tx_hash) or pool.invalid_txs.get(tx_hash)
                    if info is None:
                        self._log.debug("tx %s of mini-block %s not in pool", tx_hash, mb_hash)
                        continue
                    results.transactions.append(
                        self._builder.build_transaction(info, tx_hash, mini_block, mb_hash, context)
                    )
                elif mini_block.type == MiniBlockType.REWARDS:
                    reward = pool.rewards.get(tx_hash)
                    if reward is None:
                        self._log.debug("reward %s of mini-block %s not in pool", tx_hash, mb_hash)
                        continue
                    results.transactions.append(
                        self._builder.build_reward(reward, tx_hash, mini_block, mb_hash, context)
                    )
                elif mini_block.type == MiniBlockType.SMART_CONTRACT_RESULT:
                    scr_miniblocks[tx_hash] = mb_hash

        # intra-shard results are not always listed in a mini-block, so take the whole pool
        for scr_hash, scr_info in pool.smart_contract_results.items():
            results.sc_results.append(
                self._builder.build_scr(scr_info, scr_hash, scr_miniblocks.get(scr_hash, ""), context)
            )
        for receipt_hash, receipt in pool.receipts.items():
            results.receipts.append(self._builder.build_receipt(receipt, receipt_hash, context))

        results.reindex()
        self._attach_sc_results(results)
        self._attach_receipts(results)
        return results

    def mini_block_hash(self, mini_block: MiniBlock) -> str:
        payload = json.dumps(
            {
                "type": mini_block.type.value,
                "senderShardID": mini_block.sender_shard_id,
                "receiverShardID": mini_block.receiver_shard_id,
                "txHashes": [h.hex() for h in mini_block.tx_hashes],
            },
            separators=(",", ":"),
        )
        return self._hasher.compute(payload).hex()

    def _attach_sc_results(self, results: PreparedResults) -> None:
        for scr in results.sc_results:
            if not scr.original_tx_hash:
                continue
            tx = results.tx(scr.original_tx_hash)
            if tx is None:
                if self._is_refund(scr, None) and scr.gas_used:
                    results.tx_hash_fee[scr.original_tx_hash] = self._fee_data(scr)
                continue

            tx.has_sc_results = True
            tx.sc_results.append(scr)
            if is_error_result(scr):
                tx.status = TxStatus.FAIL.value

            if self._is_refund(scr, tx):
                scr.is_refund = True
                if scr.gas_used:
                    fee = self._fee_data(scr)
                    tx.fee, tx.fee_num, tx.gas_used = fee.fee, fee.fee_num, fee.gas_used

    def _attach_receipts(self, results: PreparedResults) -> None:
        for receipt in results.receipts:
            tx = results.tx(receipt.tx_hash)
            if tx is None:
                continue
            tx.receipt_hashes.append(receipt.hash)
            if receipt.data == GAS_REFUND_FOR_RELAYER_MESSAGE:
                continue
            self._apply_refund(tx, receipt.value)

    def _apply_refund(self, tx: TransactionDocument, raw_refund: str) -> None:
        try:
            refund = int(raw_refund)
            paid = int(tx.initial_paid_fee or tx.fee)
        except ValueError:
            self._log.warning("cannot apply refund %r to tx %s", raw_refund, tx.hash)
            return
        if refund <= 0:
            return
        fee = max(paid - refund, 0)
        tx.fee = str(fee)
        tx.fee_num = self._builder.amount_as_float(tx.fee, tx.hash, "fee")
        if tx.gas_price:
            tx.gas_used = max(tx.gas_limit - refund // tx.gas_price, 0)

    @staticmethod
    def _is_refund(scr: ScResultDocument, tx: TransactionDocument | None) -> bool:
        if return_code(scr.data or b"") != _OK_RETURN_CODE or scr.value in ("", "0"):
            return False
        return tx is None or scr.receiver == tx.sender

    def _fee_data(self, scr: ScResultDocument) -> FeeData:
        return FeeData(
            fee=scr.fee,
            fee_num=self._builder.amount_as_float(scr.fee, scr.hash, "fee"),
            gas_used=scr.gas_used,
        )
