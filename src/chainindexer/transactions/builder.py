"""EntityCorrelator building blocks: one chain object in, one document out."""

import base64
import logging

from chainindexer.converters.balance import BalanceConversionError, BalanceConverter, parse_big_int
from chainindexer.converters.fields import truncate_field, truncate_field_base64, truncate_slice
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.domain.enums import MiniBlockType, TxStatus
from chainindexer.domain.models import BlockContext, ReceiptDocument, ScResultDocument, TransactionDocument
from chainindexer.domain.models.chain import MiniBlock, Receipt, RewardInfo, SCRInfo, TxInfo
from chainindexer.exceptions import ConfigurationError
from chainindexer.sharding import METACHAIN_SHARD_ID, AddressShardOracle, is_smart_contract_address
from chainindexer.transactions.datafield import DataFieldParser

logger = logging.getLogger(__name__)

OPERATION_REWARD = "reward"


def is_cross_shard_on_source(mini_block: MiniBlock, self_shard_id: int) -> bool:
    return mini_block.sender_shard_id != mini_block.receiver_shard_id and mini_block.sender_shard_id == self_shard_id


def _username(raw: bytes) -> str | None:
    if not raw:
        return None
    truncated = truncate_field_base64(raw.decode("utf-8", errors="replace"))
    return base64.b64encode(truncated.encode()).decode()


def _or_none(values: list) -> list | None:
    return values or None


class TransactionBuilder:
    def __init__(
        self,
        pubkey_converter: PubkeyConverter,
        balance_converter: BalanceConverter,
        data_parser: DataFieldParser | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        if pubkey_converter is None:
            raise ConfigurationError("TransactionBuilder: nil pubkey converter")
        if balance_converter is None:
            raise ConfigurationError("TransactionBuilder: nil balance converter")
        self._pubkey = pubkey_converter
        self._balance = balance_converter
        self._parser = data_parser or DataFieldParser(pubkey_converter)
        self._log = log or logger

    def build_transaction(
        self,
        tx_info: TxInfo,
        tx_hash: str,
        mini_block: MiniBlock,
        mini_block_hash: str,
        context: BlockContext,
    ) -> TransactionDocument:
        tx = tx_info.transaction
        fee_info = tx_info.fee_info

        receiver_shard = mini_block.receiver_shard_id
        if mini_block.type == MiniBlockType.INVALID:
            # invalid mini-blocks never reached a receiver; their header shard is meaningless
            receiver_shard = AddressShardOracle(context.num_shards).compute_shard_id(tx.rcv_addr)

        parsed = self._parser.parse(tx.data, tx.snd_addr, tx.rcv_addr, context.num_shards)
        dcdt_values_num = self._values_as_float(parsed.dcdt_values, tx_hash)

        return TransactionDocument(
            hash=tx_hash,
            mini_block_hash=mini_block_hash,
            nonce=tx.nonce,
            round=context.round,
            value=tx.value,
            value_num=self._amount_as_float(tx.value, tx_hash, "value"),
            receiver=self._encode(tx.rcv_addr),
            sender=self._encode(tx.snd_addr),
            receiver_shard=receiver_shard,
            sender_shard=mini_block.sender_shard_id,
            gas_price=tx.gas_price,
            gas_limit=tx.gas_limit,
            gas_used=fee_info.gas_used,
            fee=fee_info.fee,
            fee_num=self._amount_as_float(fee_info.fee, tx_hash, "fee"),
            initial_paid_fee=fee_info.initial_paid_fee,
            data=tx.data or None,
            signature=tx.signature.hex() or None,
            timestamp=context.timestamp,
            status=self._status(mini_block, context.shard_id),
            search_order=tx_info.execution_order,
            sender_user_name=_username(tx.snd_user_name),
            receiver_user_name=_username(tx.rcv_user_name),
            is_sc_call=(is_smart_contract_address(tx.rcv_addr) and bool(parsed.function)) or None,
            tokens=_or_none(truncate_slice(parsed.tokens)),
            dcdt_values=_or_none(parsed.dcdt_values) if dcdt_values_num is not None else None,
            dcdt_values_num=dcdt_values_num,
            receivers=_or_none(parsed.receivers),
            receivers_shard_ids=_or_none(parsed.receivers_shard_ids),
            operation=parsed.operation,
            function=truncate_field(parsed.function) or None,
            is_relayed=parsed.is_relayed or None,
            version=tx.version or None,
            guardian=self._encode(tx.guardian_addr) or None,
        )

    def build_reward(
        self,
        reward_info: RewardInfo,
        tx_hash: str,
        mini_block: MiniBlock,
        mini_block_hash: str,
        context: BlockContext,
    ) -> TransactionDocument:
        reward = reward_info.reward
        return TransactionDocument(
            hash=tx_hash,
            mini_block_hash=mini_block_hash,
            nonce=0,
            round=reward.round,
            value=reward.value,
            value_num=self._amount_as_float(reward.value, tx_hash, "value"),
            receiver=self._encode(reward.rcv_addr),
            sender=str(METACHAIN_SHARD_ID),
            receiver_shard=mini_block.receiver_shard_id,
            sender_shard=mini_block.sender_shard_id,
            timestamp=context.timestamp,
            status=TxStatus.SUCCESS.value,
            search_order=reward_info.execution_order,
            operation=OPERATION_REWARD,
        )

    def build_scr(
        self,
        scr_info: SCRInfo,
        scr_hash: str,
        mini_block_hash: str,
        context: BlockContext,
    ) -> ScResultDocument:
        scr = scr_info.smart_contract_result
        oracle = AddressShardOracle(context.num_shards)
        parsed = self._parser.parse(scr.data, scr.snd_addr, scr.rcv_addr, context.num_shards)
        dcdt_values_num = self._values_as_float(parsed.dcdt_values, scr_hash)

        return ScResultDocument(
            hash=scr_hash,
            mini_block_hash=mini_block_hash,
            nonce=scr.nonce,
            gas_limit=scr.gas_limit,
            gas_price=scr.gas_price,
            value=scr.value,
            value_num=self._amount_as_float(scr.value, scr_hash, "value"),
            sender=self._encode(scr.snd_addr),
            receiver=self._encode(scr.rcv_addr),
            sender_shard=oracle.compute_shard_id(scr.snd_addr),
            receiver_shard=oracle.compute_shard_id(scr.rcv_addr),
            relayer_addr=self._encode(scr.relayer_addr) or None,
            relayed_value=scr.relayed_value or None,
            code=scr.code.decode("utf-8", errors="replace") or None,
            data=scr.data or None,
            prev_tx_hash=scr.prev_tx_hash.hex(),
            original_tx_hash=scr.original_tx_hash.hex(),
            call_type=str(scr.call_type),
            code_metadata=scr.code_metadata or None,
            return_message=scr.return_message.decode("utf-8", errors="replace") or None,
            timestamp=context.timestamp,
            operation=parsed.operation,
            function=truncate_field(parsed.function) or None,
            tokens=_or_none(truncate_slice(parsed.tokens)),
            dcdt_values=_or_none(parsed.dcdt_values) if dcdt_values_num is not None else None,
            dcdt_values_num=dcdt_values_num,
            receivers=_or_none(parsed.receivers),
            receivers_shard_ids=_or_none(parsed.receivers_shard_ids),
            is_relayed=parsed.is_relayed or None,
            original_sender=self._encode(scr.original_sender) or None,
            gas_used=scr_info.fee_info.gas_used,
            fee=scr_info.fee_info.fee,
        )

    def build_receipt(self, receipt: Receipt, receipt_hash: str, context: BlockContext) -> ReceiptDocument:
        return ReceiptDocument(
            hash=receipt_hash,
            value=receipt.value,
            sender=self._encode(receipt.snd_addr),
            data=receipt.data.decode("utf-8", errors="replace"),
            tx_hash=receipt.tx_hash.hex(),
            timestamp=context.timestamp,
        )

    def amount_as_float(self, raw: str, tx_hash: str, field: str) -> float:
        return self._amount_as_float(raw, tx_hash, field)

    @staticmethod
    def _status(mini_block: MiniBlock, self_shard_id: int) -> str:
        if mini_block.type == MiniBlockType.INVALID:
            return TxStatus.INVALID.value
        if is_cross_shard_on_source(mini_block, self_shard_id):
            return TxStatus.PENDING.value
        return TxStatus.SUCCESS.value

    def _encode(self, address: bytes) -> str:
        return self._pubkey.silent_encode(address, self._log)

    def _amount_as_float(self, raw: str, tx_hash: str, field: str) -> float:
        value = parse_big_int(raw)
        if value is None:
            self._log.warning("cannot parse %s %r of %s", field, raw, tx_hash)
            return 0.0
        try:
            return self._balance.compute_balance_as_float(value)
        except BalanceConversionError as exc:
            self._log.warning("cannot compute %s as num for %s: %s", field, tx_hash, exc)
            return 0.0

    def _values_as_float(self, values: list[str], tx_hash: str) -> list[float] | None:
        if not values:
            return None
        try:
            return self._balance.compute_slice_of_strings_as_float(values)
        except BalanceConversionError as exc:
            self._log.warning("cannot compute dcdt values as num for %s: %s", tx_hash, exc)
            return None
