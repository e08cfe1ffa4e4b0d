"""Documents written to the transaction, log and account indexes."""

from pydantic import Field

from chainindexer.domain.models.base import B64Bytes, Document
from chainindexer.domain.models.tokens import TokenMetaDataDocument


class ScResultDocument(Document):
    hash: str = Field("", exclude=True)
    mini_block_hash: str = ""
    nonce: int = 0
    gas_limit: int = 0
    gas_price: int = 0
    value: str = "0"
    value_num: float = 0.0
    sender: str = ""
    receiver: str = ""
    sender_shard: int = 0
    receiver_shard: int = 0
    relayer_addr: str | None = None
    relayed_value: str | None = None
    code: str | None = None
    data: B64Bytes | None = None
    prev_tx_hash: str = ""
    original_tx_hash: str = ""
    call_type: str = "0"
    code_metadata: B64Bytes | None = None
    return_message: str | None = None
    timestamp: int = 0
    status: str | None = None
    operation: str | None = None
    function: str | None = None
    dcdt_values: list[str] | None = None
    dcdt_values_num: list[float] | None = None
    tokens: list[str] | None = None
    receivers: list[str] | None = None
    receivers_shard_ids: list[int] | None = Field(None, alias="receiversShardIDs")
    is_relayed: bool | None = None
    original_sender: str | None = None
    has_operations: bool | None = None
    has_logs: bool | None = None
    is_refund: bool | None = None
    type: str | None = None

    # correlation-only fields
    gas_used: int = Field(0, exclude=True)
    fee: str = Field("0", exclude=True)


class ReceiptDocument(Document):
    hash: str = Field("", exclude=True)
    value: str = "0"
    sender: str = ""
    data: str = ""
    tx_hash: str = ""
    timestamp: int = 0


class TransactionDocument(Document):
    hash: str = Field("", exclude=True)
    mini_block_hash: str = ""
    nonce: int = 0
    round: int = 0
    value: str = "0"
    value_num: float = 0.0
    receiver: str = ""
    sender: str = ""
    receiver_shard: int = 0
    sender_shard: int = 0
    gas_price: int = 0
    gas_limit: int = 0
    gas_used: int = 0
    fee: str = "0"
    fee_num: float = 0.0
    initial_paid_fee: str | None = None
    data: B64Bytes | None = None
    signature: str | None = None
    timestamp: int = 0
    status: str = ""
    search_order: int = 0
    sender_user_name: str | None = None
    receiver_user_name: str | None = None
    has_sc_results: bool | None = Field(None, alias="hasScResults")
    is_sc_call: bool | None = None
    has_operations: bool | None = None
    has_logs: bool | None = None
    tokens: list[str] | None = None
    dcdt_values: list[str] | None = None
    dcdt_values_num: list[float] | None = None
    receivers: list[str] | None = None
    receivers_shard_ids: list[int] | None = Field(None, alias="receiversShardIDs")
    operation: str | None = None
    function: str | None = None
    is_relayed: bool | None = None
    version: int | None = None
    guardian: str | None = None
    error_event: bool | None = None
    completed_event: bool | None = None
    type: str | None = None

    sc_results: list[ScResultDocument] = Field(default_factory=list, exclude=True)
    receipt_hashes: list[str] = Field(default_factory=list, exclude=True)


class LogEventEntry(Document):
    address: str = ""
    identifier: str = ""
    topics: list[B64Bytes] = []
    data: B64Bytes | None = None
    additional_data: list[B64Bytes] | None = None
    order: int = 0


class LogDocument(Document):
    id: str = Field("", exclude=True)
    address: str = ""
    events: list[LogEventEntry] = []
    original_tx_hash: str | None = None
    timestamp: int = 0


class EventDocument(Document):
    id: str = Field("", exclude=True)
    tx_hash: str = ""
    log_address: str = ""
    address: str = ""
    identifier: str = ""
    data: str = ""
    additional_data: list[str] | None = None
    topics: list[str] | None = None
    order: int = 0
    shard_id: int = Field(0, alias="shardID")
    original_tx_hash: str | None = None
    timestamp: int = 0


class AccountDocument(Document):
    address: str
    nonce: int = 0
    balance: str = "0"
    balance_num: float = 0.0
    is_sender: bool | None = None
    is_smart_contract: bool | None = None
    user_name: str | None = None
    current_owner: str | None = None
    developer_rewards: str | None = None
    developer_rewards_num: float | None = None
    timestamp: int = 0
    shard_id: int = Field(0, alias="shardID")


class AccountTokenDocument(Document):
    address: str
    balance: str = "0"
    balance_num: float = 0.0
    token: str = ""
    identifier: str = ""
    token_nonce: int = 0
    properties: str | None = None
    frozen: bool | None = None
    data: TokenMetaDataDocument | None = None
    type: str | None = None
    is_sender: bool | None = None
    is_smart_contract: bool | None = None
    timestamp: int = 0
    shard_id: int = Field(0, alias="shardID")

    is_nft_create: bool = Field(False, exclude=True)


class AccountHistoryDocument(Document):
    address: str
    balance: str = "0"
    token: str | None = None
    identifier: str | None = None
    token_nonce: int | None = None
    is_sender: bool | None = None
    is_smart_contract: bool | None = None
    timestamp: int = 0
    shard_id: int = Field(0, alias="shardID")
