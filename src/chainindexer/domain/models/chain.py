"""Block notification as pushed by the node's outport driver."""

from pydantic import Field

from chainindexer.domain.enums import MiniBlockType
from chainindexer.domain.models.base import B64Bytes, CamelModel


class Header(CamelModel):
    round: int = 0
    timestamp: int = 0
    shard_id: int = Field(0, alias="shardID")
    epoch: int = 0
    nonce: int = 0


class MiniBlock(CamelModel):
    type: MiniBlockType = MiniBlockType.TX_BLOCK
    sender_shard_id: int = Field(0, alias="senderShardID")
    receiver_shard_id: int = Field(0, alias="receiverShardID")
    tx_hashes: list[B64Bytes] = []


class Body(CamelModel):
    mini_blocks: list[MiniBlock] = []


class BlockData(CamelModel):
    hash: str = ""
    header: Header
    body: Body = Body()


class FeeInfo(CamelModel):
    gas_used: int = 0
    fee: str = "0"
    initial_paid_fee: str = "0"


class Transaction(CamelModel):
    nonce: int = 0
    value: str = "0"
    rcv_addr: B64Bytes = b""
    rcv_user_name: B64Bytes = b""
    snd_addr: B64Bytes = b""
    snd_user_name: B64Bytes = b""
    gas_price: int = 0
    gas_limit: int = 0
    data: B64Bytes = b""
    signature: B64Bytes = b""
    version: int = 0
    guardian_addr: B64Bytes = b""
    guardian_signature: B64Bytes = b""


class TxInfo(CamelModel):
    transaction: Transaction
    fee_info: FeeInfo = FeeInfo()
    execution_order: int = 0


class SmartContractResult(CamelModel):
    nonce: int = 0
    value: str = "0"
    rcv_addr: B64Bytes = b""
    snd_addr: B64Bytes = b""
    relayer_addr: B64Bytes = b""
    relayed_value: str = ""
    code: B64Bytes = b""
    data: B64Bytes = b""
    prev_tx_hash: B64Bytes = b""
    original_tx_hash: B64Bytes = b""
    gas_limit: int = 0
    gas_price: int = 0
    call_type: int = 0
    code_metadata: B64Bytes = b""
    return_message: B64Bytes = b""
    original_sender: B64Bytes = b""


class SCRInfo(CamelModel):
    smart_contract_result: SmartContractResult
    fee_info: FeeInfo = FeeInfo()
    execution_order: int = 0


class Receipt(CamelModel):
    value: str = "0"
    snd_addr: B64Bytes = b""
    data: B64Bytes = b""
    tx_hash: B64Bytes = b""


class RewardTx(CamelModel):
    round: int = 0
    value: str = "0"
    rcv_addr: B64Bytes = b""
    epoch: int = 0


class RewardInfo(CamelModel):
    reward: RewardTx
    execution_order: int = 0


class Event(CamelModel):
    address: B64Bytes = b""
    identifier: str = ""
    topics: list[B64Bytes] = []
    data: B64Bytes = b""
    additional_data: list[B64Bytes] = []


class Log(CamelModel):
    address: B64Bytes = b""
    events: list[Event | None] = []


class LogData(CamelModel):
    tx_hash: str  # hex
    log: Log


class TransactionPool(CamelModel):
    transactions: dict[str, TxInfo] = {}
    smart_contract_results: dict[str, SCRInfo] = {}
    rewards: dict[str, RewardInfo] = {}
    receipts: dict[str, Receipt] = {}
    invalid_txs: dict[str, TxInfo] = {}
    logs: list[LogData | None] = []


class TokenMetaData(CamelModel):
    nonce: int = 0
    name: str = ""
    creator: str = ""  # encoded address
    royalties: int = 0
    hash: B64Bytes = b""
    uris: list[B64Bytes] = Field(default_factory=list, alias="URIs")
    attributes: B64Bytes = b""


class AdditionalAccountTokenData(CamelModel):
    is_nft_create: bool = Field(False, alias="isNFTCreate")


class AccountTokenData(CamelModel):
    nonce: int = 0
    identifier: str = ""
    balance: str = ""
    properties: str = ""
    meta_data: TokenMetaData | None = None
    additional_data: AdditionalAccountTokenData | None = None


class AdditionalAccountData(CamelModel):
    is_sender: bool = False
    balance_changed: bool = False
    user_name: str = ""
    current_owner: str = ""
    developer_rewards: str = ""
    code_hash: B64Bytes = b""


class AlteredAccount(CamelModel):
    address: str
    nonce: int = 0
    balance: str = ""
    tokens: list[AccountTokenData] = []
    additional_data: AdditionalAccountData | None = None


class OutportBlock(CamelModel):
    """Everything the node reports for one committed block of one shard."""

    block_data: BlockData
    transaction_pool: TransactionPool = TransactionPool()
    altered_accounts: dict[str, AlteredAccount] = {}
    num_of_shards: int = 0

    @property
    def header(self) -> Header:
        return self.block_data.header

    @property
    def body(self) -> Body:
        return self.block_data.body


class BlockContext(CamelModel, frozen=True):
    """Immutable per-pass facts about the block being processed."""

    round: int
    timestamp: int
    shard_id: int
    num_shards: int
    epoch: int = 0

    @classmethod
    def from_block(cls, block: OutportBlock, num_shards: int) -> "BlockContext":
        header = block.header
        return cls(
            round=header.round,
            timestamp=header.timestamp,
            shard_id=header.shard_id,
            num_shards=block.num_of_shards or num_shards,
            epoch=header.epoch,
        )
