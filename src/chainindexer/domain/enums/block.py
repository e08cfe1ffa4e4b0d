from enum import Enum


class MiniBlockType(str, Enum):
    TX_BLOCK = "TxBlock"
    SMART_CONTRACT_RESULT = "SmartContractResultBlock"
    INVALID = "InvalidBlock"
    RECEIPT = "ReceiptBlock"
    REWARDS = "RewardsBlock"
    PEER = "PeerBlock"
