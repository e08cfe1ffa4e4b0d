from enum import Enum


class TxStatus(str, Enum):
    SUCCESS = "success"
    PENDING = "pending"
    FAIL = "fail"
    INVALID = "invalid"
    REWARD_REVERTED = "reward-reverted"


class OperationType(str, Enum):
    """``type`` field of documents in the operations index."""

    NORMAL = "normal"
    UNSIGNED = "unsigned"
    REWARD = "reward"
